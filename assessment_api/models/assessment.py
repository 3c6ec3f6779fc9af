import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from assessment_api.db.base_class import Base


class AssessmentType(str, enum.Enum):
    assignment = "assignment"
    project = "project"
    essay = "essay"
    coding = "coding"


class SubmissionType(str, enum.Enum):
    file = "file"
    text = "text"
    url = "url"
    github = "github"


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    type = Column(Enum(AssessmentType, name="assessment_type"), nullable=False)

    max_points = Column(Float, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Late policy: latePenalty is a percentage deducted per late day
    allow_late_submission = Column(Boolean, nullable=False, default=False)
    late_penalty = Column(Float, nullable=False, default=0)

    submission_type = Column(Enum(SubmissionType, name="submission_type"), nullable=False)
    allowed_file_types = Column(JSON, nullable=True)
    max_file_size = Column(Float, nullable=True)
    # ordered list of {"criteria", "max_points", "description"}
    rubric = Column(JSON, nullable=False, default=list)

    is_published = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    course = relationship("Course", back_populates="assessments")
    instructor = relationship("User")

    # arrival order
    submissions = relationship(
        "Submission",
        back_populates="assessment",
        cascade="all, delete-orphan",
        order_by="Submission.id",
    )
