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
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from assessment_api.db.base_class import Base


class SubmissionStatus(str, enum.Enum):
    submitted = "submitted"
    graded = "graded"


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assessment_id = Column(Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # {"text", "file_url", "file_name", "github_url", "website_url"}, whichever were sent
    content = Column(JSON, nullable=False)

    # frozen at submit time
    is_late = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        Enum(SubmissionStatus, name="submission_status"),
        nullable=False,
        default=SubmissionStatus.submitted,
    )

    # Grade block (nullable until graded)
    points = Column(Float, nullable=True)
    raw_points = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_submission_assessment_student"),
    )

    assessment = relationship("Assessment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id])
    graded_by = relationship("User", foreign_keys=[graded_by_id])

    @property
    def grade(self) -> dict | None:
        if self.status != SubmissionStatus.graded:
            return None
        return {
            "points": self.points,
            "raw_points": self.raw_points,
            "feedback": self.feedback,
            "graded_at": self.graded_at,
            "graded_by": self.graded_by_id,
        }
