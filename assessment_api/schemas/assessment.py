from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from assessment_api.models.assessment import AssessmentType, SubmissionType
from assessment_api.schemas.course import CourseBrief
from assessment_api.schemas.submission import SubmissionRead, UTCDateTime
from assessment_api.schemas.user import UserBrief


class AssessmentStatus(str, Enum):
    """Lifecycle phase used to filter listings."""

    draft = "draft"
    open = "open"
    past_due = "past_due"


class RubricItem(BaseModel):
    criteria: str = Field(min_length=1)
    max_points: float = Field(gt=0, allow_inf_nan=False)
    description: Optional[str] = None


class AssessmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    instructions: str = Field(min_length=1)
    course_id: int
    type: AssessmentType
    max_points: float = Field(gt=0, allow_inf_nan=False)
    due_date: UTCDateTime
    allow_late_submission: bool = False
    late_penalty: float = Field(default=0, ge=0, le=100, allow_inf_nan=False)
    submission_type: SubmissionType
    allowed_file_types: Optional[list[str]] = None
    max_file_size: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    rubric: list[RubricItem] = []


class AssessmentUpdate(BaseModel):
    # course and instructor are fixed at creation, so they are not accepted here
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    instructions: Optional[str] = Field(default=None, min_length=1)
    type: Optional[AssessmentType] = None
    max_points: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    due_date: Optional[UTCDateTime] = None
    allow_late_submission: Optional[bool] = None
    late_penalty: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    submission_type: Optional[SubmissionType] = None
    allowed_file_types: Optional[list[str]] = None
    max_file_size: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    rubric: Optional[list[RubricItem]] = None
    is_published: Optional[bool] = None

    class Config:
        extra = "forbid"

    @field_validator(
        "title",
        "description",
        "instructions",
        "type",
        "max_points",
        "due_date",
        "allow_late_submission",
        "late_penalty",
        "submission_type",
        "rubric",
        "is_published",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class AssessmentSummary(BaseModel):
    """List item: everything but the submissions."""

    id: int
    title: str
    description: str
    instructions: str
    course_id: int
    course: Optional[CourseBrief] = None
    instructor_id: int
    instructor: Optional[UserBrief] = None
    type: AssessmentType
    max_points: float
    due_date: UTCDateTime
    allow_late_submission: bool
    late_penalty: float
    submission_type: SubmissionType
    allowed_file_types: Optional[list[str]] = None
    max_file_size: Optional[float] = None
    rubric: list[RubricItem] = []
    is_published: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime

    class Config:
        from_attributes = True


class AssessmentRead(AssessmentSummary):
    submissions: list[SubmissionRead] = []
