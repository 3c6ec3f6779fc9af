from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field, HttpUrl, field_validator, model_validator

from assessment_api.core.timeutils import as_utc
from assessment_api.models.submission import SubmissionStatus
from assessment_api.schemas.user import UserBrief

UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class SubmissionContent(BaseModel):
    """What a student hands in. Which field is used depends on the
    assessment's submission type, but only structural validity is checked."""

    text: Optional[str] = Field(default=None, min_length=1)
    file_url: Optional[str] = Field(default=None, min_length=1)
    file_name: Optional[str] = Field(default=None, min_length=1)
    github_url: Optional[HttpUrl] = None
    website_url: Optional[HttpUrl] = None

    class Config:
        extra = "forbid"

    @field_validator("text")
    @classmethod
    def reject_blank_text(cls, v):
        # stored untouched; leading whitespace can matter (code, poetry)
        if v is not None and not v.strip():
            raise ValueError("text must not be blank")
        return v

    @model_validator(mode="after")
    def require_one_field(self):
        if all(getattr(self, name) is None for name in type(self).model_fields):
            raise ValueError(
                "content must include one of text, file_url, file_name, github_url, website_url"
            )
        return self


class SubmissionCreate(BaseModel):
    content: SubmissionContent


class GradeCreate(BaseModel):
    points: float = Field(ge=0, allow_inf_nan=False)
    feedback: Optional[str] = None


class GradeRead(BaseModel):
    points: float
    raw_points: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: UTCDateTime
    graded_by: int


class SubmissionRead(BaseModel):
    id: int
    assessment_id: int
    student_id: int
    student: Optional[UserBrief] = None
    content: dict
    is_late: bool
    submitted_at: UTCDateTime
    status: SubmissionStatus
    grade: Optional[GradeRead] = None

    class Config:
        from_attributes = True
