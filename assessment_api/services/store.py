import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from assessment_api.core.errors import DuplicateSubmission, NotFound
from assessment_api.models.assessment import Assessment
from assessment_api.models.course import Course
from assessment_api.models.submission import Submission
from assessment_api.schemas.assessment import AssessmentStatus

logger = logging.getLogger(__name__)


@dataclass
class AssessmentFilter:
    course_id: Optional[int] = None
    instructor_id: Optional[int] = None
    published_only: bool = False
    status: Optional[AssessmentStatus] = None
    # reference time for the open / past_due phases
    now: Optional[datetime] = None


class AssessmentStore:
    """Persistence for assessments and the submissions they own.

    Every write commits on its own and rolls the session back on failure,
    so a failed request never leaves a half-applied change behind.
    """

    def __init__(self, db: Session):
        self.db = db

    # -- assessments ---------------------------------------------------------

    def _filtered(self, flt: AssessmentFilter) -> Query:
        q = self.db.query(Assessment)
        if flt.course_id is not None:
            q = q.filter(Assessment.course_id == flt.course_id)
        if flt.instructor_id is not None:
            q = q.filter(Assessment.instructor_id == flt.instructor_id)
        if flt.published_only:
            q = q.filter(Assessment.is_published.is_(True))

        if flt.status == AssessmentStatus.draft:
            q = q.filter(Assessment.is_published.is_(False))
        elif flt.status == AssessmentStatus.open:
            q = q.filter(Assessment.is_published.is_(True), Assessment.due_date >= flt.now)
        elif flt.status == AssessmentStatus.past_due:
            q = q.filter(Assessment.is_published.is_(True), Assessment.due_date < flt.now)
        return q

    def find(self, flt: AssessmentFilter, skip: int = 0, limit: int = 10) -> List[Assessment]:
        return (
            self._filtered(flt)
            .order_by(Assessment.due_date.asc(), Assessment.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, flt: AssessmentFilter) -> int:
        return self._filtered(flt).with_entities(func.count(Assessment.id)).scalar() or 0

    def find_by_id(self, assessment_id: int) -> Optional[Assessment]:
        return self.db.get(Assessment, assessment_id)

    def get(self, assessment_id: int) -> Assessment:
        assessment = self.find_by_id(assessment_id)
        if assessment is None:
            raise NotFound("Assessment not found")
        return assessment

    def save(self, assessment: Assessment) -> Assessment:
        self.db.add(assessment)
        self._commit()
        self.db.refresh(assessment)
        return assessment

    def delete_by_id(self, assessment_id: int) -> None:
        assessment = self.get(assessment_id)
        self.db.delete(assessment)
        self._commit()

    # -- courses -------------------------------------------------------------

    def get_course(self, course_id: int) -> Course:
        course = self.db.get(Course, course_id)
        if course is None:
            raise NotFound("Course not found")
        return course

    # -- submissions ---------------------------------------------------------

    def find_submission(
        self,
        assessment_id: int,
        submission_id: int,
        *,
        for_update: bool = False,
    ) -> Optional[Submission]:
        q = self.db.query(Submission).filter(
            Submission.assessment_id == assessment_id,
            Submission.id == submission_id,
        )
        if for_update:
            q = q.with_for_update()
        return q.first()

    def find_submission_by_student(self, assessment_id: int, student_id: int) -> Optional[Submission]:
        return (
            self.db.query(Submission)
            .filter(
                Submission.assessment_id == assessment_id,
                Submission.student_id == student_id,
            )
            .first()
        )

    def append_submission(self, submission: Submission) -> Submission:
        """Insert one submission row.

        Only the new row is written, so concurrent appends by different
        students cannot overwrite each other. Two racing appends by the same
        student collide on uq_submission_assessment_student and the loser
        gets DuplicateSubmission.
        """
        self.db.add(submission)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "duplicate submission rejected by constraint: assessment=%s student=%s",
                submission.assessment_id,
                submission.student_id,
            )
            raise DuplicateSubmission()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(submission)
        return submission

    def save_submission(self, submission: Submission) -> Submission:
        self.db.add(submission)
        self._commit()
        self.db.refresh(submission)
        return submission

    def list_submissions(self, assessment_id: int, skip: int = 0, limit: int = 10) -> List[Submission]:
        return (
            self.db.query(Submission)
            .filter(Submission.assessment_id == assessment_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_submissions(self, assessment_id: int) -> int:
        return (
            self.db.query(func.count(Submission.id))
            .filter(Submission.assessment_id == assessment_id)
            .scalar()
        ) or 0

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
