"""Submission acceptance and grading rules.

An assessment moves through three informal phases, none of them stored
beyond ``is_published`` and the due date:

    unpublished  ->  published, on time  ->  published, late

Lateness is decided by comparing the caller's clock to the due date at the
moment of submission and is frozen on the submission from then on.
"""
import logging
import math
from datetime import datetime

from assessment_api.core.current_user import Principal
from assessment_api.core.errors import DuplicateSubmission, NotFound, NotPublished, SubmissionClosed
from assessment_api.core.timeutils import as_utc
from assessment_api.models.assessment import Assessment
from assessment_api.models.submission import Submission, SubmissionStatus
from assessment_api.services.policy import Action, policy_for
from assessment_api.services.store import AssessmentStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def is_late(now: datetime, due_date: datetime) -> bool:
    return as_utc(now) > as_utc(due_date)


def days_late(submitted_at: datetime, due_date: datetime) -> int:
    """Whole days past due, rounding any partial day up (1 second late == 1 day)."""
    seconds = (as_utc(submitted_at) - as_utc(due_date)).total_seconds()
    if seconds <= 0:
        return 0
    return int(math.ceil(seconds / SECONDS_PER_DAY))


def apply_late_penalty(raw_points: float, late_penalty: float, days: int) -> float:
    """
    Deduct ``late_penalty`` percent per late day.

    The fraction is not capped at 100%; a large enough delay is absorbed by
    the floor at zero instead.
    """
    if days <= 0 or late_penalty <= 0:
        return raw_points
    penalty_fraction = (late_penalty / 100) * days
    return max(0.0, raw_points * (1 - penalty_fraction))


def final_points(assessment: Assessment, submission: Submission, raw_points: float) -> float:
    if submission.is_late and assessment.late_penalty > 0:
        days = days_late(submission.submitted_at, assessment.due_date)
        return apply_late_penalty(raw_points, assessment.late_penalty, days)
    return raw_points


def submit(
    store: AssessmentStore,
    assessment: Assessment,
    student: Principal,
    content: dict,
    now: datetime,
) -> Submission:
    policy_for(student).authorize(Action.submit, assessment)

    if not assessment.is_published:
        raise NotPublished()

    if store.find_submission_by_student(assessment.id, student.id) is not None:
        raise DuplicateSubmission()

    late = is_late(now, assessment.due_date)
    if late and not assessment.allow_late_submission:
        raise SubmissionClosed()

    submission = Submission(
        assessment_id=assessment.id,
        student_id=student.id,
        content=content,
        is_late=late,
        submitted_at=as_utc(now),
        status=SubmissionStatus.submitted,
    )
    submission = store.append_submission(submission)

    logger.info(
        "submission %s accepted: assessment=%s student=%s late=%s",
        submission.id,
        assessment.id,
        student.id,
        late,
    )
    return submission


def grade(
    store: AssessmentStore,
    assessment: Assessment,
    submission_id: int,
    raw_points: float,
    feedback: str | None,
    grader: Principal,
    now: datetime,
) -> Submission:
    submission = store.find_submission(assessment.id, submission_id, for_update=True)
    if submission is None:
        raise NotFound("Submission not found")

    policy_for(grader).authorize(Action.grade, assessment)

    points = final_points(assessment, submission, raw_points)

    # regrading overwrites the grade block; is_late/submitted_at never change
    submission.points = points
    submission.raw_points = raw_points
    submission.feedback = feedback
    submission.graded_at = as_utc(now)
    submission.graded_by_id = grader.id
    submission.status = SubmissionStatus.graded

    submission = store.save_submission(submission)

    logger.info(
        "submission %s graded by %s: raw=%s final=%s late=%s",
        submission.id,
        grader.id,
        raw_points,
        points,
        submission.is_late,
    )
    return submission
