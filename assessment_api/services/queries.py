import math
from datetime import datetime
from typing import Optional

from assessment_api.core.current_user import Principal
from assessment_api.schemas.assessment import AssessmentRead, AssessmentStatus, AssessmentSummary
from assessment_api.schemas.pagination import Page
from assessment_api.schemas.submission import SubmissionRead
from assessment_api.services.policy import Action, policy_for
from assessment_api.services.store import AssessmentFilter, AssessmentStore


def paginate(items: list, *, page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "items": items,
        "page": page,
        "total_pages": total_pages,
        "total": total,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def list_assessments(
    store: AssessmentStore,
    *,
    principal: Principal,
    now: datetime,
    course_id: Optional[int] = None,
    status: Optional[AssessmentStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Page[AssessmentSummary]:
    scope = policy_for(principal).visibility()
    flt = AssessmentFilter(
        course_id=course_id,
        instructor_id=scope.instructor_id,
        published_only=scope.published_only,
        status=status,
        now=now,
    )

    skip = (page - 1) * limit
    rows = store.find(flt, skip=skip, limit=limit)
    total = store.count(flt)

    items = [AssessmentSummary.model_validate(a) for a in rows]
    return Page[AssessmentSummary](**paginate(items, page=page, limit=limit, total=total))


def get_assessment(
    store: AssessmentStore,
    *,
    principal: Principal,
    assessment_id: int,
) -> AssessmentRead:
    """
    Fetch one assessment for a viewer.

    Anyone but the owner and admins only gets their own submission back.
    The redaction happens on the response model, never on the ORM
    relationship, so nothing can be flushed away by accident.
    """
    assessment = store.get(assessment_id)
    policy = policy_for(principal)
    policy.authorize(Action.view, assessment)

    result = AssessmentRead.model_validate(assessment)
    if not policy.sees_all_submissions(assessment):
        result.submissions = [s for s in result.submissions if s.student_id == principal.id]
    return result


def list_submissions(
    store: AssessmentStore,
    *,
    principal: Principal,
    assessment_id: int,
    page: int = 1,
    limit: int = 10,
) -> Page[SubmissionRead]:
    assessment = store.get(assessment_id)
    policy_for(principal).authorize(Action.list_submissions, assessment)

    skip = (page - 1) * limit
    rows = store.list_submissions(assessment.id, skip=skip, limit=limit)
    total = store.count_submissions(assessment.id)

    items = [SubmissionRead.model_validate(s) for s in rows]
    return Page[SubmissionRead](**paginate(items, page=page, limit=limit, total=total))
