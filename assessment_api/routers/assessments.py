from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assessment_api.core.config import settings
from assessment_api.core.current_user import Principal, get_current_principal
from assessment_api.core.deps import get_db, get_now
from assessment_api.schemas.assessment import (
    AssessmentCreate,
    AssessmentRead,
    AssessmentStatus,
    AssessmentSummary,
    AssessmentUpdate,
)
from assessment_api.schemas.pagination import Page
from assessment_api.schemas.submission import GradeCreate, SubmissionCreate, SubmissionRead
from assessment_api.services import assessment_service, lifecycle, queries
from assessment_api.services.store import AssessmentStore

router = APIRouter()


def get_store(db: Session = Depends(get_db)) -> AssessmentStore:
    return AssessmentStore(db)


def _page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> tuple[int, int]:
    return page, limit


@router.get("/assessments", response_model=Page[AssessmentSummary])
def list_assessments(
    course_id: Optional[int] = None,
    status_filter: Optional[AssessmentStatus] = Query(None, alias="status"),
    paging: tuple[int, int] = Depends(_page_params),
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
    now: datetime = Depends(get_now),
):
    page, limit = paging
    return queries.list_assessments(
        store,
        principal=me,
        now=now,
        course_id=course_id,
        status=status_filter,
        page=page,
        limit=limit,
    )


@router.post(
    "/assessments",
    response_model=AssessmentRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Validation failed"},
        403: {"description": "Not the course instructor"},
        404: {"description": "Course not found"},
    },
)
def create_assessment(
    payload: AssessmentCreate,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    return assessment_service.create_assessment(store, principal=me, obj_in=payload)


@router.get("/assessments/{assessment_id}", response_model=AssessmentRead)
def get_assessment(
    assessment_id: int,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    return queries.get_assessment(store, principal=me, assessment_id=assessment_id)


@router.patch("/assessments/{assessment_id}", response_model=AssessmentRead)
def update_assessment(
    assessment_id: int,
    payload: AssessmentUpdate,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    return assessment_service.update_assessment(
        store, principal=me, assessment_id=assessment_id, obj_in=payload
    )


@router.delete("/assessments/{assessment_id}")
def delete_assessment(
    assessment_id: int,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    assessment_service.delete_assessment(store, principal=me, assessment_id=assessment_id)
    return {"message": "Assessment removed"}


@router.post("/assessments/{assessment_id}/publish", response_model=AssessmentRead)
def publish_assessment(
    assessment_id: int,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    return assessment_service.set_published(
        store, principal=me, assessment_id=assessment_id, published=True
    )


@router.post("/assessments/{assessment_id}/unpublish", response_model=AssessmentRead)
def unpublish_assessment(
    assessment_id: int,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    return assessment_service.set_published(
        store, principal=me, assessment_id=assessment_id, published=False
    )


@router.post(
    "/assessments/{assessment_id}/submit",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Not published, or deadline passed"},
        409: {"description": "Already submitted"},
    },
)
def submit_assessment(
    assessment_id: int,
    payload: SubmissionCreate,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
    now: datetime = Depends(get_now),
):
    assessment = store.get(assessment_id)
    return lifecycle.submit(
        store,
        assessment,
        me,
        payload.content.model_dump(mode="json", exclude_none=True),
        now,
    )


@router.get("/assessments/{assessment_id}/submissions", response_model=Page[SubmissionRead])
def list_submissions(
    assessment_id: int,
    paging: tuple[int, int] = Depends(_page_params),
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
):
    page, limit = paging
    return queries.list_submissions(
        store, principal=me, assessment_id=assessment_id, page=page, limit=limit
    )


@router.patch(
    "/assessments/{assessment_id}/submissions/{submission_id}/grade",
    response_model=SubmissionRead,
)
def grade_submission(
    assessment_id: int,
    submission_id: int,
    payload: GradeCreate,
    store: AssessmentStore = Depends(get_store),
    me: Principal = Depends(get_current_principal),
    now: datetime = Depends(get_now),
):
    assessment = store.get(assessment_id)
    return lifecycle.grade(
        store,
        assessment,
        submission_id,
        payload.points,
        payload.feedback,
        me,
        now,
    )
