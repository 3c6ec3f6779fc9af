import logging

from assessment_api.core.current_user import Principal
from assessment_api.models.assessment import Assessment
from assessment_api.schemas.assessment import AssessmentCreate, AssessmentUpdate
from assessment_api.services.policy import Action, policy_for
from assessment_api.services.store import AssessmentStore

logger = logging.getLogger(__name__)


def create_assessment(
    store: AssessmentStore,
    *,
    principal: Principal,
    obj_in: AssessmentCreate,
) -> Assessment:
    """
    Create an unpublished assessment owned by the caller.

    The course must exist and the caller must own it (admins may create in
    any course).
    """
    course = store.get_course(obj_in.course_id)
    policy_for(principal).authorize_create(course)

    assessment = Assessment(
        **obj_in.model_dump(),
        instructor_id=principal.id,
        is_published=False,
    )
    assessment = store.save(assessment)
    logger.info(
        "assessment %s created in course %s by %s",
        assessment.id,
        course.id,
        principal.id,
    )
    return assessment


def update_assessment(
    store: AssessmentStore,
    *,
    principal: Principal,
    assessment_id: int,
    obj_in: AssessmentUpdate,
) -> Assessment:
    assessment = store.get(assessment_id)
    policy_for(principal).authorize(Action.update, assessment)

    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(assessment, field, value)

    return store.save(assessment)


def set_published(
    store: AssessmentStore,
    *,
    principal: Principal,
    assessment_id: int,
    published: bool,
) -> Assessment:
    assessment = store.get(assessment_id)
    policy_for(principal).authorize(Action.update, assessment)

    assessment.is_published = published
    assessment = store.save(assessment)
    logger.info(
        "assessment %s %s by %s",
        assessment.id,
        "published" if published else "unpublished",
        principal.id,
    )
    return assessment


def delete_assessment(
    store: AssessmentStore,
    *,
    principal: Principal,
    assessment_id: int,
) -> None:
    assessment = store.get(assessment_id)
    policy_for(principal).authorize(Action.delete, assessment)

    # submissions go with it (cascade)
    store.delete_by_id(assessment.id)
    logger.info("assessment %s deleted by %s", assessment_id, principal.id)
