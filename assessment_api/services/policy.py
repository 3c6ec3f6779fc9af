"""Who may do what to an assessment.

One policy object per role, resolved once per request from the principal.
The rule table:

    create                       admin, or instructor owning the course
    update/delete/grade/
    list_submissions             admin, or the assessment's instructor
    view                         published, or owner, or admin
    submit                       anyone authenticated (lifecycle decides)

Listing: admins see everything, instructors only their own assessments,
everyone else only published ones.
"""
import enum
from dataclasses import dataclass

from assessment_api.core.current_user import Principal
from assessment_api.core.errors import Forbidden
from assessment_api.models.assessment import Assessment
from assessment_api.models.course import Course


class Action(str, enum.Enum):
    view = "view"
    create = "create"
    update = "update"
    delete = "delete"
    submit = "submit"
    grade = "grade"
    list_submissions = "list_submissions"


_OWNER_ACTIONS = {Action.update, Action.delete, Action.grade, Action.list_submissions}

_DENIAL_MESSAGES = {
    Action.view: "Assessment not published",
    Action.create: "Not authorized to create assessment for this course",
    Action.update: "Not authorized to update this assessment",
    Action.delete: "Not authorized to delete this assessment",
    Action.grade: "Not authorized to grade this assessment",
    Action.list_submissions: "Not authorized to view submissions",
}


@dataclass(frozen=True)
class VisibilityScope:
    """Restrictions a listing must apply for a principal."""

    published_only: bool = False
    instructor_id: int | None = None


class Policy:
    def __init__(self, principal: Principal):
        self.principal = principal

    def is_owner(self, assessment: Assessment) -> bool:
        return assessment.instructor_id == self.principal.id

    def can_create(self, course: Course) -> bool:
        return False

    def can(self, action: Action, assessment: Assessment) -> bool:
        if action == Action.submit:
            return True
        if action == Action.view:
            return bool(assessment.is_published) or self.is_owner(assessment)
        if action in _OWNER_ACTIONS:
            return self.is_owner(assessment)
        return False

    def sees_all_submissions(self, assessment: Assessment) -> bool:
        return self.is_owner(assessment)

    def visibility(self) -> VisibilityScope:
        return VisibilityScope(published_only=True)

    def authorize(self, action: Action, assessment: Assessment) -> None:
        if not self.can(action, assessment):
            raise Forbidden(_DENIAL_MESSAGES[action])

    def authorize_create(self, course: Course) -> None:
        if not self.can_create(course):
            raise Forbidden(_DENIAL_MESSAGES[Action.create])


class StudentPolicy(Policy):
    pass


class InstructorPolicy(Policy):
    def can_create(self, course: Course) -> bool:
        return course.instructor_id == self.principal.id

    def visibility(self) -> VisibilityScope:
        return VisibilityScope(instructor_id=self.principal.id)


class AdminPolicy(Policy):
    def can_create(self, course: Course) -> bool:
        return True

    def can(self, action: Action, assessment: Assessment) -> bool:
        return True

    def sees_all_submissions(self, assessment: Assessment) -> bool:
        return True

    def visibility(self) -> VisibilityScope:
        return VisibilityScope()


def policy_for(principal: Principal) -> Policy:
    if principal.is_admin:
        return AdminPolicy(principal)
    if principal.is_instructor:
        return InstructorPolicy(principal)
    return StudentPolicy(principal)
