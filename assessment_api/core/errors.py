"""Error taxonomy for the assessment engine.

Every failure the core can signal is an ``AssessmentError`` with a stable
``kind`` and the HTTP status it maps to. Services raise these; the handler
registered in ``main.py`` renders them as ``{"kind": ..., "detail": ...}``.
"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AssessmentError(Exception):
    kind = "AssessmentError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AssessmentError):
    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"

    def __init__(self, message: str | None = None, field: str | None = None):
        super().__init__(message)
        self.field = field


class AuthError(AssessmentError):
    kind = "AuthError"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(AssessmentError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class NotFound(AssessmentError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class NotPublished(AssessmentError):
    kind = "NotPublished"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Assessment is not published"


class DuplicateSubmission(AssessmentError):
    kind = "DuplicateSubmission"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Assessment already submitted"


class SubmissionClosed(AssessmentError):
    kind = "SubmissionClosed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Submission deadline has passed"


def _error_body(exc: AssessmentError) -> dict:
    body = {"kind": exc.kind, "detail": exc.message}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
    return body


async def assessment_error_handler(request: Request, exc: AssessmentError):
    logger.warning(
        "%s %s failed: %s (%s)",
        request.method,
        request.url.path,
        exc.kind,
        exc.message,
    )
    headers = None
    if isinstance(exc, AuthError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc),
        headers=headers,
    )


def _field_path(loc) -> str:
    # drop the "body"/"query"/"path" prefix FastAPI adds
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
    err = ValidationError(message=first["msg"], field=_field_path(first["loc"]) or None)
    return await assessment_error_handler(request, err)
