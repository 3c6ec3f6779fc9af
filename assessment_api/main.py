import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from assessment_api.core.config import settings
from assessment_api.core.errors import (
    AssessmentError,
    assessment_error_handler,
    request_validation_handler,
)
from assessment_api.core.logging_middleware import LoggingMiddleware
from assessment_api.db.init_db import init_db
from assessment_api.routers.assessments import router as assessments_router

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title=settings.PROJECT_NAME)

# Middleware
app.add_middleware(LoggingMiddleware)

# Errors
app.add_exception_handler(AssessmentError, assessment_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


app.include_router(assessments_router, tags=["assessments"])
