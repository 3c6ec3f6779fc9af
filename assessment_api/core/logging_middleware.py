import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access-log line per request; failing requests are logged at WARNING."""

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s -> unhandled error (%.2fs)",
                request.method,
                request.url.path,
                time.monotonic() - start,
            )
            raise

        duration = time.monotonic() - start
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        query = f"?{request.url.query}" if request.url.query else ""
        logger.log(
            level,
            "%s %s%s -> %s (%.2fs)",
            request.method,
            request.url.path,
            query,
            response.status_code,
            duration,
        )

        return response
