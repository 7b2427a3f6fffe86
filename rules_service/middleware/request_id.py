"""
Request ID middleware for FastAPI.

Each request gets a request_id that is stored on request.state, echoed in the
X-Request-ID response header and bound to the logging context, so every log
line written while serving the request carries it.
"""

import time
import uuid

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from rules_service.core.logging_config import clear_request_id, set_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a request_id to each request and logs its start and completion.

    An incoming X-Request-ID header is reused so callers can correlate logs
    across services; otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        started = time.perf_counter()
        try:
            logger.info(f"{request.method} {request.url.path} - Request started")

            response: Response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} - Request completed with status "
                f"{response.status_code} in {duration_ms:.1f}ms"
            )
            return response

        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - Request failed: {e}")
            raise
        finally:
            clear_request_id()
