"""X-Request-ID middleware for request correlation and access logging.

Every response carries X-Request-ID: the caller's value when it is usable,
otherwise a fresh UUID4. The id, path and method are bound into the logging
context for the lifetime of the request; user_id is bound once the auth
middleware has attached a viewer.

Must be added LAST so it runs FIRST (outermost), so that auth failures
also carry the header.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from switchboard.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Non-UUID ids: alphanumerics, dots, hyphens, underscores
VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

logger = get_logger(__name__)


def _as_uuid(value: str) -> str | None:
    """Return the canonical lowercase form if value is a hyphenated UUID."""
    if len(value) != 36:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


def resolve_request_id(incoming: str | None) -> str:
    """Pick the request id for a request.

    Accepts the incoming header when it is at most 128 bytes and either a
    UUID (normalized to lowercase) or matches VALID_REQUEST_ID_PATTERN.
    Anything else is replaced with a new UUID4.
    """
    if incoming and len(incoming.encode("utf-8")) <= MAX_REQUEST_ID_LENGTH:
        canonical = _as_uuid(incoming)
        if canonical is not None:
            return canonical
        if VALID_REQUEST_ID_PATTERN.match(incoming):
            return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign X-Request-ID, bind logging context, emit one access log line.

    Args:
        app: The ASGI application.
        log_requests: If True, log a request_completed entry per request.
    """

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)

            viewer = getattr(request.state, "viewer", None)
            if viewer is not None:
                set_request_context(request_id, user_id=str(viewer.user_id))

            response.headers[REQUEST_ID_HEADER] = request_id

            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )
            return response

        except Exception:
            # unhandled_exception_handler renders the response
            logger.exception("request_failed")
            raise

        finally:
            clear_request_context()


def get_request_id_from_request(request: Request) -> str | None:
    """Get the request ID from request state, if the middleware ran."""
    return getattr(request.state, "request_id", None)
