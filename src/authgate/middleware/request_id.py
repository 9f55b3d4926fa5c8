"""Request ID middleware — one ID per request, in every log line and the response.

Learn: The ID comes from an incoming X-Request-ID header (so a proxy or
frontend can correlate its own logs) or is generated. Incoming values
are only trusted when they are short and printable; anything else is
replaced, so a client can't stuff arbitrary text into our logs.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"
MAX_LENGTH = 128


def _accept(value: str) -> bool:
    return 0 < len(value) <= MAX_LENGTH and value.isprintable()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request_id (and path) into structlog contextvars."""

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(HEADER, "")
        request_id = incoming if _accept(incoming) else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, path=request.url.path
        )

        response: Response = await call_next(request)
        response.headers[HEADER] = request_id
        return response
