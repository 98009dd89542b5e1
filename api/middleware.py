"""Request-scoped middleware for API requests."""

import re
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Client-supplied ids are echoed only if they look like ids, never arbitrary text
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID to every request, reusing a safe incoming X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID")
        if incoming and _SAFE_REQUEST_ID.match(incoming):
            request_id = incoming
        else:
            request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def get_request_id(request: Request) -> str | None:
    """Request ID set by RequestIDMiddleware, or None outside it."""
    return getattr(request.state, "request_id", None)
