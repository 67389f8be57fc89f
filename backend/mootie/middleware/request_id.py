"""
Mootie Backend - Request ID Middleware
========================================

What:  Assigns a correlation id to each incoming request and echoes it back.
How:   Takes the client's X-Request-ID header or generates a short UUID,
       stores it in a ContextVar and returns it in the response header.
Who:   Applied to every request via Starlette middleware.

The same id travels to the provider: the OpenAI client sends it as
`X-Client-Request-Id` and prefixes every log line with it, so one id ties
the browser action, the access log and the upstream call together.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local storage for the current request id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    """Short id, readable in logs."""
    return str(uuid.uuid4())[:8]


def current_request_id() -> str:
    """
    The correlation id of the request being served.

    Outside a request (scripts, tests calling services directly) a fresh id
    is generated so upstream calls are still traceable.
    """
    return request_id_var.get("") or new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Use the client's X-Request-ID header when present
        2. Otherwise generate a new short UUID
        3. Store it in the ContextVar and in request.state
        4. Add it to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
