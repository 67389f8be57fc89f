"""
Mootie Backend - Error Envelope & Unhandled Error Middleware
==============================================================

What:  Builds the failure envelope, and turns exceptions nothing else
       handled into a 500 envelope.
How:   UnhandledErrorMiddleware is the innermost user middleware. Starlette
       sends uncaught exceptions to ServerErrorMiddleware, outside CORS and
       RequestID, so a crash answered there reaches the browser without CORS
       headers and shows up as a network error. Catching it here keeps the
       response inside the chain.
"""

import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mootie.middleware.request_id import REQUEST_ID_HEADER, request_id_var

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def request_id_for(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Build the failure envelope."""
    rid = request_id_for(request)
    headers = {REQUEST_ID_HEADER: rid} if rid else None
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": code,
            "details": details or None,
            "data": data,
            "request_id": rid,
        },
        headers=headers,
    )


def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "[%s] Unexpected error: %s",
        request_id_for(request),
        str(exc),
        exc_info=exc,
    )
    return error_response(request, 500, "internal_error", INTERNAL_ERROR_MESSAGE)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Answers any exception escaping the route handlers with the 500 envelope."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return internal_error_response(request, exc)
