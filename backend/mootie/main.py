"""
Mootie Backend - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn mootie.main:app`) and the test client.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Logging → GZip → CORS     │
    │              → Unhandled Error                      │
    │                                                     │
    │  Routes (at / and /api):                            │
    │    upload-document, delete-file, list-files,        │
    │    vector-store, send-message, transcribe, tts,     │
    │    score, ai-notes, health                          │
    │                                                     │
    │  Exception Handlers:                                │
    │    Validation→400  Config→500  Upstream→502         │
    │    Timeout→504     PartialFailure→207               │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from mootie import __version__
from mootie.config import settings
from mootie.exceptions import (
    ConfigurationError,
    MootieError,
    PartialFailureError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from mootie.middleware.errors import (
    UnhandledErrorMiddleware,
    error_response,
    internal_error_response,
    request_id_for,
)
from mootie.middleware.logging import RequestLoggingMiddleware
from mootie.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from mootie.routes import chat, documents, health, scoring, speech

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Provider log lines carry the request id as a `[rid]` prefix.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from the server and the HTTP client.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging and report configuration problems.

    Missing configuration does not stop the server: scoring and health keep
    working and provider-backed endpoints answer with ConfigurationError.
    """
    setup_logging()
    logger.info("Mootie Backend %s starting up", __version__)
    for problem in settings.configuration_problems():
        logger.error("Configuration error: %s", problem)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Mootie Backend shut down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception taxonomy to HTTP statuses and the failure envelope.

    Handler hierarchy:
        ValidationError          → 400
        RequestValidationError   → 400 (malformed JSON, wrong field types)
        HTTPException            → its own status (e.g. malformed multipart)
        ConfigurationError       → 500
        PartialFailureError      → 207 (data names the file left behind)
        UpstreamTimeoutError     → 504
        UpstreamError            → 502
        MootieError (base)       → 500
        Exception (fallback)     → 500, stack trace logged only; normally
                                   answered by UnhandledErrorMiddleware first
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_for(request), exc.message)
        return error_response(request, 400, exc.code, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        if first.get("type") == "json_invalid":
            message = "Invalid JSON body."
        elif field:
            message = f"Invalid value for '{field}': {first.get('msg', 'invalid')}"
        else:
            message = "Invalid request body."
        logger.warning("[%s] Request validation error: %s", request_id_for(request), message)
        return error_response(
            request,
            400,
            ValidationError.code,
            message,
            {"field": field} if field else None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return error_response(request, exc.status_code, code, str(exc.detail))

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_for(request), exc.message)
        return error_response(request, 500, exc.code, exc.message, exc.context)

    @app.exception_handler(PartialFailureError)
    async def handle_partial_failure(request: Request, exc: PartialFailureError):
        logger.error(
            "[%s] Partial failure: %s | Context: %s",
            request_id_for(request),
            exc.message,
            exc.context,
        )
        return error_response(
            request,
            207,
            exc.code,
            exc.message,
            exc.context,
            data={
                "file_id": exc.resource_id,
                "state": exc.state,
                "failed_step": exc.failed_step,
            },
        )

    @app.exception_handler(UpstreamTimeoutError)
    async def handle_upstream_timeout(request: Request, exc: UpstreamTimeoutError):
        logger.error("[%s] Upstream timeout: %s", request_id_for(request), exc.message)
        return error_response(request, 504, exc.code, exc.message, exc.context)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error(
            "[%s] Upstream error: %s | Context: %s",
            request_id_for(request),
            exc.message,
            exc.context,
        )
        return error_response(request, 502, exc.code, exc.message, exc.context)

    @app.exception_handler(MootieError)
    async def handle_mootie_error(request: Request, exc: MootieError):
        logger.error("[%s] Application error: %s", request_id_for(request), exc.message)
        return error_response(request, 500, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        return internal_error_response(request, exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

ROUTERS = (documents.router, chat.router, speech.router, scoring.router, health.router)


def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routes."""
    app = FastAPI(
        title="Mootie API",
        description=(
            "Moot-court coaching backend: case-document indexing, persona chat with "
            "file search, speech-to-text, text-to-speech and rubric scoring."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executed in reverse order of addition: RequestID runs first and
    # UnhandledErrorMiddleware last, so crash responses still get CORS headers.
    app.add_middleware(UnhandledErrorMiddleware)
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests to a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)
        app.include_router(router, include_in_schema=False)

    return app


app = create_app()
