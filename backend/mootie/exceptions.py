"""
Mootie Backend - Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the failure modes of the API.
How:   Each exception carries a user-facing message and a context dict.
       Global exception handlers (registered in main.py) catch these and
       return the standard error envelope with the matching HTTP status.
Who:   Raised by settings, services and the provider client.

Exception Hierarchy:
    MootieError (base)
    ├── ConfigurationError       → 500 (missing credential or index id)
    ├── ValidationError          → 400 (client can fix the input)
    ├── UpstreamError            → 502 (provider answered non-2xx)
    │   └── UpstreamTimeoutError → 504 (provider did not answer in time)
    └── PartialFailureError      → 207 (first step of a two-step operation
                                        succeeded, the second did not)

Only GET calls to the provider are ever retried. Uploads and deletes surface
their first failure unchanged.
"""

from typing import Any, Dict, Optional

# Provider bodies are echoed back in error details, truncated to this size.
UPSTREAM_BODY_LIMIT = 200


class MootieError(Exception):
    """
    Base exception for all Mootie application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info for logs and the `details` field
    """

    code = "internal_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(MootieError):
    """
    Raised when a required credential or identifier is not configured.

    Fatal for the request and not retried: the operator has to fix the
    environment before the endpoint can work.
    """

    code = "configuration_error"

    def __init__(
        self,
        message: str = "The server is missing required configuration.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(MootieError):
    """
    Raised when client input fails validation.

    When:    No file, no fileId, empty audio, invalid JSON, unknown chat mode.
    HTTP:    400 Bad Request
    """

    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UpstreamError(MootieError):
    """
    Raised when the LLM provider returns a non-2xx response or cannot be reached.

    `status_code` is the provider's HTTP status (0 when no response arrived)
    and `body` the first UPSTREAM_BODY_LIMIT characters of what it sent back.
    """

    code = "upstream_error"

    def __init__(
        self,
        message: str = "The AI provider returned an error.",
        status_code: int = 0,
        body: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.body = (body or "")[:UPSTREAM_BODY_LIMIT]
        ctx = context or {}
        ctx["upstream_status"] = status_code
        if self.body:
            ctx["upstream_body"] = self.body
        super().__init__(message=message, context=ctx)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_retryable(self) -> bool:
        """Transport failures, throttling and provider-side errors."""
        return self.status_code == 0 or self.status_code == 429 or self.status_code >= 500


class UpstreamTimeoutError(UpstreamError):
    """
    Raised when a provider call exceeds its time budget.

    Subclasses UpstreamError so callers that tolerate any provider failure
    keep working, but it is reported distinctly (HTTP 504).
    """

    code = "upstream_timeout"

    def __init__(
        self,
        message: str = "The AI provider did not respond in time.",
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if timeout is not None:
            ctx["timeout_seconds"] = timeout
        super().__init__(message=message, status_code=0, context=ctx)
        self.timeout = timeout

    @property
    def is_retryable(self) -> bool:
        return True


class PartialFailureError(MootieError):
    """
    Raised when a two-step document operation completes only its first step.

    Upload: the file resource was created but attaching it to the vector
    store failed, so the file is orphaned. Delete: the vector store entry is
    gone but the file resource could not be deleted.

    Attributes:
        operation:    "upload" or "delete"
        state:        terminal state of the operation's state machine
        failed_step:  "attach" or "delete_file"
        resource_id:  the file id left behind, for manual or automated cleanup
    """

    code = "partial_failure"

    def __init__(
        self,
        operation: str,
        state: str,
        failed_step: str,
        resource_id: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"The {operation} of file '{resource_id}' only partially completed: "
            f"step '{failed_step}' failed."
        )
        ctx = context or {}
        ctx.update({"operation": operation, "failed_step": failed_step})
        if cause is not None:
            ctx["cause"] = getattr(cause, "message", str(cause))
            if isinstance(cause, UpstreamError):
                ctx["upstream_status"] = cause.status_code
        super().__init__(message=message, context=ctx)
        self.operation = operation
        self.state = state
        self.failed_step = failed_step
        self.resource_id = resource_id
        self.cause = cause
