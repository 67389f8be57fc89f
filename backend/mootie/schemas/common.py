"""
Mootie Backend - Response Envelope Schemas
============================================

Every endpoint answers with one envelope.

    Success (HTTP 200):
        {"success": true, "data": {...}}

    Failure (HTTP 4xx/5xx, or 207 for a partial failure):
        {
            "success": false,
            "error": "Human-readable message shown by the front end",
            "code": "validation_error",
            "details": {"field": "fileId"},
            "data": null,
            "request_id": "a1b2c3d4"
        }

`data` on a failure is only set for partial failures, where it names the
file left behind.
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response wrapper."""

    success: bool = Field(default=True)
    data: T


class ErrorResponse(BaseModel):
    """Standardized error response format for all API errors."""

    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Partial-failure state")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthData(BaseModel):
    status: str = Field(description="ok, or degraded when configuration is missing")
    version: str
    time: str = Field(description="Server time (UTC ISO 8601)")
    commit: Optional[str] = Field(default=None, description="Deployed git commit, when known")
    provider_configured: bool
    vector_store_configured: bool
    uptime_seconds: float
