"""
Voyage Backend - Shared Schemas
================================

Types and envelopes used by every service: the UTC datetime type, the error
envelope, the health payload and the catalog verify payload.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field

from voyage.database import as_utc

# Datetime normalized to aware UTC on input and output. Naive values are UTC.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "conflict",
            "message": "Email 'jane@mail.com' is already registered",
            "details": {"field": "email"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict | list] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health on every service."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    service: str = Field(description="Service name (user, trip, travel, ...)")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class VerifyResponse(BaseModel):
    """Returned by GET /{resource}/verify/{id} when the record still exists."""
    id: int
    exists: bool = True
    message: str
