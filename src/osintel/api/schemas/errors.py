"""Error response schemas for API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Request errors
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"

    # Source errors
    SOURCE_NOT_FOUND = "source_not_found"
    NO_REPORT = "no_report"
    CONFIGURATION_ERROR = "configuration_error"

    # System errors
    INTERNAL_ERROR = "internal_error"


class APIError(BaseModel):
    """Standardized API error response format.

    All API errors return this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )
    request_id: str = Field(..., description="Request ID for correlation")
    timestamp: datetime = Field(..., description="When the error occurred")

    model_config = {"json_schema_extra": {"example": {
        "error_code": "source_not_found",
        "message": "Source not found: whois_intelligence",
        "details": {"source_id": "whois_intelligence"},
        "request_id": "3f2a9c1e-5b7d-4e8a-9f01-2c3d4e5f6a7b",
        "timestamp": "2026-01-30T12:00:00Z",
    }}}
