"""Error handling middleware for mapping exceptions to HTTP responses."""

from collections.abc import Callable
from datetime import UTC, datetime

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from osintel.api.schemas.errors import APIError, ErrorCode
from osintel.core.logging import get_logger, log_exception
from osintel.sources.catalog import SourceNotFoundError
from osintel.sources.registry import HandlerNotRegisteredError
from osintel.utils.exceptions import ConfigurationError, OsintelError

logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Maps domain exceptions to appropriate HTTP status codes and formats
    all errors using the APIError schema.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self._debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Convert exception to JSON error response."""
        request_id = getattr(request.state, "request_id", "unknown")
        status_code, error_code, message, details = self._map_exception(exc)

        if status_code >= 500:
            log_exception(logger, exc, path=request.url.path)

        error = APIError(
            error_code=error_code,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.now(UTC),
        )

        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    def _map_exception(self, exc: Exception) -> tuple[int, str, str, dict | None]:
        """Map exception to (status_code, error_code, message, details)."""
        if isinstance(exc, SourceNotFoundError):
            return (
                404,
                ErrorCode.SOURCE_NOT_FOUND.value,
                str(exc),
                {"source_id": exc.source_id},
            )

        if isinstance(exc, HandlerNotRegisteredError):
            return (
                500,
                ErrorCode.CONFIGURATION_ERROR.value,
                str(exc),
                {"source_ids": exc.source_ids},
            )

        if isinstance(exc, ConfigurationError):
            return (500, ErrorCode.CONFIGURATION_ERROR.value, str(exc), None)

        # Validation errors (Pydantic)
        if isinstance(exc, ValidationError):
            return (
                422,
                ErrorCode.VALIDATION_ERROR.value,
                "Request validation failed",
                {"errors": exc.errors(include_url=False, include_context=False)},
            )

        if isinstance(exc, ValueError):
            return (422, ErrorCode.INVALID_REQUEST.value, str(exc), None)

        if isinstance(exc, OsintelError):
            return (500, ErrorCode.INTERNAL_ERROR.value, str(exc), None)

        # Generic exceptions
        return (
            500,
            ErrorCode.INTERNAL_ERROR.value,
            "Internal server error",
            {"type": type(exc).__name__} if self._debug else None,
        )
