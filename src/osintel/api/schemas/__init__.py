"""API request and response schemas."""

from .errors import APIError, ErrorCode
from .health import HealthResponse, HealthStatus
from .search import SearchRequest, SourceCatalogResponse, SourceQueryRequest

__all__ = [
    "APIError",
    "ErrorCode",
    "HealthResponse",
    "HealthStatus",
    "SearchRequest",
    "SourceCatalogResponse",
    "SourceQueryRequest",
]
