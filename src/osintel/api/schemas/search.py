"""Search API request/response schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from osintel.sources.types import SearchType


class SearchRequest(BaseModel):
    """Request to gather intelligence about a target."""

    query: str = Field(..., min_length=1, max_length=512, description="Target identifier")
    search_type: SearchType | Literal["auto"] = Field(
        default="auto",
        description="email, domain, ip, username, or auto to detect",
    )

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        """Reject whitespace-only queries."""
        if not v.strip():
            raise ValueError("query must not be blank")
        return v.strip()

    model_config = {"json_schema_extra": {"example": {
        "query": "example.com",
        "search_type": "domain",
    }}}


class SourceQueryRequest(BaseModel):
    """Request to query a single source."""

    query: str = Field(..., min_length=1, max_length=512)
    search_type: SearchType


class SourceCatalogResponse(BaseModel):
    """Catalog statistics with enabled sources per category."""

    version: str
    statistics: dict[str, Any]
    categories: dict[str, dict[str, Any]]
