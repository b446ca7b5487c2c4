"""Source types and enums for osintel intelligence aggregation.

This module defines the core types used throughout the source system:
- Enums for search types and envelope kinds
- Immutable source descriptors loaded from the catalog
- Result envelopes and aggregated reports
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchType(str, Enum):
    """Kind of target identifier being investigated.

    Also names the catalog category whose sources are eligible.
    """

    EMAIL = "email"
    DOMAIN = "domain"
    IP = "ip"
    USERNAME = "username"


class EnvelopeDataType(str, Enum):
    """What an envelope's payload represents."""

    REAL_INTELLIGENCE = "real_intelligence"
    ERROR = "error"


class Source(BaseModel):
    """Static descriptor of one intelligence source.

    Created when the catalog loads and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    category: SearchType
    confidence: int = Field(default=50, ge=0, le=100)
    enabled: bool = True
    rate_limit_ms: int = Field(default=0, ge=0, alias="rateLimitMs")

    description: str = ""
    data_types: tuple[str, ...] = Field(default=(), alias="dataTypes")
    handler: str | None = None  # Explicit handler key, defaults to the source id
    real_intelligence: bool = Field(default=False, alias="realIntelligence")
    collection_method: str | None = Field(default=None, alias="collectionMethod")

    @property
    def handler_key(self) -> str:
        """Key used to look the source's handler up in the registry."""
        return self.handler or self.id


@dataclass(frozen=True)
class SourceQuery:
    """A target submitted by a caller for one search type."""

    target: str
    search_type: SearchType

    def normalized(self) -> "SourceQuery":
        """Return a copy with the target stripped and lowercased."""
        return SourceQuery(target=self.target.strip().lower(), search_type=self.search_type)


class ResultEnvelope(BaseModel):
    """Normalized outcome of one source query.

    Produced by the executor for both successes and failures; failures carry
    ``data["found"] = False`` and a human-readable ``data["error"]``.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    source_name: str
    query: str
    search_type: SearchType
    confidence: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    data_type: EnvelopeDataType = EnvelopeDataType.REAL_INTELLIGENCE

    @property
    def found(self) -> bool:
        """Check if the source reported data for the target."""
        return self.data.get("found") is True

    @property
    def error(self) -> str | None:
        """Get the failure message, if any."""
        return self.data.get("error")


class ReportSummary(BaseModel):
    """Summary statistics for one aggregated report."""

    model_config = ConfigDict(frozen=True)

    total_sources: int = 0
    successful_sources: int = 0
    failed_sources: int = 0
    data_found: bool = False

    @classmethod
    def from_envelopes(cls, envelopes: list[ResultEnvelope]) -> "ReportSummary":
        """Compute the summary from a set of envelopes.

        Depends only on the set of outcomes, not their order.
        """
        successful = [e for e in envelopes if e.success]
        return cls(
            total_sources=len(envelopes),
            successful_sources=len(successful),
            failed_sources=len(envelopes) - len(successful),
            data_found=any(e.found for e in successful),
        )


class AggregatedReport(BaseModel):
    """Consolidated result of querying every eligible source for one target."""

    query: str
    search_type: SearchType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sources: list[ResultEnvelope] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)

    # Run metadata
    generation: int = 0
    no_sources_available: bool = False
    superseded: bool = False

    @property
    def successful(self) -> list[ResultEnvelope]:
        """Envelopes from sources that answered."""
        return [e for e in self.sources if e.success]

    @property
    def failed(self) -> list[ResultEnvelope]:
        """Envelopes from sources that failed."""
        return [e for e in self.sources if not e.success]


class CatalogSettings(BaseModel):
    """Global settings block of the catalog document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_concurrent_requests: int = Field(default=3, ge=1, alias="maxConcurrentRequests")
    default_timeout_ms: int = Field(default=10000, gt=0, alias="defaultTimeout")
    retry_attempts: int = Field(default=2, ge=1, alias="retryAttempts")
