"""Application settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "sources" / "data" / "sources.json"


class AggregationConfig(BaseModel):
    """Configuration for source aggregation behavior.

    Controls fan-out pacing, retry and caching for one aggregation engine.
    """

    # Fan-out
    stagger_ms: int = Field(default=500, ge=0)
    """Delay between successive source dispatches within one run."""

    max_concurrent_requests: int = Field(default=3, ge=1)
    """Upper bound on source queries in flight at once."""

    # Retry
    retry_attempts: int = Field(default=2, ge=1)
    """Attempts per source query, including the first one."""

    retry_backoff_base_ms: int = Field(default=2000, ge=0)
    """Linear backoff base; attempt N waits base * N before the next try."""

    # Per-request
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    """Timeout for one handler invocation."""

    # Cache
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    """How long a cached envelope stays valid."""

    normalize_queries: bool = False
    """Strip and lowercase targets before they reach the cache and handlers."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    environment: Literal["development", "test", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Source catalog
    catalog_path: Path = DEFAULT_CATALOG_PATH

    # Outbound HTTP
    http_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )

    # Aggregation
    stagger_ms: int = 500
    max_concurrent_requests: int = 3
    retry_attempts: int = 2
    retry_backoff_base_ms: int = 2000
    request_timeout_seconds: float = 10.0
    cache_ttl_seconds: float = 3600.0
    normalize_queries: bool = False

    def aggregation_config(self) -> AggregationConfig:
        """Build the aggregation config from flat environment settings."""
        return AggregationConfig(
            stagger_ms=self.stagger_ms,
            max_concurrent_requests=self.max_concurrent_requests,
            retry_attempts=self.retry_attempts,
            retry_backoff_base_ms=self.retry_backoff_base_ms,
            request_timeout_seconds=self.request_timeout_seconds,
            cache_ttl_seconds=self.cache_ttl_seconds,
            normalize_queries=self.normalize_queries,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
