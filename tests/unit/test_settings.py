"""Unit tests for application settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from osintel.config.settings import (
    DEFAULT_CATALOG_PATH,
    AggregationConfig,
    Settings,
    get_settings,
)


class TestAggregationConfig:
    """Tests for AggregationConfig."""

    def test_defaults(self):
        """Test default pacing, retry and cache values."""
        config = AggregationConfig()
        assert config.stagger_ms == 500
        assert config.max_concurrent_requests == 3
        assert config.retry_attempts == 2
        assert config.retry_backoff_base_ms == 2000
        assert config.request_timeout_seconds == 10.0
        assert config.cache_ttl_seconds == 3600.0
        assert config.normalize_queries is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_concurrent_requests": 0},
            {"retry_attempts": 0},
            {"stagger_ms": -1},
            {"cache_ttl_seconds": 0},
            {"request_timeout_seconds": 0},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        """Test out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            AggregationConfig(**overrides)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test defaults without environment overrides."""
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.catalog_path == DEFAULT_CATALOG_PATH
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch, tmp_path: Path):
        """Test values are read from environment variables."""
        catalog = tmp_path / "catalog.json"
        monkeypatch.setenv("STAGGER_MS", "0")
        monkeypatch.setenv("NORMALIZE_QUERIES", "true")
        monkeypatch.setenv("CATALOG_PATH", str(catalog))

        settings = Settings(_env_file=None)

        assert settings.stagger_ms == 0
        assert settings.normalize_queries is True
        assert settings.catalog_path == catalog

    def test_aggregation_config(self):
        """Test flat settings map onto AggregationConfig."""
        settings = Settings(_env_file=None, stagger_ms=100, retry_attempts=4, cache_ttl_seconds=60)

        config = settings.aggregation_config()

        assert config.stagger_ms == 100
        assert config.retry_attempts == 4
        assert config.cache_ttl_seconds == 60

    def test_invalid_environment(self):
        """Test unknown environments are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="staging")

    def test_get_settings_is_cached(self):
        """Test get_settings returns a shared instance."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
