"""Configuration module for osintel."""

from osintel.config.settings import AggregationConfig, Settings, get_settings

__all__ = ["Settings", "AggregationConfig", "get_settings"]
