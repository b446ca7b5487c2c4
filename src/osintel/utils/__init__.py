"""Utility modules for osintel."""

from osintel.utils.exceptions import (
    CatalogError,
    ConfigurationError,
    OsintelError,
    SourceError,
)

__all__ = [
    "OsintelError",
    "ConfigurationError",
    "SourceError",
    "CatalogError",
]
