"""Custom exceptions for osintel."""


class OsintelError(Exception):
    """Base exception for all osintel errors."""

    pass


class ConfigurationError(OsintelError):
    """Error in configuration or settings."""

    pass


class SourceError(OsintelError):
    """Error related to an intelligence source."""

    pass


class CatalogError(SourceError):
    """Error while loading or validating the source catalog."""

    pass
