"""Handler registry for osintel source dispatch.

This module maps catalog sources to the handlers that query them. The
mapping is closed: a source without a registered handler is a
configuration error reported when the registry is validated against the
catalog, never a silent no-op analysis at query time.
"""

from osintel.core.logging import get_logger
from osintel.utils.exceptions import ConfigurationError

from .catalog import SourceCatalog
from .protocol import SourceHandler
from .types import SearchType, Source

logger = get_logger(__name__)


class HandlerNotRegisteredError(ConfigurationError):
    """Raised when catalog sources have no handler to dispatch to."""

    def __init__(self, source_ids: list[str]):
        super().__init__(f"No handler registered for sources: {', '.join(source_ids)}")
        self.source_ids = source_ids


class HandlerRegistry:
    """Registry of source handlers.

    Handlers are registered under a key (normally the source id, or the
    source's explicit ``handler`` field) or as the default for a whole
    search type. Lookup prefers the key.

    Usage:
        registry = HandlerRegistry()
        registry.register("dns_intelligence", DnsHandler(client))
        registry.register_default(SearchType.USERNAME, SocialPresenceHandler())

        registry.validate(catalog)  # fails fast on uncovered sources
        handler = registry.resolve(source)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._handlers: dict[str, SourceHandler] = {}
        self._defaults: dict[SearchType, SourceHandler] = {}

    def register(self, key: str, handler: SourceHandler) -> None:
        """Register a handler under a key.

        Raises:
            ValueError: If the key is already registered.
        """
        if key in self._handlers:
            raise ValueError(f"Handler already registered: {key}")
        self._handlers[key] = handler
        logger.debug("handler_registered", key=key, handler=type(handler).__name__)

    def register_default(self, search_type: SearchType, handler: SourceHandler) -> None:
        """Register the fallback handler for a search type.

        Raises:
            ValueError: If the search type already has a default.
        """
        search_type = SearchType(search_type)
        if search_type in self._defaults:
            raise ValueError(f"Default handler already registered: {search_type.value}")
        self._defaults[search_type] = handler

    def find(self, source: Source) -> SourceHandler | None:
        """Find the handler for a source, or None."""
        handler = self._handlers.get(source.handler_key)
        if handler is None:
            handler = self._defaults.get(source.category)
        return handler

    def resolve(self, source: Source) -> SourceHandler:
        """Get the handler for a source.

        Raises:
            HandlerNotRegisteredError: If no handler covers the source.
        """
        handler = self.find(source)
        if handler is None:
            raise HandlerNotRegisteredError([source.id])
        return handler

    def validate(self, catalog: SourceCatalog) -> None:
        """Check that every enabled catalog source has a handler.

        Raises:
            HandlerNotRegisteredError: Listing every uncovered source.
        """
        missing = [s.id for s in catalog.all_sources() if self.find(s) is None]
        if missing:
            logger.error("handler_validation_failed", missing_sources=missing)
            raise HandlerNotRegisteredError(missing)

    @property
    def keys(self) -> list[str]:
        """Get registered handler keys."""
        return list(self._handlers)
