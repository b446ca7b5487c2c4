"""Source catalog for osintel.

This module loads the declarative list of intelligence sources, grouped
by search type, and answers eligibility lookups for the aggregation
engine. A catalog that cannot be loaded degrades to an empty one instead
of leaving callers with an uninitialized manager.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from osintel.core.logging import get_logger
from osintel.utils.exceptions import CatalogError, SourceError

from .types import CatalogSettings, SearchType, Source

logger = get_logger(__name__)

CATEGORY_NAMES: dict[SearchType, str] = {
    SearchType.EMAIL: "Email Intelligence",
    SearchType.DOMAIN: "Domain Intelligence",
    SearchType.USERNAME: "Username Intelligence",
    SearchType.IP: "IP Intelligence",
}


class SourceNotFoundError(SourceError):
    """Raised when a source id is not present in the catalog."""

    def __init__(self, source_id: str):
        super().__init__(f"Source not found: {source_id}")
        self.source_id = source_id


class _CategoryDocument(BaseModel):
    """One category block of the catalog document."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    description: str = ""
    sources: list[dict[str, Any]] = Field(default_factory=list)


class _CatalogDocument(BaseModel):
    """Top-level catalog document.

    Category keys must be known search types; anything else is rejected.
    """

    model_config = ConfigDict(extra="ignore")

    version: str = ""
    categories: dict[SearchType, _CategoryDocument]
    settings: CatalogSettings = Field(default_factory=CatalogSettings)


@dataclass(frozen=True)
class CatalogCategory:
    """Sources of one search type, in document order."""

    search_type: SearchType
    name: str
    description: str = ""
    sources: tuple[Source, ...] = field(default_factory=tuple)

    @property
    def enabled_sources(self) -> list[Source]:
        """Get enabled sources only."""
        return [s for s in self.sources if s.enabled]


class SourceCatalog:
    """Read-only catalog of intelligence sources.

    Usage:
        catalog = load_catalog(settings.catalog_path)

        for source in catalog.sources_for(SearchType.DOMAIN):
            ...

        source = catalog.find("dns_intelligence")
    """

    def __init__(
        self,
        categories: dict[SearchType, CatalogCategory] | None = None,
        settings: CatalogSettings | None = None,
        version: str = "",
    ):
        """Initialize the catalog.

        Every search type gets a category, even when the caller leaves it out.

        Args:
            categories: Categories keyed by search type.
            settings: Catalog-wide settings.
            version: Document version string.
        """
        categories = dict(categories or {})
        for search_type in SearchType:
            categories.setdefault(
                search_type,
                CatalogCategory(search_type=search_type, name=CATEGORY_NAMES[search_type]),
            )

        self._categories = categories
        self._settings = settings or CatalogSettings()
        self._version = version
        self._index: dict[str, Source] = {}

        for category in categories.values():
            for source in category.sources:
                if source.id in self._index:
                    raise CatalogError(f"Duplicate source id in catalog: {source.id}")
                self._index[source.id] = source

    @classmethod
    def empty(cls) -> "SourceCatalog":
        """Create a valid catalog with every category and no sources."""
        return cls()

    @classmethod
    def from_document(cls, document: Any) -> "SourceCatalog":
        """Build a catalog from a parsed catalog document.

        Args:
            document: Parsed JSON object.

        Returns:
            The loaded catalog.

        Raises:
            CatalogError: If the document does not match the catalog schema.
        """
        try:
            parsed = _CatalogDocument.model_validate(document)
            categories = {}
            for search_type, block in parsed.categories.items():
                sources = tuple(
                    Source.model_validate({**raw, "category": search_type})
                    for raw in block.sources
                )
                categories[search_type] = CatalogCategory(
                    search_type=search_type,
                    name=block.name or CATEGORY_NAMES[search_type],
                    description=block.description,
                    sources=sources,
                )
        except (ValidationError, TypeError) as e:
            raise CatalogError(f"Invalid catalog document: {e}") from e

        return cls(categories=categories, settings=parsed.settings, version=parsed.version)

    @property
    def settings(self) -> CatalogSettings:
        """Get catalog-wide settings."""
        return self._settings

    @property
    def version(self) -> str:
        """Get the document version."""
        return self._version

    @property
    def is_empty(self) -> bool:
        """Check if no enabled source is available at all."""
        return not self.all_sources()

    def sources_for(self, category: SearchType | str) -> list[Source]:
        """Get enabled sources for a search type, in document order.

        Args:
            category: Search type or its string value.

        Returns:
            Enabled sources; empty for unknown categories.
        """
        try:
            search_type = SearchType(category)
        except ValueError:
            logger.warning("catalog_unknown_category", category=str(category))
            return []
        return self._categories[search_type].enabled_sources

    def all_sources(self) -> list[Source]:
        """Get enabled sources across every category."""
        result: list[Source] = []
        for category in self._categories.values():
            result.extend(category.enabled_sources)
        return result

    def find(self, source_id: str) -> Source | None:
        """Find an enabled source by id.

        Args:
            source_id: Source identifier.

        Returns:
            The source, or None if unknown or disabled.
        """
        source = self._index.get(source_id)
        if source is None or not source.enabled:
            return None
        return source

    def get(self, source_id: str) -> Source:
        """Get an enabled source by id.

        Raises:
            SourceNotFoundError: If the source is unknown or disabled.
        """
        source = self.find(source_id)
        if source is None:
            raise SourceNotFoundError(source_id)
        return source

    def sources_by_category(self) -> dict[str, dict[str, Any]]:
        """Get enabled sources grouped by category with counts."""
        result = {}
        for search_type, category in self._categories.items():
            enabled = category.enabled_sources
            result[search_type.value] = {
                "name": category.name,
                "description": category.description,
                "sources": enabled,
                "count": len(enabled),
            }
        return result

    def get_source_info(self, source_id: str) -> dict[str, Any] | None:
        """Get descriptive information about a source.

        Args:
            source_id: Source identifier.

        Returns:
            Dict of source metadata, or None if not found.
        """
        source = self.find(source_id)
        if source is None:
            return None

        return {
            "id": source.id,
            "name": source.name,
            "description": source.description,
            "confidence": source.confidence,
            "data_types": list(source.data_types),
            "category": source.category.value,
            "enabled": source.enabled,
            "real_intelligence": source.real_intelligence,
            "collection_method": source.collection_method or "Unknown",
        }

    def get_statistics(self) -> dict[str, Any]:
        """Get catalog statistics.

        Returns:
            Dict with source counts and per-category breakdown.
        """
        breakdown = {}
        total = 0
        real = 0

        for search_type, category in self._categories.items():
            enabled = category.enabled_sources
            real_count = sum(1 for s in enabled if s.real_intelligence)
            total += len(enabled)
            real += real_count
            breakdown[search_type.value] = {
                "name": category.name,
                "count": len(enabled),
                "real_intelligence": real_count,
            }

        return {
            "total_sources": total,
            "total_categories": len(self._categories),
            "enabled_sources": total,
            "real_intelligence_sources": real,
            "categories_breakdown": breakdown,
        }


def load_catalog(path: Path | str) -> SourceCatalog:
    """Load the source catalog from a JSON document.

    Never raises: a missing, unreadable or malformed document is logged and
    replaced with an empty catalog.

    Args:
        path: Path to the catalog document.

    Returns:
        The loaded catalog, or an empty one on failure.
    """
    path = Path(path)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        catalog = SourceCatalog.from_document(document)
    except (OSError, ValueError, CatalogError) as e:
        logger.error(
            "catalog_load_failed",
            path=str(path),
            error_type=type(e).__name__,
            error=str(e),
        )
        return SourceCatalog.empty()

    logger.info(
        "catalog_loaded",
        path=str(path),
        version=catalog.version,
        total_sources=len(catalog.all_sources()),
    )
    return catalog
