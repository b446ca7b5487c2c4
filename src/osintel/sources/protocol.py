"""Source handler protocol for osintel.

This module defines the contract every intelligence source handler
honors. A handler performs the actual lookup for one target and returns
a mapping that contains at least a boolean ``found``; every other key is
source-specific and opaque to the aggregation core.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .types import SearchType


@runtime_checkable
class SourceHandler(Protocol):
    """Interface all source handlers must implement.

    Example implementation:
        class WhoisHandler:
            async def __call__(self, query: str, search_type: SearchType) -> dict:
                record = await fetch_whois(query)
                return {"found": record is not None, "record": record}
    """

    async def __call__(self, query: str, search_type: SearchType) -> Mapping[str, Any]:
        """Look the target up.

        Args:
            query: Target identifier.
            search_type: Kind of identifier.

        Returns:
            Mapping containing at least ``found: bool``.

        Raises:
            Exception: Any failure; the executor converts it into a failed envelope.
        """
        ...


class BaseSourceHandler:
    """Base class for handler implementations.

    Subclasses implement ``lookup`` and set ``collection_method``, which is
    stamped onto every payload that does not already carry one.
    """

    collection_method: str = "Unknown"

    async def __call__(self, query: str, search_type: SearchType) -> dict[str, Any]:
        """Run the lookup and stamp the collection method."""
        data = await self.lookup(query, search_type)
        data.setdefault("collection_method", self.collection_method)
        return data

    async def lookup(self, query: str, search_type: SearchType) -> dict[str, Any]:
        """Perform the source-specific lookup.

        Subclasses must implement this method.
        """
        raise NotImplementedError("Subclasses must implement lookup")
