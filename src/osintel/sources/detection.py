"""Search type detection for raw target strings."""

import re

from .types import SearchType

_IPV4_PATTERN = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

AUTO = "auto"


def detect_search_type(target: str) -> SearchType:
    """Guess the search type of a target identifier.

    Rules, in order: contains ``@`` and ``.`` -> email; dotted quad -> ip;
    contains ``.`` -> domain; anything else -> username.

    Raises:
        ValueError: If the target is blank.
    """
    value = target.strip()
    if not value:
        raise ValueError("Cannot detect the search type of an empty query")

    if "@" in value and "." in value:
        return SearchType.EMAIL
    if _IPV4_PATTERN.match(value):
        return SearchType.IP
    if "." in value:
        return SearchType.DOMAIN
    return SearchType.USERNAME


def resolve_search_type(target: str, search_type: SearchType | str) -> SearchType:
    """Resolve ``"auto"`` through detection, validate anything else.

    Raises:
        ValueError: If the search type is neither ``auto`` nor a known type.
    """
    if isinstance(search_type, str) and search_type.lower() == AUTO:
        return detect_search_type(target)
    return SearchType(search_type)
