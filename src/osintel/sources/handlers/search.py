"""Search engine query and dork generation."""

from typing import Any

from osintel.sources.protocol import BaseSourceHandler
from osintel.sources.types import SearchType


def build_search_queries(target: str, search_type: SearchType) -> list[str]:
    """Build plain search-engine queries for a target."""
    match search_type:
        case SearchType.EMAIL:
            return [
                f'"{target}"',
                f'"{target}" site:pastebin.com',
                f'"{target}" filetype:pdf',
                f'"{target}" "breach" OR "leak"',
                f'"{target}" "password" OR "dump"',
            ]
        case SearchType.USERNAME:
            return [
                f'"{target}"',
                f'"{target}" site:github.com',
                f'"{target}" site:reddit.com',
                f'"{target}" "profile" OR "user"',
                f'"{target}" social media',
            ]
        case SearchType.DOMAIN:
            return [
                f"site:{target}",
                f'"{target}" subdomain',
                f'"{target}" inurl:admin',
                f'"{target}" filetype:pdf OR filetype:doc',
                f'"{target}" employees OR staff',
            ]
        case _:
            return [f'"{target}"']


def build_dorks(target: str, search_type: SearchType) -> list[str]:
    """Build advanced search operators (dorks) for a target."""
    match search_type:
        case SearchType.DOMAIN:
            return [
                f"site:{target} inurl:admin",
                f'site:{target} intitle:"index of"',
                f"site:{target} filetype:pdf",
                f"site:{target} inurl:login",
                f'"{target}" site:github.com',
            ]
        case SearchType.EMAIL:
            return [
                f'"{target}" site:pastebin.com',
                f'"{target}" filetype:xlsx OR filetype:csv',
                f'"{target}" "contact" OR "email"',
                f'"{target}" site:linkedin.com',
            ]
        case _:
            return [f'"{target}"']


def build_investigation_steps(target: str, search_type: SearchType) -> list[str]:
    """List manual follow-up steps for a target."""
    steps = [
        f'1. Search for "{target}" in major search engines',
        "2. Check social media platforms manually",
        "3. Look for cached or archived versions",
        "4. Use specialized search engines (Shodan, Censys)",
        "5. Check public databases and registries",
    ]
    if search_type == SearchType.DOMAIN:
        steps.extend(
            [
                "6. Enumerate subdomains using tools",
                "7. Check certificate transparency logs",
                "8. Analyze DNS records",
            ]
        )
    return steps


class SearchIntelligenceHandler(BaseSourceHandler):
    """Produce search queries, dorks and investigation steps for manual use."""

    collection_method = "Search Intelligence Generation"

    async def lookup(self, query: str, search_type: SearchType) -> dict[str, Any]:
        target = query.strip()
        return {
            "found": True,
            "query": target,
            "search_queries": build_search_queries(target, search_type),
            "google_dorks": build_dorks(target, search_type),
            "investigations": build_investigation_steps(target, search_type),
            "recommendation": "Use these queries in search engines for manual investigation",
        }
