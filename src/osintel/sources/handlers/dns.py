"""DNS record handler using DNS-over-HTTPS."""

from typing import Any

import httpx

from osintel.core.logging import get_logger
from osintel.sources.protocol import BaseSourceHandler
from osintel.sources.rate_limit import SourceRateLimiter
from osintel.sources.types import SearchType

logger = get_logger(__name__)

DOH_URL = "https://cloudflare-dns.com/dns-query"

RECORD_TYPES = ("A", "AAAA", "MX", "NS", "TXT", "CNAME")


class DnsHandler(BaseSourceHandler):
    """Resolve common record types for a domain over DNS-over-HTTPS.

    Record types are queried one after another, at least
    ``record_interval_ms`` apart. A failure for one type is logged and
    skipped; the lookup reports ``found`` when any type returned answers.
    """

    collection_method = "DNS over HTTPS"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = DOH_URL,
        record_interval_ms: int = 100,
        rate_limiter: SourceRateLimiter | None = None,
    ):
        self._client = client
        self._base_url = base_url
        self._record_interval_ms = record_interval_ms
        self._rate_limiter = rate_limiter or SourceRateLimiter()

    async def lookup(self, query: str, search_type: SearchType) -> dict[str, Any]:
        domain = query.strip()
        records: dict[str, list[str]] = {}

        for record_type in RECORD_TYPES:
            await self._rate_limiter.before_request("dns", self._record_interval_ms)
            try:
                response = await self._client.get(
                    self._base_url,
                    params={"name": domain, "type": record_type},
                    headers={"Accept": "application/dns-json"},
                )
                response.raise_for_status()
                answers = response.json().get("Answer") or []
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(
                    "dns_record_lookup_failed",
                    domain=domain,
                    record_type=record_type,
                    error=str(e),
                )
                continue

            if answers:
                records[record_type] = [answer.get("data") for answer in answers]

        return {
            "found": bool(records),
            "domain": domain,
            "records": records,
            "ip_addresses": records.get("A", []),
            "ipv6_addresses": records.get("AAAA", []),
            "mail_servers": records.get("MX", []),
            "nameservers": records.get("NS", []),
            "text_records": records.get("TXT", []),
        }
