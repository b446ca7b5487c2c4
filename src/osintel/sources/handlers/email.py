"""Email address analysis combining DNS, certificate and username checks."""

import asyncio
import re
from typing import Any

from osintel.core.logging import get_logger
from osintel.sources.protocol import SourceHandler
from osintel.sources.types import SearchType

from .social import SocialPresenceHandler

logger = get_logger(__name__)


class EmailHandler:
    """Analyze an email address.

    The domain part goes through DNS and certificate lookups, the local
    part through social presence analysis, all concurrently. Sub-lookups
    that fail or find nothing are left out of the result.
    """

    collection_method = "Multi-source email intelligence analysis"

    def __init__(
        self,
        dns: SourceHandler,
        certificates: SourceHandler,
        social: SourceHandler | None = None,
    ):
        self._dns = dns
        self._certificates = certificates
        self._social = social or SocialPresenceHandler()

    async def __call__(self, query: str, search_type: SearchType) -> dict[str, Any]:
        email = query.strip()
        username, sep, domain = email.rpartition("@")
        if not sep or not username or not domain:
            raise ValueError(f"Not an email address: {email}")

        dns, certificates, social = await asyncio.gather(
            self._dns(domain, SearchType.DOMAIN),
            self._certificates(domain, SearchType.DOMAIN),
            self._social(username, SearchType.USERNAME),
            return_exceptions=True,
        )

        result: dict[str, Any] = {
            "found": True,
            "email": email,
            "username": username,
            "domain": domain,
            "structure": {
                "username_length": len(username),
                "domain_parts": len(domain.split(".")),
                "has_numbers": bool(re.search(r"\d", username)),
                "has_special_chars": bool(re.search(r"[._-]", username)),
            },
            "collection_method": self.collection_method,
        }

        for key, outcome in (("domain_dns", dns), ("domain_certificates", certificates)):
            if isinstance(outcome, BaseException):
                logger.warning("email_sublookup_failed", part=key, error=str(outcome))
            elif outcome.get("found"):
                result[key] = outcome

        if isinstance(social, BaseException):
            logger.warning("email_sublookup_failed", part="social_profiles", error=str(social))
        else:
            result["social_profiles"] = social

        return result
