"""Bundled source handlers.

Handlers for the sources in the default catalog. Network handlers share
one ``httpx.AsyncClient`` supplied by the caller.
"""

import httpx

from osintel.sources.registry import HandlerRegistry

from .certificate import CertificateHandler
from .dns import DnsHandler
from .email import EmailHandler
from .ip import IpGeolocationHandler
from .search import SearchIntelligenceHandler
from .social import SocialPresenceHandler

__all__ = [
    "CertificateHandler",
    "DnsHandler",
    "EmailHandler",
    "IpGeolocationHandler",
    "SearchIntelligenceHandler",
    "SocialPresenceHandler",
    "build_default_registry",
]


def build_default_registry(client: httpx.AsyncClient) -> HandlerRegistry:
    """Create a registry covering every source of the bundled catalog.

    Args:
        client: Shared HTTP client.

    Returns:
        HandlerRegistry keyed by handler key.
    """
    dns = DnsHandler(client)
    certificates = CertificateHandler(client)
    social = SocialPresenceHandler()

    registry = HandlerRegistry()
    registry.register("certificate_intelligence", certificates)
    registry.register("dns_intelligence", dns)
    registry.register("ip_intelligence", IpGeolocationHandler(client))
    registry.register("social_intelligence", social)
    registry.register("email_intelligence", EmailHandler(dns, certificates, social))
    registry.register("search_intelligence", SearchIntelligenceHandler())
    return registry
