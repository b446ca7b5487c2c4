"""Certificate transparency handler backed by crt.sh."""

from typing import Any

import httpx

from osintel.sources.protocol import BaseSourceHandler
from osintel.sources.types import SearchType

CRT_SH_URL = "https://crt.sh/"

MAX_SUBDOMAINS = 50
MAX_CERTIFICATES = 10


class CertificateHandler(BaseSourceHandler):
    """Look a domain up in certificate transparency logs.

    Extracts subdomains seen in certificate names, distinct issuers and a
    sample of the certificates themselves.
    """

    collection_method = "Certificate Transparency Logs"

    def __init__(self, client: httpx.AsyncClient, base_url: str = CRT_SH_URL):
        self._client = client
        self._base_url = base_url

    async def lookup(self, query: str, search_type: SearchType) -> dict[str, Any]:
        domain = query.strip()
        response = await self._client.get(self._base_url, params={"q": domain, "output": "json"})
        response.raise_for_status()

        certificates = response.json() or []
        if not certificates:
            return {
                "found": False,
                "domain": domain,
                "message": "No certificates found in CT logs",
            }

        # dicts keep first-seen order
        subdomains: dict[str, None] = {}
        issuers: dict[str, None] = {}
        for cert in certificates:
            for name in (cert.get("name_value") or "").split("\n"):
                name = name.strip()
                if name and domain in name and name != domain:
                    subdomains[name] = None
            if cert.get("issuer_name"):
                issuers[cert["issuer_name"]] = None

        return {
            "found": True,
            "domain": domain,
            "total_certificates": len(certificates),
            "subdomains": list(subdomains)[:MAX_SUBDOMAINS],
            "issuers": list(issuers),
            "certificates": [
                {
                    "issuer": cert.get("issuer_name"),
                    "subject": cert.get("name_value"),
                    "not_before": cert.get("not_before"),
                    "not_after": cert.get("not_after"),
                    "serial_number": cert.get("serial_number"),
                }
                for cert in certificates[:MAX_CERTIFICATES]
            ],
        }
