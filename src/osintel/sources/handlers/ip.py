"""IP geolocation handler backed by ipinfo.io."""

from typing import Any

import httpx

from osintel.sources.protocol import BaseSourceHandler
from osintel.sources.types import SearchType

IPINFO_URL = "https://ipinfo.io"


def _parse_coordinate(loc: str | None, index: int) -> float | None:
    if not loc:
        return None
    parts = loc.split(",")
    try:
        return float(parts[index])
    except (IndexError, ValueError):
        return None


class IpGeolocationHandler(BaseSourceHandler):
    """Geolocate an IP address."""

    collection_method = "IP Geolocation Database"

    def __init__(self, client: httpx.AsyncClient, base_url: str = IPINFO_URL):
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def lookup(self, query: str, search_type: SearchType) -> dict[str, Any]:
        ip = query.strip()
        response = await self._client.get(f"{self._base_url}/{ip}/json")
        response.raise_for_status()
        data = response.json()

        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            return {"found": False, "ip": ip, "error": message}

        return {
            "found": True,
            "ip": ip,
            "country": data.get("country"),
            "region": data.get("region"),
            "city": data.get("city"),
            "organization": data.get("org"),
            "timezone": data.get("timezone"),
            "postal": data.get("postal"),
            "coordinates": {
                "lat": _parse_coordinate(data.get("loc"), 0),
                "lon": _parse_coordinate(data.get("loc"), 1),
            },
            "hostname": data.get("hostname"),
        }
