"""
Nominatim reverse-geocoding client.

Only the ``/reverse`` endpoint is used: activity events need a short place
name and a full postal address for a coordinate.
"""

from __future__ import annotations

import logging
from typing import Any

from config import get_nominatim_reverse_url, get_nominatim_user_agent
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import nominatim_breaker, with_circuit_breaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session

logger = logging.getLogger(__name__)

# Address keys tried in order when the result has no explicit name
_PLACE_NAME_KEYS = (
    "amenity",
    "shop",
    "office",
    "building",
    "tourism",
    "leisure",
    "road",
    "neighbourhood",
    "suburb",
    "village",
    "town",
    "city",
)


class NominatimClient:
    def __init__(self) -> None:
        self._reverse_url = get_nominatim_reverse_url()
        self._user_agent = get_nominatim_user_agent()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    @with_circuit_breaker(nominatim_breaker)
    @retry_async()
    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int = 18,
    ) -> dict[str, Any] | None:
        params = {
            "format": "jsonv2",
            "lat": lat,
            "lon": lon,
            "zoom": zoom,
            "addressdetails": 1,
        }
        session = await get_session()
        data = await request_json(
            "GET",
            self._reverse_url,
            session=session,
            params=params,
            headers=self._headers(),
            service_name="Nominatim reverse",
            none_on=(404,),
        )
        if data is None:
            return None
        if not isinstance(data, dict):
            msg = "Nominatim reverse error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._reverse_url})
        if "error" in data:
            # Nominatim answers 200 with {"error": "Unable to geocode"} over water etc.
            logger.debug("Nominatim reverse returned error for %s,%s", lat, lon)
            return None
        return data

    @staticmethod
    def place_name(result: dict[str, Any]) -> str | None:
        """Short human label for a reverse-geocoding result."""
        name = str(result.get("name") or "").strip()
        if name:
            return name
        address = result.get("address") or {}
        for key in _PLACE_NAME_KEYS:
            value = str(address.get(key) or "").strip()
            if not value:
                continue
            if key == "road" and address.get("house_number"):
                return f"{address['house_number']} {value}"
            return value
        return None

    @staticmethod
    def full_address(result: dict[str, Any]) -> str | None:
        display_name = str(result.get("display_name") or "").strip()
        return display_name or None
