"""Reverse geocoding for activity events, with a coordinate placeholder fallback."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from aiohttp import ClientError

from activity.constants import GEOCODE_PLACEHOLDER_TEMPLATE
from config import GEOCODING_TIMEOUT_SECONDS
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import CircuitOpen
from core.http.nominatim import NominatimClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodedPlace:
    place_name: str
    address: str
    resolved: bool = True


def placeholder_place(lat: float, lon: float) -> GeocodedPlace:
    label = GEOCODE_PLACEHOLDER_TEMPLATE.format(lat=lat, lon=lon)
    return GeocodedPlace(place_name=label, address=label, resolved=False)


class ReverseGeocoder:
    """
    Resolve coordinates to a place name and address.

    Never raises for provider trouble: timeouts, HTTP failures, an open
    circuit, and empty results all produce :func:`placeholder_place`.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        timeout: float = GEOCODING_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client or NominatimClient()
        self._timeout = timeout

    async def reverse(self, lat: float, lon: float) -> GeocodedPlace:
        try:
            result = await asyncio.wait_for(
                self._client.reverse(lat, lon),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Reverse geocoding timed out after %.1fs for %.5f,%.5f",
                self._timeout,
                lat,
                lon,
            )
            return placeholder_place(lat, lon)
        except CircuitOpen as e:
            logger.debug("Skipping reverse geocoding: %s", e)
            return placeholder_place(lat, lon)
        except (ExternalServiceException, ClientError) as e:
            logger.warning("Reverse geocoding failed for %.5f,%.5f: %s", lat, lon, e)
            return placeholder_place(lat, lon)
        except Exception:
            logger.exception("Unexpected reverse geocoding error for %.5f,%.5f", lat, lon)
            return placeholder_place(lat, lon)

        if not result:
            return placeholder_place(lat, lon)

        fallback = placeholder_place(lat, lon)
        place_name = NominatimClient.place_name(result)
        address = NominatimClient.full_address(result)
        if not place_name and not address:
            return fallback
        return GeocodedPlace(
            place_name=place_name or address or fallback.place_name,
            address=address or place_name or fallback.address,
        )
