"""
Spherical distance and GeoJSON helpers for GPS tracks.

Coordinates follow GeoJSON order, ``[longitude, latitude]``, everywhere in
this module.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_METERS_PER_UNIT = {
    "meters": 1.0,
    "km": 1000.0,
    "miles": 1609.344,
}


def _central_angle(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Angle in radians between two points on a unit sphere."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlmb = math.radians(lon2 - lon1) / 2
    h = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlmb) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    return 2 * math.asin(math.sqrt(min(1.0, h)))


class GeometryService:
    """Geometry operations shared by segmentation and serialization."""

    EARTH_RADIUS_M = 6371000.0

    @staticmethod
    def validate_coordinate_pair(
        coord: Sequence[Any],
    ) -> tuple[bool, list[float] | None]:
        """Return ``(True, [lon, lat])`` for an in-range pair, else ``(False, None)``."""
        try:
            lon, lat = float(coord[0]), float(coord[1])
        except (TypeError, ValueError, IndexError, KeyError):
            return False, None
        if abs(lon) > 180 or abs(lat) > 90:
            return False, None
        return True, [lon, lat]

    @staticmethod
    def haversine_distance(
        lon1: float,
        lat1: float,
        lon2: float,
        lat2: float,
        unit: str = "meters",
        *,
        radius_m: float | None = None,
    ) -> float:
        """Great-circle distance between two points.

        ``radius_m`` replaces the mean Earth radius when a caller's distances
        must agree with a different sphere.
        """
        try:
            meters_per_unit = _METERS_PER_UNIT[unit]
        except KeyError:
            msg = f"Invalid unit {unit!r}. Use one of: {', '.join(_METERS_PER_UNIT)}."
            raise ValueError(msg) from None
        radius = GeometryService.EARTH_RADIUS_M if radius_m is None else radius_m
        return radius * _central_angle(lon1, lat1, lon2, lat2) / meters_per_unit

    @staticmethod
    def geometry_from_coordinate_pairs(
        coords: Iterable[Sequence[Any]],
        *,
        allow_point: bool = True,
        dedupe: bool = False,
    ) -> dict[str, Any] | None:
        """GeoJSON Point or LineString from ``[lon, lat]`` pairs.

        Invalid pairs are skipped. With ``dedupe`` consecutive repeats are
        collapsed. A single surviving pair yields a Point only when
        ``allow_point`` is set.
        """
        line: list[list[float]] = []
        for coord in coords:
            ok, pair = GeometryService.validate_coordinate_pair(coord)
            if not ok or (dedupe and line and line[-1] == pair):
                continue
            line.append(pair)

        if len(line) > 1:
            return {"type": "LineString", "coordinates": line}
        if line and allow_point:
            return {"type": "Point", "coordinates": line[0]}
        return None
