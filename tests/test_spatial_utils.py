import pytest

from activity.constants import ACTIVITY_EARTH_RADIUS_M
from core.spatial import GeometryService


def test_validate_coordinate_pair() -> None:
    valid, coords = GeometryService.validate_coordinate_pair([-97.0, 32.0])
    assert valid
    assert coords == [-97.0, 32.0]

    invalid, coords = GeometryService.validate_coordinate_pair([200.0, 0.0])
    assert not invalid
    assert coords is None

    short, coords = GeometryService.validate_coordinate_pair([1.0])
    assert not short


def test_geometry_from_coordinate_pairs_dedupe() -> None:
    coords = [[-97.0, 32.0], [-97.0, 32.0], [-96.9, 32.1], ["bad", 0]]
    geometry = GeometryService.geometry_from_coordinate_pairs(coords, dedupe=True)

    assert geometry is not None
    assert geometry["type"] == "LineString"
    assert geometry["coordinates"] == [[-97.0, 32.0], [-96.9, 32.1]]


def test_geometry_from_single_pair() -> None:
    assert GeometryService.geometry_from_coordinate_pairs([[-97.0, 32.0]]) == {
        "type": "Point",
        "coordinates": [-97.0, 32.0],
    }
    assert (
        GeometryService.geometry_from_coordinate_pairs(
            [[-97.0, 32.0]],
            allow_point=False,
        )
        is None
    )


def test_haversine_units_and_radius_override() -> None:
    meters = GeometryService.haversine_distance(0.0, 0.0, 0.0, 1.0)
    km = GeometryService.haversine_distance(0.0, 0.0, 0.0, 1.0, "km")
    wider = GeometryService.haversine_distance(
        0.0,
        0.0,
        0.0,
        1.0,
        radius_m=ACTIVITY_EARTH_RADIUS_M,
    )

    assert meters == pytest.approx(111194.9, rel=1e-4)
    assert km == pytest.approx(meters / 1000)
    assert wider / meters == pytest.approx(ACTIVITY_EARTH_RADIUS_M / 6371000.0)

    with pytest.raises(ValueError, match="Invalid unit"):
        GeometryService.haversine_distance(0.0, 0.0, 0.0, 1.0, "furlongs")
