from __future__ import annotations

import asyncio
import json
import logging
from unittest.mock import AsyncMock

import pytest
from fakes import FakeResponse, FakeSession

from activity.services.geocoding import ReverseGeocoder, placeholder_place
from core.exceptions import ExternalServiceException, RateLimitException
from core.http import nominatim as nominatim_module
from core.http.circuit_breaker import CircuitBreaker, CircuitOpen, nominatim_breaker
from core.http.nominatim import NominatimClient

REVERSE_RESULT = {
    "name": "Central Library",
    "display_name": "Central Library, 710 West Cesar Chavez Street, Austin, Texas, 78701, United States",
    "address": {"road": "West Cesar Chavez Street", "city": "Austin"},
}


def test_placeholder_formats_three_decimals() -> None:
    place = placeholder_place(30.26715, -97.74306)

    assert place.place_name == "Location near 30.267, -97.743"
    assert place.address == "Location near 30.267, -97.743"
    assert place.resolved is False


@pytest.mark.asyncio
async def test_reverse_uses_name_and_display_name() -> None:
    client = AsyncMock()
    client.reverse.return_value = REVERSE_RESULT

    place = await ReverseGeocoder(client).reverse(30.2671, -97.7431)

    assert place.place_name == "Central Library"
    assert place.address.startswith("Central Library, 710 West Cesar Chavez")
    assert place.resolved is True
    client.reverse.assert_awaited_once_with(30.2671, -97.7431)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ExternalServiceException("Nominatim reverse error: 503"),
        CircuitOpen("Nominatim", 30),
    ],
)
async def test_reverse_falls_back_on_provider_errors(error: Exception) -> None:
    client = AsyncMock()
    client.reverse.side_effect = error

    place = await ReverseGeocoder(client).reverse(1.0, 2.0)

    assert place == placeholder_place(1.0, 2.0)


@pytest.mark.asyncio
async def test_reverse_falls_back_on_timeout() -> None:
    class _SlowClient:
        async def reverse(self, lat: float, lon: float):
            await asyncio.sleep(5)
            return REVERSE_RESULT

    place = await ReverseGeocoder(_SlowClient(), timeout=0.01).reverse(1.0, 2.0)

    assert place.resolved is False


@pytest.mark.asyncio
async def test_reverse_falls_back_on_empty_result() -> None:
    client = AsyncMock()
    client.reverse.return_value = None

    place = await ReverseGeocoder(client).reverse(1.0, 2.0)

    assert place.resolved is False


def test_place_name_prefers_house_number_and_road() -> None:
    result = {
        "name": "",
        "address": {"house_number": "12", "road": "Main Street", "city": "Austin"},
    }

    assert NominatimClient.place_name(result) == "12 Main Street"
    assert NominatimClient.place_name({"address": {"city": "Austin"}}) == "Austin"
    assert NominatimClient.place_name({}) is None


@pytest.mark.asyncio
async def test_nominatim_reverse_sends_jsonv2_request(monkeypatch) -> None:
    session = FakeSession([FakeResponse(json_data=REVERSE_RESULT)])
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))

    result = await NominatimClient().reverse(30.0, -97.0)

    assert result == REVERSE_RESULT
    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "https://nominatim.test.invalid/reverse"
    assert kwargs["params"]["format"] == "jsonv2"
    assert kwargs["params"]["zoom"] == 18


@pytest.mark.asyncio
async def test_nominatim_reverse_treats_404_and_error_payload_as_missing(
    monkeypatch,
) -> None:
    session = FakeSession(
        [
            FakeResponse(status=404),
            FakeResponse(json_data={"error": "Unable to geocode"}),
        ],
    )
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))
    client = NominatimClient()

    assert await client.reverse(0.0, 0.0) is None
    assert await client.reverse(0.0, 0.0) is None


@pytest.mark.asyncio
async def test_nominatim_reverse_raises_on_server_error(monkeypatch) -> None:
    session = FakeSession([FakeResponse(status=500, text_data="oops")])
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))

    with pytest.raises(ExternalServiceException):
        await NominatimClient().reverse(0.0, 0.0)


def test_circuit_breaker_opens_after_threshold_and_resets() -> None:
    breaker = CircuitBreaker("Test", failure_threshold=2, recovery_timeout=60)

    breaker.record_failure()
    breaker.check()
    breaker.record_failure()

    assert breaker.state == "open"
    with pytest.raises(CircuitOpen):
        breaker.check()

    breaker.reset()
    assert breaker.state == "closed"
    assert breaker.failures == 0


@pytest.mark.asyncio
async def test_non_json_body_falls_back_to_placeholder(monkeypatch) -> None:
    session = FakeSession(
        [FakeResponse(json_data=json.JSONDecodeError("Expecting value", "<html>", 0))],
    )
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))

    with pytest.raises(ExternalServiceException, match="not JSON"):
        await NominatimClient().reverse(1.0, 2.0)

    nominatim_breaker.reset()
    session = FakeSession(
        [FakeResponse(json_data=json.JSONDecodeError("Expecting value", "<html>", 0))],
    )
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))

    place = await ReverseGeocoder(NominatimClient()).reverse(1.0, 2.0)

    assert place == placeholder_place(1.0, 2.0)


@pytest.mark.asyncio
async def test_rate_limit_with_http_date_retry_after_falls_back(monkeypatch) -> None:
    session = FakeSession(
        [
            FakeResponse(
                status=429,
                headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"},
            ),
        ],
    )
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))

    place = await ReverseGeocoder(NominatimClient()).reverse(1.0, 2.0)

    assert place == placeholder_place(1.0, 2.0)


@pytest.mark.asyncio
async def test_rate_limit_keeps_numeric_retry_after(monkeypatch) -> None:
    session = FakeSession(
        [
            FakeResponse(status=429, headers={"Retry-After": "12"}),
            FakeResponse(status=429, headers={"Retry-After": "soon"}),
        ],
    )
    monkeypatch.setattr(nominatim_module, "get_session", AsyncMock(return_value=session))
    client = NominatimClient()

    with pytest.raises(RateLimitException) as first:
        await client.reverse(1.0, 2.0)
    with pytest.raises(RateLimitException) as second:
        await client.reverse(1.0, 2.0)

    assert first.value.details["retry_after"] == 12
    assert second.value.details["retry_after"] == 5


@pytest.mark.asyncio
async def test_unexpected_client_error_falls_back_and_logs(caplog) -> None:
    client = AsyncMock()
    client.reverse.side_effect = KeyError("address")

    with caplog.at_level(logging.ERROR, logger="activity.services.geocoding"):
        place = await ReverseGeocoder(client).reverse(1.0, 2.0)

    assert place == placeholder_place(1.0, 2.0)
    assert any("Unexpected reverse geocoding error" in r.getMessage() for r in caplog.records)
