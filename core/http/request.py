"""
Shared JSON request helper.

Maps non-success responses onto ``ExternalServiceException`` so callers see
one failure type regardless of the backend.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import ContentTypeError

from core.exceptions import ExternalServiceException, RateLimitException

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 5


def _retry_after_seconds(value: str | None) -> int:
    """Seconds from a ``Retry-After`` header; HTTP-date or junk gets the default."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS


async def request_json(
    method: str,
    url: str,
    *,
    session: Any,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    expected_status: int | Iterable[int] = 200,
    none_on: Iterable[int] | None = None,
    service_name: str = "Service",
    timeout: Any | None = None,
) -> Any | None:
    if isinstance(expected_status, int):
        expected = {expected_status}
    else:
        expected = set(expected_status)
    none_on_set = set(none_on or [])

    request_kwargs: dict[str, Any] = {
        "params": params,
        "json": json,
        "headers": headers,
    }
    if timeout is not None:
        request_kwargs["timeout"] = timeout

    async with session.request(method.upper(), url, **request_kwargs) as response:
        if response.status in none_on_set:
            logger.debug("%s returned %s for %s", service_name, response.status, url)
            return None
        if response.status == 429:
            retry_after = _retry_after_seconds(response.headers.get("Retry-After"))
            msg = f"{service_name} error: 429"
            raise RateLimitException(
                msg,
                {"status": 429, "retry_after": retry_after, "url": url},
            )
        if response.status not in expected:
            body = await response.text()
            msg = f"{service_name} error: {response.status}"
            raise ExternalServiceException(
                msg,
                {"status": response.status, "body": body, "url": url},
            )
        try:
            return await response.json()
        except (ContentTypeError, ValueError) as e:
            msg = f"{service_name} error: response body is not JSON"
            raise ExternalServiceException(
                msg,
                {"status": response.status, "url": url},
            ) from e
