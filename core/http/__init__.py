"""HTTP client utilities and session management."""

from core.http.circuit_breaker import CircuitBreaker, CircuitOpen
from core.http.nominatim import NominatimClient
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import cleanup_session, get_session

__all__ = [
    "CircuitBreaker",
    "CircuitOpen",
    "NominatimClient",
    "cleanup_session",
    "get_session",
    "request_json",
    "retry_async",
]
