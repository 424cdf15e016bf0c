"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# --- Activity Processing ---
ACTIVITY_PROCESSING_INTERVAL_MINUTES: Final[int] = int(
    os.getenv("ACTIVITY_PROCESSING_INTERVAL_MINUTES", "15"),
)
ACTIVITY_SCHEDULER_ENABLED: Final[bool] = _env_bool(
    "ACTIVITY_SCHEDULER_ENABLED",
    True,
)
# Upper bound on how long one engineer may be held by a single run
ENGINEER_LEASE_TTL_SECONDS: Final[int] = int(
    os.getenv("ENGINEER_LEASE_TTL_SECONDS", "600"),
)
ACTIVITY_EVENTS_CHANNEL: Final[str] = os.getenv(
    "ACTIVITY_EVENTS_CHANNEL",
    "activity_updates",
)

# Engineers without a stored time zone fall back to this one
DEFAULT_TIMEZONE: Final[str] = os.getenv("DEFAULT_TIMEZONE", "UTC")


# --- Geocoding (self-hosted or public Nominatim) ---
GEOCODING_TIMEOUT_SECONDS: Final[float] = float(
    os.getenv("GEOCODING_TIMEOUT_SECONDS", "10"),
)


def get_nominatim_base_url() -> str:
    return os.getenv(
        "NOMINATIM_BASE_URL",
        "https://nominatim.openstreetmap.org",
    ).rstrip("/")


def get_nominatim_reverse_url() -> str:
    return f"{get_nominatim_base_url()}/reverse"


def get_nominatim_user_agent() -> str:
    return os.getenv("NOMINATIM_USER_AGENT", "FieldTrack/1.0")


__all__ = [
    "ACTIVITY_EVENTS_CHANNEL",
    "ACTIVITY_PROCESSING_INTERVAL_MINUTES",
    "ACTIVITY_SCHEDULER_ENABLED",
    "DEFAULT_TIMEZONE",
    "ENGINEER_LEASE_TTL_SECONDS",
    "GEOCODING_TIMEOUT_SECONDS",
    "get_nominatim_base_url",
    "get_nominatim_reverse_url",
    "get_nominatim_user_agent",
]
