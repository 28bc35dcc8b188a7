"""
config.py

Environment-driven settings. Values come from the process environment,
optionally seeded from a local .env file.

The API key is looked up on every call (get_api_key) so that a key added
after startup — or removed in tests — is picked up without a restart.
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ── Weather provider ──────────────────────────────────────────────────────────
WEATHER_MODEL: str            = os.getenv("WEATHER_MODEL", "gemini-2.5-flash")
WEATHER_TIMEOUT_SECONDS: float = _get_float("WEATHER_TIMEOUT_SECONDS", 15.0)
MAX_WEATHER_SOURCES: int      = 2

# ── Geolocation ───────────────────────────────────────────────────────────────
GEOLOCATION_TIMEOUT_SECONDS: float = _get_float("GEOLOCATION_TIMEOUT_SECONDS", 15.0)
GEOLOCATION_URL: str               = os.getenv("GEOLOCATION_URL", "https://ipapi.co/json/")

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()


def get_api_key() -> Optional[str]:
    """Return the Gemini API key, or None when the feature is not configured."""
    for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY"):
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def get_fixed_location() -> Optional[tuple[float, float]]:
    """(latitude, longitude) from PIZZA_LATITUDE / PIZZA_LONGITUDE, if both parse."""
    lat = os.getenv("PIZZA_LATITUDE")
    lon = os.getenv("PIZZA_LONGITUDE")
    if not lat or not lon:
        return None
    try:
        return float(lat), float(lon)
    except ValueError:
        return None
