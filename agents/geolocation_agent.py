"""
agents/geolocation_agent.py

First real step of the weather enrichment pipeline: turn "where am I?"
into a (latitude, longitude) fix.

Providers:
- StaticGeolocator — fixed coordinates (PIZZA_LATITUDE / PIZZA_LONGITUDE or --location)
- IPGeolocator     — HTTP lookup of the public IP's approximate position,
                     gated by a consent callback (the CLI asks the user)
- None             — no provider on this platform → "unsupported"

Acquisition is bounded by GEOLOCATION_TIMEOUT_SECONDS (15 s default).
The permission prompt happens before the clock starts.

Failures never raise out of the node: they become an error WeatherReading
with a reason-specific message (denied / timed out / unsupported / unavailable).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import requests

from config import GEOLOCATION_TIMEOUT_SECONDS, GEOLOCATION_URL
from errors import GeolocationError
from schemas.dough_schemas import WeatherReading
from state import EnrichmentState

logger = logging.getLogger(__name__)


class Geolocator:
    """Base provider. Subclasses implement locate()."""

    def request_permission(self) -> bool:
        return True

    async def locate(self) -> tuple[float, float]:
        raise NotImplementedError


class StaticGeolocator(Geolocator):

    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude

    async def locate(self) -> tuple[float, float]:
        return self.latitude, self.longitude


class IPGeolocator(Geolocator):
    """
    Approximate position from an IP geolocation service (ipapi.co by default).
    Accepts both `latitude`/`longitude` and `lat`/`lon` response keys.
    """

    def __init__(
        self,
        url: str = GEOLOCATION_URL,
        consent: Optional[Callable[[], bool]] = None,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.consent = consent
        self.timeout = timeout

    def request_permission(self) -> bool:
        if self.consent is None:
            return True
        return bool(self.consent())

    async def locate(self) -> tuple[float, float]:
        return await asyncio.to_thread(self._lookup)

    def _lookup(self) -> tuple[float, float]:
        try:
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            raise GeolocationError("timeout", str(e)) from e
        except requests.RequestException as e:
            raise GeolocationError("unavailable", str(e)) from e
        except ValueError as e:
            raise GeolocationError("unavailable", f"invalid JSON from {self.url}") from e

        if not isinstance(data, dict):
            raise GeolocationError("unavailable", f"unexpected response from {self.url}: {data!r}")

        lat = data.get("latitude", data.get("lat"))
        lon = data.get("longitude", data.get("lon"))
        try:
            return float(lat), float(lon)
        except (TypeError, ValueError) as e:
            raise GeolocationError("unavailable", f"no coordinates in response: {data!r}") from e


GEOLOCATION_MESSAGES: dict[str, str] = {
    "permission_denied": "Location permission denied. Allow location access or set the temperature manually.",
    "timeout":           "Timed out after {timeout:.0f} s while detecting your location. Try again.",
    "unsupported":       "Location detection is not supported on this platform.",
    "unavailable":       "Your location could not be determined. Try again.",
}


def geolocation_message(error: GeolocationError, timeout: float = GEOLOCATION_TIMEOUT_SECONDS) -> str:
    template = GEOLOCATION_MESSAGES.get(error.reason, GEOLOCATION_MESSAGES["unavailable"])
    return template.format(timeout=timeout)


async def acquire_location(
    geolocator: Optional[Geolocator],
    timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
) -> tuple[float, float]:
    """Ask permission, then locate within `timeout` seconds. Raises GeolocationError."""
    if geolocator is None:
        raise GeolocationError("unsupported", "no geolocation provider configured")

    if not geolocator.request_permission():
        raise GeolocationError("permission_denied")

    try:
        return await asyncio.wait_for(geolocator.locate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise GeolocationError("timeout", f"no fix within {timeout:.0f} s") from e


def make_geolocation_agent_node(
    geolocator: Optional[Geolocator],
    timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
):
    async def geolocation_agent_node(state: EnrichmentState) -> dict:
        print("\n📍 Detecting location...")

        try:
            latitude, longitude = await acquire_location(geolocator, timeout)
        except GeolocationError as e:
            logger.warning("Geolocation failed (%s).", e)
            print(f"   ❌ {e.reason}")
            return {"reading": WeatherReading.failed(geolocation_message(e, timeout))}

        print(f"   Coordinates: {latitude:.4f}, {longitude:.4f}")
        return {"latitude": latitude, "longitude": longitude}

    return geolocation_agent_node
