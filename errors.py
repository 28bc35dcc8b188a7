"""
errors.py

Failure taxonomy for the weather enrichment feature.

None of these ever reach the dough calculator — the pipeline nodes in
agents/ catch them and turn them into an error WeatherReading.
"""

from __future__ import annotations

from typing import Literal


GeolocationFailure = Literal["permission_denied", "timeout", "unsupported", "unavailable"]


class DoughCalculatorError(Exception):
    """Base class for every error raised by the enrichment feature."""


class ConfigurationError(DoughCalculatorError):
    """No API credential for the weather provider. Disables the feature only."""


class GeolocationError(DoughCalculatorError):
    """Location could not be acquired for this attempt."""

    def __init__(self, reason: GeolocationFailure, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class MalformedResponseError(DoughCalculatorError):
    """Provider reply could not be parsed into city + numeric temperature."""


class NetworkError(DoughCalculatorError):
    """Transport or provider failure, including timeouts."""
