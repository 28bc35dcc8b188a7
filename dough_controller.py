"""
dough_controller.py

Top-level owner of the two pieces of mutable state:
- config:  DoughConfiguration (user edits + auto temperature write-back)
- weather: WeatherReading     (idle → detecting → success | error)

Both are frozen models and are only ever replaced whole. Ingredients and
yeast percentage are recomputed from `config` on every access — nothing is
cached across edits.

Stale-result suppression:
  Every request_auto_temperature() call (and every reset) bumps a request
  counter. A pipeline run that completes after a newer request was issued
  is logged and dropped, so only the latest request can touch the config.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from pydantic import ValidationError

from agents.geolocation_agent import Geolocator
from agents.weather_agent import GENERIC_WEATHER_ERROR, WeatherQueryClient
from graph_builder import build_enrichment_graph
from config import GEOLOCATION_TIMEOUT_SECONDS
from schemas.dough_schemas import AVPN_DEFAULTS, DoughConfiguration, IngredientWeights, WeatherReading
from state import EnrichmentState
from tools.dough_calculator import compute_ingredients
from tools.yeast_calculator import compute_yeast_percentage

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """19.5 → 20, 19.4 → 19, -2.5 → -2 (not banker's rounding)."""
    return math.floor(value + 0.5)


class DoughController:

    def __init__(
        self,
        geolocator: Optional[Geolocator] = None,
        weather_client: Optional[WeatherQueryClient] = None,
        config: DoughConfiguration = AVPN_DEFAULTS,
        geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
    ) -> None:
        self.config: DoughConfiguration = config
        self.weather: WeatherReading = WeatherReading()
        self._request_id = 0
        self._graph = build_enrichment_graph(
            geolocator,
            weather_client or WeatherQueryClient(),
            geolocation_timeout,
        )

    # ── Derived outputs ───────────────────────────────────────────────────────

    @property
    def yeast_percentage(self) -> float:
        return compute_yeast_percentage(self.config)

    @property
    def ingredients(self) -> IngredientWeights:
        return compute_ingredients(self.config, self.yeast_percentage)

    # ── Synchronous edits ─────────────────────────────────────────────────────

    def update_config(self, **fields) -> DoughConfiguration:
        """Replace config with `fields` applied. Unknown fields / bad types → ValueError."""
        try:
            self.config = DoughConfiguration.model_validate({**self.config.model_dump(), **fields})
        except ValidationError as e:
            raise ValueError(f"Invalid dough configuration update {fields!r}: {e}") from e
        return self.config

    def toggle_fridge(self) -> DoughConfiguration:
        return self.update_config(use_fridge=not self.config.use_fridge)

    def toggle_oil(self) -> DoughConfiguration:
        return self.update_config(use_oil=not self.config.use_oil)

    def reset_to_defaults(self) -> None:
        self._request_id += 1    # anything in flight is now stale
        self.config = AVPN_DEFAULTS
        self.weather = WeatherReading()

    # ── Auto temperature ──────────────────────────────────────────────────────

    async def request_auto_temperature(self) -> WeatherReading:
        """
        Run the enrichment pipeline once. On success the rounded temperature is
        written into config.room_temp. Returns the reading currently shown
        (which is not this run's result if the run went stale).
        """
        self._request_id += 1
        request_id = self._request_id
        self.weather = WeatherReading.detecting()

        try:
            raw = await self._graph.ainvoke(EnrichmentState())
        except Exception:
            logger.exception("Weather enrichment crashed (request %d).", request_id)
            reading = WeatherReading.failed(GENERIC_WEATHER_ERROR)
        else:
            state = EnrichmentState(**raw)
            reading = state.reading or WeatherReading.failed(GENERIC_WEATHER_ERROR)

        if request_id != self._request_id:
            logger.info("Discarding stale weather result (request %d, latest %d).",
                        request_id, self._request_id)
            return self.weather

        if reading.status == "success" and reading.temperature is not None:
            self.config = self.config.model_copy(
                update={"room_temp": float(round_half_up(reading.temperature))}
            )
            logger.info("Room temperature set to %.0f °C from %s.", self.config.room_temp, reading.city)

        self.weather = reading
        return reading
