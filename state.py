"""
state.py

State model for the weather enrichment LangGraph pipeline.

Key rules:
- Every field has a default so LangGraph can merge partial updates.
- Nodes return ONLY the keys they changed.
- A node that fails sets `reading` to an error WeatherReading; the graph
  routes straight to END after that.
"""

from typing import Optional
from pydantic import BaseModel

from schemas.dough_schemas import WeatherReading


class EnrichmentState(BaseModel):

    # ── Geolocation Agent outputs ─────────────────────────────
    latitude:  Optional[float] = None
    longitude: Optional[float] = None

    # ── Result (error from any node, or success from weather agent)
    reading: Optional[WeatherReading] = None

    @property
    def failed(self) -> bool:
        return self.reading is not None and self.reading.status == "error"
