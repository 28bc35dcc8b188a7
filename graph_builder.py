"""
graph_builder.py

Weather enrichment pipeline as a LangGraph StateGraph:

    credential_check ──► geolocation_agent ──► weather_agent ──► END
           │                    │
           └── error ──► END    └── error ──► END

Each node records failures as an error WeatherReading in state; the router
sends the run to END as soon as one exists. No checkpointer: a run is one
short user-initiated attempt and nothing about it is persisted.

The graph is built per controller so the geolocation provider and the
weather client can be swapped (CLI flags, tests).
"""

import logging
from typing import Optional

from langgraph.graph import StateGraph, END
from state import EnrichmentState

from agents.geolocation_agent import Geolocator, make_geolocation_agent_node
from agents.weather_agent     import WeatherQueryClient, make_credential_check_node, make_weather_agent_node
from config import GEOLOCATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def _route_unless_failed(next_node: str):
    def route(state: EnrichmentState) -> str:
        if state.failed:
            return END
        return next_node
    return route


def build_enrichment_graph(
    geolocator: Optional[Geolocator],
    weather_client: WeatherQueryClient,
    geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
):
    builder = StateGraph(EnrichmentState)

    builder.add_node("credential_check",  make_credential_check_node(weather_client))
    builder.add_node("geolocation_agent", make_geolocation_agent_node(geolocator, geolocation_timeout))
    builder.add_node("weather_agent",     make_weather_agent_node(weather_client))

    builder.set_entry_point("credential_check")
    builder.add_conditional_edges(
        "credential_check",
        _route_unless_failed("geolocation_agent"),
        {"geolocation_agent": "geolocation_agent", END: END}
    )
    builder.add_conditional_edges(
        "geolocation_agent",
        _route_unless_failed("weather_agent"),
        {"weather_agent": "weather_agent", END: END}
    )
    builder.add_edge("weather_agent", END)

    logger.debug("Enrichment graph compiled (geolocator=%s).", type(geolocator).__name__)
    return builder.compile()
