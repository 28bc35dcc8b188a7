"""
agents/weather_agent.py

Asks Gemini (with Google Search grounding) for the current city, outdoor
temperature and a one-word condition at a pair of coordinates.

Contract:
- No API key → ConfigurationError, raised before any network attempt
- Exactly one outbound request per query() call — no retries
- Request bounded by WEATHER_TIMEOUT_SECONDS → NetworkError on expiry
- Reply may be JSON (bare or fenced) or CITY:/TEMP:/CONDITION: lines;
  anything without a city + numeric temperature → MalformedResponseError
- Up to 2 grounding sources (title + URI); broken metadata never fails the call

We do NOT use with_structured_output here: structured output and the search
tool don't combine reliably on Gemini, so the reply is parsed by hand.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional

from langchain.chat_models import init_chat_model
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError

from config import MAX_WEATHER_SOURCES, WEATHER_MODEL, WEATHER_TIMEOUT_SECONDS, get_api_key
from errors import ConfigurationError, MalformedResponseError, NetworkError
from schemas.dough_schemas import WeatherReading, WeatherReply, WeatherSource
from state import EnrichmentState
from tools.weather_icon import weather_icon

logger = logging.getLogger(__name__)


WEATHER_PROMPT = ChatPromptTemplate.from_template("""
Using web search, find the weather right now at latitude {latitude}, longitude {longitude}.

Answer with ONLY a valid JSON object with these fields:
- "city": name of the city at those coordinates
- "temp": current outdoor temperature in Celsius, as a number (no unit)
- "condition": the weather in one or two words (e.g. sunny, cloudy, rain, clear)

If you cannot produce JSON, answer with exactly these three lines instead:
CITY: <city>
TEMP: <number>
CONDITION: <condition>
""")

CONFIGURATION_MESSAGE = "Auto temperature is disabled: no weather API key is configured (set GOOGLE_API_KEY)."
GENERIC_WEATHER_ERROR = "Could not fetch the local weather. Try again or set the temperature manually."


# ── Reply parsing ─────────────────────────────────────────────────────────────

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

_FIELD_PATTERNS: dict[str, re.Pattern] = {
    "city":        re.compile(r"^[\s*_#>-]*(?:city|cidade)[\s*_]*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE),
    "temp":        re.compile(r"^[\s*_#>-]*(?:temp|temperature|temperatura)[\s*_]*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE),
    "condition":   re.compile(r"^[\s*_#>-]*(?:condition|condição|condicao|clima)[\s*_]*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE),
}


def _message_text(message: Any) -> str:
    """Flatten an AIMessage's content (plain string or list of content blocks)."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return "" if content is None else str(content)


def _extract_json_object(text: str) -> Optional[dict]:
    candidates = [m.group(1) for m in _FENCE_RE.finditer(text)] + [text]
    for candidate in candidates:
        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            continue
        try:
            data = json.loads(candidate[start:end + 1])
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return {str(k).lower(): v for k, v in data.items()}
    return None


def _extract_delimited_fields(text: str) -> dict:
    fields = {}
    for name, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(text)
        if match:
            fields[name] = match.group(1).strip().strip('"*')
    return fields


def parse_weather_reply(text: str) -> WeatherReply:
    """JSON first, then CITY:/TEMP:/CONDITION: lines. Raises MalformedResponseError."""
    errors = []

    payload = _extract_json_object(text)
    if payload is not None:
        try:
            return WeatherReply.model_validate(payload)
        except ValidationError as e:
            errors.append(f"JSON reply invalid: {e.error_count()} error(s)")

    fields = _extract_delimited_fields(text)
    if fields:
        try:
            return WeatherReply.model_validate(fields)
        except ValidationError as e:
            errors.append(f"delimited reply invalid: {e.error_count()} error(s)")

    detail = "; ".join(errors) or "no JSON object or CITY:/TEMP: fields found"
    raise MalformedResponseError(f"Unparseable weather reply ({detail}): {text[:200]!r}")


def extract_sources(metadata: Any, limit: int = MAX_WEATHER_SOURCES) -> list[WeatherSource]:
    """
    Pull (title, uri) pairs out of Gemini grounding metadata.
    Entries without a URI are dropped; the list is capped at `limit`.
    """
    if not isinstance(metadata, dict):
        return []
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata")
    if not isinstance(grounding, dict):
        return []
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []
    if not isinstance(chunks, list):
        return []

    sources: list[WeatherSource] = []
    for chunk in chunks:
        if len(sources) >= limit:
            break
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        uri = web.get("uri")
        if not isinstance(uri, str) or not uri.strip():
            continue
        title = web.get("title")
        if not isinstance(title, str) or not title.strip():
            title = uri
        sources.append(WeatherSource(title=title.strip(), uri=uri.strip()))
    return sources


# ── Client ────────────────────────────────────────────────────────────────────

class WeatherQueryClient:
    """
    One instance per controller. The chat model is built lazily on first use,
    so a missing key or missing provider package only disables this feature.
    Pass `model` to inject any LangChain chat model (tests use a fake).
    """

    def __init__(
        self,
        model: Any = None,
        model_name: str = WEATHER_MODEL,
        api_key: Optional[str] = None,
        timeout: float = WEATHER_TIMEOUT_SECONDS,
        max_sources: int = MAX_WEATHER_SOURCES,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self.max_sources = max_sources

    def ensure_configured(self) -> str:
        api_key = self._api_key if self._api_key is not None else get_api_key()
        if not api_key:
            raise ConfigurationError("No GOOGLE_API_KEY / GEMINI_API_KEY in the environment.")
        return api_key

    def _get_model(self, api_key: str):
        if self._model is None:
            try:
                model = init_chat_model(f"google_genai:{self.model_name}", google_api_key=api_key)
                self._model = model.bind_tools([{"google_search": {}}])
            except ImportError as e:
                raise ConfigurationError(f"Gemini provider package not installed: {e}") from e
            except Exception as e:
                raise NetworkError(f"Could not set up weather model {self.model_name!r}: {e}") from e
        return self._model

    async def query(self, latitude: float, longitude: float) -> WeatherReading:
        api_key = self.ensure_configured()
        model = self._get_model(api_key)

        messages = WEATHER_PROMPT.format_messages(
            latitude=f"{latitude:.4f}",
            longitude=f"{longitude:.4f}",
        )

        try:
            response = await asyncio.wait_for(model.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Weather query timed out after {self.timeout:.0f} s") from e
        except Exception as e:
            raise NetworkError(f"Weather query failed: {e}") from e

        reply = parse_weather_reply(_message_text(response))
        sources = extract_sources(getattr(response, "response_metadata", None), self.max_sources)
        return WeatherReading.from_reply(reply, sources)


# ── Pipeline nodes ────────────────────────────────────────────────────────────

def make_credential_check_node(client: WeatherQueryClient):
    def credential_check_node(state: EnrichmentState) -> dict:
        try:
            client.ensure_configured()
        except ConfigurationError as e:
            logger.warning("Weather enrichment disabled (%s).", e)
            print("   ⚠️ No weather API key — auto temperature disabled.")
            return {"reading": WeatherReading.failed(CONFIGURATION_MESSAGE)}
        return {}

    return credential_check_node


def make_weather_agent_node(client: WeatherQueryClient):
    async def weather_agent_node(state: EnrichmentState) -> dict:
        print("\n🌤️ Querying local weather...")

        try:
            reading = await client.query(state.latitude, state.longitude)
        except ConfigurationError as e:
            logger.warning("Weather enrichment disabled (%s).", e)
            return {"reading": WeatherReading.failed(CONFIGURATION_MESSAGE)}
        except (NetworkError, MalformedResponseError) as e:
            logger.warning("Weather query failed (%s).", e)
            print("   ❌ Weather query failed.")
            return {"reading": WeatherReading.failed(GENERIC_WEATHER_ERROR)}

        print(f"   {weather_icon(reading.condition)} {reading.city}: "
              f"{reading.temperature}°C, {reading.condition}")
        return {"reading": reading}

    return weather_agent_node
