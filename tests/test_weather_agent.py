"""Tests for weather reply parsing, grounding sources and the query client."""
from __future__ import annotations

import asyncio

import pytest

from agents.weather_agent import (
    WeatherQueryClient,
    _message_text,
    extract_sources,
    parse_weather_reply,
)
from errors import ConfigurationError, MalformedResponseError, NetworkError
from tests.fakes import FakeChatModel, grounding


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


# ── parse_weather_reply ──────────────────────────────────────────────────────

def test_parses_bare_json():
    reply = parse_weather_reply('{"city": "Napoli", "temp": 19.7, "condition": "sunny"}')
    assert (reply.city, reply.temperature, reply.condition) == ("Napoli", 19.7, "sunny")


def test_parses_fenced_json_with_surrounding_prose():
    text = 'Here you go:\n```json\n{"city": "São Paulo", "temp": "24", "condition": "nublado"}\n```'
    reply = parse_weather_reply(text)
    assert reply.city == "São Paulo"
    assert reply.temperature == 24.0


def test_accepts_temperature_key_and_unit_suffix():
    reply = parse_weather_reply('{"City": "Oslo", "temperature": "-3,5 °C"}')
    assert reply.temperature == -3.5


def test_zero_degrees_is_a_valid_temperature():
    reply = parse_weather_reply('{"city": "Oslo", "temp": 0, "condition": "snow"}')
    assert reply.temperature == 0.0


def test_missing_condition_defaults_to_unknown():
    assert parse_weather_reply('{"city": "Roma", "temp": 21}').condition == "unknown"
    assert parse_weather_reply('{"city": "Roma", "temp": 21, "condition": ""}').condition == "unknown"


def test_parses_delimited_reply():
    text = "CITY: Lisboa\nTEMP: 18.2\nCONDITION: clear"
    reply = parse_weather_reply(text)
    assert (reply.city, reply.temperature, reply.condition) == ("Lisboa", 18.2, "clear")


def test_delimited_reply_tolerates_markdown_and_case():
    text = "**City**: Lisboa\n**temp**: 18 °C"
    reply = parse_weather_reply(text)
    assert reply.city == "Lisboa"
    assert reply.temperature == 18.0
    assert reply.condition == "unknown"


def test_invalid_json_falls_back_to_delimited_lines():
    text = '{"city": "Lisboa"}\nCITY: Lisboa\nTEMP: 17'
    assert parse_weather_reply(text).temperature == 17.0


@pytest.mark.parametrize(
    "text",
    [
        "",
        "I could not find the weather for that location.",
        '{"city": "Napoli", "temp": "warm"}',
        '{"city": "", "temp": 20}',
        '{"temp": 20, "condition": "sunny"}',
        '{"city": "Napoli", "temp": true}',
        "CITY: Napoli\nCONDITION: sunny",
        '["Napoli", 20]',
    ],
)
def test_unparseable_replies_raise(text):
    with pytest.raises(MalformedResponseError):
        parse_weather_reply(text)


def test_message_text_flattens_content_blocks():
    class Message:
        content = [{"type": "text", "text": '{"city": '}, "\"Bari\", \"temp\": 22}",
                   {"type": "image_url", "image_url": "ignored"}]
    assert _message_text(Message()) == '{"city": "Bari", "temp": 22}'


# ── extract_sources ──────────────────────────────────────────────────────────

def test_extracts_up_to_two_sources():
    metadata = grounding(
        {"web": {"title": "weather.com", "uri": "https://weather.com/napoli"}},
        {"web": {"title": "", "uri": "https://meteo.it"}},
        {"web": {"title": "third", "uri": "https://third.example"}},
    )
    sources = extract_sources(metadata)
    assert [(s.title, s.uri) for s in sources] == [
        ("weather.com", "https://weather.com/napoli"),
        ("https://meteo.it", "https://meteo.it"),
    ]


def test_sources_without_uri_are_dropped():
    metadata = grounding(
        {"web": {"title": "no link"}},
        {"web": {"title": "blank", "uri": "  "}},
        {"retrieved_context": {"uri": "x"}},
        "garbage",
        {"web": {"title": "ok", "uri": "https://ok.example"}},
    )
    assert [s.uri for s in extract_sources(metadata)] == ["https://ok.example"]


@pytest.mark.parametrize(
    "metadata",
    [None, {}, {"grounding_metadata": None}, {"grounding_metadata": {"grounding_chunks": "nope"}}, "text"],
)
def test_missing_or_malformed_metadata_gives_no_sources(metadata):
    assert extract_sources(metadata) == []


def test_camel_case_metadata_is_understood():
    metadata = {"groundingMetadata": {"groundingChunks": [{"web": {"title": "t", "uri": "https://u"}}]}}
    assert extract_sources(metadata)[0].uri == "https://u"


# ── WeatherQueryClient ───────────────────────────────────────────────────────

def test_missing_credential_fails_before_any_request(no_api_key):
    model = FakeChatModel('{"city": "Napoli", "temp": 20}')
    client = WeatherQueryClient(model=model)
    with pytest.raises(ConfigurationError):
        asyncio.run(client.query(40.85, 14.27))
    assert model.calls == []


def test_credential_read_from_environment(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    client = WeatherQueryClient(model=FakeChatModel('{"city": "Napoli", "temp": 20}'))
    assert client.ensure_configured() == "from-env"


def test_successful_query_makes_exactly_one_request():
    metadata = grounding({"web": {"title": "ilmeteo", "uri": "https://ilmeteo.it"}})
    model = FakeChatModel('{"city": "Napoli", "temp": 19.7, "condition": "sunny"}', metadata=metadata)
    client = WeatherQueryClient(model=model, api_key="test-key")

    reading = asyncio.run(client.query(40.8518, 14.2681))

    assert len(model.calls) == 1
    prompt = model.calls[0][0].content
    assert "40.8518" in prompt and "14.2681" in prompt
    assert reading.status == "success"
    assert (reading.city, reading.temperature, reading.condition) == ("Napoli", 19.7, "sunny")
    assert [s.title for s in reading.sources] == ["ilmeteo"]


def test_malformed_reply_is_not_retried():
    model = FakeChatModel("Sorry, no idea.")
    client = WeatherQueryClient(model=model, api_key="test-key")
    with pytest.raises(MalformedResponseError):
        asyncio.run(client.query(0, 0))
    assert len(model.calls) == 1


def test_transport_failure_becomes_network_error():
    model = FakeChatModel(error=ConnectionError("connection reset"))
    client = WeatherQueryClient(model=model, api_key="test-key")
    with pytest.raises(NetworkError, match="connection reset"):
        asyncio.run(client.query(0, 0))
    assert len(model.calls) == 1


def test_slow_provider_times_out_as_network_error():
    model = FakeChatModel('{"city": "Napoli", "temp": 20}', delay=1.0)
    client = WeatherQueryClient(model=model, api_key="test-key", timeout=0.05)
    with pytest.raises(NetworkError, match="timed out"):
        asyncio.run(client.query(0, 0))


def test_model_setup_failure_becomes_network_error(monkeypatch):
    import agents.weather_agent as weather_agent

    def _bad_model(*args, **kwargs):
        raise ValueError("bad model name")
    monkeypatch.setattr(weather_agent, "init_chat_model", _bad_model)

    client = WeatherQueryClient(model_name="no-such-model", api_key="test-key")
    with pytest.raises(NetworkError, match="bad model name"):
        asyncio.run(client.query(0, 0))
