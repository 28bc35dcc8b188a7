"""
schemas/dough_schemas.py

Pydantic models for the dough calculator and the weather enrichment pipeline.

- DoughConfiguration — every input the calculator needs (single source of truth)
- IngredientWeights  — derived grams, recomputed on every config change
- WeatherReply       — what the LLM is asked to return (parsed + validated)
- WeatherReading     — what the UI renders: status + city/temp/condition/sources
- DoughAdvice        — optional AI fermentation advice

The configuration and the reading are frozen: callers replace them whole
(model_copy / new instance), never field by field.
"""

import math
import re
from typing import Optional, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


YeastType     = Literal["fresh", "dry"]
WeatherStatus = Literal["idle", "detecting", "success", "error"]


# ─────────────────────────────────────────────
# 1. Dough Configuration
# ─────────────────────────────────────────────

class DoughConfiguration(BaseModel):
    """
    No range constraints here: the input layer keeps values inside
    INPUT_RANGES, the engine accepts any float (NaN / inf propagate).
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    pizzas:      int        = Field(default=4,       description="Number of dough balls")
    ball_weight: float      = Field(default=250.0,   description="Weight of each ball in grams")
    hydration:   float      = Field(default=60.0,    description="Water as % of flour")
    salt:        float      = Field(default=3.0,     description="Salt as % of flour")
    yeast_type:  YeastType  = Field(default="fresh", description="fresh / dry")
    room_temp:   float      = Field(default=23.0,    description="Ambient temperature in °C")
    room_time:   float      = Field(default=8.0,     description="Hours fermenting at room temperature")
    use_fridge:  bool       = Field(default=False,   description="Cold retard enabled")
    fridge_temp: float      = Field(default=4.0,     description="Fridge temperature in °C")
    fridge_time: float      = Field(default=24.0,    description="Hours in the fridge")
    use_oil:     bool       = Field(default=False,   description="Include olive oil")
    oil:         float      = Field(default=3.0,     description="Oil as % of flour")

    @property
    def total_weight(self) -> float:
        return self.pizzas * self.ball_weight


AVPN_DEFAULTS = DoughConfiguration()

# Dry (instant) yeast is roughly 3x more potent per gram than fresh
YEAST_RATIO: dict[str, float] = {
    "fresh": 1.0,
    "dry":   0.33,
}

# (min, max, step) enforced by the input layer, never by the engine
INPUT_RANGES: dict[str, tuple[float, float, float]] = {
    "pizzas":      (1,   50,  1),
    "ball_weight": (150, 350, 1),
    "hydration":   (50,  100, 1),
    "salt":        (1,   4,   0.1),
    "oil":         (1,   10,  0.5),
    "room_temp":   (15,  35,  1),
    "room_time":   (1,   48,  1),
    "fridge_temp": (2,   8,   1),
    "fridge_time": (1,   120, 1),
}


# ─────────────────────────────────────────────
# 2. Ingredient Weights
# ─────────────────────────────────────────────

class IngredientWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    flour: float = Field(..., description="Flour in grams (the 100% reference)")
    water: float = Field(..., description="Water in grams")
    salt:  float = Field(..., description="Salt in grams")
    yeast: float = Field(..., description="Yeast in grams")
    oil:   float = Field(default=0.0, description="Olive oil in grams")

    @property
    def total(self) -> float:
        return self.flour + self.water + self.salt + self.yeast + self.oil


# ─────────────────────────────────────────────
# 3. Weather reply (LLM output)
# ─────────────────────────────────────────────

_NUMBER_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


class WeatherReply(BaseModel):
    city:        str   = Field(..., description="Name of the city at the coordinates")
    temperature: float = Field(
        ...,
        validation_alias=AliasChoices("temp", "temperature"),
        description="Current outdoor temperature in Celsius",
    )
    condition:   str   = Field(default="unknown", description="One-word weather description")

    @field_validator("city", mode="before")
    @classmethod
    def city_must_be_present(cls, v) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("city is missing or empty")
        return v.strip()

    @field_validator("temperature", mode="before")
    @classmethod
    def temperature_must_be_numeric(cls, v) -> float:
        if isinstance(v, bool):
            raise ValueError(f"temperature is not numeric: {v!r}")
        if isinstance(v, (int, float)):
            if not math.isfinite(v):
                raise ValueError(f"temperature is not finite: {v!r}")
            return float(v)
        if isinstance(v, str):
            match = _NUMBER_RE.search(v)
            if match:
                return float(match.group(0).replace(",", "."))
        raise ValueError(f"temperature is not numeric: {v!r}")

    @field_validator("condition", mode="before")
    @classmethod
    def condition_defaults_to_unknown(cls, v) -> str:
        if not isinstance(v, str) or not v.strip():
            return "unknown"
        return v.strip()


# ─────────────────────────────────────────────
# 4. Weather reading (what the UI renders)
# ─────────────────────────────────────────────

class WeatherSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Display title of the grounding source")
    uri:   str = Field(..., description="Link to the grounding source")


class WeatherReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status:      WeatherStatus       = Field(default="idle")
    city:        str                 = Field(default="")
    temperature: Optional[float]     = Field(default=None)
    condition:   str                 = Field(default="")
    sources:     list[WeatherSource] = Field(default_factory=list)
    error:       Optional[str]       = Field(default=None, description="User-facing message when status is error")

    @classmethod
    def detecting(cls) -> "WeatherReading":
        return cls(status="detecting")

    @classmethod
    def failed(cls, message: str) -> "WeatherReading":
        return cls(status="error", error=message)

    @classmethod
    def from_reply(cls, reply: WeatherReply, sources: list[WeatherSource]) -> "WeatherReading":
        return cls(
            status="success",
            city=reply.city,
            temperature=reply.temperature,
            condition=reply.condition,
            sources=sources,
        )


# ─────────────────────────────────────────────
# 5. Dough advice (optional LLM output)
# ─────────────────────────────────────────────

class DoughAdvice(BaseModel):
    summary:              str       = Field(..., description="Two or three sentence overview of this dough")
    fermentation_tips:    list[str] = Field(default_factory=list, description="Practical tips for this schedule")
    flour_recommendation: str       = Field(..., description="Flour type / W strength suited to the schedule")
    technique_advice:     str       = Field(..., description="Mixing, balling and stretching advice")
