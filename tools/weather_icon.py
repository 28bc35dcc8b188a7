# tools/weather_icon.py

import re
from typing import Literal

WeatherCategory = Literal["sunny", "cloudy", "rain", "snow", "fog", "partly_cloudy"]

# Ordered — first pattern hit wins. Portuguese + English vocabulary.
# "sol" only at a word start, so "isolated" is not sunny.
CONDITION_KEYWORDS: list[tuple[str, WeatherCategory]] = [
    (r"\bsol",     "sunny"),
    ("ensolarad",  "sunny"),
    ("limpo",      "sunny"),
    ("clear",      "sunny"),
    ("sun",        "sunny"),
    ("nublado",    "cloudy"),
    ("cloud",      "cloudy"),
    ("chuv",       "rain"),
    ("rain",       "rain"),
    ("storm",      "rain"),
    ("trovoada",   "rain"),
    ("neve",       "snow"),
    ("snow",       "snow"),
    ("neblina",    "fog"),
    ("mist",       "fog"),
    ("fog",        "fog"),
]

_CONDITION_PATTERNS = [(re.compile(pattern), category) for pattern, category in CONDITION_KEYWORDS]

CATEGORY_ICONS: dict[WeatherCategory, str] = {
    "sunny":         "☀️",
    "cloudy":        "☁️",
    "rain":          "🌧️",
    "snow":          "❄️",
    "fog":           "🌫️",
    "partly_cloudy": "⛅",
}


def classify_condition(condition: str) -> WeatherCategory:
    cond = (condition or "").lower()
    for pattern, category in _CONDITION_PATTERNS:
        if pattern.search(cond):
            return category
    return "partly_cloudy"


def weather_icon(condition: str) -> str:
    return CATEGORY_ICONS[classify_condition(condition)]
