# tools/yeast_calculator.py

import math

from langchain_core.tools import Tool

from schemas.dough_schemas import DoughConfiguration, YEAST_RATIO

# Anchor: 8 h at 23 °C needs 0.15% fresh yeast
BASE_YEAST_PERCENT = 0.15
BASE_HOURS         = 8.0
BASE_TEMP_C        = 23.0

# Fridge hours count as ~12% of a room-temperature hour
FRIDGE_ACTIVITY_FACTOR = 0.12

MIN_YEAST_PERCENT = 0.005
MAX_YEAST_PERCENT = 1.5


def effective_fermentation_hours(config: DoughConfiguration) -> float:
    fridge_hours = config.fridge_time * FRIDGE_ACTIVITY_FACTOR if config.use_fridge else 0.0
    return config.room_time + fridge_hours


def compute_yeast_percentage(config: DoughConfiguration) -> float:
    """
    Yeast as % of flour weight.

    Scales inversely with effective hours and with ambient temperature,
    then by the yeast form ratio, clamped to [0.005, 1.5].
    Zero or negative hours / temperature give the upper clamp.
    NaN inputs give NaN.
    """
    hours = effective_fermentation_hours(config)
    temp  = config.room_temp

    if math.isnan(hours) or math.isnan(temp):
        return math.nan

    if hours <= 0 or temp <= 0:
        return MAX_YEAST_PERCENT

    percentage = BASE_YEAST_PERCENT * (BASE_HOURS / hours) * (BASE_TEMP_C / temp)
    percentage *= YEAST_RATIO[config.yeast_type]

    return max(MIN_YEAST_PERCENT, min(MAX_YEAST_PERCENT, percentage))


# ✅ LangChain Tool wrapper
yeast_calculator_tool = Tool(
    name="YeastCalculator",
    func=lambda args: compute_yeast_percentage(DoughConfiguration(**args)),
    description="Returns the yeast percentage (of flour weight) for a dough fermentation schedule."
)
