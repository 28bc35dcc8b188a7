# tools/dough_calculator.py

from langchain_core.tools import Tool

from schemas.dough_schemas import DoughConfiguration, IngredientWeights
from tools.yeast_calculator import compute_yeast_percentage

FLOUR_PERCENT = 100.0


def compute_ingredients(config: DoughConfiguration, yeast_percentage: float) -> IngredientWeights:
    """
    Convert baker's percentages into grams.

    Flour is the 100% reference, so flour = total * 100 / (100 + every other %).
    The five weights always add back up to pizzas * ball_weight.
    """
    total_weight = config.pizzas * config.ball_weight
    oil_percent  = config.oil if config.use_oil else 0.0

    total_percent = FLOUR_PERCENT + config.hydration + config.salt + yeast_percentage + oil_percent
    flour = total_weight * FLOUR_PERCENT / total_percent

    return IngredientWeights(
        flour=flour,
        water=flour * config.hydration / 100,
        salt=flour * config.salt / 100,
        yeast=flour * yeast_percentage / 100,
        oil=flour * oil_percent / 100,
    )


def calculate_dough(config: DoughConfiguration) -> dict:
    yeast_percentage = compute_yeast_percentage(config)
    weights = compute_ingredients(config, yeast_percentage)
    return {
        "yeast_percentage": yeast_percentage,
        "ingredients_g": weights.model_dump(),
        "total_g": weights.total,
    }


# ✅ LangChain Tool wrapper
dough_calculator_tool = Tool(
    name="DoughCalculator",
    func=lambda args: calculate_dough(DoughConfiguration(**args)),
    description="Calculates flour, water, salt, yeast and oil in grams for a pizza dough configuration."
)
