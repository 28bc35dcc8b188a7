"""
agents/advice_agent.py

Optional AI advice for the current dough: a short summary, fermentation
tips for the chosen schedule, a flour recommendation and technique notes.

- Structured output (DoughAdvice), like the other agents
- Model built lazily — no key means ConfigurationError, provider failures NetworkError
- Purely informational: never changes the configuration or the weights
"""

from __future__ import annotations

from typing import Any, Optional

from langchain.chat_models import init_chat_model
from langchain_core.prompts import ChatPromptTemplate

from config import WEATHER_MODEL, get_api_key
from errors import ConfigurationError, NetworkError
from schemas.dough_schemas import DoughAdvice, DoughConfiguration, IngredientWeights


ADVICE_PROMPT = ChatPromptTemplate.from_template("""
You are a Neapolitan pizza master (AVPN trained). Give practical advice for this dough.

🍕 Batch: {pizzas} balls × {ball_weight:.0f} g
💧 Hydration: {hydration:.0f}% | 🧂 Salt: {salt:.1f}% | 🫒 Oil: {oil}
🦠 Yeast: {yeast_type}, {yeast_percentage:.4f}% of flour
🌡️ Room: {room_time:.0f} h at {room_temp:.0f} °C
❄️ Cold retard: {fridge}

⚖️ Weights: flour {flour:.0f} g, water {water:.0f} g, salt {salt_g:.1f} g, yeast {yeast_g:.2f} g

Cover:
1. A two or three sentence summary of what this dough will be like
2. Fermentation tips specific to this time/temperature schedule
3. Which flour (type and W strength) suits this schedule
4. Mixing, balling and stretching technique advice

Keep it concise and concrete.
""")


_llm: Optional[Any] = None


def _get_llm():
    global _llm
    if _llm is None:
        api_key = get_api_key()
        if not api_key:
            raise ConfigurationError("No GOOGLE_API_KEY / GEMINI_API_KEY in the environment.")
        try:
            model = init_chat_model(f"google_genai:{WEATHER_MODEL}", google_api_key=api_key)
            _llm = model.with_structured_output(DoughAdvice)
        except ImportError as e:
            raise ConfigurationError(f"Gemini provider package not installed: {e}") from e
        except Exception as e:
            raise NetworkError(f"Could not set up advice model {WEATHER_MODEL!r}: {e}") from e
    return _llm


async def generate_dough_advice(
    config: DoughConfiguration,
    ingredients: IngredientWeights,
    yeast_percentage: float,
    llm: Any = None,
) -> DoughAdvice:
    print("\n🧑‍🍳 Asking for dough advice...")

    if llm is None:
        llm = _get_llm()

    messages = ADVICE_PROMPT.format_messages(
        pizzas=config.pizzas,
        ball_weight=config.ball_weight,
        hydration=config.hydration,
        salt=config.salt,
        oil=f"{config.oil:.1f}%" if config.use_oil else "none",
        yeast_type=config.yeast_type,
        yeast_percentage=yeast_percentage,
        room_time=config.room_time,
        room_temp=config.room_temp,
        fridge=(f"{config.fridge_time:.0f} h at {config.fridge_temp:.0f} °C"
                if config.use_fridge else "none"),
        flour=ingredients.flour,
        water=ingredients.water,
        salt_g=ingredients.salt,
        yeast_g=ingredients.yeast,
    )

    try:
        advice: DoughAdvice = await llm.ainvoke(messages)
    except Exception as e:
        raise NetworkError(f"Dough advice request failed: {e}") from e
    return advice
