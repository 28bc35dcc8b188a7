"""
main.py

Pizza dough calculator (AVPN baker's percentages) with optional
auto temperature from the local weather.

Usage:
  python main.py                                   → AVPN defaults
  python main.py --pizzas 6 --hydration 65         → custom batch
  python main.py --fridge --fridge-time 48 --yeast dry
  python main.py --auto-temp                       → detect location + weather, then calculate
  python main.py --auto-temp --location 40.85,14.27
  python main.py --advice                          → add AI fermentation advice

Ingredient calculation is fully offline; only --auto-temp and --advice
need GOOGLE_API_KEY.
"""

import argparse
import asyncio
import logging

from config import LOG_LEVEL, get_fixed_location

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.WARNING))
logger = logging.getLogger(__name__)

from schemas.dough_schemas import AVPN_DEFAULTS, INPUT_RANGES


# ═══════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════

def print_ingredients(ingredients, config, yeast_percentage: float) -> None:
    print(f"\n🍕 {config.pizzas} pizzas × {config.ball_weight:.0f} g")
    print("=" * 40)
    print(f"   Flour:  {ingredients.flour:8.1f} g")
    print(f"   Water:  {ingredients.water:8.1f} g")
    print(f"   Salt:   {ingredients.salt:8.1f} g")
    print(f"   Yeast:  {ingredients.yeast:8.2f} g  ({config.yeast_type})")
    if config.use_oil:
        print(f"   Oil:    {ingredients.oil:8.1f} g")
    print("-" * 40)
    print(f"   Total:  {ingredients.total:8.1f} g")
    print(f"\n🦠 Yeast rate (auto): {yeast_percentage:.4f}%")
    print(f"🌡️ {config.room_time:.0f} h at {config.room_temp:.0f} °C", end="")
    if config.use_fridge:
        print(f" + {config.fridge_time:.0f} h fridge at {config.fridge_temp:.0f} °C", end="")
    print()


def print_weather(reading) -> None:
    from tools.weather_icon import weather_icon

    if reading is None or reading.status == "idle":
        return
    if reading.status == "detecting":
        print("\n⏳ Fetching weather...")
        return
    if reading.status == "error":
        print(f"\n⚠️ {reading.error}")
        return
    print(f"\n{weather_icon(reading.condition)} {reading.city.upper()}  "
          f"{reading.temperature}°C • {reading.condition}")
    for source in reading.sources:
        print(f"   🔗 {source.title} — {source.uri}")


def print_advice(advice) -> None:
    print("\n" + "=" * 60 + "\nDOUGH ADVICE\n" + "=" * 60)
    print(advice.summary)
    if advice.fermentation_tips:
        print("\n🦠 Fermentation:")
        for tip in advice.fermentation_tips:
            print(f"   • {tip}")
    print(f"\n🌾 Flour: {advice.flour_recommendation}")
    print(f"\n👐 Technique: {advice.technique_advice}")


# ═══════════════════════════════════════════════════════════════
# Input handling (ranges are enforced here, never in the engine)
# ═══════════════════════════════════════════════════════════════

def clamp_to_range(name: str, value: float) -> float:
    low, high, _ = INPUT_RANGES[name]
    if value < low or value > high:
        clamped = min(max(value, low), high)
        print(f"   ⚠️ {name} {value:g} outside {low:g}–{high:g}. Using {clamped:g}.")
        return clamped
    return value


def parse_location(raw: str) -> tuple[float, float]:
    try:
        lat, lon = (float(part) for part in raw.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON — got {raw!r}")
    return lat, lon


def config_updates_from_args(args) -> dict:
    updates = {}
    for name in ("pizzas", "ball_weight", "hydration", "salt", "room_temp",
                 "room_time", "fridge_temp", "fridge_time"):
        value = getattr(args, name)
        if value is not None:
            updates[name] = clamp_to_range(name, value)
    if "pizzas" in updates:
        updates["pizzas"] = int(updates["pizzas"])
    if args.yeast:
        updates["yeast_type"] = args.yeast
    if args.oil is not None:
        updates["oil"] = clamp_to_range("oil", args.oil)
    return updates


def build_geolocator(args):
    from agents.geolocation_agent import IPGeolocator, StaticGeolocator

    location = args.location or get_fixed_location()
    if location:
        return StaticGeolocator(*location)

    def ask_consent() -> bool:
        if args.allow_location:
            return True
        answer = input("📍 Allow approximate location lookup via your IP? (y/n): ")
        return answer.strip().lower() == "y"

    return IPGeolocator(consent=ask_consent)


# ═══════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════

async def run(args) -> None:
    from dough_controller import DoughController

    controller = DoughController(geolocator=build_geolocator(args) if args.auto_temp else None)
    controller.update_config(**config_updates_from_args(args))
    if args.fridge:
        controller.toggle_fridge()
    if args.oil is not None:
        controller.toggle_oil()

    if args.auto_temp:
        await controller.request_auto_temperature()
        print_weather(controller.weather)

    print_ingredients(controller.ingredients, controller.config, controller.yeast_percentage)

    if args.advice:
        from agents.advice_agent import generate_dough_advice
        from errors import ConfigurationError, NetworkError
        try:
            advice = await generate_dough_advice(
                controller.config, controller.ingredients, controller.yeast_percentage
            )
        except ConfigurationError as e:
            logger.warning("Advice unavailable (%s).", e)
            print("\n⚠️ Dough advice needs GOOGLE_API_KEY.")
        except NetworkError as e:
            logger.warning("Advice request failed (%s).", e)
            print("\n⚠️ Could not get dough advice right now. Try again later.")
        else:
            print_advice(advice)


def build_parser() -> argparse.ArgumentParser:
    d = AVPN_DEFAULTS
    parser = argparse.ArgumentParser(description="Pizza dough calculator — AVPN baker's percentages")
    parser.add_argument("--pizzas",      type=int,   help=f"Number of balls (default {d.pizzas})")
    parser.add_argument("--ball-weight", type=float, dest="ball_weight", help=f"Grams per ball (default {d.ball_weight:g})")
    parser.add_argument("--hydration",   type=float, help=f"Water %% of flour (default {d.hydration:g})")
    parser.add_argument("--salt",        type=float, help=f"Salt %% of flour (default {d.salt:g})")
    parser.add_argument("--yeast",       choices=["fresh", "dry"], help=f"Yeast type (default {d.yeast_type})")
    parser.add_argument("--room-temp",   type=float, dest="room_temp", help=f"Ambient °C (default {d.room_temp:g})")
    parser.add_argument("--room-time",   type=float, dest="room_time", help=f"Hours at room temp (default {d.room_time:g})")
    parser.add_argument("--fridge",      action="store_true", help="Enable cold retard")
    parser.add_argument("--fridge-temp", type=float, dest="fridge_temp", help=f"Fridge °C (default {d.fridge_temp:g})")
    parser.add_argument("--fridge-time", type=float, dest="fridge_time", help=f"Fridge hours (default {d.fridge_time:g})")
    parser.add_argument("--oil",         type=float, help="Include olive oil at this %% of flour")
    parser.add_argument("--auto-temp",   action="store_true", dest="auto_temp",
                        help="Set room temperature from the local weather")
    parser.add_argument("--location",    type=parse_location, help="LAT,LON to use instead of detecting")
    parser.add_argument("--allow-location", action="store_true", dest="allow_location",
                        help="Skip the location permission prompt")
    parser.add_argument("--advice",      action="store_true", help="Ask Gemini for dough advice")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    print("🍕 Pizza Dough Calculator\n")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
