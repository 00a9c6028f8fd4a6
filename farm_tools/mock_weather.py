# farm_tools/mock_weather.py

import random
from typing import List, Optional
from langchain_core.tools import tool

CONDITIONS = ["sunny", "cloudy", "rainy", "partly-cloudy"]
FORECAST_DAYS = ["Today", "Tomorrow", "Day after tomorrow"]
MAX_ADVICE = 4

CONDITION_ADVICE = {
    "sunny": "Perfect conditions for most farming activities - good day for planting and harvesting",
    "cloudy": "Overcast conditions reduce water evaporation - adjust watering schedule accordingly",
    "rainy": "Avoid soil cultivation during rain - wait for soil to dry to prevent compaction",
    "partly-cloudy": "Mixed conditions - monitor plants closely and water as needed",
}


def build_forecast(rng: random.Random) -> List[dict]:
    return [
        {
            "date": day,
            "high": rng.randint(25, 34),
            "low": rng.randint(15, 22),
            "condition": rng.choice(CONDITIONS),
            "precipitation_chance": rng.randint(0, 99),
        }
        for day in FORECAST_DAYS
    ]


def generate_farming_advice(current: dict, forecast: List[dict]) -> List[str]:
    """Rule-based advice from current conditions and the short forecast, at most four items."""
    advice = []

    if current["temperature"] > 30:
        advice.append("High temperatures expected - increase watering frequency and provide shade for sensitive crops")
    elif current["temperature"] < 20:
        advice.append("Cool weather - protect tender plants and delay planting of warm-season crops")

    if current["humidity"] > 70:
        advice.append("High humidity may promote fungal diseases - ensure good air circulation around plants")
    elif current["humidity"] < 50:
        advice.append("Low humidity - increase watering and consider mulching to retain soil moisture")

    if any(day["precipitation_chance"] > 60 for day in forecast):
        advice.append("Rain expected - delay fertilizer application and ensure good drainage")
        advice.append("Harvest any mature crops before heavy rains arrive")
    else:
        advice.append("Dry period ahead - check irrigation systems and water deeply but less frequently")

    if current["wind_speed"] > 20:
        advice.append("Strong winds expected - stake tall plants and protect young seedlings")

    if current["condition"] in CONDITION_ADVICE:
        advice.append(CONDITION_ADVICE[current["condition"]])

    if not advice:
        advice.append("Monitor your crops regularly and adjust care based on their specific needs")
        advice.append("Check soil moisture levels before watering")

    return advice[:MAX_ADVICE]


def build_weather_snapshot(location: str, rng: Optional[random.Random] = None) -> dict:
    """Simulated current conditions, three-day forecast and advice for a location."""
    rng = rng or random.Random()
    current = {
        "temperature": rng.randint(20, 34),
        "condition": rng.choice(CONDITIONS),
        "humidity": rng.randint(50, 79),
        "wind_speed": rng.randint(5, 24),
        "visibility": rng.randint(5, 9),
    }
    forecast = build_forecast(rng)
    return {
        "location": location,
        "current": current,
        "forecast": forecast,
        "farming_advice": generate_farming_advice(current, forecast),
    }


@tool
def get_mock_weather(location: str) -> dict:
    """
    Returns simulated weather for a location: current conditions, a three-day
    forecast and farming advice derived from them.
    """
    print(f"---TOOL: Simulating weather for '{location}'---")
    return build_weather_snapshot(location)
