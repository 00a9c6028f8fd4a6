# main.py

from datetime import timedelta
from typing import Optional
from dotenv import load_dotenv
from langchain_openai import ChatOpenAI
from rich.console import Console
from rich.table import Table

from farm_core.bootstrap import seed_demo_data
from farm_core.config import Settings, settings as default_settings
from farm_core.models import WeatherCacheEntry
from farm_core.repository import FarmRepository
from farm_core.weather_cache import WeatherCache
from farm_agents.plant_diagnosis import ImageAnalyzer, PlantDiagnosisAgent
from farm_agents.voice_advisor import VoiceAdvisorAgent
from farm_tools.mock_weather import get_mock_weather

load_dotenv()


def build_llm(settings: Settings):
    """Chat model for the voice advisor, or None when no OpenAI key is configured."""
    if not settings.openai_api_key:
        return None
    return ChatOpenAI(model=settings.openai_model, api_key=settings.openai_api_key)


class FarmApp:
    """Everything a request handler needs, built once at process start."""

    def __init__(
        self,
        settings: Settings,
        repository: Optional[FarmRepository] = None,
        llm=None,
        analyze_image: Optional[ImageAnalyzer] = None,
    ):
        self.settings = settings
        self.repository = repository or FarmRepository()
        self.demo_user = seed_demo_data(self.repository, settings)
        self.weather_cache = WeatherCache(
            self.repository,
            lambda location: get_mock_weather.invoke({"location": location}),
            ttl=timedelta(minutes=settings.weather_cache_ttl_minutes),
            default_location=settings.default_weather_location,
        )
        if llm is None:
            llm = build_llm(settings)
        self.voice_advisor = VoiceAdvisorAgent(llm, self.repository) if llm is not None else None
        # vision model is supplied by the caller; none ships with this repo
        self.diagnosis_agent = (
            PlantDiagnosisAgent(analyze_image, self.repository, settings.diagnosis_recheck_days)
            if analyze_image is not None else None
        )


def weather_table(entry: WeatherCacheEntry) -> Table:
    current = entry.weather_info.get("current", {})
    table = Table(title=f"Weather for {entry.location}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Temperature", f"{current.get('temperature')}°C")
    table.add_row("Condition", str(current.get("condition")))
    table.add_row("Humidity", f"{current.get('humidity')}%")
    table.add_row("Wind", f"{current.get('wind_speed')} km/h")
    table.add_row("Cached until", entry.expires_at.isoformat())
    return table


def run(settings: Settings, console: Optional[Console] = None) -> FarmApp:
    console = console or Console()
    app = FarmApp(settings)

    if app.demo_user:
        console.print(f"[bold green]Demo farmer:[/bold green] {app.demo_user.username} ({app.demo_user.location})")

    entry = app.weather_cache.get(app.demo_user.location if app.demo_user else None)
    console.print(weather_table(entry))
    console.print("[bold blue]Farming advice:[/bold blue]")
    for tip in entry.farming_advice:
        console.print(f"- {tip}")

    if app.voice_advisor is None:
        console.print("[yellow]No OPENAI_API_KEY set; voice advisor disabled.[/yellow]")
    return app


if __name__ == "__main__":
    run(default_settings)
