# farm_core/config.py

from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Loads application settings from .env file."""
    weather_cache_ttl_minutes: int = 60
    diagnosis_recheck_days: int = 7
    default_weather_location: str = "Default Location"

    # Demo farmer created at startup
    seed_demo_user: bool = True
    demo_username: str = "demo_farmer"
    demo_password: str = "demo123"
    demo_location: Optional[str] = "Nairobi, Kenya"

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    class Config:
        env_file = ".env"

# Create a single, reusable instance of the settings
settings = Settings()
