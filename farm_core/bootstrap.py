# farm_core/bootstrap.py

from typing import Optional

from .config import Settings
from .models import User
from .repository import FarmRepository


def seed_demo_data(repository: FarmRepository, settings: Settings) -> Optional[User]:
    """Creates the demo farmer once. Returns the demo user, or None when seeding is off."""
    if not settings.seed_demo_user:
        return None

    existing = repository.get_user_by_username(settings.demo_username)
    if existing:
        print(f"---BOOTSTRAP: Demo user '{settings.demo_username}' already present---")
        return existing

    return repository.create_user(
        settings.demo_username,
        settings.demo_password,
        settings.demo_location,
    )
