# farm_core/weather_cache.py

import threading
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from .config import settings
from .models import WeatherCacheEntry
from .repository import FarmRepository


class WeatherCache:
    """
    Get-or-fetch front for the weather rows in the repository.

    A miss fetches from the weather source and stores the result with a fixed
    lifetime. Misses for the same location are serialized so only one of them
    fetches; the others pick up the fresh row.
    """

    def __init__(
        self,
        repository: FarmRepository,
        fetch_weather: Callable[[str], Dict[str, Any]],
        ttl: Optional[timedelta] = None,
        default_location: Optional[str] = None,
    ):
        self.repository = repository
        self.fetch_weather = fetch_weather
        self.ttl = ttl or timedelta(minutes=settings.weather_cache_ttl_minutes)
        self.default_location = default_location or settings.default_weather_location
        # location key -> (lock, callers holding or waiting on it)
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _location_lock(self, location: str):
        """Per-location lock, dropped again once no caller holds or waits on it."""
        key = location.lower()
        with self._locks_guard:
            lock, users = self._locks.get(key, (None, 0))
            lock = lock or threading.Lock()
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def get(self, location: Optional[str] = None) -> WeatherCacheEntry:
        location = location or self.default_location

        cached = self.repository.get_valid_weather_data(location)
        if cached:
            print(f"---WEATHER CACHE: Hit for '{location}'---")
            return cached

        with self._location_lock(location):
            # another caller may have filled it while we waited
            cached = self.repository.get_valid_weather_data(location)
            if cached:
                print(f"---WEATHER CACHE: Filled by concurrent fetch for '{location}'---")
                return cached

            print(f"---WEATHER CACHE: Miss for '{location}', fetching---")
            snapshot = self.fetch_weather(location)
            return self.repository.create_weather_data({
                "location": location,
                "weather_info": snapshot,
                "farming_advice": snapshot.get("farming_advice", []),
                "expires_at": self.repository.now() + self.ttl,
            })
