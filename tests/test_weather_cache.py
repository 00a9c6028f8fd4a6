import threading
import time
from datetime import timedelta

import pytest

from farm_core.weather_cache import WeatherCache


def weather_fields(repository, location="Nairobi", minutes=60, **overrides):
    fields = {
        "location": location,
        "weather_info": {"current": {"temperature": 24}},
        "farming_advice": ["Check soil moisture levels before watering"],
        "expires_at": repository.now() + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return fields


# --- repository operations ---

def test_farming_advice_defaults_to_empty(repository):
    entry = repository.create_weather_data(weather_fields(repository, farming_advice="rain later"))
    assert entry.farming_advice == []


def test_weather_info_is_stored_verbatim(repository):
    info = {"current": {"temperature": 31}, "forecast": [{"date": "Today"}]}
    entry = repository.create_weather_data(weather_fields(repository, weather_info=info))

    assert entry.weather_info == info
    assert entry.to_api()["weatherInfo"] == info


def test_lookup_is_case_insensitive_and_first_wins(repository):
    first = repository.create_weather_data(weather_fields(repository, minutes=30))
    repository.create_weather_data(weather_fields(repository, location="NAIROBI", minutes=90))

    assert repository.get_weather_data_by_location("nairobi") == first
    assert repository.get_valid_weather_data("nAiRoBi") == first


def test_unknown_location_is_not_found(repository):
    repository.create_weather_data(weather_fields(repository))

    assert repository.get_weather_data_by_location("Mombasa") is None
    assert repository.get_valid_weather_data("Mombasa") is None


def test_expired_entry_is_found_but_not_valid(repository, clock):
    entry = repository.create_weather_data(weather_fields(repository, minutes=60))
    clock.advance(minutes=60)

    assert repository.get_weather_data_by_location("Nairobi") == entry
    assert repository.get_valid_weather_data("Nairobi") is None


def test_entry_valid_until_just_before_expiry(repository, clock):
    entry = repository.create_weather_data(weather_fields(repository, minutes=60))
    clock.advance(minutes=59, seconds=59)

    assert repository.get_valid_weather_data("Nairobi") == entry


def test_valid_lookup_skips_expired_rows(repository, clock):
    repository.create_weather_data(weather_fields(repository, minutes=10))
    fresh = repository.create_weather_data(weather_fields(repository, minutes=120))
    clock.advance(minutes=30)

    assert repository.get_valid_weather_data("nairobi") == fresh


def test_duplicate_rows_for_a_location_are_accepted(repository):
    # Known gap: nothing deduplicates cache rows per location.
    repository.create_weather_data(weather_fields(repository))
    repository.create_weather_data(weather_fields(repository))

    assert len(repository.weather_data) == 2


# --- get-or-fetch front ---

class CountingSource:
    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self, location):
        with self._lock:
            self.calls.append(location)
        time.sleep(self.delay)
        return {"location": location, "current": {"temperature": 22}, "farming_advice": ["Mulch beds"]}


def test_miss_fetches_and_caches(repository):
    source = CountingSource()
    cache = WeatherCache(repository, source, ttl=timedelta(minutes=60))

    entry = cache.get("Eldoret")

    assert source.calls == ["Eldoret"]
    assert entry.farming_advice == ["Mulch beds"]
    assert entry.weather_info["current"]["temperature"] == 22
    assert entry.expires_at == repository.now() + timedelta(minutes=60)


def test_hit_does_not_fetch_again(repository):
    source = CountingSource()
    cache = WeatherCache(repository, source, ttl=timedelta(minutes=60))

    first = cache.get("Eldoret")
    second = cache.get("eldoret")

    assert first == second
    assert len(source.calls) == 1


def test_expired_entry_triggers_refetch(repository, clock):
    source = CountingSource()
    cache = WeatherCache(repository, source, ttl=timedelta(minutes=60))

    old = cache.get("Eldoret")
    clock.advance(minutes=61)
    new = cache.get("Eldoret")

    assert new.id != old.id
    assert len(source.calls) == 2


def test_blank_location_uses_default(repository):
    source = CountingSource()
    cache = WeatherCache(repository, source, default_location="Default Location")

    cache.get("")

    assert source.calls == ["Default Location"]


def test_concurrent_misses_fetch_once(repository):
    source = CountingSource(delay=0.05)
    cache = WeatherCache(repository, source, ttl=timedelta(minutes=60))
    results = []

    threads = [threading.Thread(target=lambda: results.append(cache.get("Kisumu"))) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(source.calls) == 1
    assert len({entry.id for entry in results}) == 1
    assert len(repository.weather_data) == 1


def test_fetch_errors_propagate(repository):
    def broken(location):
        raise ConnectionError("weather service down")

    cache = WeatherCache(repository, broken)

    with pytest.raises(ConnectionError):
        cache.get("Nyeri")
    assert repository.weather_data == {}


def test_location_locks_are_released_after_use(repository):
    cache = WeatherCache(repository, CountingSource(delay=0.01), ttl=timedelta(minutes=60))

    threads = [
        threading.Thread(target=cache.get, args=(f"Town {n % 3}",))
        for n in range(9)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    cache.get("Town 0")

    assert cache._locks == {}
    assert len(repository.weather_data) == 3


def test_location_lock_is_released_when_fetch_fails(repository):
    def broken(location):
        raise ConnectionError("weather service down")

    cache = WeatherCache(repository, broken)

    with pytest.raises(ConnectionError):
        cache.get("Nyeri")
    assert cache._locks == {}
