from datetime import datetime, timedelta, timezone

import pytest

from farm_core.repository import FarmRepository


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def repository(clock):
    return FarmRepository(clock=clock)
