"""Shared fixtures: a controllable clock and an in-memory workspace."""

from datetime import datetime, timedelta, timezone

import pytest

from calm.adapters.memory_store import MemoryDocumentStore
from calm.workflows import build_workspace


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def ws(store, clock):
    return build_workspace(store, tz=timezone.utc, clock=clock)
