"""Shared test fixtures."""

from __future__ import annotations

import pytest

from nscache import AdapterOptions
from nscache import CacheAdapter
from nscache import CachetoolsStore


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store(clock):
    return CachetoolsStore(memory_bytes=64 * 1024, clock=clock)


@pytest.fixture
def options():
    return AdapterOptions(namespace="ns")


@pytest.fixture
def cache(store, options):
    return CacheAdapter(options, store=store)


@pytest.fixture
def bare(store):
    """Adapter without namespace on the same store."""
    return CacheAdapter(store=store)
