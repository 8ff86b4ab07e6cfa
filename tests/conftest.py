from __future__ import annotations

import httpx
import pytest

from cache.resource_cache import ResourceCache
from cache.storage import MemoryStore
from content.loader import ResourceLoader

BASE_URL = "https://site.test"
T0 = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store, clock):
    return ResourceCache(store, namespace="portfolio", version="v1", clock=clock)


@pytest.fixture
def loader(cache):
    return ResourceLoader(cache, httpx.AsyncClient(base_url=BASE_URL))
