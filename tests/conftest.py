"""Test fixtures and fake caches."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from with_simple_caching import stats
from with_simple_caching.types import MISSING, Expiration


@dataclass
class SetCall:
    key: str
    value: Any
    expiration: Expiration


@dataclass
class ExampleSyncCache:
    """Dict backed synchronous cache which records every set."""

    store: dict[str, Any] = field(default_factory=dict)
    sets: list[SetCall] = field(default_factory=list)

    def get(self, key: str) -> Any:
        return self.store.get(key, MISSING)

    def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None:
        self.sets.append(SetCall(key=key, value=value, expiration=expiration))
        if value is MISSING:
            self.store.pop(key, None)
            return
        self.store[key] = value


@dataclass
class ExampleAsyncCache:
    """Dict backed asynchronous cache, with an optional delay on every get."""

    get_delay_seconds: float = 0.0
    store: dict[str, Any] = field(default_factory=dict)
    sets: list[SetCall] = field(default_factory=list)

    async def get(self, key: str) -> Any:
        if self.get_delay_seconds:
            await asyncio.sleep(self.get_delay_seconds)
        return self.store.get(key, MISSING)

    async def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None:
        self.sets.append(SetCall(key=key, value=value, expiration=expiration))
        if value is MISSING:
            self.store.pop(key, None)
            return
        self.store[key] = value


@pytest.fixture
def sync_cache() -> ExampleSyncCache:
    return ExampleSyncCache()


@pytest.fixture
def async_cache() -> ExampleAsyncCache:
    return ExampleAsyncCache()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    for name in ("CACHE_BYPASS", "CACHE_BYPASS_GET", "CACHE_BYPASS_SET"):
        monkeypatch.delenv(name, raising=False)
    stats.reset()
    yield
    stats.reset()
