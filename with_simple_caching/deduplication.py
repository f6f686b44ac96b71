from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from with_simple_caching.config import settings
from with_simple_caching.events import log_cache_event
from with_simple_caching.memory_backend import InMemoryCache
from with_simple_caching.types import MISSING, SyncCache


def create_deduplication_cache() -> InMemoryCache:
    return InMemoryCache(
        default_expiration=timedelta(seconds=settings.deduplication_expiration_seconds)
    )


class RequestDeduplicator:
    """Collapse concurrent calls for the same key into one in-flight task.

    Every caller awaits the same task, so the work runs once and its result (or
    error) is shared. The task is registered before it starts and removed as soon
    as it settles, so a later call for the same key starts fresh.

    The store is any synchronous cache. Its expiration must outlive the slowest
    request; if an entry expires early, a concurrent caller simply runs the work
    again.
    """

    def __init__(self, cache: SyncCache | None = None, *, namespace: str = "default") -> None:
        self._cache = cache if cache is not None else create_deduplication_cache()
        self._namespace = namespace

    def in_flight(self, key: str) -> asyncio.Task[Any] | None:
        task = self._cache.get(key)
        if task is MISSING or task is None or task.done():
            return None
        return task

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self.in_flight(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._cache.set(key, task)
            task.add_done_callback(lambda done: self._release(key, done))
        else:
            log_cache_event(namespace=self._namespace, cache_event="deduplicated")

        # shield: a cancelled caller must not cancel the work other callers wait on
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        # mark a failure as retrieved, every waiter may have been cancelled already
        if task.done() and not task.cancelled():
            task.exception()
        # only remove our own entry, a newer task may already hold the slot
        if self._cache.get(key) is task:
            self._cache.set(key, MISSING)
