from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from threading import Lock
from typing import Any

from with_simple_caching.types import MISSING, Expiration, SyncCache


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    expires_at_monotonic: float | None


class InMemoryCache(SyncCache):
    """Process-local synchronous cache.

    Expired entries are dropped lazily, on read. There is no size bound.
    """

    def __init__(self, *, default_expiration: timedelta | None = None) -> None:
        if default_expiration is not None and default_expiration <= timedelta(0):
            raise ValueError("default_expiration must be > 0")
        self._default_expiration = default_expiration
        self._lock = Lock()
        self._entries: dict[str, _Entry] = {}

    @property
    def default_expiration(self) -> timedelta | None:
        return self._default_expiration

    def get(self, key: str) -> Any:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISSING
            if entry.expires_at_monotonic is not None and entry.expires_at_monotonic <= now:
                self._entries.pop(key, None)
                return MISSING
            return entry.value

    def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None:
        if value is MISSING:
            with self._lock:
                self._entries.pop(key, None)
            return

        ttl = self._default_expiration if expiration is None else expiration
        expires_at = None if ttl is None else time.monotonic() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at_monotonic=expires_at)
