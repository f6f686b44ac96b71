from __future__ import annotations

from typing import Any

from with_simple_caching.types import MISSING, Expiration, SyncCache


class NoOpCache(SyncCache):
    """A cache which never retains anything, e.g. to switch caching off."""

    def get(self, key: str) -> Any:
        return MISSING

    def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None:
        pass
