from __future__ import annotations

import enum
from collections.abc import Callable
from datetime import timedelta
from typing import Any, Final, Protocol, TypeAlias, runtime_checkable


class _Missing(enum.Enum):
    """Sentinel type for "no value in the cache".

    `None` is a legitimate cached value, so absence needs its own marker.
    """

    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing.MISSING

Expiration: TypeAlias = timedelta | None

CallInput: TypeAlias = tuple[Any, ...]


@runtime_checkable
class SyncCache(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None: ...


@runtime_checkable
class AsyncCache(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None: ...


SimpleCache: TypeAlias = SyncCache | AsyncCache

KeySerializationMethod: TypeAlias = Callable[..., str]

ValueSerializationMethod: TypeAlias = Callable[[Any], Any]

ValueDeserializationMethod: TypeAlias = Callable[[Any], Any]

BypassMethod: TypeAlias = Callable[[CallInput], bool]

CacheResolutionMethod: TypeAlias = Callable[[CallInput], SimpleCache | None]
