from .extendable_cache import (
    ExtendableCache,
    ExtendableCacheAsync,
    with_extendable_cache,
    with_extendable_cache_async,
)
from .on_disk import with_simple_cache_on_disk
from .simple_cache import with_simple_cache
from .simple_cache_async import with_simple_cache_async

__all__ = [
    "ExtendableCache",
    "ExtendableCacheAsync",
    "with_extendable_cache",
    "with_extendable_cache_async",
    "with_simple_cache",
    "with_simple_cache_async",
    "with_simple_cache_on_disk",
]
