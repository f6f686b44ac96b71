from .choice import FixedCache, ResolvedCache
from .deduplication import RequestDeduplicator
from .disk_backend import OnDiskCache
from .errors import CacheConfigurationError, SimpleCachingError
from .hooks import CacheSetEvent, CacheSetValue, CacheTrigger
from .keys import canonical_json, cast_to_safe_on_disk_cache_key, hash_bytes, hash_text
from .logger import setup_logging
from .memory_backend import InMemoryCache
from .noop_backend import NoOpCache
from .options import CacheBypass
from .serde import (
    default_key_serialization_method,
    default_should_bypass_get_method,
    default_should_bypass_set_method,
    default_value_deserialization_method,
    default_value_serialization_method,
)
from .types import MISSING, AsyncCache, SimpleCache, SyncCache
from .wrappers import (
    ExtendableCache,
    ExtendableCacheAsync,
    with_extendable_cache,
    with_extendable_cache_async,
    with_simple_cache,
    with_simple_cache_async,
    with_simple_cache_on_disk,
)

__all__ = [
    "MISSING",
    "AsyncCache",
    "CacheBypass",
    "CacheConfigurationError",
    "CacheSetEvent",
    "CacheSetValue",
    "CacheTrigger",
    "ExtendableCache",
    "ExtendableCacheAsync",
    "FixedCache",
    "InMemoryCache",
    "NoOpCache",
    "OnDiskCache",
    "RequestDeduplicator",
    "ResolvedCache",
    "SimpleCache",
    "SimpleCachingError",
    "SyncCache",
    "canonical_json",
    "cast_to_safe_on_disk_cache_key",
    "default_key_serialization_method",
    "default_should_bypass_get_method",
    "default_should_bypass_set_method",
    "default_value_deserialization_method",
    "default_value_serialization_method",
    "hash_bytes",
    "hash_text",
    "setup_logging",
    "with_extendable_cache",
    "with_extendable_cache_async",
    "with_simple_cache",
    "with_simple_cache_async",
    "with_simple_cache_on_disk",
]
