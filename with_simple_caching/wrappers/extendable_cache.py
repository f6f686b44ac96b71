"""Cached logic together with the means to invalidate and update what it cached.

Without these, callers who want to invalidate or update an entry would need to
re-derive the key and value serialization of each wrapped function by hand.
Both operations reuse the exact options of `execute`, so keys and values always
line up with what `execute` reads and writes.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from with_simple_caching.choice import get_cache_from_cache_choice_or_for_key_args
from with_simple_caching.events import log_cache_event
from with_simple_caching.hooks import (
    CacheSetEvent,
    CacheSetValue,
    CacheTrigger,
    OnSetHook,
    notify_on_set,
)
from with_simple_caching.options import CacheBypass, CacheOptions, bind_call_input, signature_of
from with_simple_caching.types import (
    MISSING,
    CallInput,
    Expiration,
    KeySerializationMethod,
    SimpleCache,
    SyncCache,
    ValueDeserializationMethod,
    ValueSerializationMethod,
)
from with_simple_caching.wrappers.simple_cache import (
    namespace_of,
    require_sync,
    wrap_with_simple_cache,
)
from with_simple_caching.wrappers.simple_cache_async import (
    maybe_await,
    wrap_with_simple_cache_async,
)

F = TypeVar("F", bound=Callable[..., Any])


class _ExtendableCacheBase(Generic[F]):
    def __init__(self, logic: F, execute: F, options: CacheOptions) -> None:
        self.execute = execute
        self.options = options
        self._signature = signature_of(logic)
        self._namespace = namespace_of(logic)

    def _locate(
        self,
        *,
        trigger: CacheTrigger,
        for_input: Sequence[Any] | None,
        for_key: str | None,
        cache: SimpleCache | None,
    ) -> tuple[CallInput | None, str, SimpleCache]:
        """Find the key and cache an invalidate or update call targets."""
        if (for_input is None) == (for_key is None):
            raise ValueError(
                f"{trigger.value.lower()} requires exactly one of for_input or for_key"
            )

        if for_input is not None and (
            isinstance(for_input, str | bytes) or not isinstance(for_input, Sequence)
        ):
            raise ValueError(
                f"{trigger.value.lower()} for_input must be a sequence of the call arguments, "
                f"e.g. [input] or [input, context], got {type(for_input).__name__}"
            )

        bound_input: CallInput | None = None
        if for_input is not None:
            bound_input, _ = bind_call_input(
                self._signature, tuple(for_input), {}, partial=True
            )
            key = self.options.key_for(bound_input)
        else:
            key = for_key  # type: ignore[assignment]

        found = get_cache_from_cache_choice_or_for_key_args(
            for_input=bound_input,
            for_key_cache=cache,
            cache_option=self.options.cache,
            trigger=trigger,
        )
        return bound_input, key, found

    def _notify(
        self,
        trigger: CacheTrigger,
        for_input: CallInput | None,
        key: str,
        value: CacheSetValue | None,
    ) -> None:
        log_cache_event(namespace=self._namespace, cache_event=trigger.value.lower())
        notify_on_set(
            self.options.on_set,
            CacheSetEvent(trigger=trigger, for_input=for_input, for_key=key, value=value),
        )


class ExtendableCache(_ExtendableCacheBase[F]):
    """`execute`, `invalidate` and `update` over a synchronous cache."""

    def invalidate(
        self,
        *,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: SimpleCache | None = None,
    ) -> None:
        """Mark the cached value for an input (or a known key) as absent.

        `cache` is only needed when invalidating for_key while the cache is
        resolved from the call input.
        """
        bound_input, key, found = self._locate(
            trigger=CacheTrigger.INVALIDATE, for_input=for_input, for_key=for_key, cache=cache
        )
        require_sync(found.set(key, MISSING), operation="set")
        self._notify(CacheTrigger.INVALIDATE, bound_input, key, None)

    def update(
        self,
        *,
        to_value: Any,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: SimpleCache | None = None,
    ) -> None:
        """Replace the cached value for an input (or a known key).

        `to_value` is either the new output, or a function called as
        `to_value(from_cached_output=current)` where current is the deserialized
        cached output, or MISSING if nothing is cached.
        """
        bound_input, key, found = self._locate(
            trigger=CacheTrigger.UPDATE, for_input=for_input, for_key=for_key, cache=cache
        )

        if callable(to_value):
            cached = require_sync(found.get(key), operation="get")
            current = MISSING if cached is MISSING else self.options.deserialize_value(cached)
            new_value = to_value(from_cached_output=current)
        else:
            new_value = to_value

        if new_value is MISSING:
            require_sync(found.set(key, MISSING), operation="set")
            self._notify(CacheTrigger.UPDATE, bound_input, key, None)
            return

        serialized = self.options.serialize_value(new_value)
        require_sync(
            found.set(key, serialized, expiration=self.options.expiration), operation="set"
        )
        self._notify(
            CacheTrigger.UPDATE,
            bound_input,
            key,
            CacheSetValue(output=new_value, cached=serialized),
        )


class ExtendableCacheAsync(_ExtendableCacheBase[F]):
    """`execute`, `invalidate` and `update` over an asynchronous (or synchronous) cache."""

    async def invalidate(
        self,
        *,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: SimpleCache | None = None,
    ) -> None:
        bound_input, key, found = self._locate(
            trigger=CacheTrigger.INVALIDATE, for_input=for_input, for_key=for_key, cache=cache
        )
        await maybe_await(found.set(key, MISSING))
        self._notify(CacheTrigger.INVALIDATE, bound_input, key, None)

    async def update(
        self,
        *,
        to_value: Any,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: SimpleCache | None = None,
    ) -> None:
        """Same as ExtendableCache.update; `to_value` may also be a coroutine function."""
        bound_input, key, found = self._locate(
            trigger=CacheTrigger.UPDATE, for_input=for_input, for_key=for_key, cache=cache
        )

        if callable(to_value):
            cached = await maybe_await(found.get(key))
            current = MISSING if cached is MISSING else self.options.deserialize_value(cached)
            new_value = await maybe_await(to_value(from_cached_output=current))
        else:
            new_value = await maybe_await(to_value)

        if new_value is MISSING:
            await maybe_await(found.set(key, MISSING))
            self._notify(CacheTrigger.UPDATE, bound_input, key, None)
            return

        serialized = self.options.serialize_value(new_value)
        await maybe_await(found.set(key, serialized, expiration=self.options.expiration))
        self._notify(
            CacheTrigger.UPDATE,
            bound_input,
            key,
            CacheSetValue(output=new_value, cached=serialized),
        )


def with_extendable_cache(
    logic: F,
    *,
    cache: object,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> ExtendableCache[F]:
    """Wrap synchronous logic with a synchronous cache, exposing invalidate and update.

    e.g., invalidate on an external trigger, or update for write-through and
    optimistic caching.
    """
    options = CacheOptions.create(
        cache=cache,
        serialize_key=serialize_key,
        serialize_value=serialize_value,
        deserialize_value=deserialize_value,
        expiration=expiration,
        bypass=bypass,
        on_set=on_set,
    )
    return ExtendableCache(logic, wrap_with_simple_cache(logic, options), options)


def with_extendable_cache_async(
    logic: F,
    *,
    cache: object,
    deduplication: SyncCache | None = None,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> ExtendableCacheAsync[F]:
    """Wrap asynchronous logic with a cache, exposing async invalidate and update."""
    options = CacheOptions.create(
        cache=cache,
        serialize_key=serialize_key,
        serialize_value=serialize_value,
        deserialize_value=deserialize_value,
        expiration=expiration,
        bypass=bypass,
        on_set=on_set,
    )
    return ExtendableCacheAsync(
        logic, wrap_with_simple_cache_async(logic, options, deduplication), options
    )
