from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Sequence
from typing import Any, TypeVar, overload

from with_simple_caching.choice import get_cache_from_cache_choice
from with_simple_caching.deduplication import RequestDeduplicator
from with_simple_caching.events import CacheTimer, log_cache_event
from with_simple_caching.hooks import (
    CacheSetEvent,
    CacheSetValue,
    CacheTrigger,
    OnSetHook,
    notify_on_set,
)
from with_simple_caching.logger import get_logger
from with_simple_caching.options import CacheBypass, CacheOptions, bind_call_input, signature_of
from with_simple_caching.types import (
    MISSING,
    CallInput,
    Expiration,
    KeySerializationMethod,
    SyncCache,
    ValueDeserializationMethod,
    ValueSerializationMethod,
)
from with_simple_caching.wrappers.simple_cache import namespace_of

F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)


async def maybe_await(value: Any) -> Any:
    """Await the value if it is awaitable, so sync and async caches look alike."""
    if inspect.isawaitable(value):
        return await value
    return value


def wrap_with_simple_cache_async(
    logic: F,
    options: CacheOptions,
    deduplication: SyncCache | None = None,
) -> F:
    signature = signature_of(logic)
    namespace = namespace_of(logic)
    deduplicator = RequestDeduplicator(deduplication, namespace=namespace)

    async def logic_with_async_cache(
        for_input: CallInput,
        call_kwargs: dict[str, Any],
        key: str,
    ) -> Any:
        cache = get_cache_from_cache_choice(for_input=for_input, cache_option=options.cache)

        if options.bypass.get(for_input):
            log_cache_event(namespace=namespace, cache_event="bypass_get")
        else:
            timer = CacheTimer()
            cached = await maybe_await(cache.get(key))
            if cached is not MISSING:
                log_cache_event(
                    namespace=namespace, cache_event="hit", duration_ms=timer.elapsed_ms()
                )
                return options.deserialize_value(cached)
            log_cache_event(namespace=namespace, cache_event="miss", duration_ms=timer.elapsed_ms())

        output = await maybe_await(logic(*for_input, **call_kwargs))

        if options.bypass.set(for_input):
            log_cache_event(namespace=namespace, cache_event="bypass_set")
            return output

        # nothing to remember; clear whatever was there, but never read it back
        if output is MISSING:
            await maybe_await(cache.set(key, MISSING, expiration=options.expiration))
            return output

        timer = CacheTimer()
        serialized = options.serialize_value(output)
        await maybe_await(cache.set(key, serialized, expiration=options.expiration))
        log_cache_event(namespace=namespace, cache_event="set", duration_ms=timer.elapsed_ms())
        notify_on_set(
            options.on_set,
            CacheSetEvent(
                trigger=CacheTrigger.EXECUTE,
                for_input=for_input,
                for_key=key,
                value=CacheSetValue(output=output, cached=serialized),
            ),
        )

        # re-read, so a cache miss returns exactly what a later cache hit would
        cached_now = await maybe_await(cache.get(key))
        if cached_now is not MISSING:
            return options.deserialize_value(cached_now)

        logger.warning(
            "cache_get_after_set_missing",
            namespace=namespace,
            key=key,
            detail="cache.get returned nothing immediately after cache.set, returning the output",
        )
        return output

    @functools.wraps(logic)
    async def logic_with_simple_cache_async(*args: Any, **kwargs: Any) -> Any:
        for_input, call_kwargs = bind_call_input(signature, args, kwargs)
        key = options.key_for(for_input)
        return await deduplicator.run(
            key, lambda: logic_with_async_cache(for_input, call_kwargs, key)
        )

    return logic_with_simple_cache_async  # type: ignore[return-value]


@overload
def with_simple_cache_async(
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
) -> F: ...


@overload
def with_simple_cache_async(
    logic: None = None,
    *,
    cache: object,
    deduplication: SyncCache | None = None,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> Callable[[F], F]: ...


def with_simple_cache_async(
    logic: Callable[..., Any] | None = None,
    *,
    cache: object,
    deduplication: SyncCache | None = None,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> Any:
    """Cache the awaited output of asynchronous logic.

    Accepts asynchronous or synchronous caches. Concurrent calls for the same key
    share one execution of the get, compute and set sequence, so a slow remote
    cache never lets duplicate requests through while it is being checked.

    Args:
        deduplication: The synchronous store holding in-flight requests. By default
            each wrapper gets its own in-memory store with a 15 minute expiration.
            Pass one in when the wrapper is created per call instead of once, and
            make sure its expiration outlives your slowest request.

    The remaining options are the same as for `with_simple_cache`.
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
    if logic is None:
        return functools.partial(
            wrap_with_simple_cache_async, options=options, deduplication=deduplication
        )
    return wrap_with_simple_cache_async(logic, options, deduplication)
