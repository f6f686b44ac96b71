from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Sequence
from typing import Any, TypeVar, overload

from with_simple_caching.choice import get_cache_from_cache_choice
from with_simple_caching.errors import CacheConfigurationError
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
    Expiration,
    KeySerializationMethod,
    ValueDeserializationMethod,
    ValueSerializationMethod,
)

F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)


def namespace_of(logic: Callable[..., Any]) -> str:
    return getattr(logic, "__qualname__", None) or type(logic).__name__


def require_sync(result: Any, *, operation: str) -> Any:
    """Reject an awaitable coming back from a cache used synchronously."""
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise CacheConfigurationError(
            f"cache.{operation} returned an awaitable, but with_simple_cache requires a "
            "synchronous cache. use with_simple_cache_async for asynchronous caches",
            details={"operation": operation},
        )
    return result


def wrap_with_simple_cache(logic: F, options: CacheOptions) -> F:
    if inspect.iscoroutinefunction(logic):
        raise CacheConfigurationError(
            "with_simple_cache can not wrap a coroutine function, since a coroutine can only "
            "be awaited once. use with_simple_cache_async instead",
            details={"logic": namespace_of(logic)},
        )

    signature = signature_of(logic)
    namespace = namespace_of(logic)

    @functools.wraps(logic)
    def logic_with_simple_cache(*args: Any, **kwargs: Any) -> Any:
        for_input, call_kwargs = bind_call_input(signature, args, kwargs)
        key = options.key_for(for_input)
        cache = get_cache_from_cache_choice(for_input=for_input, cache_option=options.cache)

        if options.bypass.get(for_input):
            log_cache_event(namespace=namespace, cache_event="bypass_get")
        else:
            timer = CacheTimer()
            cached = require_sync(cache.get(key), operation="get")
            if cached is not MISSING:
                log_cache_event(
                    namespace=namespace, cache_event="hit", duration_ms=timer.elapsed_ms()
                )
                return options.deserialize_value(cached)
            log_cache_event(namespace=namespace, cache_event="miss", duration_ms=timer.elapsed_ms())

        output = logic(*for_input, **call_kwargs)
        if inspect.isawaitable(output):
            if inspect.iscoroutine(output):
                output.close()
            raise CacheConfigurationError(
                "with_simple_cache got an awaitable from the logic, which can only be awaited "
                "once and so can not be cached. use with_simple_cache_async instead",
                details={"logic": namespace},
            )

        if options.bypass.set(for_input):
            log_cache_event(namespace=namespace, cache_event="bypass_set")
            return output

        # nothing to remember; clear whatever was there, but never read it back
        if output is MISSING:
            require_sync(cache.set(key, MISSING, expiration=options.expiration), operation="set")
            return output

        timer = CacheTimer()
        serialized = options.serialize_value(output)
        require_sync(cache.set(key, serialized, expiration=options.expiration), operation="set")
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
        cached_now = require_sync(cache.get(key), operation="get")
        if cached_now is not MISSING:
            return options.deserialize_value(cached_now)

        logger.warning(
            "cache_get_after_set_missing",
            namespace=namespace,
            key=key,
            detail="cache.get returned nothing immediately after cache.set, returning the output",
        )
        return output

    return logic_with_simple_cache  # type: ignore[return-value]


@overload
def with_simple_cache(
    logic: F,
    *,
    cache: object,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> F: ...


@overload
def with_simple_cache(
    logic: None = None,
    *,
    cache: object,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> Callable[[F], F]: ...


def with_simple_cache(
    logic: Callable[..., Any] | None = None,
    *,
    cache: object,
    serialize_key: KeySerializationMethod | None = None,
    serialize_value: ValueSerializationMethod | None = None,
    deserialize_value: ValueDeserializationMethod | None = None,
    expiration: Expiration = None,
    bypass: CacheBypass | None = None,
    on_set: Sequence[OnSetHook] = (),
) -> Any:
    """Cache the output of synchronous logic in a synchronous cache.

    Usable directly, `cached = with_simple_cache(logic, cache=cache)`, or as a
    decorator, `@with_simple_cache(cache=cache)`.

    Args:
        logic: The function to cache the output of.
        cache: A synchronous cache, or a function which resolves one from the
            call input (the tuple of positional arguments).
        serialize_key: `(input, context) -> str`. Defaults to canonical JSON of
            the input alone.
        serialize_value: Applied to the output before `cache.set`.
        deserialize_value: Applied to the cached value before returning it.
        expiration: Forwarded to every `cache.set`.
        bypass: Per call switches to skip the cache get or set. Defaults to the
            CACHE_BYPASS* environment flags.
        on_set: Observers notified after each write.

    Returns:
        The wrapped logic, with the same call signature.
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
        return functools.partial(wrap_with_simple_cache, options=options)
    return wrap_with_simple_cache(logic, options)
