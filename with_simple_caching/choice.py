"""Resolution of which cache a given invocation should read from and write to."""

from __future__ import annotations

from typing import TypeAlias

from dataclasses import dataclass

from with_simple_caching.errors import CacheConfigurationError
from with_simple_caching.hooks import CacheTrigger
from with_simple_caching.types import CacheResolutionMethod, CallInput, SimpleCache


@dataclass(frozen=True, slots=True)
class FixedCache:
    """The same cache is used for every invocation."""

    cache: SimpleCache


@dataclass(frozen=True, slots=True)
class ResolvedCache:
    """The cache is extracted from the call input on every invocation.

    e.g., a per-request or per-tenant cache passed in as the context argument
    """

    resolver: CacheResolutionMethod


CacheChoice: TypeAlias = FixedCache | ResolvedCache


def _is_cache(candidate: object) -> bool:
    return callable(getattr(candidate, "get", None)) and callable(
        getattr(candidate, "set", None)
    )


def as_cache_choice(option: object) -> CacheChoice:
    """Normalize a user supplied cache option into a CacheChoice."""
    if isinstance(option, FixedCache | ResolvedCache):
        return option
    if _is_cache(option):
        return FixedCache(cache=option)  # type: ignore[arg-type]
    if callable(option):
        return ResolvedCache(resolver=option)  # type: ignore[arg-type]
    raise CacheConfigurationError(
        "cache must be a cache with get and set methods, "
        "or a function which resolves one from the input",
        details={"cache": repr(option)},
    )


def get_cache_from_cache_choice(
    *,
    for_input: CallInput,
    cache_option: CacheChoice,
) -> SimpleCache:
    match cache_option:
        case FixedCache(cache=cache):
            return cache
        case ResolvedCache(resolver=resolver):
            found = resolver(for_input)
            if found is None or not _is_cache(found):
                raise CacheConfigurationError(
                    "could not extract cache from input with cache resolution method",
                    details={"for_input": repr(for_input)},
                )
            return found
    raise CacheConfigurationError(
        "unsupported cache choice", details={"cache_option": repr(cache_option)}
    )


def get_cache_from_cache_choice_or_for_key_args(
    *,
    for_input: CallInput | None,
    for_key_cache: SimpleCache | None,
    cache_option: CacheChoice,
    trigger: CacheTrigger,
) -> SimpleCache:
    """Find the cache for an invalidate or update call.

    These may be invoked for an input, in which case the cache resolves as usual,
    or for a bare key, in which case there is no input to resolve it from.
    """
    if for_input is not None:
        return get_cache_from_cache_choice(for_input=for_input, cache_option=cache_option)

    if isinstance(cache_option, FixedCache):
        return cache_option.cache

    if for_key_cache is None:
        operation = trigger.value.lower()
        raise CacheConfigurationError(
            f"could not find the cache to {operation} in. {operation} was called for_key "
            "but the cache for this method was defined as a function which retrieves the "
            "cache from the input. therefore, since there is no input accessible, the cache "
            f"should have been explicitly passed in on {operation}",
            details={"trigger": trigger.value},
        )
    return for_key_cache
