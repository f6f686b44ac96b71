"""The configuration shared by execute, invalidate and update of one wrapped logic."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from with_simple_caching.choice import CacheChoice, as_cache_choice
from with_simple_caching.hooks import OnSetHook
from with_simple_caching.serde import (
    default_key_serialization_method,
    default_should_bypass_get_method,
    default_should_bypass_set_method,
    default_value_deserialization_method,
    default_value_serialization_method,
)
from with_simple_caching.types import (
    BypassMethod,
    CallInput,
    Expiration,
    KeySerializationMethod,
    ValueDeserializationMethod,
    ValueSerializationMethod,
)


@dataclass(frozen=True, slots=True)
class CacheBypass:
    """Per call switches to skip the cache.

    get: behave as if nothing was cached
    set: return the fresh output but keep whatever was cached before
    """

    get: BypassMethod = default_should_bypass_get_method
    set: BypassMethod = default_should_bypass_set_method


@dataclass(frozen=True, slots=True)
class CacheOptions:
    cache: CacheChoice
    serialize_key: KeySerializationMethod = default_key_serialization_method
    serialize_value: ValueSerializationMethod = default_value_serialization_method
    deserialize_value: ValueDeserializationMethod = default_value_deserialization_method
    expiration: Expiration = None
    bypass: CacheBypass = field(default_factory=CacheBypass)
    on_set: tuple[OnSetHook, ...] = ()

    @classmethod
    def create(
        cls,
        *,
        cache: object,
        serialize_key: KeySerializationMethod | None = None,
        serialize_value: ValueSerializationMethod | None = None,
        deserialize_value: ValueDeserializationMethod | None = None,
        expiration: Expiration = None,
        bypass: CacheBypass | None = None,
        on_set: Sequence[OnSetHook] = (),
    ) -> CacheOptions:
        return cls(
            cache=as_cache_choice(cache),
            serialize_key=serialize_key or default_key_serialization_method,
            serialize_value=serialize_value or default_value_serialization_method,
            deserialize_value=deserialize_value or default_value_deserialization_method,
            expiration=expiration,
            bypass=bypass or CacheBypass(),
            on_set=tuple(on_set),
        )

    def key_for(self, for_input: CallInput) -> str:
        """Serialize the (input, context) pair of a call into its cache key."""
        primary = for_input[0] if len(for_input) > 0 else None
        context = for_input[1] if len(for_input) > 1 else None
        return self.serialize_key(primary, context)


def signature_of(logic: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(logic)
    except (TypeError, ValueError):
        return None


def bind_call_input(
    signature: inspect.Signature | None,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    *,
    partial: bool = False,
) -> tuple[CallInput, dict[str, Any]]:
    """Fold keyword arguments into positions, so f(x) and f(input=x) share a key.

    Keyword-only parameters stay in kwargs and are not part of the call input.
    With partial, required arguments may be left out (e.g. the context, when only
    the input is known).
    """
    if signature is None:
        return args, kwargs
    bind = signature.bind_partial if partial else signature.bind
    bound = bind(*args, **kwargs)
    return bound.args, bound.kwargs
