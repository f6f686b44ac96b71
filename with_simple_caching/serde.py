from __future__ import annotations

from typing import Any

from with_simple_caching.config import BypassSettings
from with_simple_caching.keys import canonical_json
from with_simple_caching.types import CallInput


def default_key_serialization_method(input: Any, context: Any = None) -> str:
    """Serialize the primary input into a key.

    The context is not part of the key. It may hold connections and clients,
    which are neither serializable nor part of the computation's identity.
    """
    return canonical_json(input)


def default_value_serialization_method(output: Any) -> Any:
    return output


def default_value_deserialization_method(cached: Any) -> Any:
    return cached


def read_bypass_settings() -> BypassSettings:
    # Read on every call so operators can flip the flags without a code change.
    return BypassSettings()


def default_should_bypass_get_method(for_input: CallInput) -> bool:
    return read_bypass_settings().should_bypass_get


def default_should_bypass_set_method(for_input: CallInput) -> bool:
    return read_bypass_settings().should_bypass_set
