from __future__ import annotations

import json
import os
from collections.abc import Callable
from typing import Any, TypeVar

from with_simple_caching.disk_backend import OnDiskCache
from with_simple_caching.keys import canonical_json, cast_to_safe_on_disk_cache_key
from with_simple_caching.types import Expiration
from with_simple_caching.wrappers.simple_cache_async import with_simple_cache_async

F = TypeVar("F", bound=Callable[..., Any])


def with_simple_cache_on_disk(
    logic: F,
    *,
    procedure_name: str,
    procedure_version: str | None,
    directory: str | os.PathLike[str],
    expiration: Expiration = None,
) -> F:
    """Cache an async `(input, context)` procedure on disk.

    Keys are content-addressed from the procedure identity and the input; the
    context is excluded. Outputs must be JSON serializable. Bump the version to
    abandon everything cached by a previous implementation.
    """

    def serialize_key(input: Any, context: Any = None) -> str:
        return cast_to_safe_on_disk_cache_key(
            procedure_name=procedure_name,
            procedure_version=procedure_version,
            for_input=input,
        )

    return with_simple_cache_async(
        logic,
        cache=OnDiskCache(directory=directory, default_expiration=expiration),
        serialize_key=serialize_key,
        serialize_value=canonical_json,
        deserialize_value=json.loads,
    )
