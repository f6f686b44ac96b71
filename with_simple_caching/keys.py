from __future__ import annotations

import hashlib
import json
import re
from typing import Any

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


def _slugify(part: str) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", part).strip("_") or "_"


def cast_to_safe_on_disk_cache_key(
    *,
    procedure_name: str,
    procedure_version: str | None,
    for_input: Any,
) -> str:
    """Build a filename-safe cache key for one execution of a named procedure.

    The input is content-addressed, so arbitrarily large or oddly shaped inputs
    still produce a short key that is valid on every filesystem.
    """
    version = _slugify(procedure_version) if procedure_version is not None else "unversioned"
    return f"{_slugify(procedure_name)}.{version}.{hash_text(canonical_json(for_input))}"
