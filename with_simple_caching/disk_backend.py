from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from with_simple_caching.keys import hash_text
from with_simple_caching.logger import get_logger
from with_simple_caching.types import MISSING, AsyncCache, Expiration

logger = get_logger(__name__)

_SAFE_FILE_NAME = re.compile(r"^[A-Za-z0-9_.-]{1,200}$")


def _write_atomic(path: Path, data: bytes) -> None:
    """Write data to a file atomically using a temporary file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    # Same directory as the target, so the rename can't cross filesystems
    with tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        prefix=path.name + ".",
        suffix=".tmp",
        delete=False,
    ) as tf:
        tf.write(data)
        tf.flush()
        os.fsync(tf.fileno())

    os.replace(tf.name, path)


def _read_file(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _parse_expires_at(document: Any) -> datetime | None:
    if not isinstance(document, dict) or "value" not in document:
        raise ValueError("cache entry is not a cache document")
    expires_at = document.get("expires_at")
    if expires_at is None:
        return None
    parsed = datetime.fromisoformat(expires_at)
    if parsed.tzinfo is None:
        raise ValueError("expires_at has no timezone")
    return parsed


class OnDiskCache(AsyncCache):
    """Asynchronous cache persisting one JSON document per key in a directory.

    Values must be JSON serializable. File I/O runs in a worker thread.
    """

    def __init__(
        self,
        *,
        directory: str | os.PathLike[str],
        default_expiration: timedelta | None = None,
    ) -> None:
        self._directory = Path(directory)
        self._default_expiration = default_expiration

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        # keys which are not safe as file names are content-addressed instead
        name = key if _SAFE_FILE_NAME.match(key) and key not in (".", "..") else hash_text(key)
        return self._directory / f"{name}.json"

    async def get(self, key: str) -> Any:
        path = self.path_for(key)
        raw = await asyncio.to_thread(_read_file, path)
        if raw is None:
            return MISSING

        try:
            document = json.loads(raw.decode("utf-8"))
            expires_at = _parse_expires_at(document)
        except (ValueError, TypeError):
            logger.warning("on_disk_cache_unreadable_entry", path=str(path))
            return MISSING

        if expires_at is not None and expires_at <= datetime.now(timezone.utc):
            return MISSING
        return document["value"]

    async def set(self, key: str, value: Any, *, expiration: Expiration = None) -> None:
        path = self.path_for(key)
        if value is MISSING:
            await asyncio.to_thread(path.unlink, missing_ok=True)
            return

        ttl = self._default_expiration if expiration is None else expiration
        expires_at = None if ttl is None else (datetime.now(timezone.utc) + ttl).isoformat()
        data = json.dumps({"value": value, "expires_at": expires_at}).encode("utf-8")
        await asyncio.to_thread(_write_atomic, path, data)
