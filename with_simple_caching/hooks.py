"""Observers notified after every write made through a wrapper.

Observers are fire-and-forget: they are never awaited and their failures are
logged, never raised, so they can't change what the caller gets back.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from with_simple_caching.logger import get_logger
from with_simple_caching.types import CallInput

logger = get_logger(__name__)

# Strong references to running hook tasks, so they are not garbage collected mid-flight.
_pending_hook_tasks: set[asyncio.Task[Any]] = set()


class CacheTrigger(str, Enum):
    """The wrapper operations which are able to set to the cache."""

    EXECUTE = "EXECUTE"
    INVALIDATE = "INVALIDATE"
    UPDATE = "UPDATE"


@dataclass(frozen=True, slots=True)
class CacheSetValue:
    # the value produced by the logic (or the update)
    output: Any
    # the serialized value handed to cache.set
    cached: Any


@dataclass(frozen=True, slots=True)
class CacheSetEvent:
    trigger: CacheTrigger
    # None when invalidate or update were called for_key
    for_input: CallInput | None
    for_key: str
    # None for an invalidation
    value: CacheSetValue | None = None


OnSetHook: TypeAlias = Callable[[CacheSetEvent], Any]


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    _pending_hook_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(
            "cache_on_set_hook_failed",
            error_type=type(error).__name__,
            error=str(error),
        )


def notify_on_set(hooks: Sequence[OnSetHook], event: CacheSetEvent) -> None:
    for hook in hooks:
        try:
            result = hook(event)
        except Exception as exc:
            logger.warning(
                "cache_on_set_hook_failed",
                trigger=event.trigger.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            continue

        if not inspect.isawaitable(result):
            continue

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            logger.warning(
                "cache_on_set_hook_skipped",
                trigger=event.trigger.value,
                detail="async hook called outside of a running event loop",
            )
            continue

        task = asyncio.ensure_future(result, loop=loop)
        _pending_hook_tasks.add(task)
        task.add_done_callback(_log_task_failure)
