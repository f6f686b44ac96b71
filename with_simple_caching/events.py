from __future__ import annotations

import time

from with_simple_caching import stats
from with_simple_caching.logger import get_logger

logger = get_logger(__name__)


class CacheTimer:
    """Measures one backend round trip."""

    def __init__(self) -> None:
        self._started_at = time.perf_counter()

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started_at) * 1000.0


def log_cache_event(
    *,
    namespace: str,
    cache_event: str,
    duration_ms: float | None = None,
) -> None:
    """Count a cache event and log it at debug level.

    Cached values are never logged, they may hold user content.
    """
    stats.increment(namespace=namespace, cache_event=cache_event)

    # structlog takes the message as `event`, so the kind of cache event is `cache_event`
    fields: dict[str, object] = {"namespace": namespace, "cache_event": cache_event}
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 3)
    logger.debug("cache", **fields)
