"""Process-wide counters of cache events, per wrapped function.

Shape: {namespace: {cache_event: count}}, where the namespace is the qualified
name of the wrapped logic.
"""

from __future__ import annotations

from threading import Lock

_COUNTS: dict[str, dict[str, int]] = {}
_LOCK = Lock()


def increment(*, namespace: str, cache_event: str) -> None:
    with _LOCK:
        counts = _COUNTS.setdefault(namespace, {})
        counts[cache_event] = counts.get(cache_event, 0) + 1


def snapshot(namespace: str | None = None) -> dict[str, dict[str, int]]:
    """Copy the counters, optionally for a single namespace only."""
    with _LOCK:
        if namespace is not None:
            return {namespace: dict(_COUNTS.get(namespace, {}))}
        return {ns: dict(counts) for ns, counts in _COUNTS.items()}


def reset() -> None:
    """Clear every counter (test helper)."""
    with _LOCK:
        _COUNTS.clear()
