"""Error types raised by the caching wrappers.

Only misconfiguration is raised from here. Failures of the wrapped logic and of
the cache backend propagate to the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class SimpleCachingError(Exception):
    """Base error with structured details for diagnostics."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}

    def __str__(self) -> str:
        message = super().__str__()
        if not self.details:
            return message
        return f"{message} {self.details!r}"


class CacheConfigurationError(SimpleCachingError):
    """The cache could not be determined or is not usable for this wrapper."""
