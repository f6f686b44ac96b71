"""Library settings using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUE_FLAGS = frozenset({"true", "1", "yes", "on", "t", "y"})


class Settings(BaseSettings):
    """Library configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WITH_SIMPLE_CACHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # How long an in-flight request may stay registered for deduplication.
    # Entries are removed as soon as the request settles; this is only the upper bound.
    deduplication_expiration_seconds: float = 15 * 60


class BypassSettings(BaseSettings):
    """Operational cache bypass flags.

    The operation-specific flag wins over the general one when both are set.
    A blank flag counts as unset. A value that is not a boolean counts as false,
    so a typo in the environment never breaks a cached call.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    cache_bypass: bool | None = None
    cache_bypass_get: bool | None = None
    cache_bypass_set: bool | None = None

    @field_validator("cache_bypass", "cache_bypass_get", "cache_bypass_set", mode="before")
    @classmethod
    def parse_flag(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        flag = value.strip().lower()
        if not flag:
            return None
        return flag in _TRUE_FLAGS

    @property
    def should_bypass_get(self) -> bool:
        if self.cache_bypass_get is not None:
            return self.cache_bypass_get
        return bool(self.cache_bypass)

    @property
    def should_bypass_set(self) -> bool:
        if self.cache_bypass_set is not None:
            return self.cache_bypass_set
        return bool(self.cache_bypass)


settings = Settings()
