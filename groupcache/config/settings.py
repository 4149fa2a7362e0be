"""Configuration settings for cache groups."""

from typing import Any, Mapping

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Cache settings loaded from environment variables or a config mapping.

    ``groups`` holds the raw nested group configuration
    (``{group: {key: {active, key, lifetime}}}``). It is kept untyped so that
    malformed entries can be skipped by the registry instead of failing here.
    """

    enabled: bool = Field(default=True, description="Global cache kill switch")
    lifetime: int = Field(
        default=3600,
        description="Default TTL in seconds for groups without a lifetime",
    )
    groups: dict[str, Any] = Field(
        default_factory=dict,
        description="Nested cache group definitions",
    )
    coalesce_misses: bool = Field(
        default=False,
        description="Share one producer run between concurrent misses on a key",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("lifetime")
    @classmethod
    def _lifetime_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("lifetime must be a positive number of seconds")
        return value

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "CacheSettings":
        """Build settings from an already loaded config mapping."""
        return cls(**dict(config))
