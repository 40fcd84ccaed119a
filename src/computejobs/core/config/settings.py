"""
Centralized settings for computejobs.

Manifesto:
    One validated, cached settings object replaces ad-hoc environment
    parsing in each module.  The job system only needs a handful of knobs
    (cache switch, TTL ratio, database URL, worker count, logging), but
    they are all resolved here, from ``COMPUTEJOBS_*`` variables or a
    ``.env`` file.

Tags:
    computejobs, configuration, settings, pydantic, caching, validation
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@runtime_checkable
class SettingsProvider(Protocol):
    """What the cache resolver reads on every lookup."""

    @property
    def caching_enabled(self) -> bool:
        ...

    @property
    def ttl_ratio(self) -> float:
        ...


class ComputeJobsSettings(BaseSettings):
    """computejobs configuration.

    All fields can be set via ``COMPUTEJOBS_*`` environment variables (e.g.
    ``COMPUTEJOBS_ENABLE_QUERY_CACHING=true``) or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMPUTEJOBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Caching ──────────────────────────────────────────────────
    enable_query_caching: bool = Field(default=False, description="Reuse fresh results of identical computations")
    query_caching_ttl_ratio: float = Field(
        default=10.0,
        ge=0,
        description="A result stays fresh for ratio × the time it took to compute",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///data/computejobs.db")
    database_echo: bool = Field(default=False)

    # ── Workers ──────────────────────────────────────────────────
    max_workers: int = Field(default=16, ge=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # ── SettingsProvider ─────────────────────────────────────────

    @property
    def caching_enabled(self) -> bool:
        return self.enable_query_caching

    @property
    def ttl_ratio(self) -> float:
        return self.query_caching_ttl_ratio


_settings_cache: dict[str, ComputeJobsSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ComputeJobsSettings:
    """Load, validate, and cache a :class:`ComputeJobsSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ComputeJobsSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
