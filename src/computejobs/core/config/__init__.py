"""Centralized configuration for computejobs.

Quick start::

    from computejobs.core.config import get_settings

    settings = get_settings()
    print(settings.caching_enabled, settings.ttl_ratio)

Tags:
    computejobs, configuration, settings, pydantic
"""

from .settings import (
    ComputeJobsSettings,
    SettingsProvider,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ComputeJobsSettings",
    "SettingsProvider",
    "clear_settings_cache",
    "get_settings",
]
