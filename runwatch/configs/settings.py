"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the client
"""

from functools import lru_cache

from runwatch.configs.api import ApiSettings
from runwatch.configs.base import BaseSettings
from runwatch.configs.watchers import PollSettings, PushSettings


class Settings(BaseSettings):
    """Unified client settings aggregating all config modules."""

    # Aggregated settings
    api: ApiSettings = ApiSettings()
    poll: PollSettings = PollSettings()
    push: PushSettings = PushSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get settings singleton.

    Environment variables are loaded once per process.

    Returns:
        Settings: Client settings instance

    Usage:
        from runwatch.configs import get_settings
        settings = get_settings()
    """
    return Settings()
