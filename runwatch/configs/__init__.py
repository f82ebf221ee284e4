"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from runwatch.configs.api import ApiSettings
from runwatch.configs.settings import Settings, get_settings
from runwatch.configs.watchers import PollSettings, PushSettings

__all__ = ["ApiSettings", "PollSettings", "PushSettings", "Settings", "get_settings"]
