"""
Watcher timing configuration.

Polling cadence and budget for the poll watcher; heartbeat and reconnect
backoff policy for the push watcher.

Dependencies: pydantic_settings
System role: Timing policy for status synchronization
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class PollSettings(BaseSettings):
    """Poll watcher cadence and hard timeout."""

    model_config = SettingsConfigDict(
        env_prefix="RUNWATCH_POLL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    active_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between fetches while the run is active",
    )
    timeout_seconds: float = Field(
        default=30 * 60.0,
        gt=0,
        description="Wall-clock budget for one observation session",
    )


class PushSettings(BaseSettings):
    """Push watcher heartbeat and reconnect policy."""

    model_config = SettingsConfigDict(
        env_prefix="RUNWATCH_PUSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    heartbeat_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Interval between ping frames while connected",
    )
    auto_reconnect: bool = Field(
        default=True,
        description="Reconnect automatically after an unexpected close",
    )
    max_reconnect_attempts: int = Field(
        default=5,
        ge=0,
        description="Reconnect attempts before giving up",
    )
    reconnect_base_delay_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Delay before the first reconnect attempt (doubles per attempt)",
    )
    reconnect_max_delay_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for the reconnect delay",
    )
    manual_reconnect_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Delay between disconnect and connect on a manual reconnect",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the opening handshake",
    )
