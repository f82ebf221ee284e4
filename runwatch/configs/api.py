"""
Backend API configuration settings.

Where the application-run backend lives and how long a single request may take.

Dependencies: pydantic_settings
System role: Backend endpoint configuration for the HTTP client and push socket
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class ApiSettings(BaseSettings):
    """Backend API endpoint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RUNWATCH_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8000/api/v1",
        description="Base URL of the versioned REST API",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout for REST calls",
    )
    ws_base_url: str | None = Field(
        default=None,
        description="Override for the push socket base URL (derived from base_url when unset)",
    )
