"""Configuration management for the DocTracker notifier.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NOTIFICATION_INTERVALS: tuple[int, ...] = (30, 15, 7, 1)


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the DOCTRACKER_ prefix (e.g., DOCTRACKER_CRON_SECRET).
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCTRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Execution mode
    environment: str = Field(
        default="development",
        description="Deployment environment; 'production' enables the hardened trigger check",
    )
    cron_secret: str | None = Field(
        default=None,
        description="Shared secret required from the scheduler in hardened mode",
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///doctracker.sqlite3",
        description="SQLAlchemy URL for documents, user profiles and the notification ledger",
    )

    # Scheduling
    timezone: str = Field(
        default="UTC",
        description="IANA zone used to decide what 'today' is for a run",
    )
    lookahead_days: int = Field(
        default=31,
        ge=0,
        description="Candidate window: documents expiring within this many days are evaluated",
    )
    preview_lookahead_days: int = Field(
        default=60,
        ge=0,
        description="Window used by the read-only per-user preview",
    )
    max_interval_days: int = Field(
        default=60,
        ge=1,
        description=(
            "Largest reminder offset a user may configure. Runs load candidates at least "
            "this far ahead so every accepted interval can fire"
        ),
    )
    default_intervals: list[int] = Field(
        default_factory=lambda: list(DEFAULT_NOTIFICATION_INTERVALS),
        description="Reminder offsets (days before expiry) used when a user has none configured",
    )
    dispatch_concurrency: int = Field(
        default=5,
        ge=1,
        description="Maximum number of deliveries in flight during a run",
    )
    ledger_enabled: bool = Field(
        default=True,
        description="Record sent reminders so a second run on the same day does not resend them",
    )

    # Mail rendering
    app_url: str = Field(
        default="http://localhost:3000",
        description="Base URL used for dashboard links in outgoing mail",
    )
    sender_name: str = Field(
        default="DocTracker",
        description="Display name used in the From header",
    )
    sender_address: str | None = Field(
        default=None,
        description="From address; when unset the Gmail account address is used",
    )

    # Gmail Configuration
    gmail_credentials_path: Path = Field(
        default=Path("credentials.json"),
        description="Path to Gmail API credentials file",
    )
    gmail_token_path: Path = Field(
        default=Path("token.json"),
        description="Path to Gmail API token file",
    )
    gmail_scope: str = Field(
        default="https://www.googleapis.com/auth/gmail.compose",
        description=(
            "OAuth scope used for Gmail access. gmail.compose covers sending and "
            "the profile lookup used by verify."
        ),
    )

    # HTTP server
    api_host: str = Field(
        default="127.0.0.1",
        description="Interface the `doctracker serve` command binds to",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the `doctracker serve` command listens on",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("default_intervals")
    @classmethod
    def _positive_intervals(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("default_intervals must not be empty")
        if any(v <= 0 for v in value):
            raise ValueError(f"default_intervals must be positive day counts: {value}")
        return sorted(set(value), reverse=True)

    @model_validator(mode="after")
    def _defaults_within_cap(self) -> "Settings":
        if max(self.default_intervals) > self.max_interval_days:
            raise ValueError(
                f"default_intervals exceed max_interval_days ({self.max_interval_days}): "
                f"{self.default_intervals}"
            )
        return self

    @property
    def is_hardened(self) -> bool:
        """Whether scheduled triggers must present the shared secret."""
        return self.environment.strip().lower() == "production"

    @property
    def candidate_horizon_days(self) -> int:
        """Days ahead a run loads candidates; covers every interval a user may hold."""
        return max(self.lookahead_days, self.max_interval_days)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
