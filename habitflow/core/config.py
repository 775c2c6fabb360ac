"""Configuration management for habitflow."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    sqlite_db_path: str = Field(default="data/habitflow.db", description="SQLite file backing the blob store")
    goals_key: str = Field(default="goals", description="Blob key holding the persisted goals array")
    tasks_key: str = Field(default="REMEMBER_TASKS", description="Blob key holding the persisted tasks array")

    # Persistence Retry Configuration
    persist_max_retries: int = Field(default=3, description="Write attempts before a persistence error is raised")
    persist_retry_base_delay: float = Field(
        default=0.5, description="Base delay in seconds for exponential backoff between write attempts"
    )

    # Calendar Configuration
    timezone: str | None = Field(
        default=None,
        description="IANA timezone used to compute the local calendar day (defaults to the process local time)",
    )
    day_change_poll_seconds: int = Field(
        default=30, description="How often the scheduler checks whether the local calendar day changed"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment reported to Logfire")


# Application Constants
class Constants:
    """Application-wide constants."""

    # Scheduler Configuration
    DAY_CHANGE_JOB_ID: str = "day_change_rollover"

    # Quit goal statistics
    QUIT_STATS_WINDOW_DAYS: int = 28  # Trailing window for relapse frequency (4 weeks)

    # Project task ordering (lower ranks first)
    PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}  # noqa: RUF012
    DEFAULT_PRIORITY: str = "medium"

    # Job Tracker Configuration
    TRACKER_DEAD_LETTER_QUEUE_MAXLEN: int = 100  # Max items in dead letter queue
    CONSECUTIVE_FAILURE_THRESHOLD: int = 3  # Failures before a job lands in the dead letter queue


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
