"""Application configuration using Pydantic Settings."""

from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./tipping.db"

    # Match lifecycle: regulation play plus stoppage, 10 + 10 minutes by default
    PLAY_DURATION_MINUTES: int = 10
    STOPPAGE_DURATION_MINUTES: int = 10

    # Status reconciliation
    RECONCILE_INTERVAL_SECONDS: int = 60
    RECONCILE_READ_DEBOUNCE_SECONDS: float = 5.0  # 0 = reconcile on every listing

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_HEARTBEAT_MINUTES: int = 30

    # HTTP
    STATIC_DIR: str = "public"
    HEALTH_RATE_LIMIT: str = "120/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def match_duration(self) -> timedelta:
        """Total time from kickoff until a live match is deemed finished."""
        return timedelta(
            minutes=self.PLAY_DURATION_MINUTES + self.STOPPAGE_DURATION_MINUTES
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
