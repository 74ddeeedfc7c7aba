"""
Application configuration management
Loads environment variables and provides type-safe configuration access
Supports both local .env files and cloud environment variables (e.g., Fly.io)
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


def get_env_file() -> str | None:
    """
    Determine which .env file to use (if any).
    Priority: .env.production > .env > None (cloud env vars only)
    """
    if Path(".env.production").exists():
        return ".env.production"
    elif Path(".env").exists():
        return ".env"
    return None


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This configuration works in multiple contexts:
    - Local development: Reads from .env or .env.production
    - Cloud deployment (Fly.io): Reads from injected environment variables
    - Docker: Reads from environment variables passed to container
    """

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database (postgresql+asyncpg in production)
    DATABASE_URL: str = "sqlite+aiosqlite:///./arena.db"

    # Redis (optional: odds feed, cross-worker contest locks)
    REDIS_URL: str | None = None

    # Admin routes compare X-Admin-Key against this value
    ADMIN_API_KEY: str | None = None

    # Application URLs
    FRONTEND_URL: str = "http://localhost:3000"

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "production"
    DEBUG: bool = False

    # CORS
    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Get allowed CORS origins"""
        origins = [self.FRONTEND_URL]
        if self.ENVIRONMENT == "development":
            origins.extend([
                "http://localhost:3000",
                "http://localhost:8000"
            ])
        return origins

    # Rate Limiting
    RATE_LIMIT_WAGER: str = "30/minute"

    # Odds engine. House edge and floor are product decisions, keep them here.
    HOUSE_EDGE: float = 0.9
    MIN_ODDS: float = 1.1
    MAX_ODDS: float | None = None
    SEED_ODDS: float = 1.5
    ODDS_EPSILON: float = 1.0

    # Contest timing (seconds)
    CLOSING_WINDOW_SECONDS: int = 60
    DEFAULT_CONTEST_DURATION_SECONDS: int = 300

    # Boundaries
    LEDGER_TIMEOUT_SECONDS: float = 5.0
    CONTEST_LOCK_TIMEOUT_SECONDS: float = 10.0
    ODDS_CACHE_TTL_SECONDS: int = 3600


# Global settings instance
settings = Settings()
