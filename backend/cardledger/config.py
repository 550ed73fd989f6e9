"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment-specific values come from environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out-of-the-box: local SQLite file under ./data, five seeded cards
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/cards.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs are postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_timeout_seconds: float = 10.0
    database_auto_create: bool = True

    # Lifecycle
    transition_lock_timeout_seconds: float = 10.0
    seed_cards: bool = True

    # API
    cors_origins: list[str] = ["*"]
    static_dir: str = "public"
    host: str = "0.0.0.0"
    port: int = 3000

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
