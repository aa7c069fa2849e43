"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - Secrets (admin secret, judge key) come from environment variables
    - get_settings() is cached (lru_cache): single instance per process
    - Event defaults here only seed the settings row; the row is authoritative

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://relay:relay@db:5432/relay"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Admin gate
    admin_secret: str = "change-me"

    # Judge0-compatible gateway
    judge_api_url: str = "http://localhost:2358"
    judge_api_key: str | None = None
    judge_timeout_seconds: float = 30.0
    judge_max_retries: int = 1
    judge_base_delay_ms: int = 250
    judge_max_delay_ms: int = 2_000
    judge_cpu_time_limits: dict[str, float] = {
        "easy": 2.0, "medium": 3.0, "hard": 5.0,
    }

    # Event defaults (seed values for the global settings row)
    default_rotation_interval_seconds: int = 60
    default_event_duration_seconds: int = 300
    settings_cache_ttl_seconds: float = 5.0

    # Server-side timers (off: clients drive rotation and expiry)
    server_timers_enabled: bool = False
    scheduler_idle_seconds: float = 5.0

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
