"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. DATABASE_URL is validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "approvals"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (postgresql+asyncpg in production, sqlite+aiosqlite in tests)
    database_url: str = "sqlite+aiosqlite:///./approvals.db"
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Redis cache; when disabled an in-process MemoryCache is used
    redis_enabled: bool = False
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    cache_ttl_location_tree: int = 3600

    # Authorization
    admin_permission: str = "system.admin"
    auto_run_permission: str = "workflows.simulate"
    auto_run_default_max_steps: int = 50

    # Request
    actor_header_name: str = "X-User-ID"
    allowed_origins: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_database(self) -> "Settings":
        """DATABASE_URL must name an async driver (asyncpg or aiosqlite)."""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if "+asyncpg" not in self.database_url and "+aiosqlite" not in self.database_url:
            raise ValueError(
                f"DATABASE_URL must use an async driver (postgresql+asyncpg or sqlite+aiosqlite), "
                f"got: {self.database_url.split('://', 1)[0]!r}"
            )
        if self.cache_ttl_location_tree < 1:
            raise ValueError("CACHE_TTL_LOCATION_TREE must be >= 1 second")
        if self.auto_run_default_max_steps < 1:
            raise ValueError("AUTO_RUN_DEFAULT_MAX_STEPS must be >= 1")
        return self

    @property
    def is_sqlite(self) -> bool:
        """True when the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Call get_settings.cache_clear() in tests after changing env."""
    return Settings()
