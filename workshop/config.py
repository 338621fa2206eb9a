"""
Configuration settings for the Workshop Management System.
Uses Pydantic for type-safe configuration management.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Workshop Management System"
    app_version: str = "1.0.0"
    debug: bool = False
    currency: str = "KES"

    # Database
    database_url: str = "sqlite:///workshop.db"
    lock_timeout_seconds: int = 10
    statement_timeout_ms: int = 15000
    deadlock_retries: int = 3
    deadlock_backoff_seconds: float = 0.05

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    jwt_secret_key: str = "jwt-secret-key-change-this-in-production"
    access_token_expire_minutes: int = 720  # 12 hours

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5000"]

    # API
    api_prefix: str = "/api"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        env_prefix = "WORKSHOP_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def engine_options(database_url: str, settings: Settings) -> dict:
    """
    SQLAlchemy engine options that put an upper bound on how long a request
    may wait on a row lock or a slow statement.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"timeout": settings.lock_timeout_seconds}}

    if database_url.startswith("postgresql"):
        lock_timeout_ms = settings.lock_timeout_seconds * 1000
        return {
            "pool_pre_ping": True,
            "connect_args": {
                "options": (
                    f"-c statement_timeout={settings.statement_timeout_ms} "
                    f"-c lock_timeout={lock_timeout_ms}"
                )
            },
        }

    if database_url.startswith("mysql"):
        return {
            "pool_pre_ping": True,
            "connect_args": {
                "init_command": (
                    f"SET SESSION innodb_lock_wait_timeout={settings.lock_timeout_seconds}"
                )
            },
        }

    return {"pool_pre_ping": True}
