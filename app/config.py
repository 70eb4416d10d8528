from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Approvals"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leave:leave@db:5432/leave"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Access tokens
    jwt_secret_key: str = "dev-secret-change-me-dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "leave-approvals"
    jwt_audience: str = "leave-approvals-clients"
    access_token_minutes: int = 15
    refresh_token_days: int = 7

    # Account lockout
    max_failed_login_attempts: int = 5
    lockout_minutes: int = 15

    # Password hashing (argon2id)
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536
    password_hash_parallelism: int = 4

    revocation_sweep_interval_seconds: int = 3600


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
