"""Configuration management using Pydantic Settings"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="BANK_TRACKER_", extra="ignore"
    )

    # Persistence backend: relational database or local key-value storage
    storage_backend: Literal["remote", "local"] = "remote"

    # Remote (SQL) backend
    database_url: str = "sqlite:///./bank_tracker.db"

    # Local backend
    local_storage_path: str = "./bank_tracker_storage.json"
    local_credentials_path: str = "./bank_tracker_credentials.json"

    # HTTP sessions
    session_idle_timeout_seconds: int = 1800
    max_sessions_per_user: int = 5

    # Service
    service_name: str = "bank-tracker"
    log_level: str = "INFO"


settings = Settings()
