"""Configuration from environment (CARTON_ prefix)."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Record store settings from env."""

    model_config = SettingsConfigDict(env_prefix="CARTON_", extra="ignore")

    # Storage
    db_path: Path = Path.home() / ".carton" / "carton.db"
    # Seconds to wait for the exclusive file lock before giving up
    lock_timeout: float = 5.0

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


def get_settings() -> Settings:
    """Return store settings."""
    return Settings()
