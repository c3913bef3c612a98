"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    views_db_path: Path = Path("data/views.sqlite3")
    store_timeout: float = 5.0  # seconds a writer waits on a locked database
    views_rate_limit: str = "60/minute"
    posts_rate_limit: str = "30/minute"
    client_timeout: float = 5.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BLOGCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
