from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, PositiveInt, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexbridge.exceptions import ConfigurationError


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "indexbridge"
    env: str = "development"
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"


class DatabaseConfig(BaseModel):
    """Database configuration values."""

    url: str = "sqlite:///./indexbridge.db"
    echo: bool = False


class SearchConfig(BaseModel):
    """Search index configuration values."""

    # Directory of the on-disk Whoosh index; None keeps the index in memory
    index_path: Optional[str] = None


class ImporterConfig(BaseModel):
    """Import/resync configuration values."""

    batch_size: PositiveInt = 1000
    resync_minutes: PositiveInt = 15


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="INDEXBRIDGE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    database: DatabaseConfig = DatabaseConfig()
    search: SearchConfig = SearchConfig()
    importer: ImporterConfig = ImporterConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
