"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Resource collection definitions (JSON)
    COLLECTIONS_FILE: Path = Path("collections.json")

    # Logging
    LOG_LEVEL: str = "INFO"

    # Scheme used for NetStorage hosts configured without one
    USE_SSL: bool = True

    model_config = {"env_prefix": "NETSTORAGE_", "env_file": ".env"}


settings = Settings()
