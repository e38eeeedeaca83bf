"""Runtime settings, read from API_DOC_IMPORT_* environment variables or a .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ImportSettings(BaseSettings):
    """Settings for the import pipeline and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="API_DOC_IMPORT_",
        env_file=".env",
        extra="ignore",
    )

    # Session creation batching
    batch_size: int = 5
    batch_pause: float = 0.1

    log_level: str = "WARNING"
    log_file: Path | None = None


@lru_cache
def get_settings() -> ImportSettings:
    return ImportSettings()
