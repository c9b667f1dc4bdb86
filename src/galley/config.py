"""Configuration management for Galley."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration via environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Collaborator locations (used by the CLI adapters)
    upload_dir: Path = Field(
        default=Path("./uploads"),
        alias="GALLEY_UPLOAD_DIR",
    )
    manifest_path: Optional[Path] = Field(
        default=None,
        alias="GALLEY_MANIFEST",
    )

    # Document rendering
    font_name: str = Field(
        default="Calibri",
        alias="GALLEY_FONT_NAME",
    )
    base_font_size: int = Field(
        default=12,
        alias="GALLEY_BASE_FONT_SIZE",
        ge=6,
        le=72,
    )
    join_soft_wrapped_lines: bool = Field(
        default=False,
        alias="GALLEY_JOIN_SOFT_WRAPPED_LINES",
    )

    # Archive composition
    fetch_workers: int = Field(
        default=4,
        alias="GALLEY_FETCH_WORKERS",
        ge=1,
        le=32,
    )
    compression_level: int = Field(
        default=9,
        alias="GALLEY_COMPRESSION_LEVEL",
        ge=0,
        le=9,
    )
    include_skipped_manifest: bool = Field(
        default=False,
        alias="GALLEY_INCLUDE_SKIPPED_MANIFEST",
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from an optional specific .env file."""
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
