"""Filesystem paths configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathsConfig(BaseSettings):
    """Filesystem paths for the lo-fi radio publisher.

    All paths can be overridden via environment variables with RADIO_ prefix.

    Environment variables:
        RADIO_BASE_PATH: Base directory (default: /srv/lofi_radio)
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_path: Path = Field(default=Path("/srv/lofi_radio"))

    # Derived paths as properties
    @property
    def tmp_path(self) -> Path:
        return self.base_path / "tmp"

    @property
    def output_path(self) -> Path:
        return self.base_path / "output"

    @property
    def logs_path(self) -> Path:
        return self.base_path / "logs"
