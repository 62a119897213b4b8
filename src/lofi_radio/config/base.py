"""Configuration composition root."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .paths import PathsConfig
from .api_keys import APIKeysConfig
from .generation import GenerationConfig
from .publishing import PublishingConfig
from .schedule import ScheduleConfig


class LofiRadioConfig(BaseSettings):
    """Root configuration composing all domain configs."""

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows RADIO_API_KEYS__OPENAI_API_KEY
        case_sensitive=False,
        extra="ignore",
    )

    # Domain compositions (using default_factory to avoid mutable default bug)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    api_keys: APIKeysConfig = Field(default_factory=APIKeysConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    publishing: PublishingConfig = Field(default_factory=PublishingConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    def validate_production_config(self) -> None:
        """Validate all domain production requirements.

        Raises:
            ValueError: If required production fields are missing
        """
        self.api_keys.validate_production()
