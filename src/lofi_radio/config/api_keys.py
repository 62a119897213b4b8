"""API keys and secrets configuration."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIKeysConfig(BaseSettings):
    """API keys and secrets for the generation and publishing services.

    All keys are optional (None by default) and use SecretStr to prevent
    accidental exposure in logs or error messages.

    Environment variables:
        RADIO_OPENAI_API_KEY: OpenAI key (text, image and Sora video)
        RADIO_MUREKA_API_KEY: Mureka instrumental generation key
        RADIO_GOOGLE_AI_API_KEY: Google AI key (Veo video)
        RADIO_AUDIUS_API_KEY: Audius upload key
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: Optional[SecretStr] = Field(default=None, description="OpenAI API key")
    mureka_api_key: Optional[SecretStr] = Field(default=None, description="Mureka API key")
    google_ai_api_key: Optional[SecretStr] = Field(default=None, description="Google AI API key")
    audius_api_key: Optional[SecretStr] = Field(default=None, description="Audius API key")

    def validate_production(self) -> None:
        """Ensure the keys every run depends on are present.

        Raises:
            ValueError: If a required key is missing
        """
        missing = []
        if self.openai_api_key is None:
            missing.append("RADIO_OPENAI_API_KEY")
        if self.mureka_api_key is None:
            missing.append("RADIO_MUREKA_API_KEY")
        if missing:
            raise ValueError(f"Missing required API keys: {', '.join(missing)}")
