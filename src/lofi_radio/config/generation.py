"""Generation service configuration (text, audio, image, video)."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VIDEO_PROVIDERS = ("sora", "veo", "none")


class GenerationConfig(BaseSettings):
    """Models, endpoints and polling budgets for the generation services.

    Note: API keys are in APIKeysConfig.

    Environment variables:
        RADIO_TEXT_MODEL: Chat model used for music prompts and metadata
        RADIO_MUREKA_MAX_ATTEMPTS: Poll attempts before giving up on a track
        RADIO_VIDEO_PROVIDER: 'sora', 'veo' or 'none'
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Text generation
    text_model: str = Field(default="gpt-4", description="Chat model for prompts and metadata")
    prompt_temperature: float = Field(
        default=0.85,
        ge=0.0,
        le=2.0,
        description="Temperature for music prompt generation",
    )
    metadata_temperature: float = Field(
        default=0.85,
        ge=0.0,
        le=2.0,
        description="Temperature for title/description/tags generation",
    )

    # Image generation
    image_model: str = Field(default="dall-e-3")
    image_size: str = Field(default="1024x1024")

    # Mureka instrumental generation
    mureka_base_url: str = Field(default="https://api.mureka.ai")
    mureka_model: str = Field(default="auto")
    mureka_max_attempts: int = Field(default=20, ge=1)
    mureka_poll_interval_seconds: float = Field(default=6.0, ge=0.0)

    # Video generation
    video_provider: str = Field(
        default="sora",
        description="Looping video provider: 'sora', 'veo' or 'none'",
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    sora_model: str = Field(default="sora-2-pro")
    sora_seconds: int = Field(default=8, ge=1)
    sora_size: str = Field(default="1280x720")
    sora_max_attempts: int = Field(default=120, ge=1)
    sora_poll_interval_seconds: float = Field(default=5.0, ge=0.0)
    veo_models: list[str] = Field(
        default_factory=lambda: ["veo-3.1-generate-preview", "veo-2-generate-preview"]
    )
    veo_max_attempts: int = Field(default=60, ge=1)
    veo_poll_interval_seconds: float = Field(default=10.0, ge=0.0)

    # Shared HTTP timeout for vendor calls and downloads
    http_timeout_seconds: float = Field(default=120.0, gt=0.0)

    @field_validator("video_provider")
    @classmethod
    def _check_video_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in VIDEO_PROVIDERS:
            raise ValueError(f"video_provider must be one of {VIDEO_PROVIDERS}, got {value!r}")
        return value
