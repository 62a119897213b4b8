"""Publishing platform configuration."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PublishingConfig(BaseSettings):
    """Publishing targets and per-platform settings.

    Environment variables:
        RADIO_PLATFORMS: JSON list of enabled publishers, in upload order
        RADIO_YOUTUBE_CLIENT_ID / RADIO_YOUTUBE_CLIENT_SECRET /
        RADIO_YOUTUBE_REFRESH_TOKEN: YouTube OAuth credentials
        RADIO_YOUTUBE_PLAYLIST_ID_MORNING (and _MIDDAY, _NIGHT): playlists
        RADIO_AUDIUS_UPLOAD_URL: Audius upload endpoint
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    platforms: list[str] = Field(
        default_factory=lambda: ["youtube", "audius"],
        description="Enabled publishers in the order they are attempted",
    )

    # Short-form / long-form classification
    short_threshold_seconds: float = Field(
        default=90.0,
        gt=0.0,
        description="Audio at or below this duration is published as a Short",
    )
    short_clip_seconds: float = Field(
        default=45.0,
        gt=0.0,
        description="Length of the clipped Short uploaded alongside long-form videos",
    )

    # YouTube
    youtube_client_id: Optional[str] = Field(default=None)
    youtube_client_secret: Optional[SecretStr] = Field(default=None)
    youtube_refresh_token: Optional[SecretStr] = Field(default=None)
    youtube_token_uri: str = Field(default="https://oauth2.googleapis.com/token")
    youtube_category_id: str = Field(default="10", description="YouTube category (10 = Music)")
    youtube_privacy_status: str = Field(default="public")
    youtube_playlist_id_morning: Optional[str] = Field(default=None)
    youtube_playlist_id_midday: Optional[str] = Field(default=None)
    youtube_playlist_id_night: Optional[str] = Field(default=None)

    # Audius
    audius_upload_url: Optional[str] = Field(default=None, description="Audius track upload endpoint")
    audius_genre: str = Field(default="Lo-Fi")

    def playlist_id_for(self, slot_id: str) -> Optional[str]:
        """Return the configured YouTube playlist for a slot, if any."""
        return getattr(self, f"youtube_playlist_id_{slot_id}", None)
