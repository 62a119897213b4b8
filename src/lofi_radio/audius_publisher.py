"""Audius publishing.

Audio-only platform: uploads the track with its cover art and metadata to
the configured upload endpoint.
"""

import logging
from typing import Optional

import httpx

from .config import LofiRadioConfig
from .errors import PublishFailed
from .publisher import PublishRequest

logger = logging.getLogger(__name__)


class AudiusPublisher:
    """Uploads tracks to Audius through an HTTP upload endpoint."""

    name = "audius"

    def __init__(
        self,
        http: httpx.Client,
        upload_url: Optional[str],
        api_key: Optional[str],
        genre: str = "Lo-Fi",
    ):
        self.http = http
        self.upload_url = upload_url
        self.api_key = api_key
        self.genre = genre

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig, http: httpx.Client) -> "AudiusPublisher":
        key = cfg.api_keys.audius_api_key
        return cls(
            http=http,
            upload_url=cfg.publishing.audius_upload_url,
            api_key=key.get_secret_value() if key else None,
            genre=cfg.publishing.audius_genre,
        )

    def publish(self, request: PublishRequest) -> str:
        if not self.upload_url or not self.api_key:
            raise PublishFailed(self.name, "Audius upload URL or API key not configured")

        metadata = request.metadata
        slot = request.slot_id
        try:
            response = self.http.post(
                self.upload_url,
                headers={"X-API-Key": self.api_key},
                data={
                    "title": metadata.title,
                    "description": metadata.description,
                    "tags": ",".join(metadata.tags),
                    "genre": self.genre,
                },
                files={
                    "track": (f"{slot}.mp3", request.audio, "audio/mpeg"),
                    "cover_art": (f"{slot}.png", request.image, "image/png"),
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise PublishFailed(self.name, f"Upload failed: {e}") from e
        except ValueError as e:
            raise PublishFailed(self.name, f"Upload response was not JSON: {e}") from e

        track_id = None
        if isinstance(data, dict):
            track_id = data.get("track_id") or data.get("id")
        if not track_id:
            raise PublishFailed(self.name, f"No track id in upload response: {data}")

        logger.info(f"🎧 Uploaded track to Audius: {track_id}")
        return str(track_id)
