"""YouTube publishing.

Uploads the slot's video (the composed loop, or a still-image render when
no video is available) to the slot's playlist. Tracks of 90 seconds or less
go up as Shorts; longer tracks also get a 45-second vertical Short that
links back to the full upload.
"""

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from .config import LofiRadioConfig
from .errors import PublishFailed
from .media import MediaComposer, temp_artifact, write_bytes
from .publisher import PublishRequest, classify_duration

logger = logging.getLogger(__name__)

SHORTS_TAG = "#Shorts"


class YouTubePublisher:
    """Publishes slot videos to YouTube via the Data API v3."""

    name = "youtube"

    def __init__(
        self,
        composer: MediaComposer,
        tmp_dir: Path,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        playlist_ids: dict[str, Optional[str]],
        token_uri: str = "https://oauth2.googleapis.com/token",
        category_id: str = "10",
        privacy_status: str = "public",
        short_threshold_seconds: float = 90.0,
        short_clip_seconds: float = 45.0,
        service: Any = None,
    ):
        self.composer = composer
        self.tmp_dir = tmp_dir
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.playlist_ids = playlist_ids
        self.token_uri = token_uri
        self.category_id = category_id
        self.privacy_status = privacy_status
        self.short_threshold_seconds = short_threshold_seconds
        self.short_clip_seconds = short_clip_seconds
        self._service = service

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig, composer: MediaComposer) -> "YouTubePublisher":
        pub = cfg.publishing
        return cls(
            composer=composer,
            tmp_dir=cfg.paths.tmp_path,
            client_id=pub.youtube_client_id,
            client_secret=pub.youtube_client_secret.get_secret_value() if pub.youtube_client_secret else None,
            refresh_token=pub.youtube_refresh_token.get_secret_value() if pub.youtube_refresh_token else None,
            playlist_ids={slot: pub.playlist_id_for(slot) for slot in ("morning", "midday", "night")},
            token_uri=pub.youtube_token_uri,
            category_id=pub.youtube_category_id,
            privacy_status=pub.youtube_privacy_status,
            short_threshold_seconds=pub.short_threshold_seconds,
            short_clip_seconds=pub.short_clip_seconds,
        )

    def _youtube(self) -> Any:
        if self._service is not None:
            return self._service

        if not (self.client_id and self.client_secret and self.refresh_token):
            raise PublishFailed(self.name, "YouTube OAuth credentials not configured")

        logger.info("🔐 Refreshing YouTube OAuth credentials")
        # Scopes stay None: requesting scopes outside the original grant fails refresh
        creds = Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=None,
        )
        creds.refresh(Request())
        self._service = build("youtube", "v3", credentials=creds, cache_discovery=False)
        return self._service

    def _body(self, title: str, description: str, tags: list[str]) -> dict:
        return {
            "snippet": {
                "title": title[:100],
                "description": description,
                "tags": tags,
                "categoryId": self.category_id,
                "defaultLanguage": "en",
            },
            "status": {
                "privacyStatus": self.privacy_status,
                "embeddable": True,
                "license": "youtube",
                "selfDeclaredMadeForKids": False,
            },
        }

    def _upload(self, youtube: Any, path: Path, body: dict) -> str:
        media = MediaFileUpload(str(path), chunksize=-1, resumable=True)
        request = youtube.videos().insert(part="snippet,status", body=body, media_body=media)
        try:
            response = None
            while response is None:
                _, response = request.next_chunk()
        except HttpError as e:
            raise PublishFailed(self.name, f"Upload failed: {e}") from e
        finally:
            # Release the file handle before the temp file is deleted
            media.stream().close()

        video_id = response.get("id") if response else None
        if not video_id:
            raise PublishFailed(self.name, f"No video id in upload response: {response}")
        return str(video_id)

    def _add_to_playlist(self, youtube: Any, video_id: str, playlist_id: str) -> None:
        try:
            youtube.playlistItems().insert(
                part="snippet",
                body={
                    "snippet": {
                        "playlistId": playlist_id,
                        "resourceId": {"kind": "youtube#video", "videoId": video_id},
                    }
                },
            ).execute()
        except HttpError as e:
            raise PublishFailed(self.name, f"Could not add {video_id} to playlist {playlist_id}: {e}") from e
        logger.info(f"➕ Added video {video_id} to playlist {playlist_id}")

    def publish(self, request: PublishRequest) -> str:
        playlist_id = self.playlist_ids.get(request.slot_id)
        if not playlist_id:
            raise PublishFailed(
                self.name,
                f"No playlist ID for slot {request.slot_id!r}. "
                f"Set RADIO_YOUTUBE_PLAYLIST_ID_{request.slot_id.upper()}.",
            )

        is_short = classify_duration(request.duration_seconds, self.short_threshold_seconds) == "short"
        metadata = request.metadata
        tags = list(metadata.tags)
        slot = request.slot_id

        with ExitStack() as stack:
            audio_path = stack.enter_context(temp_artifact(self.tmp_dir / f"{slot}_yt_audio.mp3", request.audio))
            image_path = stack.enter_context(temp_artifact(self.tmp_dir / f"{slot}_yt_cover.png", request.image))
            video_path = stack.enter_context(temp_artifact(self.tmp_dir / f"{slot}_yt_video.mp4"))
            short_path = stack.enter_context(temp_artifact(self.tmp_dir / f"{slot}_yt_short.mp4"))

            if request.video is not None:
                logger.info("🎬 Using generated video")
                write_bytes(video_path, request.video)
            else:
                logger.info("📸 Creating video from image + audio")
                self.composer.render_still(
                    image_path, audio_path, video_path, request.duration_seconds, vertical=is_short
                )

            youtube = self._youtube()

            title = f"{metadata.title} {SHORTS_TAG}" if is_short else metadata.title
            description = f"{metadata.description}\n\n{SHORTS_TAG}" if is_short else metadata.description
            logger.info("📤 Starting YouTube upload")
            video_id = self._upload(youtube, video_path, self._body(title, description, tags))
            logger.info(f"✅ Uploaded full video: https://www.youtube.com/watch?v={video_id}")

            self._add_to_playlist(youtube, video_id, playlist_id)

            if not is_short:
                self._publish_companion_short(youtube, request, video_id, image_path, audio_path, video_path, short_path)

        return video_id

    def _publish_companion_short(
        self,
        youtube: Any,
        request: PublishRequest,
        video_id: str,
        image_path: Path,
        audio_path: Path,
        video_path: Path,
        short_path: Path,
    ) -> str:
        if request.video is not None:
            self.composer.clip_video(video_path, short_path, self.short_clip_seconds)
        else:
            self.composer.render_still(
                image_path,
                audio_path,
                short_path,
                request.duration_seconds,
                vertical=True,
                max_seconds=self.short_clip_seconds,
            )

        metadata = request.metadata
        description = (
            f"Listen to the full version: https://www.youtube.com/watch?v={video_id}\n\n"
            f"{metadata.description}\n\n{SHORTS_TAG}"
        )
        short_id = self._upload(
            youtube,
            short_path,
            self._body(f"{metadata.title} {SHORTS_TAG}", description, list(metadata.tags)),
        )
        logger.info(f"🎬 Uploaded short: https://www.youtube.com/watch?v={short_id}")
        return short_id
