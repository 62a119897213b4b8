"""Slot pipeline orchestration.

Coordinates one slot run from prompt to publish:
1. Generate the music prompt (fatal)
2. Generate title, description and tags (fatal)
3. Generate the instrumental track (fatal)
4. Probe the track duration (fatal)
5. Generate the cover image (fatal)
6. Generate a looping video (best-effort)
7. Compose video and audio (best-effort, only with a video)
8. Clean up temp files (always)
9. Publish to every configured platform (failures isolated per platform)

The prompt bundle is generated once and every later stage works from it, so
the metadata, track, cover and video all describe the same music.
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

import httpx

from .audio_client import MurekaAudioClient
from .audius_publisher import AudiusPublisher
from .config import LofiRadioConfig
from .errors import PipelineAborted
from .image_client import ImageClient
from .media import ArtifactRegistry, MediaComposer, probe_duration
from .prompts import build_image_prompt
from .publisher import Publisher, PublishRequest, PublishResult, publish_all
from .slots import SlotConfig, get_slot
from .text_client import Metadata, PromptBundle, TextClient
from .video_client import VideoClient, build_video_client
from .youtube_publisher import YouTubePublisher

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PipelineResult:
    """Outcome of one completed slot run."""

    slot: str
    prompt: PromptBundle
    metadata: Metadata
    duration: float
    used_generated_video: bool
    publish_results: list[PublishResult] = field(default_factory=list)

    @property
    def all_published(self) -> bool:
        return all(r.success for r in self.publish_results)


class SlotPipeline:
    """Runs the generate-compose-publish sequence for a slot.

    All collaborators are passed in; nothing is looked up from globals.
    """

    def __init__(
        self,
        text_client: TextClient,
        audio_client: MurekaAudioClient,
        image_client: ImageClient,
        composer: MediaComposer,
        publishers: Sequence[Publisher],
        tmp_dir: Path,
        video_client: Optional[VideoClient] = None,
        rng: Optional[random.Random] = None,
    ):
        self.text_client = text_client
        self.audio_client = audio_client
        self.image_client = image_client
        self.composer = composer
        self.publishers = list(publishers)
        self.tmp_dir = tmp_dir
        self.video_client = video_client
        self.rng = rng

    def _fatal(self, stage: str, step: Callable[[], T]) -> T:
        logger.info(f"▶ {stage}")
        try:
            return step()
        except Exception as e:
            logger.error(f"✗ {stage} failed: {e}")
            raise PipelineAborted(stage, e) from e

    def _probe(self, artifacts: ArtifactRegistry, audio: bytes) -> float:
        path = artifacts.write("audio.mp3", audio)
        duration = probe_duration(path)
        logger.info(f"Track duration: {duration:.1f}s")
        return duration

    def _generate_video(self, slot: SlotConfig, bundle: PromptBundle, duration: float) -> Optional[bytes]:
        if self.video_client is None:
            logger.info("Video generation disabled, using cover image")
            return None

        logger.info(f"▶ VideoGeneration ({self.video_client.name})")
        try:
            video = self.video_client.generate(slot.id, bundle.music_prompt, duration)
        except Exception as e:
            logger.warning(f"Video generation failed, falling back to cover image: {e}")
            return None

        logger.info(f"Video generated ({len(video) / (1024 * 1024):.2f} MB)")
        return video

    def _compose(
        self,
        artifacts: ArtifactRegistry,
        video: bytes,
        audio: bytes,
        duration: float,
        slot: SlotConfig,
    ) -> Optional[bytes]:
        logger.info("▶ MediaComposition")
        try:
            video_path = artifacts.write("video.mp4", video)
            return self.composer.compose(video_path, audio, duration, slot.id)
        except Exception as e:
            logger.warning(f"Composition failed, publishers will render from the cover image: {e}")
            return None

    def run(self, slot_id: str) -> PipelineResult:
        """Execute a full slot run.

        Raises:
            InvalidSlot: slot_id is not a known slot (before any stage runs)
            PipelineAborted: A fatal stage failed
        """
        slot = get_slot(slot_id)
        logger.info(f"⏱ Starting {slot.id} generation")

        artifacts = ArtifactRegistry(self.tmp_dir, slot.id)
        try:
            bundle = self._fatal(
                "PromptGeneration",
                lambda: self.text_client.generate_music_prompt(slot, self.rng),
            )
            logger.info(f"🎼 Music prompt ({bundle.genre}): {bundle.music_prompt}")

            metadata = self._fatal(
                "MetadataGeneration",
                lambda: self.text_client.generate_metadata(slot.id, bundle.music_prompt),
            )
            logger.info(f"📝 Title: {metadata.title} | Tags: {', '.join(metadata.tags)}")

            audio = self._fatal("AudioGeneration", lambda: self.audio_client.generate(bundle.music_prompt))
            duration = self._fatal("DurationProbe", lambda: self._probe(artifacts, audio))
            image = self._fatal(
                "ImageGeneration",
                lambda: self.image_client.generate(build_image_prompt(bundle.music_prompt, slot.id)),
            )

            raw_video = self._generate_video(slot, bundle, duration)
            composed = self._compose(artifacts, raw_video, audio, duration, slot) if raw_video else None
        finally:
            removed = artifacts.cleanup()
            logger.info(f"🧹 Cleanup removed {removed} temp file(s)")

        results = publish_all(
            PublishRequest(
                slot_id=slot.id,
                audio=audio,
                image=image,
                metadata=metadata,
                duration_seconds=duration,
                video=composed,
            ),
            self.publishers,
        )

        logger.info(f"✅ All done for {slot.id}")
        return PipelineResult(
            slot=slot.id,
            prompt=bundle,
            metadata=metadata,
            duration=duration,
            used_generated_video=composed is not None,
            publish_results=results,
        )


def build_publishers(
    cfg: LofiRadioConfig,
    http: httpx.Client,
    composer: MediaComposer,
) -> list[Publisher]:
    """Instantiate the enabled publishers in configured order.

    Raises:
        ValueError: If an unknown platform name is configured
    """
    factories: dict[str, Callable[[], Publisher]] = {
        "youtube": lambda: YouTubePublisher.from_config(cfg, composer),
        "audius": lambda: AudiusPublisher.from_config(cfg, http),
    }
    publishers = []
    for name in cfg.publishing.platforms:
        if name not in factories:
            raise ValueError(f"Unknown publishing platform: {name!r}")
        publishers.append(factories[name]())
    return publishers


def build_pipeline(cfg: LofiRadioConfig, http: httpx.Client, with_video: bool = True) -> SlotPipeline:
    """Construct every client once and wire them into a pipeline."""
    tmp_dir = cfg.paths.tmp_path
    tmp_dir.mkdir(parents=True, exist_ok=True)
    composer = MediaComposer(tmp_dir)
    return SlotPipeline(
        text_client=TextClient.from_config(cfg),
        audio_client=MurekaAudioClient.from_config(cfg, http),
        image_client=ImageClient.from_config(cfg, http),
        composer=composer,
        publishers=build_publishers(cfg, http, composer),
        tmp_dir=tmp_dir,
        video_client=build_video_client(cfg, http) if with_video else None,
    )


def run_slot(slot_id: str, cfg: Optional[LofiRadioConfig] = None, with_video: bool = True) -> PipelineResult:
    """Convenience function to run one slot with clients built from config."""
    get_slot(slot_id)
    if cfg is None:
        from .config import config as cfg

    with httpx.Client(timeout=cfg.generation.http_timeout_seconds, follow_redirects=True) as http:
        pipeline = build_pipeline(cfg, http, with_video=with_video)
        return pipeline.run(slot_id)
