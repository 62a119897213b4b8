"""Looping background video generation.

Two interchangeable vendors share one prompt strategy
(prompts.build_video_prompt): OpenAI Sora over its REST API, and Google Veo
through the google-genai SDK with an ordered list of fallback models. Both
poll through the shared poller. Callers treat every failure here as
non-fatal.
"""

import logging
import time
from typing import Any, Callable, Optional, Protocol, Sequence

import httpx
from google import genai
from google.genai import types

from .config import LofiRadioConfig
from .errors import GenerationFailed, MalformedResponse, NoTaskId
from .fallback import first_success
from .poller import GenerationJob, JobStatus, normalize_status, poll_until_terminal
from .prompts import build_video_prompt

logger = logging.getLogger(__name__)

SORA_SIZES = ("720x1280", "1280x720", "1024x1792", "1792x1024")
SORA_SECONDS = (4, 8, 12)
DEFAULT_SORA_SIZE = "1280x720"


class VideoClient(Protocol):
    name: str

    def generate(self, slot_id: str, music_prompt: str, duration_seconds: float) -> bytes:
        ...


def clip_length(requested: int, audio_seconds: float, allowed: Sequence[int] = SORA_SECONDS) -> int:
    """Largest allowed clip length not exceeding the request or the audio."""
    ceiling = min(requested, audio_seconds)
    fitting = [s for s in allowed if s <= ceiling]
    return max(fitting) if fitting else min(allowed)


class SoraVideoClient:
    """OpenAI Sora client using the /videos job endpoints."""

    name = "sora"

    def __init__(
        self,
        http: httpx.Client,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "sora-2-pro",
        seconds: int = 8,
        size: str = DEFAULT_SORA_SIZE,
        max_attempts: int = 120,
        poll_interval_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if size not in SORA_SIZES:
            logger.warning(
                f"Unsupported Sora size '{size}'. Falling back to {DEFAULT_SORA_SIZE}. "
                f"Supported values: {', '.join(SORA_SIZES)}"
            )
            size = DEFAULT_SORA_SIZE
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.seconds = seconds
        self.size = size
        self.max_attempts = max_attempts
        self.poll_interval_seconds = poll_interval_seconds
        self.sleep = sleep

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig, http: httpx.Client) -> "SoraVideoClient":
        key = cfg.api_keys.openai_api_key
        if key is None:
            raise ValueError("RADIO_OPENAI_API_KEY not configured")
        gen = cfg.generation
        return cls(
            http=http,
            api_key=key.get_secret_value(),
            base_url=gen.openai_base_url,
            model=gen.sora_model,
            seconds=gen.sora_seconds,
            size=gen.sora_size,
            max_attempts=gen.sora_max_attempts,
            poll_interval_seconds=gen.sora_poll_interval_seconds,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GenerationFailed(
                f"Sora API request failed (status {e.response.status_code})",
                reason=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise GenerationFailed("Sora API request failed", reason=str(e)) from e
        return response

    @staticmethod
    def _to_job(data: dict) -> GenerationJob:
        if not data.get("id"):
            raise NoTaskId("No job ID returned from Sora")
        error = data.get("error")
        reason = None
        if error:
            reason = error.get("message") if isinstance(error, dict) else str(error)
        return GenerationJob(
            id=str(data["id"]),
            status=normalize_status(data.get("status")),
            progress=data.get("progress"),
            failure_reason=reason,
        )

    def generate(self, slot_id: str, music_prompt: str, duration_seconds: float) -> bytes:
        if not music_prompt:
            raise ValueError("music_prompt is required for video generation")

        prompt = build_video_prompt(music_prompt, slot_id)
        seconds = clip_length(self.seconds, duration_seconds)
        logger.info(
            f"🚀 Submitting Sora job (model={self.model}, duration={seconds}s, size={self.size})"
        )

        def submit() -> GenerationJob:
            payload = {"model": self.model, "prompt": prompt, "seconds": str(seconds), "size": self.size}
            return self._to_job(self._request("POST", "/videos", json=payload).json())

        def query(job_id: str) -> GenerationJob:
            return self._to_job(self._request("GET", f"/videos/{job_id}").json())

        job = poll_until_terminal(
            submit=submit,
            query=query,
            max_attempts=self.max_attempts,
            interval_seconds=self.poll_interval_seconds,
            sleep=self.sleep,
            label="Sora video",
        )

        content = self._request(
            "GET",
            f"/videos/{job.id}/content",
            params={"variant": "video"},
            headers={"Accept": "application/octet-stream"},
        ).content
        logger.info(f"📦 Downloaded Sora video ({len(content) / (1024 * 1024):.2f} MB)")
        return content


class VeoVideoClient:
    """Google Veo client trying each configured model in order."""

    name = "veo"

    def __init__(
        self,
        client: genai.Client,
        models: Sequence[str] = ("veo-3.1-generate-preview", "veo-2-generate-preview"),
        max_attempts: int = 60,
        poll_interval_seconds: float = 10.0,
        aspect_ratio: str = "16:9",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.models = list(models)
        self.max_attempts = max_attempts
        self.poll_interval_seconds = poll_interval_seconds
        self.aspect_ratio = aspect_ratio
        self.sleep = sleep

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig) -> "VeoVideoClient":
        key = cfg.api_keys.google_ai_api_key
        if key is None:
            raise ValueError("RADIO_GOOGLE_AI_API_KEY not configured")
        gen = cfg.generation
        return cls(
            client=genai.Client(api_key=key.get_secret_value()),
            models=gen.veo_models,
            max_attempts=gen.veo_max_attempts,
            poll_interval_seconds=gen.veo_poll_interval_seconds,
        )

    @staticmethod
    def _to_job(operation: Any) -> GenerationJob:
        if not getattr(operation, "name", None):
            raise NoTaskId("Veo returned no operation name")
        if not operation.done:
            status = JobStatus.IN_PROGRESS
        elif operation.error:
            status = JobStatus.FAILED
        else:
            status = JobStatus.COMPLETED
        error = operation.error
        reason: Optional[str] = None
        if isinstance(error, dict):
            reason = str(error.get("message", error))
        elif error:
            reason = str(error)
        return GenerationJob(
            id=operation.name,
            status=status,
            result=operation,
            failure_reason=reason,
        )

    def _generate_with_model(self, model: str, prompt: str) -> bytes:
        latest: dict[str, Any] = {}

        def submit() -> GenerationJob:
            latest["operation"] = self.client.models.generate_videos(
                model=model,
                prompt=prompt,
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    aspect_ratio=self.aspect_ratio,
                ),
            )
            return self._to_job(latest["operation"])

        def query(_operation_name: str) -> GenerationJob:
            latest["operation"] = self.client.operations.get(latest["operation"])
            return self._to_job(latest["operation"])

        job = poll_until_terminal(
            submit=submit,
            query=query,
            max_attempts=self.max_attempts,
            interval_seconds=self.poll_interval_seconds,
            sleep=self.sleep,
            label=f"Veo video ({model})",
        )

        response = job.result.response
        videos = getattr(response, "generated_videos", None) if response else None
        if not videos or videos[0].video is None:
            raise MalformedResponse(f"Veo operation {job.id} completed without a video")

        content = self.client.files.download(file=videos[0].video)
        logger.info(f"📦 Downloaded Veo video ({len(content) / (1024 * 1024):.2f} MB)")
        return content

    def generate(self, slot_id: str, music_prompt: str, duration_seconds: float) -> bytes:
        if not music_prompt:
            raise ValueError("music_prompt is required for video generation")

        prompt = build_video_prompt(music_prompt, slot_id)
        return first_success(
            [(model, lambda m=model: self._generate_with_model(m, prompt)) for model in self.models],
            label="Veo video generation",
        )


def build_video_client(cfg: LofiRadioConfig, http: httpx.Client) -> Optional[VideoClient]:
    """Construct the configured video client, or None when video is disabled.

    Video is best-effort, so a provider without credentials disables video
    for the run instead of failing it.
    """
    provider = cfg.generation.video_provider
    try:
        if provider == "sora":
            return SoraVideoClient.from_config(cfg, http)
        if provider == "veo":
            return VeoVideoClient.from_config(cfg)
    except ValueError as e:
        logger.warning(f"Video provider {provider!r} unavailable, using cover image: {e}")
    return None
