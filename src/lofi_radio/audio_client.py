"""Instrumental track generation with the Mureka API.

Submits a generation task, polls it through the shared poller and downloads
the finished audio.
"""

import logging
import time
from typing import Callable, Optional

import httpx

from .config import LofiRadioConfig
from .errors import GenerationFailed, MalformedResponse, NoTaskId
from .poller import (
    DEFAULT_STATUS_MAP,
    GenerationJob,
    JobStatus,
    normalize_status,
    poll_until_terminal,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 1024

# Mureka stops only on succeeded, failed or timeouted; any other spelling
# (preparing, queued, running, streaming, reviewing, ...) keeps polling
MUREKA_STATUS_MAP: dict[str, JobStatus] = {
    **DEFAULT_STATUS_MAP,
    "streaming": JobStatus.IN_PROGRESS,
    "reviewing": JobStatus.IN_PROGRESS,
}


def truncate_prompt(prompt: str, limit: int = MAX_PROMPT_LENGTH) -> str:
    """Cut a prompt to the API's length limit, logging when it happens."""
    if len(prompt) <= limit:
        return prompt
    logger.warning(f"Prompt is {len(prompt)} characters, truncating to {limit}")
    return prompt[:limit]


class MurekaAudioClient:
    """Mureka instrumental generation client.

    The default budget (20 polls, 6 seconds apart) gives a track about two
    minutes to finish.
    """

    def __init__(
        self,
        http: httpx.Client,
        api_key: str,
        base_url: str = "https://api.mureka.ai",
        model: str = "auto",
        max_attempts: int = 20,
        poll_interval_seconds: float = 6.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_attempts = max_attempts
        self.poll_interval_seconds = poll_interval_seconds
        self.sleep = sleep

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig, http: httpx.Client) -> "MurekaAudioClient":
        key = cfg.api_keys.mureka_api_key
        if key is None:
            raise ValueError("RADIO_MUREKA_API_KEY not configured")
        return cls(
            http=http,
            api_key=key.get_secret_value(),
            base_url=cfg.generation.mureka_base_url,
            model=cfg.generation.mureka_model,
            max_attempts=cfg.generation.mureka_max_attempts,
            poll_interval_seconds=cfg.generation.mureka_poll_interval_seconds,
        )

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _to_job(
        self,
        data: dict,
        task_id: Optional[str] = None,
        default_status: Optional[JobStatus] = None,
    ) -> GenerationJob:
        raw = data.get("status")
        if not raw and default_status is not None:
            status = default_status
        else:
            status = normalize_status(raw, MUREKA_STATUS_MAP, unknown=JobStatus.IN_PROGRESS)
        return GenerationJob(
            id=str(data.get("id") or task_id),
            status=status,
            result=data.get("choices"),
            failure_reason=data.get("failed_reason"),
        )

    def submit(self, prompt: str) -> GenerationJob:
        """Create a generation task.

        Raises:
            NoTaskId: If the response carries no task id
            GenerationFailed: On HTTP errors
        """
        try:
            response = self.http.post(
                f"{self.base_url}/v1/instrumental/generate",
                json={"model": self.model, "prompt": prompt},
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise GenerationFailed("Failed to create Mureka task", reason=str(e)) from e

        if not isinstance(data, dict) or not data.get("id"):
            raise NoTaskId("No task ID returned from Mureka")

        logger.info(f"Mureka task created: {data['id']}")
        # Create responses may omit the status of a freshly queued task
        return self._to_job(data, default_status=JobStatus.QUEUED)

    def query(self, task_id: str) -> GenerationJob:
        try:
            response = self.http.get(
                f"{self.base_url}/v1/instrumental/query/{task_id}",
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise GenerationFailed("Failed to query Mureka task", reason=str(e)) from e
        return self._to_job(data, task_id)

    def download(self, url: str) -> bytes:
        try:
            response = self.http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GenerationFailed("Failed to download generated track", reason=str(e)) from e
        return response.content

    def generate(self, prompt: str) -> bytes:
        """Generate an instrumental track and return its audio bytes."""
        prompt = truncate_prompt(prompt)

        job = poll_until_terminal(
            submit=lambda: self.submit(prompt),
            query=self.query,
            max_attempts=self.max_attempts,
            interval_seconds=self.poll_interval_seconds,
            sleep=self.sleep,
            label="Mureka track",
        )

        choices = job.result or []
        url = choices[0].get("url") if choices and isinstance(choices[0], dict) else None
        if not url:
            raise MalformedResponse(f"Mureka task {job.id} completed without an audio URL")

        audio = self.download(url)
        logger.info(f"🎵 Track downloaded ({len(audio) / 1024:.0f} KB)")
        return audio
