"""Exception taxonomy for slot generation and publishing.

Fatal stages (prompt, metadata, audio, duration probe, image) let these
propagate and abort the run. The video stage and the publishers catch them
at their boundary and continue on a degraded path.
"""

from typing import Optional


class LofiRadioError(Exception):
    """Base class for all lo-fi radio errors."""


class InvalidSlot(LofiRadioError):
    """Raised when a slot id is missing or not in the slot registry."""

    def __init__(self, slot_id: Optional[str], valid: tuple[str, ...]):
        self.slot_id = slot_id
        self.valid = valid
        super().__init__(
            f"Invalid slot {slot_id!r}: expected one of {', '.join(valid)}"
        )


class MalformedResponse(LofiRadioError):
    """A generation service returned data outside its expected contract."""


class NoTaskId(LofiRadioError):
    """An async generation service accepted a request but returned no job id."""


class NoImageUrl(LofiRadioError):
    """The image service responded without a retrievable image URL."""


class GenerationFailed(LofiRadioError):
    """A vendor reported failure for a generation request or job."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message if reason is None else f"{message}: {reason}")


class PollingTimedOut(LofiRadioError):
    """A job did not reach a terminal state within its attempt budget."""

    def __init__(self, label: str, attempts: int, last_status: str):
        self.label = label
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            f"{label} did not finish after {attempts} polls (last status: {last_status})"
        )


class DurationProbeFailed(LofiRadioError):
    """ffprobe could not report a duration for generated audio."""


class EncodingFailed(LofiRadioError):
    """The ffmpeg encoder exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"ffmpeg exited with code {returncode}")


class MediaIOError(LofiRadioError):
    """Writing or reading a temporary media file failed."""


class PublishFailed(LofiRadioError):
    """A single platform's publish attempt failed."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"{platform}: {message}")


class PipelineAborted(LofiRadioError):
    """A fatal pipeline stage failed; the run cannot continue."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Pipeline aborted at {stage}: {cause}")
