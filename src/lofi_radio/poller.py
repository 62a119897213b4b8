"""Bounded polling for asynchronous generation jobs.

Every async vendor (Mureka audio, Sora and Veo video) follows the same
submit / poll / terminal shape with different field names. Vendors turn
their raw responses into a GenerationJob; this module owns the retry loop,
the attempt budget and progress reporting.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from .errors import GenerationFailed, MalformedResponse, PollingTimedOut

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMEOUT)


@dataclass(frozen=True)
class GenerationJob:
    """Snapshot of a vendor job as of the last submit or poll."""

    id: str
    status: JobStatus
    progress: Optional[float] = None  # 0-100 when the vendor reports it
    result: Any = None  # Vendor payload on completion (URL, choices, operation)
    failure_reason: Optional[str] = None


# Common vendor spellings; vendors extend this with their own mapping
DEFAULT_STATUS_MAP: dict[str, JobStatus] = {
    "queued": JobStatus.QUEUED,
    "pending": JobStatus.QUEUED,
    "preparing": JobStatus.QUEUED,
    "in_progress": JobStatus.IN_PROGRESS,
    "running": JobStatus.IN_PROGRESS,
    "processing": JobStatus.IN_PROGRESS,
    "streaming": JobStatus.IN_PROGRESS,
    "reviewing": JobStatus.IN_PROGRESS,
    "completed": JobStatus.COMPLETED,
    "succeeded": JobStatus.COMPLETED,
    "failed": JobStatus.FAILED,
    "cancelled": JobStatus.FAILED,
    "timeout": JobStatus.TIMEOUT,
    "timeouted": JobStatus.TIMEOUT,
}


def normalize_status(
    raw: Optional[str],
    mapping: Mapping[str, JobStatus] = DEFAULT_STATUS_MAP,
    unknown: Optional[JobStatus] = None,
) -> JobStatus:
    """Map a vendor status string onto JobStatus.

    Args:
        raw: Status string from the vendor response
        mapping: Vendor spelling to JobStatus
        unknown: Status to use for spellings missing from the mapping.
            When None, unknown spellings are malformed.

    Raises:
        MalformedResponse: If the status is missing, or unknown and no
            fallback status was given
    """
    if not raw:
        raise MalformedResponse("Job response carried no status")
    status = mapping.get(raw.lower(), unknown)
    if status is None:
        raise MalformedResponse(f"Unknown job status: {raw!r}")
    return status


def _progress_bar(progress: Optional[float], width: int = 20) -> str:
    if progress is None:
        return ""
    clamped = max(0.0, min(100.0, progress))
    filled = int(clamped / 100 * width)
    return f" {clamped:.1f}% [{'#' * filled}{'-' * (width - filled)}]"


def poll_until_terminal(
    submit: Callable[[], GenerationJob],
    query: Callable[[str], GenerationJob],
    max_attempts: int,
    interval_seconds: float,
    on_progress: Optional[Callable[[GenerationJob, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "job",
) -> GenerationJob:
    """Submit a job once, then poll it until it reaches a terminal state.

    Args:
        submit: Creates the job and returns its first snapshot
        query: Fetches a fresh snapshot for a job id
        max_attempts: Maximum number of query calls
        interval_seconds: Delay before each query
        on_progress: Optional observer called after every poll. Exceptions
            raised by the observer are logged and ignored.
        sleep: Delay function (injectable for tests)
        label: Name used in log lines and errors

    Returns:
        The completed job, including its result payload

    Raises:
        GenerationFailed: The vendor reported failure or timeout
        PollingTimedOut: max_attempts polls without a terminal state
    """
    job = submit()
    logger.info(f"{label} submitted: id={job.id} status={job.status.value}")

    attempt = 0
    while not job.status.is_terminal:
        if attempt >= max_attempts:
            raise PollingTimedOut(label, attempt, job.status.value)

        sleep(interval_seconds)
        attempt += 1
        job = query(job.id)

        logger.info(
            f"{label} poll {attempt}/{max_attempts}: "
            f"status={job.status.value}{_progress_bar(job.progress)}"
        )
        if on_progress is not None:
            try:
                on_progress(job, attempt)
            except Exception as e:
                logger.warning(f"{label} progress observer failed: {e}")

    if job.status is not JobStatus.COMPLETED:
        raise GenerationFailed(
            f"{label} ended with status {job.status.value}",
            reason=job.failure_reason or "unknown reason",
        )

    return job
