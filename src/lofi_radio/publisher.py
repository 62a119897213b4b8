"""Publishing dispatch across platforms.

Publishers run in a fixed order. A failure on one platform is logged and
recorded; it never stops the remaining platforms and never reaches the
caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .errors import PublishFailed
from .text_client import Metadata

logger = logging.getLogger(__name__)

SHORT_THRESHOLD_SECONDS = 90.0


@dataclass(frozen=True)
class PublishRequest:
    """Everything a publisher may need for one slot run."""

    slot_id: str
    audio: bytes
    image: bytes
    metadata: Metadata
    duration_seconds: float
    video: Optional[bytes] = None  # Composed video; None means image fallback


@dataclass(frozen=True)
class PublishResult:
    platform: str
    success: bool
    remote_id: Optional[str] = None
    error: Optional[str] = None


class Publisher(Protocol):
    name: str

    def publish(self, request: PublishRequest) -> str:
        """Upload and return the platform's id for the new item."""
        ...


def classify_duration(seconds: float, threshold: float = SHORT_THRESHOLD_SECONDS) -> str:
    """'short' for audio at or under the threshold, 'long' otherwise."""
    return "short" if seconds <= threshold else "long"


def publish_all(request: PublishRequest, platforms: Sequence[Publisher]) -> list[PublishResult]:
    """Publish to every platform in order, isolating failures.

    Returns:
        One PublishResult per platform, in the same order
    """
    results = []
    for platform in platforms:
        name = getattr(platform, "name", type(platform).__name__)
        logger.info(f"📤 Publishing {request.slot_id} to {name}")
        try:
            remote_id = platform.publish(request)
        except Exception as e:
            error = e if isinstance(e, PublishFailed) else PublishFailed(name, str(e))
            logger.error(f"⚠️ Failed upload on platform {name}: {error}")
            results.append(PublishResult(platform=name, success=False, error=str(error)))
            continue

        logger.info(f"✅ Published to {name}: {remote_id}")
        results.append(PublishResult(platform=name, success=True, remote_id=remote_id))

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Publishing finished: {succeeded}/{len(results)} platforms succeeded")
    return results
