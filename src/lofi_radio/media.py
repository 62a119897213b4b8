"""Local media handling with ffprobe and ffmpeg.

Probes generated audio for its duration, loops a generated clip (or holds a
still image) under the track, and cuts the short vertical clip used for
long-form companion uploads. Every temporary file is scoped: it is removed
on success and on failure.
"""

import logging
import re
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .errors import DurationProbeFailed, EncodingFailed, MediaIOError

logger = logging.getLogger(__name__)

_TIME_MARKER = re.compile(r"time=(\d{2}):(\d{2}):(\d{2})\.(\d{2})")


def write_bytes(path: Path, data: bytes) -> Path:
    """Write a media buffer, raising MediaIOError on failure."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise MediaIOError(f"Failed to write {path}: {e}") from e
    return path


def read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise MediaIOError(f"Failed to read {path}: {e}") from e


def remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete temp file {path.name}: {e}")


@contextmanager
def temp_artifact(path: Path, data: Optional[bytes] = None) -> Iterator[Path]:
    """Yield a temp path, optionally pre-filled, and delete it on exit."""
    try:
        if data is not None:
            write_bytes(path, data)
        yield path
    finally:
        remove_quietly(path)
        logger.debug(f"Cleaned up temp file: {path.name}")


class ArtifactRegistry:
    """Temp files written during one slot run.

    File names are prefixed with the slot id so runs for different slots
    never share a path. cleanup() removes everything registered and ignores
    deletion errors.
    """

    def __init__(self, tmp_dir: Path, slot_id: str):
        self.tmp_dir = tmp_dir
        self.slot_id = slot_id
        self.paths: list[Path] = []

    def path_for(self, name: str) -> Path:
        path = self.tmp_dir / f"{self.slot_id}_{name}"
        self.paths.append(path)
        return path

    def write(self, name: str, data: bytes) -> Path:
        path = self.path_for(name)
        return write_bytes(path, data)

    def cleanup(self) -> int:
        removed = 0
        for path in self.paths:
            if path.exists():
                remove_quietly(path)
                removed += 1
        self.paths.clear()
        return removed


def probe_duration(audio_path: Path, ffprobe: str = "ffprobe") -> float:
    """Get duration of an audio file in seconds using ffprobe.

    Raises:
        DurationProbeFailed: If ffprobe fails or reports no usable duration
    """
    if not audio_path.exists():
        raise DurationProbeFailed(f"Audio file not found: {audio_path}")

    try:
        result = subprocess.run(
            [
                ffprobe,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(audio_path),
            ],
            capture_output=True,
            text=True,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise DurationProbeFailed(f"ffprobe could not run: {e}") from e

    if result.returncode != 0:
        raise DurationProbeFailed(f"ffprobe failed: {result.stderr.strip()}")

    try:
        duration = float(result.stdout.strip())
    except ValueError:
        raise DurationProbeFailed(f"ffprobe returned no duration: {result.stdout!r}")

    if duration <= 0:
        raise DurationProbeFailed(f"ffprobe reported non-positive duration {duration}")
    return duration


def parse_progress_time(line: str) -> Optional[float]:
    """Elapsed seconds from an ffmpeg 'time=HH:MM:SS.cc' marker, if present."""
    match = _TIME_MARKER.search(line)
    if not match:
        return None
    hours, minutes, seconds, centis = (int(g) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds + centis / 100


@dataclass(frozen=True)
class EncodeProgress:
    seconds: float
    percent: float


class EncodeJob:
    """A running ffmpeg process.

    progress() lazily yields EncodeProgress events parsed from stderr, at
    most one per step_seconds of encoded time. The sequence is finite and
    can be consumed once. wait() finishes the encode whether or not
    progress() was consumed.
    """

    def __init__(self, cmd: list[str], target_seconds: float, step_seconds: float = 5.0):
        self.cmd = cmd
        self.target_seconds = target_seconds
        self.step_seconds = step_seconds
        self._lines: list[str] = []
        self._started_progress = False
        try:
            # text=True turns ffmpeg's carriage-return progress updates into lines
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise EncodingFailed(-1, f"Could not start {cmd[0]}: {e}") from e

    @property
    def stderr(self) -> str:
        return "".join(self._lines)

    def progress(self) -> Iterator[EncodeProgress]:
        if self._started_progress:
            return
        self._started_progress = True

        last_reported = 0.0
        for line in self.process.stderr:
            self._lines.append(line)
            seconds = parse_progress_time(line)
            if seconds is None or seconds - last_reported < self.step_seconds:
                continue
            last_reported = seconds
            percent = (seconds / self.target_seconds * 100) if self.target_seconds > 0 else 0.0
            yield EncodeProgress(seconds=seconds, percent=min(percent, 100.0))

    def wait(self) -> int:
        if not self._started_progress:
            for _ in self.progress():
                pass
        remainder = self.process.stderr.read()
        if remainder:
            self._lines.append(remainder)
        return self.process.wait()

    def kill(self) -> None:
        """Stop the encoder if it is still running and reap it."""
        if self.process.poll() is None:
            self.process.kill()
        self.process.wait()


class MediaComposer:
    """ffmpeg wrapper for the final upload media."""

    def __init__(
        self,
        tmp_dir: Path,
        ffmpeg: str = "ffmpeg",
        width: int = 1920,
        height: int = 1080,
        preset: str = "slow",
        crf: int = 18,
        progress_step_seconds: float = 5.0,
    ):
        self.tmp_dir = tmp_dir
        self.ffmpeg = ffmpeg
        self.width = width
        self.height = height
        self.preset = preset
        self.crf = crf
        self.progress_step_seconds = progress_step_seconds

    def _fit(self, width: int, height: int) -> str:
        return (
            f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2"
        )

    def _encode(self, cmd: list[str], target_seconds: float, label: str) -> None:
        logger.info(f"⚙️ Starting ffmpeg: {label}")
        job = EncodeJob(cmd, target_seconds, self.progress_step_seconds)
        finished = False
        try:
            for event in job.progress():
                logger.info(
                    f"⏳ {label}: {event.percent:.1f}% "
                    f"({event.seconds:.1f}s / {target_seconds:.1f}s)"
                )
            returncode = job.wait()
            finished = True
        finally:
            if not finished:
                logger.error(f"ffmpeg {label} interrupted, stopping encoder")
                job.kill()
        if returncode != 0:
            logger.error(f"ffmpeg {label} failed: {job.stderr}")
            raise EncodingFailed(returncode, job.stderr)

    def compose(self, visual_path: Path, audio: bytes, duration_seconds: float, slot_id: str) -> bytes:
        """Loop a video under the audio track and return the encoded MP4.

        The video input loops indefinitely; output stops when the audio ends.
        Video is re-encoded to the fixed output resolution, audio is copied.

        Raises:
            EncodingFailed: ffmpeg exited non-zero
            MediaIOError: temp files could not be written or read
        """
        audio_path = self.tmp_dir / f"{slot_id}_compose_audio.mp3"
        output_path = self.tmp_dir / f"{slot_id}_composed.mp4"
        logger.info(f"🎬 Composing video with audio ({duration_seconds:.1f}s)")

        with temp_artifact(audio_path, audio), temp_artifact(output_path):
            self._encode(
                [
                    self.ffmpeg,
                    "-y",
                    "-stream_loop", "-1",
                    "-i", str(visual_path),
                    "-i", str(audio_path),
                    "-map", "0:v",
                    "-map", "1:a",
                    "-c:v", "libx264",
                    "-preset", self.preset,
                    "-crf", str(self.crf),
                    "-c:a", "copy",
                    "-pix_fmt", "yuv420p",
                    "-shortest",
                    "-vf", self._fit(self.width, self.height),
                    str(output_path),
                ],
                duration_seconds,
                "compose",
            )
            composed = read_bytes(output_path)

        logger.info(f"✅ Video composed ({len(composed) / (1024 * 1024):.2f} MB)")
        return composed

    def render_still(
        self,
        image_path: Path,
        audio_path: Path,
        output_path: Path,
        duration_seconds: float,
        vertical: bool = False,
        max_seconds: Optional[float] = None,
    ) -> Path:
        """Hold a still image for the length of the audio (or max_seconds)."""
        width, height = (self.height, self.width) if vertical else (self.width, self.height)
        cmd = [self.ffmpeg, "-y", "-loop", "1", "-i", str(image_path), "-i", str(audio_path)]
        if max_seconds is not None:
            cmd += ["-t", str(max_seconds)]
        cmd += [
            "-c:v", "libx264",
            "-tune", "stillimage",
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-c:a", "aac",
            "-b:a", "256k",
            "-pix_fmt", "yuv420p",
            "-shortest",
            "-vf", self._fit(width, height),
            str(output_path),
        ]
        target = min(duration_seconds, max_seconds) if max_seconds else duration_seconds
        self._encode(cmd, target, "still render")
        return output_path

    def clip_video(self, video_path: Path, output_path: Path, seconds: float) -> Path:
        """Cut the first `seconds` of a video into a vertical clip."""
        self._encode(
            [
                self.ffmpeg,
                "-y",
                "-i", str(video_path),
                "-t", str(seconds),
                "-c:v", "libx264",
                "-preset", self.preset,
                "-crf", str(self.crf),
                "-c:a", "aac",
                "-b:a", "256k",
                "-pix_fmt", "yuv420p",
                "-vf", self._fit(self.height, self.width),
                str(output_path),
            ],
            seconds,
            "short clip",
        )
        return output_path
