"""Tests for local media handling.

Test coverage:
- Temp artifact scoping and the per-run registry
- Duration probing via ffprobe
- ffmpeg progress parsing and throttling
- Composition, still rendering and clipping, including cleanup on failure
"""

import io
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from lofi_radio.errors import DurationProbeFailed, EncodingFailed
from lofi_radio.media import (
    ArtifactRegistry,
    EncodeJob,
    MediaComposer,
    parse_progress_time,
    probe_duration,
    temp_artifact,
)


class BrokenStderr:
    """stderr stream that fails partway through reading."""

    def __iter__(self):
        yield "frame=  100 fps=25 q=28.0 size=512kB time=00:00:05.00 bitrate=128kbits/s\n"
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    def read(self):
        return ""


def ffmpeg_stderr(*seconds):
    """ffmpeg-style progress lines for the given elapsed times."""
    lines = ["Input #0, mp3, from 'audio.mp3':\n"]
    for s in seconds:
        minutes, secs = divmod(s, 60)
        lines.append(f"frame=  100 fps=25 q=28.0 size=512kB time=00:{int(minutes):02d}:{secs:05.2f} bitrate=128kbits/s\n")
    return "".join(lines)


class TestTempArtifacts:
    """Tests for temp_artifact and ArtifactRegistry."""

    def test_temp_artifact_removed_on_error(self, tmp_path):
        """The temp file is removed even when the body raises."""
        path = tmp_path / "scratch.mp3"
        with pytest.raises(RuntimeError):
            with temp_artifact(path, b"data"):
                assert path.read_bytes() == b"data"
                raise RuntimeError("encode failed")
        assert not path.exists()

    def test_registry_prefixes_slot(self, tmp_path):
        """Registry paths are prefixed with the slot id."""
        registry = ArtifactRegistry(tmp_path, "night")
        assert registry.path_for("audio.mp3") == tmp_path / "night_audio.mp3"

    def test_registry_cleanup(self, tmp_path):
        """cleanup removes every written file and reports the count."""
        registry = ArtifactRegistry(tmp_path, "morning")
        registry.write("audio.mp3", b"a")
        registry.write("video.mp4", b"v")
        registry.path_for("never_written.png")

        assert registry.cleanup() == 2
        assert list(tmp_path.iterdir()) == []


class TestProbeDuration:
    """Tests for probe_duration."""

    def run_result(self, stdout="", returncode=0, stderr=""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)

    def test_parses_duration(self, tmp_path):
        """ffprobe output is parsed as seconds."""
        audio = tmp_path / "track.mp3"
        audio.write_bytes(b"ID3")
        with patch("lofi_radio.media.subprocess.run", return_value=self.run_result("62.300000\n")) as mock_run:
            assert probe_duration(audio) == pytest.approx(62.3)
        assert mock_run.call_args.args[0][-1] == str(audio)

    def test_missing_file(self, tmp_path):
        """A missing audio file fails without running ffprobe."""
        with patch("lofi_radio.media.subprocess.run") as mock_run:
            with pytest.raises(DurationProbeFailed):
                probe_duration(tmp_path / "missing.mp3")
        mock_run.assert_not_called()

    @pytest.mark.parametrize(
        "result",
        [
            subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="Invalid data"),
            subprocess.CompletedProcess(args=[], returncode=0, stdout="N/A\n", stderr=""),
            subprocess.CompletedProcess(args=[], returncode=0, stdout="0.0\n", stderr=""),
        ],
    )
    def test_unusable_output(self, tmp_path, result):
        """Non-zero exit, unparsable and non-positive durations all fail."""
        audio = tmp_path / "track.mp3"
        audio.write_bytes(b"ID3")
        with patch("lofi_radio.media.subprocess.run", return_value=result):
            with pytest.raises(DurationProbeFailed):
                probe_duration(audio)

    def test_ffprobe_not_installed(self, tmp_path):
        """A missing ffprobe binary is reported as a probe failure."""
        audio = tmp_path / "track.mp3"
        audio.write_bytes(b"ID3")
        with patch("lofi_radio.media.subprocess.run", side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(DurationProbeFailed):
                probe_duration(audio)


class TestEncodeProgress:
    """Tests for parse_progress_time and EncodeJob."""

    def test_parse_progress_time(self):
        """time=HH:MM:SS.cc markers parse to seconds."""
        assert parse_progress_time("size=1kB time=01:02:03.50 bitrate=1") == pytest.approx(3723.5)
        assert parse_progress_time("Stream mapping:") is None

    def test_progress_throttled_to_step(self, tmp_path, fake_popen):
        """Events are emitted at most once per step of encoded time."""
        stderr = ffmpeg_stderr(1, 5, 7, 10, 12.5, 20)
        with patch("lofi_radio.media.subprocess.Popen", fake_popen(stderr_text=stderr)):
            job = EncodeJob(["ffmpeg", str(tmp_path / "out.mp4")], target_seconds=20.0)
            events = list(job.progress())
            returncode = job.wait()

        assert [e.seconds for e in events] == [5, 10, 20]
        assert [e.percent for e in events] == [25.0, 50.0, 100.0]
        assert returncode == 0

    def test_percent_capped(self, tmp_path, fake_popen):
        """Progress past the target is reported as 100%."""
        with patch("lofi_radio.media.subprocess.Popen", fake_popen(stderr_text=ffmpeg_stderr(30))):
            job = EncodeJob(["ffmpeg", str(tmp_path / "out.mp4")], target_seconds=20.0)
            events = list(job.progress())

        assert events[0].percent == 100.0

    def test_wait_without_progress(self, tmp_path, fake_popen):
        """wait() finishes the job and keeps stderr when progress was never read."""
        with patch("lofi_radio.media.subprocess.Popen", fake_popen(returncode=1, stderr_text="Invalid argument\n")):
            job = EncodeJob(["ffmpeg", str(tmp_path / "out.mp4")], target_seconds=20.0)
            assert job.wait() == 1

        assert "Invalid argument" in job.stderr

    def test_missing_binary(self, tmp_path):
        """An ffmpeg binary that cannot start raises EncodingFailed."""
        with patch("lofi_radio.media.subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
            with pytest.raises(EncodingFailed):
                EncodeJob(["ffmpeg", str(tmp_path / "out.mp4")], target_seconds=20.0)


class TestMediaComposer:
    """Tests for MediaComposer."""

    @pytest.fixture
    def workdirs(self, tmp_path):
        work = tmp_path / "work"
        work.mkdir()
        visual = tmp_path / "loop.mp4"
        visual.write_bytes(b"raw-video")
        return work, visual

    def test_compose_returns_output_and_cleans_up(self, workdirs, fake_popen):
        """compose loops the video under the audio and leaves no temp files."""
        work, visual = workdirs
        composer = MediaComposer(work)

        with patch("lofi_radio.media.subprocess.Popen", fake_popen(stderr_text=ffmpeg_stderr(5, 10), output=b"final")):
            composed = composer.compose(visual, b"ID3-audio", 10.0, "night")

        assert composed == b"final"
        assert list(work.iterdir()) == []
        cmd = fake_popen.calls[0]
        assert cmd[cmd.index("-stream_loop") + 1] == "-1"
        assert "-shortest" in cmd
        assert cmd[cmd.index("-c:a") + 1] == "copy"
        assert cmd[cmd.index("-i") + 1] == str(visual)

    def test_compose_failure_cleans_up(self, workdirs, fake_popen):
        """A failed encode raises EncodingFailed and still removes temp files."""
        work, visual = workdirs
        composer = MediaComposer(work)

        with patch("lofi_radio.media.subprocess.Popen", fake_popen(returncode=1, stderr_text="Conversion failed!\n")):
            with pytest.raises(EncodingFailed) as exc_info:
                composer.compose(visual, b"ID3-audio", 10.0, "night")

        assert exc_info.value.returncode == 1
        assert "Conversion failed!" in exc_info.value.stderr
        assert list(work.iterdir()) == []

    def test_render_still_vertical_with_limit(self, tmp_path, fake_popen):
        """Vertical still renders swap the frame and honor max_seconds."""
        composer = MediaComposer(tmp_path)
        output = tmp_path / "short.mp4"

        with patch("lofi_radio.media.subprocess.Popen", fake_popen()):
            result = composer.render_still(
                tmp_path / "cover.png", tmp_path / "audio.mp3", output, 180.0, vertical=True, max_seconds=45
            )

        assert result == output
        cmd = fake_popen.calls[0]
        assert cmd[cmd.index("-t") + 1] == "45"
        assert "scale=1080:1920" in cmd[cmd.index("-vf") + 1]

    def test_clip_video_is_vertical(self, tmp_path, fake_popen):
        """Companion clips are cut to length in a vertical frame."""
        composer = MediaComposer(tmp_path)

        with patch("lofi_radio.media.subprocess.Popen", fake_popen()):
            composer.clip_video(tmp_path / "full.mp4", tmp_path / "clip.mp4", 45.0)

        cmd = fake_popen.calls[0]
        assert cmd[cmd.index("-t") + 1] == "45.0"
        assert "scale=1080:1920" in cmd[cmd.index("-vf") + 1]

    def test_stderr_decoded_leniently(self, tmp_path, fake_popen):
        """ffmpeg output is read as text with undecodable bytes replaced."""
        with patch("lofi_radio.media.subprocess.Popen", fake_popen()):
            EncodeJob(["ffmpeg", str(tmp_path / "out.mp4")], target_seconds=20.0).wait()

        kwargs = fake_popen.instances[0].kwargs
        assert kwargs["text"] is True
        assert kwargs["errors"] == "replace"

    def test_read_error_stops_encoder(self, workdirs, fake_popen):
        """A failure while reading progress kills the encoder and cleans up."""
        work, visual = workdirs
        composer = MediaComposer(work)

        with patch("lofi_radio.media.subprocess.Popen", fake_popen(stderr=BrokenStderr(), output=None)):
            with pytest.raises(UnicodeDecodeError):
                composer.compose(visual, b"ID3-audio", 10.0, "night")

        process = fake_popen.instances[0]
        assert process.killed
        assert process.waited
        assert list(work.iterdir()) == []
