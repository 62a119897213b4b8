"""Tests for the slot generation and scheduler scripts."""

import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add scripts directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

import generate_slot
import run_scheduler

from lofi_radio.errors import GenerationFailed, PipelineAborted
from lofi_radio.pipeline import PipelineResult
from lofi_radio.publisher import PublishResult
from lofi_radio.text_client import PromptBundle

from conftest import make_metadata


def pipeline_result(slot_id="morning"):
    return PipelineResult(
        slot=slot_id,
        prompt=PromptBundle(music_prompt="soft piano", genre="lofi piano", mood="calm"),
        metadata=make_metadata(),
        duration=62.3,
        used_generated_video=False,
        publish_results=[
            PublishResult(platform="youtube", success=True, remote_id="abc"),
            PublishResult(platform="audius", success=False, error="audius: upload failed"),
        ],
    )


class TestGenerateSlotMain:
    """Tests for generate_slot.main."""

    def test_success_exit_code(self):
        """A completed run exits 0 even with a failed platform."""
        with patch("generate_slot.run_slot", return_value=pipeline_result()) as mock_run:
            assert generate_slot.main(["morning"]) == 0
        assert mock_run.call_args.args[0] == "morning"
        assert mock_run.call_args.kwargs["with_video"] is True

    def test_no_video_flag(self):
        """--no-video disables video generation."""
        with patch("generate_slot.run_slot", return_value=pipeline_result("night")) as mock_run:
            generate_slot.main(["night", "--no-video"])
        assert mock_run.call_args.kwargs["with_video"] is False

    def test_aborted_run_exit_code(self):
        """A fatal stage failure exits 1."""
        error = PipelineAborted("AudioGeneration", GenerationFailed("Mureka track ended with status failed"))
        with patch("generate_slot.run_slot", side_effect=error):
            assert generate_slot.main(["midday"]) == 1

    def test_unexpected_error_exit_code(self):
        """Configuration errors also exit 1."""
        with patch("generate_slot.run_slot", side_effect=ValueError("RADIO_OPENAI_API_KEY not configured")):
            assert generate_slot.main(["midday"]) == 1

    @pytest.mark.parametrize("argv", [[], ["evening"]])
    def test_invalid_slot_usage_error(self, argv):
        """Missing or unknown slots exit with usage code 2."""
        with pytest.raises(SystemExit) as exc_info:
            generate_slot.main(argv)
        assert exc_info.value.code == 2


class TestRunScheduler:
    """Tests for the scheduler's child process launch."""

    def test_runs_generate_script(self):
        """Each slot runs generate_slot.py in a child process."""
        completed = subprocess.CompletedProcess(args=[], returncode=0)
        with patch("run_scheduler.subprocess.run", return_value=completed) as mock_run:
            assert run_scheduler.run_slot_process("night") == 0

        cmd = mock_run.call_args.args[0]
        assert cmd[0] == sys.executable
        assert cmd[1].endswith("generate_slot.py")
        assert cmd[2] == "night"

    def test_failed_child_reported(self):
        """A failing child's exit code is returned."""
        completed = subprocess.CompletedProcess(args=[], returncode=1)
        with patch("run_scheduler.subprocess.run", return_value=completed):
            assert run_scheduler.run_slot_process("morning") == 1
