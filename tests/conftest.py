"""Shared test fixtures and utilities for all tests."""

import io
from pathlib import Path
from types import SimpleNamespace

import pytest

from lofi_radio.publisher import PublishRequest
from lofi_radio.text_client import Metadata, PromptBundle


def make_metadata(title="Rainy Window Study", description="Soft keys and vinyl hiss.", tags=("lofi", "study")):
    """Create a Metadata object for tests."""
    return Metadata(title=title, description=description, tags=tuple(tags))


def make_request(slot_id="morning", duration_seconds=180.0, video=None):
    """Create a PublishRequest with small placeholder media buffers."""
    return PublishRequest(
        slot_id=slot_id,
        audio=b"ID3-audio",
        image=b"\x89PNG-image",
        metadata=make_metadata(),
        duration_seconds=duration_seconds,
        video=video,
    )


def chat_response(content):
    """Shape of an OpenAI chat completion with a single choice."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakePopen:
    """Stand-in for subprocess.Popen running ffmpeg.

    Writes `output` to the last command argument (ffmpeg's output path) and
    replays `stderr_text` as the process stderr.
    """

    calls = []
    instances = []

    def __init__(self, cmd, returncode=0, stderr_text="", output=b"mp4-bytes", stderr_stream=None, **kwargs):
        self.cmd = cmd
        self.kwargs = kwargs
        self.returncode = returncode
        self.stderr = stderr_stream if stderr_stream is not None else io.StringIO(stderr_text)
        self.killed = False
        self.waited = False
        FakePopen.calls.append(cmd)
        FakePopen.instances.append(self)
        if returncode == 0 and output is not None:
            Path(cmd[-1]).write_bytes(output)

    def poll(self):
        return self.returncode if self.waited else None

    def kill(self):
        self.killed = True
        self.returncode = -9

    def wait(self):
        self.waited = True
        return self.returncode


@pytest.fixture
def fake_popen():
    """Factory producing a Popen replacement with a fixed outcome."""
    FakePopen.calls = []
    FakePopen.instances = []

    def factory(returncode=0, stderr_text="", output=b"mp4-bytes", stderr=None):
        def popen(cmd, **kwargs):
            return FakePopen(
                cmd, returncode=returncode, stderr_text=stderr_text, output=output, stderr_stream=stderr, **kwargs
            )
        return popen

    factory.calls = FakePopen.calls
    factory.instances = FakePopen.instances
    return factory


class StubTextClient:
    """Text client returning canned prompt and metadata."""

    def __init__(self, fail_stage=None):
        self.fail_stage = fail_stage
        self.calls = []

    def generate_music_prompt(self, slot, rng=None):
        self.calls.append(("prompt", slot.id))
        if self.fail_stage == "prompt":
            raise RuntimeError("chat service unavailable")
        return PromptBundle(
            music_prompt=f"Warm {slot.id} lofi with soft piano and vinyl crackle at {slot.tempo_preferred} BPM",
            genre="lofi piano",
            mood=slot.moods[0],
        )

    def generate_metadata(self, slot_id, music_prompt):
        self.calls.append(("metadata", slot_id))
        if self.fail_stage == "metadata":
            raise RuntimeError("metadata service unavailable")
        return make_metadata(title=f"{slot_id.title()} Session")


class StubAudioClient:
    def __init__(self, error=None, audio=b"ID3-audio"):
        self.error = error
        self.audio = audio
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.audio


class StubImageClient:
    def __init__(self, error=None):
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return b"\x89PNG-image"


class StubVideoClient:
    name = "stub-video"

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def generate(self, slot_id, music_prompt, duration_seconds):
        self.calls.append((slot_id, music_prompt, duration_seconds))
        if self.error:
            raise self.error
        return b"raw-video"


class StubComposer:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def compose(self, visual_path, audio, duration_seconds, slot_id):
        self.calls.append((visual_path, audio, duration_seconds, slot_id))
        if self.error:
            raise self.error
        return b"composed-video"


class StubPublisher:
    """Publisher recording every request it receives."""

    def __init__(self, name, error=None):
        self.name = name
        self.error = error
        self.requests = []

    def publish(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return f"{self.name}-id-{request.slot_id}"
