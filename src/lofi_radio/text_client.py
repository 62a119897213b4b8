"""Text generation for music prompts and publishing metadata.

Uses the OpenAI chat completions API. Raw model output is cleaned of
formatting artifacts (code fences, emphasis markers, wrapping quotes)
before it is used as a prompt or parsed as metadata.
"""

import json
import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

from openai import APIError, OpenAI

from .config import LofiRadioConfig
from .errors import GenerationFailed, MalformedResponse
from .prompts import (
    METADATA_SYSTEM_PROMPT,
    build_metadata_request,
    build_music_request,
    choose_genre_and_mood,
)
from .slots import SlotConfig

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_QUOTES = "\"'“”‘’"


@dataclass(frozen=True)
class PromptBundle:
    """The single description of the music shared by every downstream stage."""

    music_prompt: str
    genre: str
    mood: str


@dataclass(frozen=True)
class Metadata:
    """Title, description and tags for the published content."""

    title: str
    description: str
    tags: tuple[str, ...]


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def strip_formatting(text: str) -> str:
    """Remove markdown fences, bold/italic markers and wrapping quotes."""
    text = strip_code_fences(text)
    text = text.replace("**", "").replace("*", "")
    text = text.strip()
    while len(text) >= 2 and text[0] in _QUOTES and text[-1] in _QUOTES:
        text = text[1:-1].strip()
    return text


def parse_metadata(raw: str) -> Metadata:
    """Parse a metadata JSON payload.

    Raises:
        MalformedResponse: If the payload is not a JSON object with a string
            title, a string description and a list of string tags
    """
    try:
        data = json.loads(strip_code_fences(raw))
    except ValueError as e:
        raise MalformedResponse(f"Metadata is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse("Metadata must be a JSON object")

    title = data.get("title")
    description = data.get("description")
    tags = data.get("tags")

    if not isinstance(title, str) or not title.strip():
        raise MalformedResponse("Metadata is missing a title")
    if not isinstance(description, str):
        raise MalformedResponse("Metadata is missing a description")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise MalformedResponse("Metadata tags must be a list of strings")

    return Metadata(
        title=title.strip(),
        description=description.strip(),
        tags=tuple(t.strip().lower() for t in tags if t.strip()),
    )


class TextClient:
    """OpenAI chat client for music prompts and metadata."""

    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-4",
        prompt_temperature: float = 0.85,
        metadata_temperature: float = 0.85,
    ):
        self.client = client
        self.model = model
        self.prompt_temperature = prompt_temperature
        self.metadata_temperature = metadata_temperature

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig) -> "TextClient":
        key = cfg.api_keys.openai_api_key
        if key is None:
            raise ValueError("RADIO_OPENAI_API_KEY not configured")
        return cls(
            client=OpenAI(api_key=key.get_secret_value()),
            model=cfg.generation.text_model,
            prompt_temperature=cfg.generation.prompt_temperature,
            metadata_temperature=cfg.generation.metadata_temperature,
        )

    def complete(self, prompt: str, temperature: float, system: Optional[str] = None) -> str:
        """Send one chat request and return the raw reply text.

        Raises:
            GenerationFailed: On API errors
            MalformedResponse: If the reply has no text content
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )
        except APIError as e:
            raise GenerationFailed("Text generation request failed", reason=str(e)) from e

        if not response.choices or not response.choices[0].message.content:
            raise MalformedResponse("Text generation returned no content")
        return response.choices[0].message.content

    def generate_music_prompt(
        self,
        slot: SlotConfig,
        rng: Optional[random.Random] = None,
    ) -> PromptBundle:
        genre, mood = choose_genre_and_mood(slot, rng)
        logger.info(f"Requesting music prompt for {slot.id}: genre={genre!r}")

        text = strip_formatting(
            self.complete(build_music_request(slot, genre, mood), self.prompt_temperature)
        )
        if not text:
            raise MalformedResponse("Music prompt was empty after cleanup")

        return PromptBundle(music_prompt=text, genre=genre, mood=mood)

    def generate_metadata(self, slot_id: str, music_prompt: str) -> Metadata:
        raw = self.complete(
            build_metadata_request(slot_id, music_prompt),
            self.metadata_temperature,
            system=METADATA_SYSTEM_PROMPT,
        )
        metadata = parse_metadata(raw)
        logger.info(f"Metadata generated: {metadata.title!r} ({len(metadata.tags)} tags)")
        return metadata
