"""Cover image generation with the OpenAI images API."""

import logging

import httpx
from openai import APIError, OpenAI

from .config import LofiRadioConfig
from .errors import GenerationFailed, NoImageUrl

logger = logging.getLogger(__name__)

NO_TEXT_INSTRUCTION = (
    "Important: Ensure the image contains no text, writing, or characters. "
    "The image must be entirely text-free."
)


def with_negative_instruction(prompt: str) -> str:
    return f"{prompt.strip()}\n\n{NO_TEXT_INSTRUCTION}"


class ImageClient:
    """Generates a square cover image and downloads it."""

    def __init__(
        self,
        client: OpenAI,
        http: httpx.Client,
        model: str = "dall-e-3",
        size: str = "1024x1024",
    ):
        self.client = client
        self.http = http
        self.model = model
        self.size = size

    @classmethod
    def from_config(cls, cfg: LofiRadioConfig, http: httpx.Client) -> "ImageClient":
        key = cfg.api_keys.openai_api_key
        if key is None:
            raise ValueError("RADIO_OPENAI_API_KEY not configured")
        return cls(
            client=OpenAI(api_key=key.get_secret_value()),
            http=http,
            model=cfg.generation.image_model,
            size=cfg.generation.image_size,
        )

    def generate(self, prompt: str) -> bytes:
        """Generate an image for a prompt and return its bytes.

        Raises:
            NoImageUrl: If the response carries no image URL
            GenerationFailed: On API or download errors
        """
        logger.info(f"🎨 Generating cover image with {self.model}")
        try:
            response = self.client.images.generate(
                prompt=with_negative_instruction(prompt),
                model=self.model,
                n=1,
                size=self.size,
            )
        except APIError as e:
            raise GenerationFailed("Image generation request failed", reason=str(e)) from e

        url = response.data[0].url if response.data else None
        if not url:
            raise NoImageUrl("No image URL returned from OpenAI")

        try:
            image = self.http.get(url)
            image.raise_for_status()
        except httpx.HTTPError as e:
            raise GenerationFailed("Failed to download generated image", reason=str(e)) from e

        logger.info(f"🎨 Cover image fetched ({len(image.content) / 1024:.0f} KB)")
        return image.content
