"""Gemini image-model client helpers."""

from __future__ import annotations

import io

import structlog
from google import genai
from google.genai import types
from PIL import Image

from markcraft.config import settings

logger = structlog.get_logger()

LOGO_ASPECT_RATIO = "1:1"


def get_client() -> genai.Client:
    """Create a Gemini client using the configured API key."""
    return genai.Client(api_key=settings.google_ai_api_key)


def image_config(seed: int) -> types.GenerateContentConfig:
    """Per-call config: image output, square canvas, fixed seed."""
    return types.GenerateContentConfig(
        response_modalities=["TEXT", "IMAGE"],
        seed=seed,
        image_config=types.ImageConfig(aspect_ratio=LOGO_ASPECT_RATIO),
    )


def extract_image(response: types.GenerateContentResponse) -> Image.Image | None:
    """Extract the first image from a Gemini response as PIL Image.

    Returns None if no image parts found. May raise if image data is corrupt.
    """
    if not response.candidates:
        return None
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return None
    for part in content.parts:
        if part.inline_data is None or part.inline_data.data is None:
            continue
        try:
            return Image.open(io.BytesIO(part.inline_data.data))
        except Exception:
            logger.error(
                "gemini_image_decode_failed",
                image_bytes_len=len(part.inline_data.data),
            )
            raise
    return None


def extract_text(response: types.GenerateContentResponse) -> str:
    """Extract all text parts from a Gemini response."""
    if not response.candidates:
        return ""
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return ""
    return "\n".join(part.text for part in content.parts if part.text is not None)
