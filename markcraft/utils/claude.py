"""Claude messages helpers shared by the evaluator, tournament, and critics.

Builds multimodal content blocks and runs a single messages call,
translating transport failures into Temporal ApplicationErrors.
"""

from __future__ import annotations

import base64
from typing import Any

import anthropic
import httpx
import structlog
from temporalio.exceptions import ApplicationError

from markcraft.config import settings

log = structlog.get_logger("claude")

_SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


async def load_image_base64(url: str) -> tuple[str, str]:
    """Download an image from URL and return (base64-encoded bytes, media_type)."""
    async with httpx.AsyncClient() as client:
        try:
            resp = await client.get(url, timeout=15.0)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("image_download_failed", url=url[:100], status=e.response.status_code)
            status = e.response.status_code
            raise ApplicationError(
                f"HTTP {status} downloading image: {url[:100]}",
                non_retryable=status < 500 and status != 429,
            ) from e
        except httpx.RequestError as e:
            log.error("image_download_error", url=url[:100], error=type(e).__name__)
            raise ApplicationError(
                f"Network error downloading image: {url[:100]}: {type(e).__name__}",
                non_retryable=False,
            ) from e
    content_type = resp.headers.get("content-type", "").split(";")[0].strip()
    if content_type not in _SUPPORTED_IMAGE_TYPES:
        content_type = "image/png" if url.lower().split("?")[0].endswith(".png") else "image/jpeg"
    return base64.standard_b64encode(resp.content).decode("ascii"), content_type


def image_block(base64_data: str, media_type: str = "image/png") -> dict[str, Any]:
    """Build an Anthropic image content block from base64 data."""
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": base64_data},
    }


def text_block(text: str) -> dict[str, Any]:
    """Build an Anthropic text content block."""
    return {"type": "text", "text": text}


async def ask_claude(
    content: list[dict[str, Any]] | str,
    model: str | None = None,
    max_tokens: int = 1024,
    temperature: float | None = None,
) -> str:
    """Send one user turn to Claude and return the concatenated text reply."""
    if not settings.anthropic_api_key:
        raise ApplicationError("ANTHROPIC_API_KEY not set", non_retryable=True)

    model = model or settings.vision_model
    kwargs: dict[str, Any] = {}
    if temperature is not None:
        kwargs["temperature"] = temperature

    async with anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key) as client:
        try:
            response = await client.messages.create(
                model=model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": content}],  # type: ignore[typeddict-item]
                **kwargs,
            )
        except anthropic.RateLimitError as e:
            log.warning("claude_rate_limited", model=model)
            raise ApplicationError("Claude rate limited", non_retryable=False) from e
        except anthropic.APIStatusError as e:
            log.error("claude_api_error", model=model, status=e.status_code)
            raise ApplicationError(
                f"Claude API error {e.status_code}",
                non_retryable=e.status_code < 500 and e.status_code != 429,
            ) from e
        except anthropic.APIConnectionError as e:
            log.error("claude_connection_error", model=model)
            raise ApplicationError("Claude connection failed", non_retryable=False) from e

    text = ""
    for block in response.content:
        if hasattr(block, "text"):
            text += block.text
    return text
