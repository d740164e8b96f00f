"""Prompt refinement after a failed evaluation.

Each evaluation flag maps to a fixed prompt/negative-prompt patch that is
prepended to the previous prompt. From the third attempt on, Claude is
asked for a full rewrite instead; any failure there falls back to the
deterministic patch.
"""

from __future__ import annotations

from typing import NamedTuple

import structlog
from temporalio.exceptions import ApplicationError

from markcraft.config import settings
from markcraft.models.contracts import (
    BrandSignals,
    EvaluationFlag,
    EvaluationResult,
    LogoStyle,
    PromptSet,
)
from markcraft.utils.claude import ask_claude
from markcraft.utils.llm_json import extract_json_object

logger = structlog.get_logger()

LLM_REWRITE_FROM_ATTEMPT = 3


class FlagFix(NamedTuple):
    add_to_prompt: str
    add_to_negative: str


FLAG_FIXES: dict[EvaluationFlag, FlagFix] = {
    "photorealistic": FlagFix(
        "flat vector graphic, 2D illustration, no photography, no realistic textures,",
        "photo, realistic, 3d render, photorealistic, photograph, HDR, bokeh,",
    ),
    "too_complex": FlagFix(
        "extremely simple, minimal, 3 elements maximum, clean and uncluttered,",
        "complex, detailed, intricate, busy, many elements,",
    ),
    "bad_typography": FlagFix(
        "clear crisp typography, professional typeface, legible text, high contrast letters,",
        "blurry text, illegible font, distorted letters, warped text,",
    ),
    # The style direction itself lives in the base prompt.
    "wrong_style": FlagFix("", ""),
    "dark_background": FlagFix(
        "pure white background, white canvas, isolated on white,",
        "dark background, colored background, gradient background, black background,",
    ),
    "drop_shadows": FlagFix(
        "flat design, no shadows, no depth effects, 2D only,",
        "drop shadow, box shadow, inner shadow, 3D effect, emboss, bevel, depth,",
    ),
    "text_in_abstract": FlagFix(
        "purely abstract symbol, no letters, no words, no text, no numbers, symbol only,",
        "text, letters, words, typography, alphabet, numbers, characters,",
    ),
    "no_text_in_wordmark": FlagFix(
        "large clear brand name text as the primary element, typography-focused,",
        "no text, text-free,",
    ),
    "cluttered": FlagFix(
        "minimal, single focal point, lots of whitespace, clean and simple,",
        "cluttered, busy, many elements, overcrowded,",
    ),
    "gradient_heavy": FlagFix(
        "flat solid colors only, no gradients, single color fills,",
        "gradient, color blend, rainbow, ombre, multicolor blend,",
    ),
    "low_contrast": FlagFix(
        "high contrast, strong color differentiation, bold colors against white,",
        "low contrast, muted, faded, pastel on white,",
    ),
    "wrong_aspect_ratio": FlagFix(
        "perfectly centered composition, equal padding on all sides, square format,",
        "off-center, asymmetric layout, touching edges,",
    ),
    "wrong_text": FlagFix(
        "exact spelling of the brand name, every letter correct, no extra words,",
        "misspelled text, wrong letters, extra letters, gibberish text,",
    ),
}


def apply_flag_fixes(
    prompt: str, negative_prompt: str, flags: list[EvaluationFlag]
) -> PromptSet:
    """Prepend each flag's patch to the previous prompts, in flag order."""
    prompt_additions = ""
    negative_additions = ""
    for flag in flags:
        fix = FLAG_FIXES.get(flag)
        if fix is None:
            continue
        prompt_additions += fix.add_to_prompt + " "
        negative_additions += fix.add_to_negative + " "
    return PromptSet(
        prompt=f"{prompt_additions}{prompt}".strip(),
        negative_prompt=f"{negative_additions}{negative_prompt}".strip(),
    )


def _rewrite_request(
    prompt: str,
    evaluation: EvaluationResult,
    style: LogoStyle,
    signals: BrandSignals,
    attempt_number: int,
) -> str:
    return f"""\
You are a prompt engineer specializing in AI logo generation with image models.

Original prompt: "{prompt}"
Problems found: {", ".join(evaluation.flags) or "none flagged"}
Evaluator notes: {evaluation.refinement_instructions}
Logo style required: {style}
Brand: {signals.domain_name}, tone: {signals.tone}

This is attempt {attempt_number}. The previous prompts failed. Rewrite the prompt \
completely from scratch. Be extremely specific: detailed style descriptors, explicit \
format instructions, and clear negative space descriptions.

Return JSON only: {{"prompt": "...", "negativePrompt": "..."}}"""


async def _llm_rewrite(
    prompt: str,
    evaluation: EvaluationResult,
    style: LogoStyle,
    signals: BrandSignals,
    attempt_number: int,
) -> PromptSet | None:
    try:
        text = await ask_claude(
            _rewrite_request(prompt, evaluation, style, signals, attempt_number),
            model=settings.refinement_model,
            max_tokens=1024,
        )
    except ApplicationError as e:
        logger.warning("prompt_rewrite_failed", style=style, error=str(e))
        return None

    data = extract_json_object(text)
    new_prompt = data.get("prompt")
    new_negative = data.get("negativePrompt", data.get("negative_prompt", ""))
    if not isinstance(new_prompt, str) or not new_prompt.strip():
        logger.warning("prompt_rewrite_unparsable", style=style, response=text[:200])
        return None
    return PromptSet(prompt=new_prompt.strip(), negative_prompt=str(new_negative or "").strip())


async def refine_prompt(
    prompt: str,
    negative_prompt: str,
    evaluation: EvaluationResult,
    style: LogoStyle,
    signals: BrandSignals,
    attempt_number: int,
) -> PromptSet:
    """Produce the PromptSet for ``attempt_number`` from a failed evaluation."""
    if attempt_number >= LLM_REWRITE_FROM_ATTEMPT:
        rewritten = await _llm_rewrite(prompt, evaluation, style, signals, attempt_number)
        if rewritten is not None:
            logger.info("prompt_rewritten", style=style, attempt=attempt_number)
            return rewritten

    refined = apply_flag_fixes(prompt, negative_prompt, evaluation.flags)
    logger.info(
        "prompt_refined",
        style=style,
        attempt=attempt_number,
        flags=evaluation.flags,
    )
    return refined
