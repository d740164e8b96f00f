"""Claude review of a finished brand system, alongside the rule-based critic.

Observability only: the result is attached for humans to read and never
changes the deterministic QAReport. Disabled unless ENABLE_AI_CRITIC is set.
"""

from __future__ import annotations

import math

import structlog
from temporalio.exceptions import ApplicationError

from markcraft.config import settings
from markcraft.models.contracts import (
    AICriticResult,
    BrandPalette,
    DesignBrief,
    FontPairing,
    TypeSystem,
)
from markcraft.utils.claude import ask_claude
from markcraft.utils.llm_json import extract_json_object

log = structlog.get_logger("critic_llm")

DEFAULT_AI_SCORE = 50


def _critic_prompt(
    brief: DesignBrief,
    palette: BrandPalette,
    fonts: FontPairing,
    type_system: TypeSystem | None,
) -> str:
    heading_weights = ", ".join(str(w) for w in fonts.heading.weights)
    body_weights = ", ".join(str(w) for w in fonts.body.weights)
    scale_line = (
        f"- Scale ratio: {type_system.scale_ratio_name} ({type_system.scale_ratio})\n"
        if type_system is not None
        else ""
    )
    return f"""\
You are a senior brand design critic at a top agency. Evaluate this brand system \
for professional quality.

Brand context:
- Name: "{brief.brand_name}"
- Sector: "{brief.sector_classification}"
- Tension: "{brief.tension_pair}"
- Aesthetic: "{brief.aesthetic_direction}"
- Theme: {brief.theme_preference}

Color system:
- Primary: {palette.primary}
- Accent: {palette.accent}
- Light: {palette.light}
- Dark: {palette.dark}
- Temperature guidance: {brief.color_guidance.temperature}

Typography:
- Display: {fonts.heading.name} (weights: {heading_weights})
- Body: {fonts.body.name} (weights: {body_weights})
{scale_line}
Evaluate:
1. Are primary and accent colors visually distinct and harmonious?
2. Do the colors suit the sector "{brief.sector_classification}"?
3. Does the typography express the tension "{brief.tension_pair}"?
4. Is the display/body font pairing balanced and functional?
5. Would a top design agency approve this system?

Return JSON only: {{"score": <0-100>, "blocking": [<critical issues>], \
"warnings": [<non-critical>], "suggestions": [<improvements>]}}"""


def _strings(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


def parse_ai_critic(text: str) -> AICriticResult | None:
    data = extract_json_object(text)
    if not data:
        return None
    raw = data.get("score")
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        raw = DEFAULT_AI_SCORE
    elif not raw or not math.isfinite(raw):
        raw = DEFAULT_AI_SCORE
    return AICriticResult(
        score=max(0, min(100, round(raw))),
        blocking=_strings(data.get("blocking")),
        warnings=_strings(data.get("warnings")),
        suggestions=_strings(data.get("suggestions")),
    )


async def run_ai_critic_qa(
    brief: DesignBrief,
    palette: BrandPalette,
    fonts: FontPairing,
    type_system: TypeSystem | None = None,
) -> AICriticResult | None:
    """Holistic Claude critique; None when disabled or when the call fails."""
    if not settings.enable_ai_critic:
        return None

    try:
        text = await ask_claude(
            _critic_prompt(brief, palette, fonts, type_system),
            model=settings.refinement_model,
            max_tokens=1024,
            temperature=0.3,
        )
    except ApplicationError as e:
        log.warning("ai_critic_failed", error=str(e))
        return None

    result = parse_ai_critic(text)
    if result is None:
        log.warning("ai_critic_unparsable", response=text[:200])
        return None
    log.info(
        "ai_critic_complete",
        score=result.score,
        blocking=len(result.blocking),
        warnings=len(result.warnings),
    )
    return result
