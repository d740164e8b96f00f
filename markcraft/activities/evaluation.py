"""Vision evaluator: scores one rendered logo concept against a style rubric.

Claude is the judge. The rubric text tells it what the style must and must
not contain, which flags to raise, and how strictly to grade. Transport and
parse failures are infrastructure errors and propagate as ApplicationError;
a quality verdict is only ever produced from a parsed response.
"""

from __future__ import annotations

from typing import get_args

import structlog
from temporalio.exceptions import ApplicationError

from markcraft.config import settings
from markcraft.models.contracts import (
    ACCEPT_THRESHOLD,
    EvaluationFlag,
    EvaluationResult,
    LogoStyle,
)
from markcraft.utils.claude import ask_claude, image_block, load_image_base64, text_block
from markcraft.utils.llm_json import extract_json_object

log = structlog.get_logger("evaluation")

EVAL_MAX_TOKENS = 800

_KNOWN_FLAGS: frozenset[str] = frozenset(get_args(EvaluationFlag))

STYLE_RUBRICS: dict[LogoStyle, str] = {
    "wordmark": """\
You are evaluating a WORDMARK logo concept. A wordmark is typography only: \
the brand name rendered in a distinctive typeface with no icons or symbols.

Score on these dimensions (each 0-25):
1. Typography quality: is the text clear, well-kerned, professional? \
A distinctive typeface rather than a default font?
2. Scalability: would this work at 16px? No fine details that disappear at small sizes.
3. Style compliance: ONLY typography, with NO icons, symbols, or decoration \
beyond the letterforms themselves.
4. Background: white or transparent. No colored backgrounds.

Flag these problems if present:
- Any icon, symbol, or graphic element alongside the text -> "wrong_style"
- Photorealistic rendering -> "photorealistic"
- Dark or colored background -> "dark_background"
- Text is unclear or pixelated -> "bad_typography"
- Drop shadows or 3D bevels -> "drop_shadows"
""",
    "icon_wordmark": """\
You are evaluating an ICON + WORDMARK logo concept. It has two parts: a simple \
icon or symbol AND the brand name as text, working together as one composition.

Score on these dimensions (each 0-25):
1. Icon quality: simple, geometric, distinctive? Does it work as a standalone symbol?
2. Typography quality: is the brand name clearly readable in a clean typeface?
3. Composition: are icon and text balanced and well-proportioned?
4. Scalability + background: clean white/transparent background, no drop shadows, \
works at small sizes.

Flag these problems if present:
- No icon present, only text -> "wrong_style"
- No text present, only icon -> "wrong_style"
- Background is not white/transparent -> "dark_background"
- Photorealistic icon -> "photorealistic"
- Icon is too complex or detailed -> "too_complex"
- Drop shadows or 3D effects -> "drop_shadows"
""",
    "monogram": """\
You are evaluating a MONOGRAM / LETTERMARK logo. It uses 1-3 letters (usually \
initials) rendered as an interlocking, stacked, or stylized letterform composition.

Score on these dimensions (each 0-25):
1. Letter clarity: are the specific letters clearly identifiable, not just abstract shapes?
2. Design quality: is the letterform composition creative, balanced, distinctive?
3. Style compliance: ONLY letters, with NO icons, illustrations, or full brand name text.
4. Scalability + background: works at small sizes, white/transparent background, no shadows.

Flag these problems if present:
- Full brand name text present (not just 1-3 letters) -> "wrong_style"
- Icons or illustrations added -> "wrong_style"
- Letters not recognizable -> "bad_typography"
- Background not white/transparent -> "dark_background"
- Too many decorative elements -> "cluttered"
""",
    "abstract_mark": """\
You are evaluating an ABSTRACT MARK: a purely symbolic, non-literal logo mark \
with NO text whatsoever.

Score on these dimensions (each 0-25):
1. Abstraction quality: a clean abstract or geometric symbol that evokes the brand \
without being literal?
2. Distinctiveness: unique and ownable, not a generic shape everyone uses.
3. Style compliance: absolutely NO text, letters, or readable words anywhere.
4. Scalability + background: simple enough for 16px, white/transparent background, \
no shadows or gradients.

Flag these problems if present:
- Any text or letters visible -> "text_in_abstract"
- Photorealistic elements -> "photorealistic"
- Too complex to work at small size -> "too_complex"
- Dark/colored background -> "dark_background"
- Heavy gradients -> "gradient_heavy"
- Generic shape (circle, square, basic triangle) with nothing distinctive -> \
note it in refinementInstructions
""",
}

# Styles outside STYLE_RUBRICS are graded on logo fundamentals only.
GENERIC_RUBRIC = """\
You are evaluating a LOGO concept in the "{style}" style.

Score on these dimensions (each 0-25):
1. Clarity: is the mark clean, legible, and free of rendering artifacts?
2. Scalability: would it still read at 16px? No fine details that vanish when small.
3. Craft: flat, vector-like forms with confident edges; not photographic or over-detailed.
4. Background: white or transparent, no shadows or heavy gradients.

Flag these problems if present:
- Photorealistic rendering -> "photorealistic"
- Too complex or detailed for small sizes -> "too_complex"
- Visual clutter -> "cluttered"
- Dark or colored background -> "dark_background"
- Drop shadows or 3D effects -> "drop_shadows"
- Heavy gradients -> "gradient_heavy"
- Low contrast between mark and background -> "low_contrast"
"""

_RESPONSE_CONTRACT = f"""\
Evaluate this logo concept strictly. Return JSON only:
{{
  "score": <number 0-100>,
  "flags": <array of flag strings from the list above, empty if none>,
  "strengths": <array of 1-3 specific things that work well>,
  "refinementInstructions": <specific instructions for improving the prompt \
if score < {ACCEPT_THRESHOLD}, otherwise empty string>
}}

Be strict. Most AI-generated logos score 40-65. Only truly clean, professional, \
scalable logo-quality outputs should score above {ACCEPT_THRESHOLD}."""


def rubric_for(style: LogoStyle) -> str:
    rubric = STYLE_RUBRICS.get(style)
    if rubric is not None:
        return rubric
    log.info("evaluation_rubric_fallback", style=style)
    return GENERIC_RUBRIC.format(style=style)


def build_evaluation_prompt(style: LogoStyle, brand_name: str) -> str:
    return f'{rubric_for(style)}\nBrand name: "{brand_name}"\n\n{_RESPONSE_CONTRACT}'


def _coerce_score(raw: object) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int | float | str):
        raise ValueError(f"score is not numeric: {raw!r}")
    value = round(float(raw))
    return max(0, min(100, value))


def _clean_flags(raw: object, style: LogoStyle) -> list[EvaluationFlag]:
    if not isinstance(raw, list):
        return []
    flags: list[EvaluationFlag] = []
    for flag in raw:
        if flag in _KNOWN_FLAGS and flag not in flags:
            flags.append(flag)
        else:
            log.debug("evaluation_flag_dropped", style=style, flag=str(flag)[:40])
    return flags


def parse_evaluation(text: str, style: LogoStyle) -> EvaluationResult:
    """Turn the judge's reply into an EvaluationResult.

    Raises ApplicationError when the reply has no JSON object or no usable score.
    """
    data = extract_json_object(text)
    if "score" not in data:
        log.error("evaluation_unparsable", style=style, response=text[:200])
        raise ApplicationError(
            f"Could not parse evaluation response for {style}", non_retryable=False
        )
    try:
        score = _coerce_score(data["score"])
    except (ValueError, OverflowError) as e:
        log.error("evaluation_bad_score", style=style, score=str(data["score"])[:40])
        raise ApplicationError(
            f"Evaluation response for {style} has no numeric score", non_retryable=False
        ) from e

    raw_strengths = data.get("strengths")
    if not isinstance(raw_strengths, list):
        raw_strengths = []
    strengths = [str(s) for s in raw_strengths if s][:3]
    instructions = data.get("refinementInstructions") or data.get("refinement_instructions")
    return EvaluationResult.from_score(
        score,
        flags=_clean_flags(data.get("flags"), style),
        strengths=strengths,
        refinement_instructions=str(instructions or ""),
    )


async def evaluate_concept(image_url: str, style: LogoStyle, brand_name: str) -> EvaluationResult:
    """Score one rendered concept with Claude vision."""
    b64, media_type = await load_image_base64(image_url)
    content = [
        text_block(build_evaluation_prompt(style, brand_name)),
        image_block(b64, media_type),
    ]
    text = await ask_claude(content, model=settings.vision_model, max_tokens=EVAL_MAX_TOKENS)
    result = parse_evaluation(text, style)
    log.info(
        "logo_evaluated",
        style=style,
        score=result.score,
        passed=result.passed,
        flags=result.flags,
    )
    return result
