"""Spelling check for logos that render the brand name or initials.

Image models routinely drop, double, or swap letters. Claude reads the
rendered text character by character and the comparison happens here.
The check never blocks generation: if the reader is unavailable or its
reply can't be parsed, the text is assumed correct with low confidence.
"""

from __future__ import annotations

import re

import structlog
from temporalio.exceptions import ApplicationError

from markcraft.activities.prompts import NO_TEXT_STYLES
from markcraft.config import settings
from markcraft.models.contracts import LogoStyle, TextReviewResult
from markcraft.utils.claude import ask_claude, image_block, load_image_base64, text_block
from markcraft.utils.llm_json import extract_json_object

logger = structlog.get_logger()

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_CONFIDENCE_LEVELS = ("high", "medium", "low")


def normalize(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text.lower())


def levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def full_text_matches(detected: str, expected: str) -> bool:
    """Equal after normalization, or one edit away."""
    d, e = normalize(detected), normalize(expected)
    return d == e or levenshtein(d, e) <= 1


def monogram_matches(detected: str, expected: str) -> bool:
    """Every expected initial appears in the detected text, in order."""
    d, e = normalize(detected), normalize(expected)
    pos = 0
    for char in e:
        found = d.find(char, pos)
        if found == -1:
            return False
        pos = found + 1
    return True


def _reader_prompt(expected_text: str) -> str:
    letters = " - ".join(expected_text)
    return f"""\
You are a precise text-reading agent. Look at this logo image very carefully.

TASK: Read ALL text and letters visible in the image, character by character.

EXPECTED TEXT: "{expected_text}"
EXPECTED LETTERS (one by one): {letters}

INSTRUCTIONS:
1. Look at each letter in the logo from left to right.
2. Spell out every single character you see, one by one.
3. Compare your reading against the expected text character by character.
4. Watch for doubled letters, easily confused letters (n/m, l/i, e/c), and \
missing or extra characters.

Return JSON only:
{{
  "detectedText": "<exact characters visible, in reading order>",
  "letterByLetter": "<each detected letter separated by dashes, e.g. p-a-r-t-y>",
  "confidence": "high" | "medium" | "low",
  "notes": "<observations about text clarity, missing or extra characters>"
}}"""


def _unchecked(expected_text: str, confidence: str = "low") -> TextReviewResult:
    return TextReviewResult(
        text_correct=True,
        expected_text=expected_text,
        confidence=confidence,  # type: ignore[arg-type]
    )


async def review_logo_text(
    image_url: str, style: LogoStyle, expected_text: str
) -> TextReviewResult:
    """Compare the text rendered in a logo against what it should say."""
    if style in NO_TEXT_STYLES or not expected_text:
        return _unchecked(expected_text, confidence="high")

    try:
        b64, media_type = await load_image_base64(image_url)
        text = await ask_claude(
            [text_block(_reader_prompt(expected_text)), image_block(b64, media_type)],
            model=settings.vision_model,
            max_tokens=400,
        )
    except ApplicationError as e:
        logger.warning("text_review_failed", style=style, error=str(e))
        return _unchecked(expected_text)

    data = extract_json_object(text)
    if "detectedText" not in data:
        logger.warning("text_review_unparsable", style=style, response=text[:200])
        return _unchecked(expected_text)

    detected = str(data.get("detectedText") or "")
    confidence = data.get("confidence")
    if confidence not in _CONFIDENCE_LEVELS:
        confidence = "medium"

    if style == "monogram":
        correct = monogram_matches(detected, expected_text)
    else:
        correct = full_text_matches(detected, expected_text)

    issues: list[str] = []
    if not correct:
        nd, ne = normalize(detected), normalize(expected_text)
        if len(nd) != len(ne):
            issues.append(f"Expected {len(ne)} characters, got {len(nd)}")
        issues.append(f'Expected "{expected_text}", detected "{detected}"')

    logger.info(
        "text_reviewed",
        style=style,
        correct=correct,
        detected=detected[:60],
        confidence=confidence,
    )
    return TextReviewResult(
        text_correct=correct,
        detected_text=detected,
        expected_text=expected_text,
        confidence=confidence,
        issues=issues,
    )
