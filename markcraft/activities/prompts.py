"""Default prompt builder for logo generation.

Prompt wording is owned by the brand team and may be swapped for any
callable with the same signature; the pipeline treats it as a black box.
"""

from __future__ import annotations

import re

from markcraft.models.contracts import (
    BrandSignals,
    DesignBrief,
    GeneratedPalette,
    LogoStyle,
    PromptSet,
)

TEXT_STYLES: tuple[LogoStyle, ...] = ("wordmark", "icon_wordmark", "emblem", "dynamic")
NO_TEXT_STYLES: tuple[LogoStyle, ...] = ("abstract_mark", "pictorial", "mascot")

_BASE_NEGATIVE = (
    "photo, photorealistic, 3d render, drop shadow, bevel, busy background, "
    "gradient background, watermark, mockup"
)

_STYLE_DIRECTIONS: dict[LogoStyle, str] = {
    "wordmark": 'Clean typographic wordmark of the text "{name}" in a distinctive typeface. '
    "Typography only, no icon.",
    "icon_wordmark": 'Minimal icon mark beside or above the text "{name}". Icon concept: '
    "{keywords}, simplified to geometric shapes. Text in a clean sans-serif.",
    "monogram": 'Monogram lettermark using the letters "{initials}". Interlocking or stacked '
    "letterforms, bold and memorable, at most two colors.",
    "abstract_mark": "Abstract brand mark, a non-literal symbol evoking {personality}. "
    "Concepts: {keywords}. No text in the mark.",
    "pictorial": "Pictorial mark: one recognizable, simplified object representing {keywords}. "
    "No text.",
    "mascot": "Friendly mascot character for the brand, flat vector illustration, "
    "bold outlines, {tone} personality. No text.",
    "emblem": 'Emblem logo: the text "{name}" enclosed in a badge or crest shape, '
    "flat and symmetric.",
    "dynamic": 'Dynamic logo system: the text "{name}" with a modular shape that can vary '
    "in color or pattern while staying recognizable.",
}


def monogram_initials(name: str) -> str:
    """Up to three initials from a brand or domain name.

    Splits on separators and camelCase; a single plain word yields its
    first two letters.
    """
    stem = name.split(".")[0]
    words = [w for w in re.split(r"[\s_\-]+|(?<=[a-z])(?=[A-Z])", stem) if w]
    if not words:
        return ""
    if len(words) == 1:
        return words[0][:2].upper()
    return "".join(w[0] for w in words[:3]).upper()


def brand_display_name(signals: BrandSignals, brief: DesignBrief | None = None) -> str:
    if brief is not None and brief.brand_name:
        return brief.brand_name
    return signals.domain_name


def expected_logo_text(
    style: LogoStyle, signals: BrandSignals, brief: DesignBrief | None = None
) -> str | None:
    """Text a rendered logo of this style must show, or None for symbol-only styles."""
    if style in TEXT_STYLES:
        return brand_display_name(signals, brief)
    if style == "monogram":
        return monogram_initials(brand_display_name(signals, brief))
    return None


def build_prompt_set(
    style: LogoStyle,
    signals: BrandSignals,
    palette: GeneratedPalette,
    brief: DesignBrief | None = None,
) -> PromptSet:
    name = brand_display_name(signals, brief)
    keywords = ", ".join(signals.suggested_keywords[:3]) or signals.industry or name
    direction = _STYLE_DIRECTIONS[style].format(
        name=name,
        initials=monogram_initials(name),
        keywords=keywords,
        personality=signals.brand_personality or signals.tone,
        tone=signals.tone,
    )

    parts = [
        f'Professional logo design for "{name}", white background, vector-style graphic, '
        f"clean edges, {signals.tone} aesthetic.",
        f"Colors: primary {palette.primary}, accent {palette.accent}, dark {palette.dark}.",
        direction,
        "Flat design, centered composition, high contrast, works at small sizes.",
    ]
    if brief is not None and brief.logo_guidance.geometry:
        parts.append(f"Geometry: {brief.logo_guidance.geometry}.")

    negative = [_BASE_NEGATIVE]
    if signals.avoid_elements:
        negative.append(", ".join(signals.avoid_elements))
    if signals.color_direction.avoid:
        negative.append(signals.color_direction.avoid)

    return PromptSet(prompt="\n".join(parts), negative_prompt=", ".join(negative))
