"""Critic/QA engine: deterministic quality gate for a finished design system.

Scores four dimensions (brief alignment, internal consistency,
differentiation, technical quality), each starting at 10 and decremented by
rule violations, then clamped to [1, 10]. The only corrective action is
WCAG contrast remediation of the muted and accent colors, applied to a copy
of the color system. Data-quality problems in the input are reported as
issues; this module never raises for them.
"""

from __future__ import annotations

import re
from typing import Literal

import structlog
from temporalio import activity

from markcraft.activities.critic_llm import run_ai_critic_qa
from markcraft.models.contracts import (
    AccessibilityCheck,
    BrandPalette,
    BrandSignals,
    ColorSystem,
    CriticQAInput,
    CriticResult,
    DesignBrief,
    FontPairing,
    QAFix,
    QAIssue,
    QAReport,
    QAScores,
    TypeSystem,
)
from markcraft.utils.color import (
    WCAG_AA_RATIO,
    adjust_for_contrast,
    contrast_ratio,
    hex_to_hue,
    hue_distance,
    is_valid_hex,
    make_color_spec,
    parse_cmyk,
    relative_luminance,
    round_half_up,
)

log = structlog.get_logger("critic")

Severity = Literal["blocking", "warning", "suggestion"]

WEIGHTS = {
    "brief_alignment": 0.25,
    "internal_consistency": 0.25,
    "differentiation": 0.20,
    "technical_quality": 0.30,
}

OVERUSED_FONTS = {"inter", "roboto", "arial", "open sans", "montserrat", "helvetica", "poppins"}
GENERIC_COLORS = {"#000000", "#ffffff", "#ff0000", "#00ff00", "#0000ff", "#ffff00"}

_SERIF_FONTS = (
    "playfair",
    "cormorant",
    "bodoni",
    "garamond",
    "baskerville",
    "lora",
    "merriweather",
    "source serif",
    "literata",
    "fraunces",
    "instrument serif",
    "newsreader",
)

# Hue bands (degrees, inclusive) for color words a brief may use when
# describing what competitors already own.
COMPETITOR_HUE_RANGES: dict[str, tuple[tuple[int, int], ...]] = {
    "blue": ((200, 250),),
    "purple": ((260, 290),),
    "teal": ((160, 190),),
    "green": ((90, 150),),
    "yellow": ((45, 65),),
    "orange": ((20, 40),),
    "red": ((0, 10), (350, 359)),
}

WEIGHT_NAME_TO_NUM = {
    "thin": 100,
    "extralight": 200,
    "light": 300,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "extrabold": 800,
    "black": 900,
}

# Penalties for failing accessibility checks and the share restored by a fix
_ACCENT_CONTRAST_PENALTY = 3
_OTHER_CONTRAST_PENALTY = 1
_ACCENT_FIX_RESTORE = 2
_MUTED_FIX_RESTORE = 1

_HUE_CLASH_MIN = 60
_HUE_CLASH_MAX = 120
_IDENTICAL_HUE_DEG = 15
_IDENTICAL_LUMINANCE = 0.10
_MAX_INK_COVERAGE = 300


def is_serif(font_name: str) -> bool:
    name = font_name.lower()
    return any(s in name for s in _SERIF_FONTS)


def clamp_score(score: int) -> int:
    return max(1, min(10, score))


def overall_score(
    brief_alignment: int,
    internal_consistency: int,
    differentiation: int,
    technical_quality: int,
) -> int:
    """Weighted aggregate of the four (already clamped) dimension scores."""
    weighted = (
        brief_alignment * WEIGHTS["brief_alignment"]
        + internal_consistency * WEIGHTS["internal_consistency"]
        + differentiation * WEIGHTS["differentiation"]
        + technical_quality * WEIGHTS["technical_quality"]
    )
    return clamp_score(round_half_up(weighted))


def decide_verdict(
    issues: list[QAIssue], fixes: list[QAFix]
) -> Literal["approve", "approve_with_warnings", "flagged"]:
    """Three-state verdict.

    A blocking issue that was auto-fixed still yields approve_with_warnings,
    never approve, even when every blocking issue has a matching fix.
    """
    blocking = sum(1 for i in issues if i.severity == "blocking")
    warnings = sum(1 for i in issues if i.severity == "warning")
    if blocking > 0 and len(fixes) < blocking:
        return "flagged"
    if warnings > 0 or blocking > 0:
        return "approve_with_warnings"
    return "approve"


def _summary(verdict: str, issues: list[QAIssue], fixes: list[QAFix], overall: int) -> str:
    blocking = sum(1 for i in issues if i.severity == "blocking")
    warnings = sum(1 for i in issues if i.severity == "warning")
    if verdict == "approve":
        return f"Brand system passed all quality checks. Overall score: {overall}/10."
    if verdict == "approve_with_warnings":
        return (
            f"Brand system approved with {warnings} warning(s) and {len(fixes)} auto-fix(es). "
            f"Overall score: {overall}/10."
        )
    return (
        f"Brand system has {blocking} blocking issue(s) that need attention. "
        f"Overall score: {overall}/10."
    )


class _Findings:
    """Issue accumulator shared by the dimension scorers."""

    def __init__(self) -> None:
        self.issues: list[QAIssue] = []
        self.fixes: list[QAFix] = []

    def add(self, severity: Severity, category: str, description: str) -> None:
        self.issues.append(QAIssue(severity=severity, category=category, description=description))


# ---------------------------------------------------------------------------
# 1. Brief alignment
# ---------------------------------------------------------------------------


def _score_brief_alignment(
    brief: DesignBrief,
    fonts: FontPairing,
    type_system: TypeSystem | None,
    findings: _Findings,
) -> int:
    score = 10

    if type_system is not None:
        tension_words = [w for w in brief.tension_pair.lower().split() if len(w) > 3]
        rationale = type_system.pairing_rationale.lower()
        if not any(w in rationale for w in tension_words):
            score -= 1
            findings.add(
                "suggestion",
                "Brief Alignment",
                "Typography rationale doesn't explicitly reference the brand tension "
                f'"{brief.tension_pair}".',
            )

    direction = brief.aesthetic_direction.lower()
    heading = fonts.heading.name
    if ("minimal" in direction or "swiss" in direction) and (
        "display" in heading.lower() and not is_serif(heading)
    ):
        score -= 1
        findings.add(
            "warning",
            "Brief Alignment",
            f'Expressive display font "{heading}" may conflict with '
            f'"{brief.aesthetic_direction}" aesthetic.',
        )

    sector = brief.sector_classification.lower()
    if (
        ("finance" in sector or "legal" in sector)
        and not is_serif(heading)
        and brief.type_guidance.formality_level >= 4
    ):
        score -= 1
        findings.add(
            "suggestion",
            "Brief Alignment",
            f"High-formality {brief.sector_classification} sector may benefit from a serif "
            "display font.",
        )

    return score


# ---------------------------------------------------------------------------
# 2. Internal consistency
# ---------------------------------------------------------------------------


def _score_internal_consistency(
    brief: DesignBrief,
    palette: BrandPalette,
    fonts: FontPairing,
    color_system: ColorSystem | None,
    findings: _Findings,
) -> int:
    score = 10

    if color_system is not None:
        lum = relative_luminance(palette.primary)
        vibrant = 0.15 < lum < 0.7
        heavy_type = any(w >= 700 for w in fonts.heading.weights)
        if not vibrant and not heavy_type:
            score -= 1
            findings.add(
                "suggestion",
                "Consistency",
                "Both accent color and type weight are subtle. Consider bolder type or more "
                "vibrant accent for impact.",
            )

    if fonts.heading.name == fonts.body.name:
        score -= 2
        findings.add(
            "warning",
            "Consistency",
            f"Display and body fonts are the same ({fonts.heading.name}). Distinct fonts create "
            "better visual hierarchy.",
        )

    if palette.primary and palette.accent and palette.primary != palette.accent:
        p_hue = hex_to_hue(palette.primary)
        a_hue = hex_to_hue(palette.accent)
        if p_hue is not None and a_hue is not None:
            diff = hue_distance(p_hue, a_hue)
            if _HUE_CLASH_MIN < diff < _HUE_CLASH_MAX:
                score -= 1
                findings.add(
                    "suggestion",
                    "Consistency",
                    f"Primary ({palette.primary}) and accent ({palette.accent}) hues are {diff}° "
                    "apart, potentially clashing. Consider analogous or complementary pairing.",
                )

    temperature = brief.color_guidance.temperature
    p_hue = hex_to_hue(palette.primary)
    if temperature != "neutral" and p_hue is not None:
        warm = p_hue <= 60 or p_hue >= 300
        cool = 180 <= p_hue <= 270
        if temperature == "warm" and cool:
            score -= 1
            findings.add(
                "warning",
                "Color Temperature",
                f"Primary color hue ({p_hue}°) reads as cool, but brief expects warm temperature.",
            )
        elif temperature == "cool" and warm:
            score -= 1
            findings.add(
                "warning",
                "Color Temperature",
                f"Primary color hue ({p_hue}°) reads as warm, but brief expects cool temperature.",
            )

    return score


# ---------------------------------------------------------------------------
# 3. Differentiation
# ---------------------------------------------------------------------------


def _competitor_color(competitive_note: str, hue: int) -> str | None:
    """Return the competitor color word whose hue band contains ``hue``, if any."""
    note = competitive_note.lower()
    for word, bands in COMPETITOR_HUE_RANGES.items():
        if not re.search(rf"\b{word}\b", note):
            continue
        if any(lo <= hue <= hi for lo, hi in bands):
            return word
    return None


def _score_differentiation(
    brief: DesignBrief,
    palette: BrandPalette,
    fonts: FontPairing,
    findings: _Findings,
) -> int:
    score = 10

    if fonts.heading.name.lower() in OVERUSED_FONTS:
        score -= 2
        findings.add(
            "warning",
            "Differentiation",
            f'Display font "{fonts.heading.name}" is commonly overused and may not '
            "differentiate the brand.",
        )
    if fonts.body.name.lower() in OVERUSED_FONTS:
        score -= 1
        findings.add(
            "suggestion",
            "Differentiation",
            f'Body font "{fonts.body.name}" is very common. Consider a more distinctive '
            "alternative.",
        )

    if palette.primary.lower() in GENERIC_COLORS:
        score -= 2
        findings.add(
            "warning",
            "Differentiation",
            f"Primary color {palette.primary} is generic. A unique shade would improve brand "
            "distinctiveness.",
        )

    hue = hex_to_hue(palette.primary)
    if brief.competitive_differentiation and hue is not None:
        word = _competitor_color(brief.competitive_differentiation, hue)
        if word is not None:
            score -= 1
            findings.add(
                "warning",
                "Differentiation",
                f"Primary color is {word} ({palette.primary}), but brief notes competitors use "
                f"{word}. Consider differentiating.",
            )

    return score


# ---------------------------------------------------------------------------
# 4. Technical quality
# ---------------------------------------------------------------------------


def _contrast_target(check: AccessibilityCheck) -> Literal["accent", "muted"] | None:
    if "accent" in check.pair:
        return "accent"
    if "muted" in check.pair:
        return "muted"
    return None


def _record_fixed_check(system: ColorSystem, pair: str, foreground: str) -> None:
    """Refresh the fixed copy's accessibility entry for ``pair``."""
    ratio = round(contrast_ratio(foreground, system.system.background.hex), 2)
    system.accessibility = [
        c.model_copy(
            update={"ratio": ratio, "aa_pass": ratio >= WCAG_AA_RATIO, "aaa_pass": ratio >= 7}
        )
        if c.pair == pair
        else c
        for c in system.accessibility
    ]
    system.all_aa_pass = all(c.aa_pass for c in system.accessibility)


def _fix_contrast(
    check: AccessibilityCheck,
    fixed: ColorSystem,
    findings: _Findings,
) -> int:
    """Try to remediate one failing check on the fixed copy. Returns points restored."""
    target = _contrast_target(check)
    background = fixed.system.background.hex

    if target == "muted":
        before = fixed.system.muted.hex
        after = adjust_for_contrast(before, background, WCAG_AA_RATIO)
        if after == before:
            return 0
        fixed.system.muted = make_color_spec(after)
        _record_fixed_check(fixed, check.pair, after)
        findings.fixes.append(
            QAFix(
                category="Accessibility",
                description="Auto-adjusted muted text color to pass WCAG AA contrast.",
                before=before,
                after=after,
            )
        )
        return _MUTED_FIX_RESTORE

    if target == "accent":
        before = fixed.brand.accent
        after = adjust_for_contrast(before, background, WCAG_AA_RATIO)
        if after == before:
            return 0
        # accent/background measures system.accent, which this fix leaves alone
        fixed.brand = fixed.brand.model_copy(update={"accent": after})
        findings.fixes.append(
            QAFix(
                category="Accessibility",
                description=(
                    "Auto-adjusted accent color to pass WCAG AA contrast against background."
                ),
                before=before,
                after=after,
            )
        )
        return _ACCENT_FIX_RESTORE

    return 0


def _font_weights(fonts: FontPairing, font_name: str) -> list[int] | None:
    candidates = [fonts.heading, fonts.body]
    if fonts.mono is not None:
        candidates.append(fonts.mono)
    for spec in candidates:
        if spec.name.lower() == font_name.lower():
            return spec.weights
    return None


def _weight_to_num(weight: str) -> int:
    key = weight.replace("-", "").replace(" ", "").lower()
    if key.isdigit():
        return int(key)
    return WEIGHT_NAME_TO_NUM.get(key, 400)


def _score_technical_quality(
    palette: BrandPalette,
    fonts: FontPairing,
    type_system: TypeSystem | None,
    color_system: ColorSystem | None,
    fixed_color_system: ColorSystem | None,
    findings: _Findings,
) -> int:
    score = 10

    if color_system is not None:
        failing = [c for c in color_system.accessibility if not c.aa_pass]
        for check in failing:
            penalty = (
                _ACCENT_CONTRAST_PENALTY if "accent" in check.pair else _OTHER_CONTRAST_PENALTY
            )
            score -= penalty
            findings.add(
                "blocking",
                "Accessibility",
                f"{check.pair} contrast ratio {check.ratio}:1 fails WCAG AA (minimum 4.5:1).",
            )
        if fixed_color_system is not None:
            for check in failing:
                score += _fix_contrast(check, fixed_color_system, findings)

        cmyk = parse_cmyk(color_system.system.accent.cmyk)
        if cmyk is not None:
            total_ink = sum(cmyk)
            if total_ink > _MAX_INK_COVERAGE:
                score -= 1
                findings.add(
                    "warning",
                    "Technical",
                    f"Primary color CMYK total ink is {total_ink}% (recommended < 300% for print).",
                )

    brand_colors = (palette.primary, palette.secondary, palette.accent, palette.light, palette.dark)
    for hex_color in brand_colors:
        if not is_valid_hex(hex_color):
            score -= 1
            findings.add("blocking", "Technical", f'Invalid hex color: "{hex_color}".')

    if type_system is not None and type_system.type_scale:
        levels = type_system.type_scale
        for prev, cur in zip(levels, levels[1:]):
            if cur.size_pt >= prev.size_pt:
                score -= 1
                findings.add(
                    "warning",
                    "Technical",
                    f"Type scale is not strictly descending: {prev.name} ({prev.size_pt:g}pt) → "
                    f"{cur.name} ({cur.size_pt:g}pt).",
                )
                break

    if palette.primary and palette.accent:
        p_hue = hex_to_hue(palette.primary)
        a_hue = hex_to_hue(palette.accent)
        if p_hue is not None and a_hue is not None:
            hue_diff = hue_distance(p_hue, a_hue)
            lum_diff = abs(relative_luminance(palette.primary) - relative_luminance(palette.accent))
            if hue_diff < _IDENTICAL_HUE_DEG and lum_diff < _IDENTICAL_LUMINANCE:
                score -= 3
                findings.add(
                    "blocking",
                    "Color Distinction",
                    f"Primary ({palette.primary}) and accent ({palette.accent}) are visually "
                    f"identical (hue diff: {hue_diff}°, lum diff: {lum_diff:.2f}).",
                )

    if type_system is not None:
        for level in type_system.type_scale:
            available = _font_weights(fonts, level.font)
            if not available:
                continue
            wanted = _weight_to_num(level.weight)
            if wanted in available:
                continue
            closest = min(available, key=lambda w: abs(w - wanted))
            if abs(closest - wanted) > 100:
                score -= 1
                findings.add(
                    "warning",
                    "Typography",
                    f"{level.font} {level.weight} ({wanted}) not available. Closest: {closest}. "
                    f"Scale level: {level.name}.",
                )

    return score


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def run_critic_qa(
    brief: DesignBrief,
    signals: BrandSignals,
    palette: BrandPalette,
    fonts: FontPairing,
    type_system: TypeSystem | None = None,
    color_system: ColorSystem | None = None,
) -> CriticResult:
    """Score a finished design system and apply contrast auto-fixes to a copy.

    Returns the report together with the (possibly) fixed palette and color
    system. The inputs are never mutated.
    """
    findings = _Findings()
    fixed_color_system = color_system.model_copy(deep=True) if color_system is not None else None

    brief_score = _score_brief_alignment(brief, fonts, type_system, findings)
    consistency_score = _score_internal_consistency(brief, palette, fonts, color_system, findings)
    differentiation_score = _score_differentiation(brief, palette, fonts, findings)
    technical_score = _score_technical_quality(
        palette, fonts, type_system, color_system, fixed_color_system, findings
    )

    brief_alignment = clamp_score(brief_score)
    internal_consistency = clamp_score(consistency_score)
    differentiation = clamp_score(differentiation_score)
    technical_quality = clamp_score(technical_score)
    scores = QAScores(
        brief_alignment=brief_alignment,
        internal_consistency=internal_consistency,
        differentiation=differentiation,
        technical_quality=technical_quality,
        overall=overall_score(
            brief_alignment, internal_consistency, differentiation, technical_quality
        ),
    )

    verdict = decide_verdict(findings.issues, findings.fixes)
    report = QAReport(
        verdict=verdict,
        scores=scores,
        issues=findings.issues,
        fixes=findings.fixes,
        summary=_summary(verdict, findings.issues, findings.fixes, scores.overall),
    )

    if fixed_color_system is not None and findings.fixes:
        fixed_palette = fixed_color_system.brand.model_copy(deep=True)
    else:
        fixed_palette = palette.model_copy(deep=True)

    log.info(
        "critic_qa_complete",
        brand=signals.domain_name,
        verdict=verdict,
        overall=scores.overall,
        issue_count=len(findings.issues),
        fix_count=len(findings.fixes),
    )
    for fix in findings.fixes:
        log.info("critic_fix_applied", category=fix.category, before=fix.before, after=fix.after)

    return CriticResult(
        report=report,
        fixed_palette=fixed_palette,
        fixed_color_system=fixed_color_system,
    )


@activity.defn
async def critic_qa(input: CriticQAInput) -> CriticResult:
    """Temporal activity: rule-based QA, plus the optional Claude review."""
    result = run_critic_qa(
        input.brief,
        input.signals,
        input.palette,
        input.fonts,
        input.type_system,
        input.color_system,
    )
    ai_review = await run_ai_critic_qa(input.brief, input.palette, input.fonts, input.type_system)
    if ai_review is None:
        return result
    return result.model_copy(update={"ai_review": ai_review})
