"""markcraft contract models.

Inputs (brief, signals, palette, fonts, color system) are produced by
upstream collaborators and arrive here already computed. Outputs
(concepts, QA reports) are immutable once returned.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ACCEPT_THRESHOLD = 72

LogoStyle = Literal[
    "wordmark",
    "icon_wordmark",
    "monogram",
    "abstract_mark",
    "pictorial",
    "mascot",
    "emblem",
    "dynamic",
]

LOGO_STYLES: list[LogoStyle] = [
    "wordmark",
    "icon_wordmark",
    "monogram",
    "abstract_mark",
    "pictorial",
    "mascot",
    "emblem",
    "dynamic",
]

EvaluationFlag = Literal[
    "photorealistic",
    "too_complex",
    "bad_typography",
    "wrong_style",
    "dark_background",
    "drop_shadows",
    "text_in_abstract",
    "no_text_in_wordmark",
    "cluttered",
    "gradient_heavy",
    "low_contrast",
    "wrong_aspect_ratio",
    "wrong_text",
]


# === Brand inputs ===


class ColorDirection(BaseModel):
    primary: str
    mood: str = ""
    avoid: str = ""
    palette_style: Literal["monochromatic", "analogous", "complementary", "triadic"] = "analogous"


class BrandSignals(BaseModel):
    domain_name: str
    tone: Literal["playful", "professional", "bold", "calm", "techy", "sophisticated"]
    sub_tone: str = ""
    color_direction: ColorDirection
    icon_style: Literal["minimal", "geometric", "organic", "abstract", "lettermark", "mascot"] = (
        "minimal"
    )
    industry: str = ""
    target_audience: str = ""
    brand_personality: str = ""
    avoid_elements: list[str] = []
    suggested_keywords: list[str] = []


class GeneratedPalette(BaseModel):
    """Pre-generation palette used to steer logo prompts."""

    primary: str
    secondary: str
    accent: str
    dark: str
    light: str


class BrandPalette(BaseModel):
    primary: str
    secondary: str
    accent: str
    light: str
    dark: str
    text_on_primary: str = "#ffffff"
    text_on_light: str = "#111111"
    css_vars: str = ""


class BrandPillar(BaseModel):
    name: str
    description: str


class PersonalityTrait(BaseModel):
    trait: str
    counterbalance: str


class TypeGuidance(BaseModel):
    display_category: str = ""
    body_category: str = ""
    formality_level: int = Field(ge=1, le=5, default=3)
    suggested_display_fonts: list[str] = []
    suggested_body_fonts: list[str] = []


class ColorGuidance(BaseModel):
    temperature: Literal["warm", "cool", "neutral"] = "neutral"
    saturation_level: Literal["vibrant", "moderate", "muted", "desaturated"] = "moderate"
    accent_hue_range: str = ""
    avoid_hues: list[str] = []
    suggested_primary_hex: str = ""
    suggested_accent_hex: str = ""


class LogoGuidance(BaseModel):
    preferred_styles: list[str] = []
    geometry: str = ""
    stroke_weight: Literal["light", "medium", "bold"] = "medium"
    concept_seeds: list[str] = []


class DesignBrief(BaseModel):
    brand_name: str
    tagline: str = ""
    sector_classification: str
    tension_pair: str  # "X but Y"
    aesthetic_direction: str
    memorable_anchor: str = ""
    brand_pillars: list[BrandPillar] = []
    personality_traits: list[PersonalityTrait] = []
    target_audience_summary: str = ""
    theme_preference: Literal["light", "dark", "either"] = "either"
    type_guidance: TypeGuidance = TypeGuidance()
    color_guidance: ColorGuidance = ColorGuidance()
    logo_guidance: LogoGuidance = LogoGuidance()
    competitive_differentiation: str = ""


# === Typography ===


class FontSpec(BaseModel):
    name: str
    weights: list[int]
    css_family: str = ""


class FontPairing(BaseModel):
    heading: FontSpec
    body: FontSpec
    mono: FontSpec | None = None
    google_fonts_url: str = ""


class TypeScaleLevel(BaseModel):
    name: str  # Display, H1, H2, H3, Body, Caption, Code
    font: str
    weight: str  # Light, Regular, Medium, SemiBold, Bold, ExtraBold, Black
    size_pt: float
    leading_pt: float = 0
    tracking: str = "0"


class TypeSystem(FontPairing):
    pairing_rationale: str = ""
    type_scale: list[TypeScaleLevel] = []
    scale_ratio: float = 1.25
    scale_ratio_name: str = ""


# === Color system ===


class ColorSpec(BaseModel):
    hex: str
    rgb: str = ""
    hsl: str = ""
    cmyk: str = ""  # "C:70 M:0 Y:50 K:0"


class AccessibilityCheck(BaseModel):
    pair: str  # "muted/background", "accent/background", ...
    ratio: float
    aa_pass: bool
    aaa_pass: bool = False


class SystemColors(BaseModel):
    accent: ColorSpec
    background: ColorSpec
    surface: ColorSpec
    foreground: ColorSpec
    muted: ColorSpec
    border: ColorSpec
    accent_dim: str = ""


class FunctionalColors(BaseModel):
    success: ColorSpec
    warning: ColorSpec
    error: ColorSpec
    info: ColorSpec


class ColorSystem(BaseModel):
    brand: BrandPalette
    system: SystemColors
    functional: FunctionalColors | None = None
    accessibility: list[AccessibilityCheck] = []
    all_aa_pass: bool = True


# === Generation ===


class PromptSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    negative_prompt: str = ""


class EvaluationResult(BaseModel):
    score: int = Field(ge=0, le=100)
    flags: list[EvaluationFlag] = []
    strengths: list[str] = []
    refinement_instructions: str = ""
    passed: bool = False

    @model_validator(mode="after")
    def _passed_requires_threshold(self) -> EvaluationResult:
        if self.passed and self.score < ACCEPT_THRESHOLD:
            raise ValueError(f"passed requires score >= {ACCEPT_THRESHOLD}, got {self.score}")
        return self

    @classmethod
    def from_score(cls, score: int, **kwargs: object) -> EvaluationResult:
        """Build a result whose pass/fail is derived from the score."""
        passed = score >= ACCEPT_THRESHOLD
        return cls(score=score, passed=passed, **kwargs)  # type: ignore[arg-type]


class GenerationAttempt(BaseModel):
    image_url: str
    seed: int
    score: int
    flags: list[EvaluationFlag] = []
    prompt_set: PromptSet


class GeneratedConcept(BaseModel):
    model_config = ConfigDict(frozen=True)

    style: LogoStyle
    image_url: str
    prompt: str
    negative_prompt: str
    seed: int
    score: int = Field(ge=0, le=100)
    evaluation_flags: list[EvaluationFlag] = []
    attempt_count: int = Field(ge=1, le=2)
    passed_evaluation: bool

    @model_validator(mode="after")
    def _passed_requires_threshold(self) -> GeneratedConcept:
        if self.passed_evaluation and self.score < ACCEPT_THRESHOLD:
            raise ValueError(
                f"passed_evaluation requires score >= {ACCEPT_THRESHOLD}, got {self.score}"
            )
        return self


class TextReviewResult(BaseModel):
    text_correct: bool
    detected_text: str = ""
    expected_text: str
    confidence: Literal["high", "medium", "low"] = "medium"
    issues: list[str] = []


# === Critic / QA ===


class QAIssue(BaseModel):
    severity: Literal["blocking", "warning", "suggestion"]
    category: str
    description: str


class QAFix(BaseModel):
    category: str
    description: str
    before: str
    after: str


class QAScores(BaseModel):
    brief_alignment: int = Field(ge=1, le=10)
    internal_consistency: int = Field(ge=1, le=10)
    differentiation: int = Field(ge=1, le=10)
    technical_quality: int = Field(ge=1, le=10)
    overall: int = Field(ge=1, le=10)


class QAReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    verdict: Literal["approve", "approve_with_warnings", "flagged"]
    scores: QAScores
    issues: list[QAIssue] = []
    fixes: list[QAFix] = []
    summary: str


class AICriticResult(BaseModel):
    score: int = Field(ge=0, le=100)
    blocking: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []


class CriticResult(BaseModel):
    report: QAReport
    fixed_palette: BrandPalette
    fixed_color_system: ColorSystem | None = None
    ai_review: AICriticResult | None = None  # advisory, never affects the verdict


# === Activity envelopes ===


class GenerateLogoConceptsInput(BaseModel):
    signals: BrandSignals
    palette: GeneratedPalette
    styles: list[LogoStyle] | None = None
    brief: DesignBrief | None = None


class GenerateLogoConceptsOutput(BaseModel):
    concepts: list[GeneratedConcept] = Field(min_length=1)


class SelectBestConceptsInput(BaseModel):
    candidates: list[GeneratedConcept]


class SelectBestConceptsOutput(BaseModel):
    concepts: list[GeneratedConcept]


class CriticQAInput(BaseModel):
    brief: DesignBrief
    signals: BrandSignals
    palette: BrandPalette
    fonts: FontPairing
    type_system: TypeSystem | None = None
    color_system: ColorSystem | None = None
