"""generate_logo_concepts activity: per-style generate/evaluate/refine loop.

Each requested style runs through a bounded quality loop. A candidate is
rendered by Gemini, stored in R2, and scored by the vision evaluator; a
score below ACCEPT_THRESHOLD triggers one prompt refinement and another
render. Styles run on a small worker pool so the image model is never
hit by more than CONCURRENCY_LIMIT pipelines at once.

Quality failures degrade to the best attempt. Infrastructure failures
(API errors, unparsable judge replies) end that style's pipeline; the
batch fails only when no style produced anything.
"""

from __future__ import annotations

import asyncio
import io
import random
import re
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog
from temporalio import activity
from temporalio.exceptions import ApplicationError

from markcraft.activities.evaluation import evaluate_concept
from markcraft.activities.prompts import brand_display_name, build_prompt_set, expected_logo_text
from markcraft.activities.refinement import refine_prompt
from markcraft.activities.text_review import review_logo_text
from markcraft.config import settings
from markcraft.models.contracts import (
    LOGO_STYLES,
    BrandSignals,
    DesignBrief,
    EvaluationResult,
    GeneratedConcept,
    GeneratedPalette,
    GenerateLogoConceptsInput,
    GenerateLogoConceptsOutput,
    GenerationAttempt,
    LogoStyle,
    PromptSet,
)
from markcraft.utils.gemini import extract_image, extract_text, get_client, image_config

logger = structlog.get_logger()

MAX_ATTEMPTS = 2
CONCURRENCY_LIMIT = 2

_SEED_RANGE = 2**31

T = TypeVar("T")

PromptBuilder = Callable[[LogoStyle, BrandSignals, GeneratedPalette, DesignBrief | None], PromptSet]


# ---------------------------------------------------------------------------
# Image synthesis
# ---------------------------------------------------------------------------


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "brand"


def _store_png(png: bytes, key_prefix: str) -> str:
    """Upload PNG bytes to R2 and return a presigned GET URL."""
    from markcraft.utils.r2 import generate_presigned_url, upload_object

    key = f"{key_prefix}/{uuid.uuid4().hex}.png"
    upload_object(key, png, content_type="image/png")
    return generate_presigned_url(key)


def _to_application_error(e: Exception) -> ApplicationError:
    error_type = type(e).__name__
    error_msg = str(e)

    # google-genai surfaces quota errors as generic ClientErrors carrying the status text.
    is_rate_limit = (
        "429" in error_msg or "RESOURCE_EXHAUSTED" in error_msg or "ResourceExhausted" in error_type
    )
    if is_rate_limit:
        return ApplicationError("Gemini rate limited", non_retryable=False)
    if "SAFETY" in error_msg or "blocked" in error_msg.lower():
        return ApplicationError(
            f"Content policy violation: {error_msg[:200]}", non_retryable=True
        )
    return ApplicationError(
        f"Logo generation failed: {error_type}: {error_msg[:200]}", non_retryable=False
    )


async def generate_candidate(prompt_set: PromptSet, key_prefix: str = "logos") -> tuple[str, int]:
    """Render one logo image. Returns (presigned image URL, seed).

    No timeout is applied here; callers that need a deadline wrap the
    whole orchestration.
    """
    seed = random.randrange(_SEED_RANGE)
    contents = prompt_set.prompt
    if prompt_set.negative_prompt:
        contents += f"\n\nAvoid: {prompt_set.negative_prompt}"

    try:
        client = get_client()
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=settings.image_model,
            contents=contents,
            config=image_config(seed),
        )
        image = extract_image(response)
        if image is None:
            text = extract_text(response)
            logger.warning("gemini_no_image_response", gemini_text=text[:300])
            raise ApplicationError(
                f"Gemini returned text-only response: {text[:200]}",
                non_retryable=False,
            )

        buf = io.BytesIO()
        image.save(buf, format="PNG")
        url = await asyncio.to_thread(_store_png, buf.getvalue(), key_prefix)
    except ApplicationError:
        raise
    except Exception as e:
        raise _to_application_error(e) from e

    logger.info("logo_candidate_generated", seed=seed, key_prefix=key_prefix)
    return url, seed


# ---------------------------------------------------------------------------
# Style pipeline
# ---------------------------------------------------------------------------


async def _check_text(
    evaluation: EvaluationResult,
    image_url: str,
    style: LogoStyle,
    expected_text: str | None,
    attempt: int,
) -> EvaluationResult:
    """Demote a passing evaluation to a failure when the rendered text is wrong."""
    if not (evaluation.passed and expected_text and settings.logo_text_review):
        return evaluation

    review = await review_logo_text(image_url, style, expected_text)
    if review.text_correct:
        return evaluation

    logger.info(
        "logo_text_incorrect",
        style=style,
        attempt=attempt,
        detected=review.detected_text[:60],
        expected=expected_text,
    )
    return evaluation.model_copy(
        update={
            "passed": False,
            "flags": [*evaluation.flags, "wrong_text"],
            "refinement_instructions": (
                f'The logo text must read exactly "{expected_text}". '
                f"{' '.join(review.issues)}"
            ).strip(),
        }
    )


def _concept(
    style: LogoStyle, attempt: GenerationAttempt, attempt_count: int, passed: bool
) -> GeneratedConcept:
    return GeneratedConcept(
        style=style,
        image_url=attempt.image_url,
        prompt=attempt.prompt_set.prompt,
        negative_prompt=attempt.prompt_set.negative_prompt,
        seed=attempt.seed,
        score=attempt.score,
        evaluation_flags=attempt.flags,
        attempt_count=attempt_count,
        passed_evaluation=passed,
    )


async def generate_style_with_evaluation(
    style: LogoStyle,
    signals: BrandSignals,
    palette: GeneratedPalette,
    brief: DesignBrief | None = None,
    prompt_builder: PromptBuilder = build_prompt_set,
) -> GeneratedConcept:
    """Run one style through at most MAX_ATTEMPTS generate/evaluate rounds.

    Returns on the first passing attempt. Otherwise returns the highest
    scoring attempt (earliest wins ties) with ``passed_evaluation=False``.
    Errors from synthesis or evaluation propagate untouched.
    """
    brand_name = brand_display_name(signals, brief)
    expected_text = expected_logo_text(style, signals, brief)
    key_prefix = f"logos/{_slug(brand_name)}/{style}"

    prompt_set = prompt_builder(style, signals, palette, brief)
    best: GenerationAttempt | None = None

    for attempt in range(1, MAX_ATTEMPTS + 1):
        image_url, seed = await generate_candidate(prompt_set, key_prefix)
        evaluation = await evaluate_concept(image_url, style, brand_name)
        evaluation = await _check_text(evaluation, image_url, style, expected_text, attempt)

        current = GenerationAttempt(
            image_url=image_url,
            seed=seed,
            score=evaluation.score,
            flags=evaluation.flags,
            prompt_set=prompt_set,
        )
        if best is None or current.score > best.score:
            best = current

        if evaluation.passed:
            logger.info("logo_style_accepted", style=style, attempt=attempt, score=evaluation.score)
            return _concept(style, current, attempt, passed=True)

        logger.info(
            "logo_attempt_failed",
            style=style,
            attempt=attempt,
            score=evaluation.score,
            flags=evaluation.flags,
        )
        if attempt < MAX_ATTEMPTS:
            prompt_set = await refine_prompt(
                prompt_set.prompt,
                prompt_set.negative_prompt,
                evaluation,
                style,
                signals,
                attempt + 1,
            )

    assert best is not None
    logger.warning(
        "logo_style_best_effort",
        style=style,
        attempts=MAX_ATTEMPTS,
        score=best.score,
    )
    return _concept(style, best, MAX_ATTEMPTS, passed=False)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one task: a value or the exception it raised."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_with_concurrency(
    tasks: Sequence[Callable[[], Awaitable[T]]], limit: int
) -> list[Outcome[T]]:
    """Run task factories on ``min(limit, len(tasks))`` workers.

    Workers pull task indices from a shared queue, so each task runs
    exactly once. Outcomes come back in input order; a failing task never
    cancels the others.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    outcomes: list[Outcome[T]] = [Outcome() for _ in tasks]
    queue: asyncio.Queue[int] = asyncio.Queue()
    for index in range(len(tasks)):
        queue.put_nowait(index)

    async def worker() -> None:
        while True:
            try:
                index = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                outcomes[index] = Outcome(value=await tasks[index]())
            except Exception as e:
                outcomes[index] = Outcome(error=e)

    await asyncio.gather(*(worker() for _ in range(min(limit, len(tasks)))))
    return outcomes


def _failure_reason(error: Exception) -> str:
    if isinstance(error, ApplicationError):
        return error.message
    return str(error) or type(error).__name__


async def generate_logo_concepts(
    signals: BrandSignals,
    palette: GeneratedPalette,
    styles: list[LogoStyle] | None = None,
    brief: DesignBrief | None = None,
    concurrency: int = CONCURRENCY_LIMIT,
) -> list[GeneratedConcept]:
    """Generate one concept per style; raise only if every style failed."""
    styles = list(LOGO_STYLES) if styles is None else styles
    if not styles:
        raise ApplicationError("No logo styles requested", non_retryable=True)

    def pipeline(style: LogoStyle) -> Callable[[], Awaitable[GeneratedConcept]]:
        return lambda: generate_style_with_evaluation(style, signals, palette, brief)

    outcomes = await run_with_concurrency([pipeline(s) for s in styles], concurrency)

    concepts: list[GeneratedConcept] = []
    errors: list[str] = []
    for style, outcome in zip(styles, outcomes, strict=True):
        if outcome.error is not None:
            reason = _failure_reason(outcome.error)
            logger.error("logo_pipeline_failed", style=style, reason=reason)
            errors.append(reason)
        elif outcome.value is not None:
            concepts.append(outcome.value)

    if not concepts:
        raise ApplicationError(
            f"All logo generation pipelines failed: {'; '.join(errors)}",
            non_retryable=False,
        )

    logger.info(
        "logo_concepts_generated",
        requested=len(styles),
        succeeded=len(concepts),
        failed=len(errors),
    )
    return concepts


@activity.defn
async def generate_logo_concepts_activity(
    input: GenerateLogoConceptsInput,
) -> GenerateLogoConceptsOutput:
    """Temporal entrypoint for logo concept generation."""
    logger.info(
        "generate_logo_concepts_start",
        domain=input.signals.domain_name,
        styles=input.styles,
        concurrency=settings.logo_concurrency,
    )
    concepts = await generate_logo_concepts(
        input.signals,
        input.palette,
        styles=input.styles,
        brief=input.brief,
        concurrency=settings.logo_concurrency,
    )
    return GenerateLogoConceptsOutput(concepts=concepts)
