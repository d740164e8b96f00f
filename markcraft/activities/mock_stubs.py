"""Mock activity stubs for running workflows without Gemini, Claude, or R2.

Registered under the same activity names as the real implementations, so a
caller's workflow code is identical in both modes. The critic needs no
stub: it is local computation.
"""

from temporalio import activity
from temporalio.exceptions import ApplicationError

from markcraft.models.contracts import (
    LOGO_STYLES,
    GeneratedConcept,
    GenerateLogoConceptsInput,
    GenerateLogoConceptsOutput,
    SelectBestConceptsInput,
    SelectBestConceptsOutput,
)

MOCK_SCORE = 80


@activity.defn(name="generate_logo_concepts_activity")
async def generate_logo_concepts_activity(
    input: GenerateLogoConceptsInput,
) -> GenerateLogoConceptsOutput:
    styles = list(LOGO_STYLES) if input.styles is None else input.styles
    if not styles:
        raise ApplicationError("No logo styles requested", non_retryable=True)
    return GenerateLogoConceptsOutput(
        concepts=[
            GeneratedConcept(
                style=style,
                image_url=f"https://r2.example.com/mock/{input.signals.domain_name}/{style}.png",
                prompt=f"Mock {style} logo for {input.signals.domain_name}",
                negative_prompt="",
                seed=index,
                score=MOCK_SCORE,
                attempt_count=1,
                passed_evaluation=True,
            )
            for index, style in enumerate(styles)
        ]
    )


@activity.defn(name="select_best_concepts_activity")
async def select_best_concepts_activity(
    input: SelectBestConceptsInput,
) -> SelectBestConceptsOutput:
    """First candidate per style wins."""
    seen: dict[str, GeneratedConcept] = {}
    for concept in input.candidates:
        seen.setdefault(concept.style, concept)
    return SelectBestConceptsOutput(concepts=list(seen.values()))
