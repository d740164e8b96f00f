"""select_best_concepts activity: one winner per logo style.

When a regeneration flow leaves several candidates for the same style, all
of them are shown to Claude in a single multi-image call and the highest
scored one is kept, carrying its tournament score. Styles with a single
candidate are passed through without a call.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass

import structlog
from temporalio import activity

from markcraft.config import settings
from markcraft.models.contracts import (
    ACCEPT_THRESHOLD,
    GeneratedConcept,
    SelectBestConceptsInput,
    SelectBestConceptsOutput,
)
from markcraft.utils.claude import ask_claude, image_block, load_image_base64, text_block
from markcraft.utils.llm_json import extract_json_array

logger = structlog.get_logger()

DEFAULT_TOURNAMENT_SCORE = 50


@dataclass
class TournamentScore:
    score: float
    reasoning: str = ""
    parsed: bool = True


def _tournament_prompt(count: int) -> str:
    return f"""\
You are a professional brand designer. Score each of these {count} logo concepts \
from 0-100 (images are given in order, index 0 first) based on:
- Professional quality and clean execution
- Logo usability (works at small sizes, clear edges, not photorealistic)
- Visual distinctiveness
- Design coherence

Penalize heavily: photorealistic elements, complex scenes, unclear edges, overly detailed imagery.
Reward: clean vector-style, geometric clarity, scalable forms.

Return a JSON array only: [{{"index": 0, "score": 85, "reasoning": "brief"}}, ...]"""


def parse_tournament_scores(text: str, count: int) -> list[TournamentScore]:
    """Map the judge's array onto candidate positions.

    Entries with an out-of-range or non-integer index are ignored; the
    first entry for an index wins. Unscored positions default to 50.
    """
    scores: dict[int, TournamentScore] = {}
    for entry in extract_json_array(text):
        if not isinstance(entry, dict):
            continue
        index = entry.get("index")
        raw_score = entry.get("score")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < count:
            continue
        if isinstance(raw_score, bool) or not isinstance(raw_score, int | float):
            continue
        if not math.isfinite(raw_score):
            continue
        if index not in scores:
            scores[index] = TournamentScore(float(raw_score), str(entry.get("reasoning") or ""))

    return [
        scores.get(i, TournamentScore(DEFAULT_TOURNAMENT_SCORE, parsed=False)) for i in range(count)
    ]


def pick_winner(scores: list[TournamentScore]) -> int:
    """Highest score; ties prefer a parsed score, then the earlier candidate."""
    return max(range(len(scores)), key=lambda i: (scores[i].score, scores[i].parsed, -i))


def _with_tournament_score(concept: GeneratedConcept, score: TournamentScore) -> GeneratedConcept:
    """The winner as scored by the tournament.

    A pass survives only while the new score still meets the threshold.
    """
    new_score = max(0, min(100, round(score.score)))
    data = concept.model_dump()
    data["score"] = new_score
    data["passed_evaluation"] = concept.passed_evaluation and new_score >= ACCEPT_THRESHOLD
    return GeneratedConcept.model_validate(data)


async def _score_group(group: list[GeneratedConcept]) -> list[TournamentScore]:
    images = await asyncio.gather(*(load_image_base64(c.image_url) for c in group))
    content = [text_block(_tournament_prompt(len(group)))]
    content.extend(image_block(b64, media_type) for b64, media_type in images)

    text = await ask_claude(content, model=settings.vision_model, max_tokens=500)
    scores = parse_tournament_scores(text, len(group))
    if not any(s.parsed for s in scores):
        logger.warning("tournament_unparsable", style=group[0].style, response=text[:200])
    return scores


async def select_best_concepts(candidates: list[GeneratedConcept]) -> list[GeneratedConcept]:
    """Return one concept per style, in order of each style's first appearance."""
    groups: dict[str, list[GeneratedConcept]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.style, []).append(candidate)

    selected: list[GeneratedConcept] = []
    for style, group in groups.items():
        if len(group) == 1:
            selected.append(group[0])
            continue

        scores = await _score_group(group)
        winner = pick_winner(scores)
        logger.info(
            "tournament_scored",
            style=style,
            candidates=len(group),
            scores=[s.score for s in scores],
            winner=winner,
            reasoning=scores[winner].reasoning[:200],
        )
        selected.append(_with_tournament_score(group[winner], scores[winner]))

    return selected


@activity.defn
async def select_best_concepts_activity(
    input: SelectBestConceptsInput,
) -> SelectBestConceptsOutput:
    """Temporal entrypoint for the per-style tournament."""
    logger.info("select_best_concepts_start", candidates=len(input.candidates))
    concepts = await select_best_concepts(input.candidates)
    return SelectBestConceptsOutput(concepts=concepts)
