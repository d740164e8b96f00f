"""Tests for the per-style tournament selector."""

from unittest.mock import AsyncMock, patch

import pytest

from markcraft.activities.select import (
    DEFAULT_TOURNAMENT_SCORE,
    TournamentScore,
    parse_tournament_scores,
    pick_winner,
    select_best_concepts,
    select_best_concepts_activity,
)
from markcraft.models.contracts import GeneratedConcept, SelectBestConceptsInput

MODULE = "markcraft.activities.select"


def _concept(style: str, tag: str) -> GeneratedConcept:
    return GeneratedConcept(
        style=style,
        image_url=f"https://r2.example.com/{style}/{tag}.png",
        prompt=f"{style} {tag}",
        negative_prompt="",
        seed=1,
        score=75,
        attempt_count=1,
        passed_evaluation=True,
    )


@pytest.fixture()
def mock_images():
    with patch(
        f"{MODULE}.load_image_base64", new=AsyncMock(return_value=("aW1n", "image/png"))
    ) as loader:
        yield loader


class TestParseTournamentScores:
    def test_reads_array(self):
        text = '[{"index": 0, "score": 70, "reasoning": "ok"}, {"index": 1, "score": 90}]'

        scores = parse_tournament_scores(text, 2)

        assert [s.score for s in scores] == [70, 90]
        assert scores[0].reasoning == "ok"
        assert all(s.parsed for s in scores)

    def test_missing_index_defaults_to_50(self):
        scores = parse_tournament_scores('[{"index": 1, "score": 60}]', 2)

        assert scores[0].score == DEFAULT_TOURNAMENT_SCORE == 50
        assert scores[0].parsed is False
        assert scores[1].score == 60

    def test_unparsable_defaults_everything(self):
        scores = parse_tournament_scores("I like the second one best.", 3)

        assert [s.score for s in scores] == [50, 50, 50]
        assert not any(s.parsed for s in scores)

    def test_ignores_out_of_range_and_malformed_entries(self):
        text = (
            '[{"index": 5, "score": 99}, {"index": "0", "score": 99}, '
            '{"index": 0, "score": "high"}]'
        )

        scores = parse_tournament_scores(text, 2)

        assert [s.parsed for s in scores] == [False, False]

    def test_non_finite_score_is_ignored(self):
        scores = parse_tournament_scores('[{"index": 0, "score": NaN}]', 1)

        assert scores[0].score == 50
        assert scores[0].parsed is False

    def test_code_fenced_array(self):
        text = '```json\n[{"index": 0, "score": 81, "reasoning": "clean"}]\n```'

        assert parse_tournament_scores(text, 1)[0].score == 81


class TestPickWinner:
    def test_highest_score(self):
        assert pick_winner([TournamentScore(60), TournamentScore(80)]) == 1

    def test_parsed_score_beats_default_on_tie(self):
        scores = [TournamentScore(50, parsed=False), TournamentScore(50)]
        assert pick_winner(scores) == 1

    def test_earlier_wins_exact_tie(self):
        assert pick_winner([TournamentScore(70), TournamentScore(70)]) == 0


class TestSelectBestConcepts:
    @pytest.mark.asyncio
    async def test_singletons_skip_the_vision_call(self, mock_images):
        ask = AsyncMock()
        candidates = [_concept("wordmark", "a"), _concept("monogram", "a")]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        assert selected == candidates
        ask.assert_not_awaited()
        mock_images.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_call_per_group_with_all_images(self, mock_images):
        ask = AsyncMock(return_value='[{"index": 0, "score": 40}, {"index": 1, "score": 88}]')
        candidates = [_concept("wordmark", "a"), _concept("wordmark", "b")]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        assert [c.image_url for c in selected] == [candidates[1].image_url]
        assert selected[0].score == 50
        ask.assert_awaited_once()
        content = ask.await_args.args[0]
        assert [block["type"] for block in content] == ["text", "image", "image"]
        prompt = content[0]["text"]
        assert "Penalize heavily: photorealistic elements" in prompt
        assert "Reward: clean vector-style" in prompt

    @pytest.mark.asyncio
    async def test_missing_index_loses_to_parsed_score_of_fifty(self, mock_images):
        """A group of 2 where index 0 is omitted: the scored 50 wins the tie."""
        ask = AsyncMock(return_value='[{"index": 1, "score": 50, "reasoning": "fine"}]')
        candidates = [_concept("emblem", "a"), _concept("emblem", "b")]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        assert [c.image_url for c in selected] == [candidates[1].image_url]
        assert selected[0].score == 50
        assert selected[0].passed_evaluation is False

    @pytest.mark.asyncio
    async def test_groups_keep_first_appearance_order(self, mock_images):
        ask = AsyncMock(return_value='[{"index": 0, "score": 90}, {"index": 1, "score": 10}]')
        candidates = [
            _concept("pictorial", "a"),
            _concept("wordmark", "only"),
            _concept("pictorial", "b"),
        ]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        assert [c.style for c in selected] == ["pictorial", "wordmark"]
        assert selected[0].image_url == candidates[0].image_url
        assert selected[1] is candidates[1]

    @pytest.mark.asyncio
    async def test_winner_carries_tournament_score(self, mock_images):
        ask = AsyncMock(return_value='[{"index": 0, "score": 12}, {"index": 1, "score": 99}]')
        candidates = [_concept("mascot", "a"), _concept("mascot", "b")]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        assert selected[0].image_url == candidates[1].image_url
        assert selected[0].score == 99
        assert selected[0].passed_evaluation is True

    @pytest.mark.asyncio
    async def test_tournament_score_below_threshold_clears_pass(self, mock_images):
        ask = AsyncMock(return_value='[{"index": 0, "score": 40}, {"index": 1, "score": 64.6}]')
        candidates = [_concept("dynamic", "a"), _concept("dynamic", "b")]

        with patch(f"{MODULE}.ask_claude", ask):
            selected = await select_best_concepts(candidates)

        winner = selected[0]
        assert winner.image_url == candidates[1].image_url
        assert winner.score == 65
        assert winner.passed_evaluation is False
        assert winner.attempt_count == candidates[1].attempt_count

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await select_best_concepts([]) == []

    @pytest.mark.asyncio
    async def test_activity_wraps_selector(self, mock_images):
        candidates = [_concept("wordmark", "a")]

        output = await select_best_concepts_activity(SelectBestConceptsInput(candidates=candidates))

        assert output.concepts == candidates
