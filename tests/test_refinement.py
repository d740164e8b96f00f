"""Tests for prompt refinement after a failed evaluation."""

from unittest.mock import AsyncMock, patch

import pytest
from temporalio.exceptions import ApplicationError

from markcraft.activities.refinement import FLAG_FIXES, apply_flag_fixes, refine_prompt
from markcraft.models.contracts import (
    BrandSignals,
    ColorDirection,
    EvaluationFlag,
    EvaluationResult,
)

MODULE = "markcraft.activities.refinement"


def _signals() -> BrandSignals:
    return BrandSignals(
        domain_name="brightpath", tone="calm", color_direction=ColorDirection(primary="teal")
    )


def _failed(*flags: EvaluationFlag) -> EvaluationResult:
    return EvaluationResult.from_score(45, flags=list(flags), refinement_instructions="simplify")


class TestFlagFixes:
    def test_every_flag_has_a_fix(self):
        from typing import get_args

        assert set(FLAG_FIXES) == set(get_args(EvaluationFlag))

    def test_fixes_are_prepended_in_flag_order(self):
        refined = apply_flag_fixes("base prompt", "base negative", ["photorealistic", "cluttered"])

        assert refined.prompt.startswith(FLAG_FIXES["photorealistic"].add_to_prompt)
        assert refined.prompt.endswith("base prompt")
        assert refined.prompt.index("flat vector") < refined.prompt.index("single focal point")
        assert refined.negative_prompt.startswith("photo, realistic")
        assert refined.negative_prompt.endswith("base negative")

    def test_no_flags_leaves_prompt_unchanged(self):
        refined = apply_flag_fixes("base prompt", "base negative", [])

        assert refined.prompt == "base prompt"
        assert refined.negative_prompt == "base negative"

    def test_wrong_style_adds_nothing(self):
        refined = apply_flag_fixes("base prompt", "", ["wrong_style"])

        assert refined.prompt == "base prompt"


class TestRefinePrompt:
    @pytest.mark.asyncio
    async def test_attempt_two_is_deterministic(self):
        ask = AsyncMock()

        with patch(f"{MODULE}.ask_claude", ask):
            refined = await refine_prompt(
                "base", "neg", _failed("too_complex"), "wordmark", _signals(), 2
            )

        ask.assert_not_awaited()
        assert refined.prompt.startswith("extremely simple")

    @pytest.mark.asyncio
    async def test_attempt_three_uses_llm_rewrite(self):
        ask = AsyncMock(
            return_value='{"prompt": "A bold flat wordmark", "negativePrompt": "no gradients"}'
        )

        with patch(f"{MODULE}.ask_claude", ask):
            refined = await refine_prompt(
                "base", "neg", _failed("gradient_heavy"), "wordmark", _signals(), 3
            )

        assert refined.prompt == "A bold flat wordmark"
        assert refined.negative_prompt == "no gradients"
        request = ask.await_args.args[0]
        assert "This is attempt 3" in request
        assert "gradient_heavy" in request

    @pytest.mark.asyncio
    async def test_rewrite_failure_falls_back_to_flag_fixes(self):
        with patch(f"{MODULE}.ask_claude", AsyncMock(side_effect=ApplicationError("boom"))):
            refined = await refine_prompt(
                "base", "neg", _failed("low_contrast"), "wordmark", _signals(), 3
            )

        assert refined.prompt.startswith("high contrast")
        assert refined.prompt.endswith("base")

    @pytest.mark.asyncio
    async def test_unparsable_rewrite_falls_back(self):
        with patch(f"{MODULE}.ask_claude", AsyncMock(return_value="Sure! Try a simpler logo.")):
            refined = await refine_prompt(
                "base", "neg", _failed("cluttered"), "wordmark", _signals(), 4
            )

        assert refined.prompt.startswith("minimal, single focal point")
