"""Tests for color math used by the critic: hue, luminance, contrast, CMYK."""

import pytest

from markcraft.utils.color import (
    CONTRAST_MAX_STEPS,
    adjust_for_contrast,
    contrast_ratio,
    hex_to_cmyk,
    hex_to_hue,
    hue_distance,
    is_valid_hex,
    make_color_spec,
    parse_cmyk,
    relative_luminance,
    round_half_up,
)


class TestHexValidation:
    @pytest.mark.parametrize("value", ["#1f6f5c", "#FFFFFF", "#000000", "#aBcDeF"])
    def test_accepts_six_digit_hex(self, value):
        assert is_valid_hex(value)

    @pytest.mark.parametrize("value", ["#fff", "1f6f5c", "#12345", "#1234567", "#gggggg", ""])
    def test_rejects_everything_else(self, value):
        assert not is_valid_hex(value)


class TestHue:
    def test_primary_hues(self):
        assert hex_to_hue("#ff0000") == 0
        assert hex_to_hue("#00ff00") == 120
        assert hex_to_hue("#0000ff") == 240

    def test_near_360_wraps_to_zero(self):
        assert hex_to_hue("#ff0001") == 0
        assert hex_to_hue("#ff0004") == 359

    def test_gray_is_zero(self):
        assert hex_to_hue("#808080") == 0

    def test_invalid_hex_is_none(self):
        assert hex_to_hue("not-a-color") is None

    def test_hue_distance_wraps(self):
        assert hue_distance(350, 10) == 20
        assert hue_distance(10, 350) == 20
        assert hue_distance(0, 180) == 180


class TestContrast:
    def test_black_on_white_is_21(self):
        assert contrast_ratio("#000000", "#ffffff") == pytest.approx(21.0)

    def test_ratio_is_symmetric(self):
        assert contrast_ratio("#1f6f5c", "#f7f5f0") == pytest.approx(
            contrast_ratio("#f7f5f0", "#1f6f5c")
        )

    def test_invalid_hex_reads_as_mid_gray(self):
        assert relative_luminance("#zzzzzz") == 0.5


class TestAdjustForContrast:
    def test_darkens_on_light_background(self):
        """A 3:1 gray on white is darkened until it reaches 4.5:1."""
        before = "#959595"
        assert contrast_ratio(before, "#ffffff") < 4.5

        after = adjust_for_contrast(before, "#ffffff")

        assert after != before
        assert contrast_ratio(after, "#ffffff") >= 4.5
        assert relative_luminance(after) < relative_luminance(before)

    def test_lightens_on_dark_background(self):
        after = adjust_for_contrast("#444444", "#111111")

        assert contrast_ratio(after, "#111111") >= 4.5
        assert relative_luminance(after) > relative_luminance("#444444")

    def test_already_passing_color_is_returned_as_is(self):
        assert adjust_for_contrast("#000000", "#ffffff") == "#000000"

    def test_gives_up_and_keeps_original(self):
        """Even pure white cannot reach 4.5:1 against #777777."""
        assert contrast_ratio("#ffffff", "#777777") < 4.5

        assert adjust_for_contrast("#808080", "#777777") == "#808080"

    def test_step_budget_bounds_the_search(self):
        """CONTRAST_MAX_STEPS steps of 8 stop well short of black from a near-white start."""
        assert CONTRAST_MAX_STEPS == 30
        assert adjust_for_contrast("#fefefe", "#ffffff", target_ratio=21) == "#fefefe"


class TestCmyk:
    def test_parse(self):
        assert parse_cmyk("C:70 M:0 Y:50 K:0") == (70, 0, 50, 0)

    def test_parse_rejects_garbage(self):
        assert parse_cmyk("cyan-ish") is None

    def test_black(self):
        assert hex_to_cmyk("#000000") == "C:0 M:0 Y:0 K:100"

    def test_round_trip_through_parse(self):
        assert parse_cmyk(hex_to_cmyk("#ff0000")) == (0, 100, 100, 0)


class TestMakeColorSpec:
    def test_fields(self):
        spec = make_color_spec("#ff0000")

        assert spec.hex == "#ff0000"
        assert spec.rgb == "rgb(255, 0, 0)"
        assert spec.hsl == "hsl(0, 100%, 50%)"
        assert spec.cmyk == "C:0 M:100 Y:100 K:0"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(8.5) == 9
    assert round_half_up(7.45) == 7
