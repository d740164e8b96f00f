"""Color math for the critic: hex parsing, hue, WCAG contrast, CMYK.

All helpers take ``#rrggbb`` strings. Hue and rounding follow the
half-up convention so scores and messages are stable across platforms.
"""

from __future__ import annotations

import math
import re

from markcraft.models.contracts import ColorSpec

WCAG_AA_RATIO = 4.5
CONTRAST_STEP = 8
CONTRAST_MAX_STEPS = 30

_HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_CMYK_RE = re.compile(r"C:(\d+)\s*M:(\d+)\s*Y:(\d+)\s*K:(\d+)")


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def is_valid_hex(value: str) -> bool:
    """Strict 6-digit ``#rrggbb`` check."""
    return bool(_HEX_RE.match(value or ""))


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    return int(hex_color[1:3], 16), int(hex_color[3:5], 16), int(hex_color[5:7], 16)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_hue(hex_color: str) -> int | None:
    """Hue in whole degrees [0, 360), or None for invalid hex. Grays are 0."""
    if not is_valid_hex(hex_color):
        return None
    r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    hi = max(r, g, b)
    lo = min(r, g, b)
    if hi == lo:
        return 0
    d = hi - lo
    if hi == r:
        h = ((g - b) / d + (6 if g < b else 0)) / 6
    elif hi == g:
        h = ((b - r) / d + 2) / 6
    else:
        h = ((r - g) / d + 4) / 6
    return round_half_up(h * 360) % 360


def hue_distance(a: int, b: int) -> int:
    """Shortest angular distance between two hues (0-180)."""
    diff = abs(a - b)
    return 360 - diff if diff > 180 else diff


def relative_luminance(hex_color: str) -> float:
    """WCAG 2.x relative luminance. Invalid hex reads as mid-gray (0.5)."""
    if not is_valid_hex(hex_color):
        return 0.5

    def to_linear(c: float) -> float:
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    return 0.2126 * to_linear(r) + 0.7152 * to_linear(g) + 0.0722 * to_linear(b)


def contrast_ratio(foreground: str, background: str) -> float:
    l1 = relative_luminance(foreground)
    l2 = relative_luminance(background)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def adjust_for_contrast(
    foreground: str,
    background: str,
    target_ratio: float = WCAG_AA_RATIO,
) -> str:
    """Step the foreground away from the background until it reaches target_ratio.

    Moves every RGB channel by CONTRAST_STEP per step, lighter on dark
    backgrounds and darker on light ones, for at most CONTRAST_MAX_STEPS
    steps. Returns the original color unchanged if the target is never met.
    """
    if not is_valid_hex(foreground) or not is_valid_hex(background):
        return foreground

    bg_is_dark = relative_luminance(background) < 0.5
    delta = CONTRAST_STEP if bg_is_dark else -CONTRAST_STEP
    r, g, b = hex_to_rgb(foreground)

    for _ in range(CONTRAST_MAX_STEPS):
        candidate = rgb_to_hex(r, g, b)
        if contrast_ratio(candidate, background) >= target_ratio:
            return candidate
        r = max(0, min(255, r + delta))
        g = max(0, min(255, g + delta))
        b = max(0, min(255, b + delta))

    return foreground


def parse_cmyk(cmyk: str) -> tuple[int, int, int, int] | None:
    """Parse ``"C:70 M:0 Y:50 K:0"``; None if the string doesn't match."""
    match = _CMYK_RE.search(cmyk or "")
    if not match:
        return None
    c, m, y, k = (int(v) for v in match.groups())
    return c, m, y, k


def hex_to_cmyk(hex_color: str) -> str:
    r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    k = 1 - max(r, g, b)
    if k == 1:
        return "C:0 M:0 Y:0 K:100"
    c = round_half_up((1 - r - k) / (1 - k) * 100)
    m = round_half_up((1 - g - k) / (1 - k) * 100)
    y = round_half_up((1 - b - k) / (1 - k) * 100)
    return f"C:{c} M:{m} Y:{y} K:{round_half_up(k * 100)}"


def hex_to_hsl_string(hex_color: str) -> str:
    r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    hi = max(r, g, b)
    lo = min(r, g, b)
    lightness = (hi + lo) / 2
    if hi == lo:
        return f"hsl(0, 0%, {round_half_up(lightness * 100)}%)"
    d = hi - lo
    saturation = d / (2 - hi - lo) if lightness > 0.5 else d / (hi + lo)
    hue = hex_to_hue(hex_color) or 0
    return f"hsl({hue}, {round_half_up(saturation * 100)}%, {round_half_up(lightness * 100)}%)"


def make_color_spec(hex_color: str) -> ColorSpec:
    """Full ColorSpec (rgb/hsl/cmyk strings) for a valid hex color."""
    r, g, b = hex_to_rgb(hex_color)
    return ColorSpec(
        hex=hex_color,
        rgb=f"rgb({r}, {g}, {b})",
        hsl=hex_to_hsl_string(hex_color),
        cmyk=hex_to_cmyk(hex_color),
    )
