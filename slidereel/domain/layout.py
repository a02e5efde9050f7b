"""
Text layout constraints shared by the generator's validation step and the editor.

Font sizes come in discrete tiers. Each tier has a character budget per line,
a stroke width and an approximate glyph width used to estimate the rendered
bounding box of centre-anchored text.
"""

from dataclasses import dataclass
from typing import Tuple

FONT_SIZES: Tuple[int, ...] = (12, 16, 20, 24, 32, 40, 48, 56, 64)
MAX_CHARS_PER_LINE: Tuple[int, ...] = (40, 32, 26, 20, 18, 16, 14, 10, 6)
STROKE_WIDTHS: Tuple[float, ...] = (0.25, 0.5, 0.5, 0.75, 0.85, 1, 1, 1.25, 1.5)
CHAR_WIDTH_MULTIPLIERS: Tuple[float, ...] = (
    0.3,
    0.35,
    0.4,
    0.45,
    0.5,
    0.52,
    0.54,
    0.56,
    0.58,
)

DEFAULT_FONT_SIZE = 24
DEFAULT_CHAR_WIDTH_MULTIPLIER = 0.45
SAFE_MARGIN = 40


@dataclass(frozen=True)
class FontTier:
    size: int
    max_chars_per_line: int
    stroke_width: float
    char_width_multiplier: float


FONT_TIERS: Tuple[FontTier, ...] = tuple(
    FontTier(size, chars, stroke, mult)
    for size, chars, stroke, mult in zip(
        FONT_SIZES, MAX_CHARS_PER_LINE, STROKE_WIDTHS, CHAR_WIDTH_MULTIPLIERS
    )
)


@dataclass(frozen=True)
class TextBounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass(frozen=True)
class PositionCheck:
    x: float
    y: float
    adjusted: bool


def is_valid_font_size(font_size: object) -> bool:
    return font_size in FONT_SIZES


def get_tier(font_size: int) -> FontTier:
    """Tier for an exact size; unknown sizes fall back to the smallest tier."""
    for tier in FONT_TIERS:
        if tier.size == font_size:
            return tier
    return FONT_TIERS[0]


def snap_font_size(requested: object) -> int:
    """Map an arbitrary requested size to the nearest tier (ties go down)."""
    try:
        value = float(requested)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_FONT_SIZE
    if value != value:  # NaN
        return DEFAULT_FONT_SIZE
    return min(FONT_SIZES, key=lambda size: (abs(size - value), size))


def get_max_chars_for_font_size(font_size: int) -> int:
    return get_tier(font_size).max_chars_per_line


def get_stroke_width_for_font_size(font_size: int) -> float:
    return get_tier(font_size).stroke_width


def get_char_width_multiplier(font_size: int) -> float:
    if is_valid_font_size(font_size):
        return get_tier(font_size).char_width_multiplier
    return DEFAULT_CHAR_WIDTH_MULTIPLIER


def line_budget_overruns(text: str, font_size: int) -> int:
    """Number of lines longer than the tier's character budget."""
    budget = get_max_chars_for_font_size(font_size)
    return sum(1 for line in text.split("\n") if len(line) > budget)


def estimate_text_width(text: str, font_size: int, max_width: float) -> float:
    """Approximate pixel width of the longest line, capped at ``max_width``."""
    longest = max((len(line) for line in text.split("\n")), default=0)
    estimated = longest * font_size * get_char_width_multiplier(font_size)
    return min(float(estimated), max(0.0, float(max_width)))


def estimate_text_height(text: str, font_size: int, max_height: float) -> float:
    line_count = len(text.split("\n"))
    return min(float(line_count * font_size), max(0.0, float(max_height)))


def safe_text_bounds(
    text: str,
    font_size: int,
    canvas_width: float,
    canvas_height: float,
    margin: float = SAFE_MARGIN,
) -> TextBounds:
    """
    Valid centre positions for text so its box stays inside the safe margins.

    The estimated box is capped at the usable area, which keeps ``min <= max``
    on any canvas wider and taller than twice the margin. Smaller canvases
    collapse to the centre.
    """
    usable_w = canvas_width - 2 * margin
    usable_h = canvas_height - 2 * margin
    half_w = estimate_text_width(text, font_size, usable_w) / 2
    half_h = estimate_text_height(text, font_size, usable_h) / 2

    min_x, max_x = margin + half_w, canvas_width - margin - half_w
    min_y, max_y = margin + half_h, canvas_height - margin - half_h
    if min_x > max_x:
        min_x = max_x = canvas_width / 2
    if min_y > max_y:
        min_y = max_y = canvas_height / 2
    return TextBounds(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


def validate_text_position(
    text: str,
    font_size: int,
    position_x: float,
    position_y: float,
    canvas_width: float,
    canvas_height: float,
    margin: float = SAFE_MARGIN,
) -> PositionCheck:
    """Clamp a centre position into the safe bounds; report whether it moved."""
    bounds = safe_text_bounds(text, font_size, canvas_width, canvas_height, margin)
    x = max(bounds.min_x, min(bounds.max_x, position_x))
    y = max(bounds.min_y, min(bounds.max_y, position_y))
    return PositionCheck(x=x, y=y, adjusted=(x != position_x or y != position_y))


def canvas_size_for_aspect_ratio(
    aspect_ratio: object, canvas_width: int
) -> Tuple[int, int]:
    """Canvas (width, height) for a ``"W:H"`` ratio; malformed input means 9:16."""
    aw, ah = 9, 16
    if isinstance(aspect_ratio, str):
        parts = aspect_ratio.strip().split(":")
        if len(parts) == 2 and all(p.isdigit() and int(p) > 0 for p in parts):
            aw, ah = int(parts[0]), int(parts[1])
    return canvas_width, round(canvas_width * ah / aw)
