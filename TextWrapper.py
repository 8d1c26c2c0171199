from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from PIL import ImageDraw, ImageFont

Measure = Callable[[str], float]


@dataclass(frozen=True)
class GlyphPlacement:
    char: str
    x: float  # glyph center
    y: float  # line middle


def _words_width(words: List[str], measure: Measure, letter_spacing: float) -> float:
    return float(measure(" ".join(words))) + (len(words) - 1) * float(letter_spacing)


def wrap_words(text: str, measure: Measure, max_width: float, letter_spacing: float = 0.0) -> List[str]:
    """
    Greedy word wrap.

    A word joins the current line while measure(line) + (words-1)*spacing stays
    within max_width. The first word of a line is always accepted, so a single
    over-wide word gets a line of its own.
    """
    words = (text or "").split()
    if not words:
        return []

    lines: List[str] = []
    current: List[str] = []
    for word in words:
        candidate = current + [word]
        if current and _words_width(candidate, measure, letter_spacing) > max_width:
            lines.append(" ".join(current))
            current = [word]
        else:
            current = candidate
    lines.append(" ".join(current))
    return lines


def spaced_line_width(line: str, measure: Measure, letter_spacing: float = 0.0) -> float:
    """Width of a line drawn glyph by glyph with explicit letter spacing."""
    if not line:
        return 0.0
    total = sum(float(measure(ch)) for ch in line)
    return total + (len(line) - 1) * float(letter_spacing)


def layout_lines(
    lines: List[str],
    measure: Measure,
    *,
    anchor_x: float,
    anchor_y: float,
    line_height: float,
    letter_spacing: float = 0.0,
) -> List[GlyphPlacement]:
    """Centers the block vertically on anchor_y and each line horizontally on anchor_x."""
    total_height = len(lines) * float(line_height)
    y = float(anchor_y) - total_height / 2.0 + float(line_height) / 2.0

    out: List[GlyphPlacement] = []
    for line in lines:
        if line:
            cursor = float(anchor_x) - spaced_line_width(line, measure, letter_spacing) / 2.0
            for ch in line:
                w = float(measure(ch))
                out.append(GlyphPlacement(ch, cursor + w / 2.0, y))
                cursor += w + float(letter_spacing)
        y += float(line_height)
    return out


def draw_wrapped_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    *,
    font: ImageFont.FreeTypeFont,
    center: tuple[float, float],
    max_width: float,
    line_height: float,
    letter_spacing: float = 0.0,
    fill=(0, 0, 0, 255),
) -> List[str]:
    """Wraps, lays out and draws `text`; returns the committed lines."""
    measure = font.getlength
    lines = wrap_words(text, measure, max_width, letter_spacing)
    glyphs = layout_lines(
        lines,
        measure,
        anchor_x=center[0],
        anchor_y=center[1],
        line_height=line_height,
        letter_spacing=letter_spacing,
    )
    for g in glyphs:
        draw.text((g.x, g.y), g.char, font=font, fill=fill, anchor="mm")
    return lines
