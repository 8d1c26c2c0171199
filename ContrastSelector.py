from __future__ import annotations

from typing import Sequence, Tuple

from PaletteColors import parse_color
from PatternErrors import InvalidPaletteError

BLACK = "#000000"
WHITE = "#ffffff"

MIN_TEXT_CONTRAST = 4.5

# Opaque tone of the translucent panel, used as text background for contrast
TRANSPARENT_PANEL_TONE = "#e5dfd6"


def _srgb_channel_to_linear(v: float) -> float:
    """sRGB [0,1] -> linear [0,1] (WCAG uses 0.03928 as the knee)."""
    if v <= 0.03928:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(color) -> float:
    r, g, b, _ = parse_color(color)
    lr = _srgb_channel_to_linear(r / 255.0)
    lg = _srgb_channel_to_linear(g / 255.0)
    lb = _srgb_channel_to_linear(b / 255.0)
    return 0.2126 * lr + 0.7152 * lg + 0.0722 * lb


def contrast_ratio(lum1: float, lum2: float) -> float:
    lighter = max(lum1, lum2)
    darker = min(lum1, lum2)
    return (lighter + 0.05) / (darker + 0.05)


def color_contrast(a, b) -> float:
    return contrast_ratio(relative_luminance(a), relative_luminance(b))


def pick_text_color(background, palette: Sequence = ()):
    """
    Best readable foreground for `background`.

    Candidates are black, white and the palette. The highest-contrast candidate
    among those reaching 4.5 wins; if none does, whichever of black/white has
    the higher ratio is returned.
    """
    bg_lum = relative_luminance(background)

    best = None
    best_contrast = 0.0
    for color in (BLACK, WHITE, *palette):
        try:
            lum = relative_luminance(color)
        except InvalidPaletteError:
            continue
        c = contrast_ratio(lum, bg_lum)
        if c >= MIN_TEXT_CONTRAST and c > best_contrast:
            best = color
            best_contrast = c

    if best is not None:
        return best

    black_c = contrast_ratio(0.0, bg_lum)
    white_c = contrast_ratio(1.0, bg_lum)
    return BLACK if black_c >= white_c else WHITE


def best_color_combo(palette: Sequence, background) -> Tuple[str, str]:
    """
    (overlay, text) pair for a palette over `background`.

    The overlay is the non-background palette color that stands out most from
    the background; the text is the palette color with the best contrast
    (>= 4.5) against that overlay, else black/white by overlay luminance.
    """
    try:
        bg_lum = relative_luminance(background)
    except InvalidPaletteError:
        return WHITE, BLACK

    bg_key = str(background).lower()
    candidates = [c for c in palette if str(c).lower() != bg_key]
    if not candidates:
        candidates = [palette[0]] if len(palette) > 0 else ["#cccccc"]

    overlay = None
    overlay_lum = 0.0
    overlay_contrast = -1.0
    for c in candidates:
        try:
            lum = relative_luminance(c)
        except InvalidPaletteError:
            continue
        ratio = contrast_ratio(lum, bg_lum)
        if ratio > overlay_contrast:
            overlay, overlay_lum, overlay_contrast = c, lum, ratio

    if overlay is None:
        overlay = WHITE
        overlay_lum = 1.0

    text = None
    text_contrast = -1.0
    for c in palette:
        try:
            ratio = contrast_ratio(relative_luminance(c), overlay_lum)
        except InvalidPaletteError:
            continue
        if ratio >= MIN_TEXT_CONTRAST and ratio > text_contrast:
            text, text_contrast = c, ratio

    if text is None:
        text = BLACK if overlay_lum > 0.5 else WHITE

    return overlay, text
