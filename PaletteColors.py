from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from PIL import ImageColor

from PatternErrors import InvalidPaletteError
from SeededRandom import SeededRandom

RGBA = Tuple[int, int, int, int]

_HEX8_RE = re.compile(r"^#?([0-9a-fA-F]{8})$")
_CSS_RGBA_RE = re.compile(
    r"^rgba?\(\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)


def _clamp_u8(v: float) -> int:
    return max(0, min(255, int(round(v))))


def parse_color(color) -> RGBA:
    """Normaliza un color a RGBA (ints 0..255).

    Accepts tuples (rgb/rgba), '#rgb', '#rrggbb', '#rrggbbaa', CSS rgb()/rgba()
    with float alpha, and everything `ImageColor.getrgb` understands.
    """
    if isinstance(color, (tuple, list)):
        if len(color) not in (3, 4):
            raise InvalidPaletteError(f"Color tuple must have 3 or 4 channels: {color!r}")
        vals = [_clamp_u8(float(c)) for c in color]
        if len(vals) == 3:
            vals.append(255)
        return (vals[0], vals[1], vals[2], vals[3])

    if not isinstance(color, str) or not color.strip():
        raise InvalidPaletteError(f"Invalid color: {color!r}")

    s = color.strip()

    m = _HEX8_RE.match(s)
    if m:
        h = m.group(1)
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16))

    m = _CSS_RGBA_RE.match(s)
    if m:
        r, g, b = (_clamp_u8(float(m.group(i))) for i in (1, 2, 3))
        a = 255
        if m.group(4) is not None:
            a_f = float(m.group(4))
            # CSS alpha is 0..1; tolerate 0..255 too
            a = _clamp_u8(a_f * 255.0) if a_f <= 1.0 else _clamp_u8(a_f)
        return (r, g, b, a)

    if not s.startswith("#") and re.fullmatch(r"[0-9a-fA-F]{3}|[0-9a-fA-F]{6}", s):
        s = "#" + s

    try:
        rgb = ImageColor.getrgb(s)
    except ValueError as e:
        raise InvalidPaletteError(f"Invalid color: {color!r}") from e

    if len(rgb) == 3:
        return (rgb[0], rgb[1], rgb[2], 255)
    return (rgb[0], rgb[1], rgb[2], rgb[3])


def with_alpha(color, alpha: float) -> RGBA:
    r, g, b, _ = parse_color(color)
    a = max(0.0, min(1.0, float(alpha)))
    return (r, g, b, _clamp_u8(a * 255.0))


def to_hex(color) -> str:
    r, g, b, _ = parse_color(color)
    return f"#{r:02x}{g:02x}{b:02x}"


# ======================================================
# Palette
# ======================================================

@dataclass(frozen=True)
class Palette:
    """Ordered colors: [0] background, [1:] object colors (as given by the caller)."""

    colors: Tuple[str, ...]

    @classmethod
    def from_colors(cls, colors: Sequence) -> "Palette":
        usable = []
        for c in colors or ():
            try:
                parse_color(c)
            except InvalidPaletteError:
                continue
            usable.append(c)
        if not usable:
            raise InvalidPaletteError("Palette has no usable colors")
        return cls(tuple(usable))

    @property
    def background(self):
        return self.colors[0]

    @property
    def object_colors(self) -> Tuple:
        objs = self.colors[1:]
        # Single-color palette: the background doubles as the only object color
        return objs if objs else (self.colors[0],)

    @property
    def overlay_candidates(self) -> Tuple:
        return tuple(self.object_colors) + (self.background,)


def pick_batch_overlay_color(palette: Palette, seed: float):
    """Color del panel sólido, elegido una vez por batch.

    Uses its own stream so the scatter draw sequence does not depend on the
    overlay style.
    """
    candidates = palette.overlay_candidates
    idx = SeededRandom(seed).next_index(len(candidates))
    return candidates[idx]
