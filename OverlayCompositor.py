# OverlayCompositor.py
# Pattern Generator: per-size decoration over the cropped background
#
# Layouts (resolved once per Size):
# - ROW_PANEL  (1200x628):  panel + centered row of covers
# - GRID_PANEL (1080x1080): panel + wrapped text, or panel + 2x2 cover grid
# - PLAIN (everything else): background only
#
# Panel is always drawn first so covers sit on top of it.

from __future__ import annotations

import enum
import functools
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from ContrastSelector import TRANSPARENT_PANEL_TONE, pick_text_color
from CoverEffects import draw_cover, prepare_cover
from PaletteColors import parse_color, with_alpha
from RenderRequest import Size
from TextWrapper import draw_wrapped_text
from paths import find_font_path

log = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]  # x, y, width, height


class LayoutKind(enum.Enum):
    PLAIN = "plain"
    ROW_PANEL = "row_panel"
    GRID_PANEL = "grid_panel"


_LAYOUTS = {
    (1200, 628): LayoutKind.ROW_PANEL,
    (1080, 1080): LayoutKind.GRID_PANEL,
}


def resolve_layout(size: Size) -> LayoutKind:
    return _LAYOUTS.get((int(size.width), int(size.height)), LayoutKind.PLAIN)


@dataclass(frozen=True)
class PanelGeometry:
    margin: int
    radius: int


PANEL_GEOMETRY = {
    LayoutKind.ROW_PANEL: PanelGeometry(margin=24, radius=24),
    LayoutKind.GRID_PANEL: PanelGeometry(margin=48, radius=24),
}

TRANSPARENT_FILL = (229, 223, 214, 115)  # rgba(229, 223, 214, 0.45)
PANEL_STROKE = (229, 223, 214, 255)
PANEL_STROKE_WIDTH = 2

ROW_COVER_HEIGHT = 366
COVER_GAP = 30
GRID_MAX_COVERS = 4
TEXT_HORIZONTAL_INSET = 192  # 96 each side


@dataclass(frozen=True)
class OverlayOptions:
    style: str = "transparent"          # none | transparent | solid
    alpha: float = 0.8                  # solid panel only
    overlay_color: str | None = None    # batch overlay color (solid)
    variant: str = "text"               # text | covers (grid layout)
    text: str = ""
    font_size: int = 80
    line_height: int = 96
    letter_spacing: float = -2.0
    text_palette: Tuple[str, ...] = ()  # extra text color candidates (object colors)


# ======================================================
# Geometry
# ======================================================

def panel_rect(size: Size, kind: LayoutKind) -> Box:
    geo = PANEL_GEOMETRY[kind]
    m = geo.margin
    return (float(m), float(m), float(size.width - 2 * m), float(size.height - 2 * m))


def layout_cover_row(cover_sizes: Sequence[Tuple[int, int]], frame: Size) -> List[Box]:
    """Single centered row, every cover ROW_COVER_HEIGHT tall, COVER_GAP apart."""
    if not cover_sizes:
        return []

    widths = [ROW_COVER_HEIGHT * (w / h) for (w, h) in cover_sizes]
    total = sum(widths) + COVER_GAP * (len(widths) - 1)

    x = (frame.width - total) / 2.0
    y = (frame.height - ROW_COVER_HEIGHT) / 2.0

    boxes: List[Box] = []
    for w in widths:
        boxes.append((x, y, w, float(ROW_COVER_HEIGHT)))
        x += w + COVER_GAP
    return boxes


def layout_cover_grid(cover_sizes: Sequence[Tuple[int, int]], panel: Box, gap: float = COVER_GAP) -> List[Box]:
    """
    2x2 grid inside the panel. Each cover is aspect-fit to its cell and pushed
    toward the shared center lines, so adjacent covers are exactly `gap` apart.
    Covers beyond the fourth are ignored.
    """
    px, py, pw, ph = panel
    area_x = px + gap
    area_y = py + gap
    area_w = pw - 2 * gap
    area_h = ph - 2 * gap

    cell_w = (area_w - gap) / 2.0
    cell_h = (area_h - gap) / 2.0
    cell_aspect = cell_w / cell_h

    boxes: List[Box] = []
    for index, (iw, ih) in enumerate(list(cover_sizes)[:GRID_MAX_COVERS]):
        row, col = divmod(index, 2)
        aspect = iw / ih
        if aspect > cell_aspect:
            bw = cell_w
            bh = bw / aspect
        else:
            bh = cell_h
            bw = bh * aspect

        cell_x = area_x + col * (cell_w + gap)
        cell_y = area_y + row * (cell_h + gap)

        bx = cell_x + cell_w - bw if col == 0 else cell_x
        by = cell_y + cell_h - bh if row == 0 else cell_y
        boxes.append((bx, by, bw, bh))
    return boxes


# ======================================================
# Drawing
# ======================================================

@functools.lru_cache(maxsize=16)
def load_font(size: int) -> ImageFont.FreeTypeFont:
    path = find_font_path()
    if path is not None:
        try:
            return ImageFont.truetype(str(path), int(size))
        except OSError as e:
            log.warning("Cannot load font %s (%s), using Pillow default", path, e)
    return ImageFont.load_default(size=int(size))


def panel_fill(options: OverlayOptions):
    if options.style == "solid":
        return with_alpha(options.overlay_color or TRANSPARENT_PANEL_TONE, options.alpha)
    return TRANSPARENT_FILL


def draw_panel(base: Image.Image, rect: Box, radius: int, fill) -> None:
    """Rounded panel (fill, then a stroke straddling the edge), composited in place."""
    x, y, w, h = rect
    x0, y0 = int(round(x)), int(round(y))
    x1, y1 = int(round(x + w)) - 1, int(round(y + h)) - 1

    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).rounded_rectangle((x0, y0, x1, y1), radius=radius, fill=parse_color(fill))
    base.alpha_composite(layer)

    half = PANEL_STROKE_WIDTH // 2
    stroke = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(stroke).rounded_rectangle(
        (x0 - half, y0 - half, x1 + half, y1 + half),
        radius=radius + half,
        outline=PANEL_STROKE,
        width=PANEL_STROKE_WIDTH,
    )
    base.alpha_composite(stroke)


def text_background(options: OverlayOptions):
    if options.style == "solid" and options.overlay_color:
        return options.overlay_color
    return TRANSPARENT_PANEL_TONE


def _draw_covers(base: Image.Image, covers: Sequence[Image.Image], boxes: Sequence[Box]) -> None:
    for img, (x, y, w, h) in zip(covers, boxes):
        draw_cover(base, prepare_cover(img, w, h), x, y)


def _draw_text(base: Image.Image, panel: Box, options: OverlayOptions) -> None:
    px, py, pw, ph = panel
    color = pick_text_color(text_background(options), options.text_palette)
    font = load_font(options.font_size)

    draw = ImageDraw.Draw(base)
    draw_wrapped_text(
        draw,
        options.text,
        font=font,
        center=(px + pw / 2.0, py + ph / 2.0),
        max_width=pw - TEXT_HORIZONTAL_INSET,
        line_height=options.line_height,
        letter_spacing=options.letter_spacing,
        fill=parse_color(color),
    )


def composite_overlay(
    background: Image.Image,
    size: Size,
    options: OverlayOptions,
    covers: Sequence[Image.Image] = (),
) -> Image.Image:
    """
    Decorates a copy of `background` according to the layout of `size`.

    covers: decoded RGBA cover images (broken ones already skipped).
    """
    out = background.convert("RGBA") if background.mode != "RGBA" else background.copy()
    if out.size != (size.width, size.height):
        out = out.resize((size.width, size.height), Image.BILINEAR)

    kind = resolve_layout(size)
    if kind is LayoutKind.PLAIN:
        return out

    geo = PANEL_GEOMETRY[kind]
    panel = panel_rect(size, kind)
    has_panel = options.style != "none"
    if has_panel:
        draw_panel(out, panel, geo.radius, panel_fill(options))

    if kind is LayoutKind.ROW_PANEL:
        boxes = layout_cover_row([c.size for c in covers], size)
        _draw_covers(out, covers, boxes)
        return out

    # GRID_PANEL: text and grid both live inside the panel
    if not has_panel:
        return out

    if options.variant == "text":
        if options.text:
            _draw_text(out, panel, options)
    elif options.variant == "covers":
        visible = list(covers)[:GRID_MAX_COVERS]
        boxes = layout_cover_grid([c.size for c in visible], panel)
        _draw_covers(out, visible, boxes)

    return out
