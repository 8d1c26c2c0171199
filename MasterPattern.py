"""MasterPattern

Scatter renderer for the 2400x2400 master surface.

Main entrypoints
----------------
- plan_scatter(): the seeded placement plan (pure, no pixels)
- render_master(): fills the background and draws every planned motif

Draw order per object is fixed: image index, color index, scale, x, y,
rotation. Changing it changes every layout produced from an existing seed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from PIL import Image

from ImageTinter import tint_image
from PaletteColors import Palette, parse_color
from PatternErrors import EmptyInputError
from RasterOps import alpha_composite_at, solid
from SeededRandom import SeededRandom

log = logging.getLogger(__name__)

MASTER_SIZE = 2400

MIN_OBJECTS = 3
MAX_OBJECTS = 120  # inclusive: 3 + floor(r * 118)
_OBJECT_SPAN = MAX_OBJECTS - MIN_OBJECTS + 1

MIN_SCALE = 0.02
SCALE_SPAN = 0.48


@dataclass(frozen=True)
class ScatterObject:
    image_index: int
    color_index: int
    scale: float
    x: float
    y: float
    rotation: float  # radians, clockwise on screen

    def size(self, master_size: int = MASTER_SIZE) -> float:
        return master_size * self.scale


def object_count(rng: SeededRandom) -> int:
    return MIN_OBJECTS + int(math.floor(rng.next() * _OBJECT_SPAN))


def plan_scatter(
    seed: float,
    image_count: int,
    color_count: int,
    *,
    master_size: int = MASTER_SIZE,
) -> List[ScatterObject]:
    """Placement plan for one master surface. Same inputs, same plan."""
    if image_count <= 0:
        raise EmptyInputError("No usable motif images")
    color_count = max(1, int(color_count))

    rng = SeededRandom(seed)
    n = object_count(rng)

    plan: List[ScatterObject] = []
    for _ in range(n):
        image_index = rng.next_index(image_count)
        color_index = rng.next_index(color_count)
        scale = MIN_SCALE + rng.next() * SCALE_SPAN
        x = rng.next() * master_size
        y = rng.next() * master_size
        rotation = rng.next() * 2.0 * math.pi
        plan.append(ScatterObject(image_index, color_index, scale, x, y, rotation))
    return plan


def _draw_object(master: Image.Image, motif: Image.Image, color, obj: ScatterObject, master_size: int) -> None:
    side = max(1, int(round(obj.size(master_size))))

    # Tinting after the resize is pixel-equivalent and far cheaper for big motifs
    scaled = motif.resize((side, side), Image.BILINEAR)
    tinted = tint_image(scaled, color)

    # Pillow rotates counter-clockwise; screen rotation is clockwise
    rotated = tinted.rotate(-math.degrees(obj.rotation), resample=Image.BICUBIC, expand=True)

    x0 = int(round(obj.x - rotated.width / 2.0))
    y0 = int(round(obj.y - rotated.height / 2.0))
    alpha_composite_at(master, rotated, x0, y0)


def render_master(
    motifs: Sequence[Image.Image],
    palette: Palette,
    seed: float,
    *,
    master_size: int = MASTER_SIZE,
    plan: List[ScatterObject] | None = None,
) -> Image.Image:
    """
    Master surface: background fill + scattered, tinted, rotated motifs.

    `motifs` are decoded RGBA images (broken ones already skipped).
    """
    if not motifs:
        raise EmptyInputError("No usable motif images")

    object_colors = palette.object_colors
    if plan is None:
        plan = plan_scatter(seed, len(motifs), len(object_colors), master_size=master_size)

    master = solid((master_size, master_size), parse_color(palette.background))

    for obj in plan:
        motif = motifs[obj.image_index]
        color = object_colors[obj.color_index]
        _draw_object(master, motif, color, obj, master_size)

    log.debug("master rendered: seed=%r objects=%d", seed, len(plan))
    return master
