from __future__ import annotations

import math
from dataclasses import dataclass

from PIL import Image

from RasterOps import alpha_composite_at, solid
from RenderRequest import Size


@dataclass(frozen=True)
class CropPlan:
    """
    mode='crop':  source box (x, y, width, height) copied 1:1.
    mode='cover': whole master scaled by `scale` and placed at (offset_x, offset_y).
    """

    mode: str
    source_x: int = 0
    source_y: int = 0
    width: int = 0
    height: int = 0
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


def plan_crop(master_size: int, size: Size) -> CropPlan:
    w, h = int(size.width), int(size.height)
    if w <= 0 or h <= 0:
        raise ValueError(f"Invalid target size: {size.key}")

    if w <= master_size and h <= master_size:
        sx = max(0, int(math.floor((master_size - w) / 2)))
        sy = max(0, int(math.floor((master_size - h) / 2)))
        return CropPlan("crop", source_x=sx, source_y=sy, width=w, height=h)

    # Larger than the master on some axis: scale to cover, center in frame
    scale = max(w / master_size, h / master_size)
    scaled = master_size * scale
    return CropPlan(
        "cover",
        width=w,
        height=h,
        scale=scale,
        offset_x=(w - scaled) / 2.0,
        offset_y=(h - scaled) / 2.0,
    )


def crop_to_size(master: Image.Image, size: Size) -> Image.Image:
    """Crop/scale the (square) master to exactly size.width x size.height."""
    plan = plan_crop(master.width, size)

    if plan.mode == "crop":
        box = (plan.source_x, plan.source_y, plan.source_x + plan.width, plan.source_y + plan.height)
        return master.crop(box)

    frame = solid((plan.width, plan.height), (0, 0, 0, 0))
    side = max(1, int(round(master.width * plan.scale)))
    scaled = master.resize((side, side), Image.BILINEAR)
    alpha_composite_at(frame, scaled, int(round(plan.offset_x)), int(round(plan.offset_y)))
    return frame
