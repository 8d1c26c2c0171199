from __future__ import annotations

from PIL import Image


def alpha_composite_at(base: Image.Image, overlay: Image.Image, x: int, y: int) -> None:
    """
    In-place `base.alpha_composite(overlay, dest=(x, y))` that tolerates
    negative or out-of-bounds destinations (Pillow rejects negative dest).
    """
    bw, bh = base.size
    ow, oh = overlay.size

    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(bw, x + ow)
    y1 = min(bh, y + oh)
    if x1 <= x0 or y1 <= y0:
        return

    src_box = (x0 - x, y0 - y, x1 - x, y1 - y)
    if overlay.mode != "RGBA":
        overlay = overlay.convert("RGBA")
    base.alpha_composite(overlay, dest=(x0, y0), source=src_box)


def solid(size: tuple[int, int], rgba) -> Image.Image:
    return Image.new("RGBA", (int(size[0]), int(size[1])), tuple(rgba))
