from __future__ import annotations

import numpy as np
from PIL import Image

from PaletteColors import parse_color


def tint_image(image: Image.Image, color) -> Image.Image:
    """
    Recolorea `image` con un color sólido usando su alfa como máscara.

    Equivalent to filling the color and keeping only the pixels the source
    covers (destination-in): RGB = color, A = source_alpha * color_alpha.
    Returns a new RGBA image of the same size.
    """
    r, g, b, a = parse_color(color)

    src = image if image.mode == "RGBA" else image.convert("RGBA")
    alpha = np.asarray(src, dtype=np.uint8)[..., 3]

    h, w = alpha.shape
    out = np.empty((h, w, 4), dtype=np.uint8)
    out[..., 0] = r
    out[..., 1] = g
    out[..., 2] = b
    if a == 255:
        out[..., 3] = alpha
    else:
        out[..., 3] = (alpha.astype(np.uint16) * a + 127) // 255

    return Image.fromarray(out, mode="RGBA")
