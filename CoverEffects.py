# CoverEffects.py
# Pattern Generator: cover image treatment
#
# - Resize to the laid-out box
# - Clip to a small rounded rectangle
# - 4-stop multiply gradient (sheen / edge vignette)
# - Offset drop shadow composited under the cover

from __future__ import annotations

import math

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from RasterOps import alpha_composite_at

COVER_CORNER_RADIUS = 4

# (position, gray level); every stop at 40% alpha, multiplied over the cover
GRADIENT_STOPS = (
    (0.01, 110.0),
    (0.02, 255.0),
    (0.99, 255.0),
    (1.00, 162.0),
)
GRADIENT_ALPHA = 0.40

SHADOW_OFFSET = (-8, 12)
SHADOW_BLUR = 16  # CSS blur length; gaussian sigma is half of it
SHADOW_RGBA = (10, 10, 10, 0.36)


def rounded_mask(size: tuple[int, int], radius: int) -> Image.Image:
    w, h = size
    mask = Image.new("L", (w, h), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, fill=255)
    return mask


def _gradient_factors(width: int) -> np.ndarray:
    """Per-column multiply factor: (1 - a) + a * gray/255."""
    t = (np.arange(width, dtype=np.float32) + 0.5) / float(max(width, 1))
    stops_t = np.array([s[0] for s in GRADIENT_STOPS], dtype=np.float32)
    stops_v = np.array([s[1] for s in GRADIENT_STOPS], dtype=np.float32)
    gray = np.interp(t, stops_t, stops_v)
    return (1.0 - GRADIENT_ALPHA) + GRADIENT_ALPHA * (gray / 255.0)


def prepare_cover(image: Image.Image, width: float, height: float) -> Image.Image:
    """Cover resized to (width, height), rounded-clipped and gradient-multiplied."""
    w = max(1, int(round(width)))
    h = max(1, int(round(height)))

    src = image if image.mode == "RGBA" else image.convert("RGBA")
    resized = src.resize((w, h), Image.LANCZOS)

    arr = np.asarray(resized, dtype=np.uint8).astype(np.float32)

    factors = _gradient_factors(w)[None, :, None]
    arr[..., :3] = arr[..., :3] * factors

    mask = np.asarray(rounded_mask((w, h), COVER_CORNER_RADIUS), dtype=np.float32)
    arr[..., 3] = np.minimum(arr[..., 3], mask)

    out = np.clip(arr + 0.5, 0, 255).astype(np.uint8)
    return Image.fromarray(out, mode="RGBA")


def _shadow_for(cover: Image.Image) -> tuple[Image.Image, int]:
    sigma = SHADOW_BLUR / 2.0
    pad = int(math.ceil(sigma * 3))

    r, g, b, a = SHADOW_RGBA
    alpha = np.asarray(cover.getchannel("A"), dtype=np.float32) * float(a)

    canvas_alpha = np.zeros((cover.height + 2 * pad, cover.width + 2 * pad), dtype=np.uint8)
    canvas_alpha[pad : pad + cover.height, pad : pad + cover.width] = np.clip(alpha + 0.5, 0, 255).astype(np.uint8)

    shadow_alpha = Image.fromarray(canvas_alpha, mode="L").filter(ImageFilter.GaussianBlur(radius=sigma))
    shadow = Image.new("RGBA", shadow_alpha.size, (r, g, b, 0))
    shadow.putalpha(shadow_alpha)
    return shadow, pad


def draw_cover(base: Image.Image, cover: Image.Image, x: float, y: float) -> None:
    """Composites a prepared cover at (x, y) with its drop shadow underneath (in place)."""
    xi = int(round(x))
    yi = int(round(y))

    shadow, pad = _shadow_for(cover)
    dx, dy = SHADOW_OFFSET
    alpha_composite_at(base, shadow, xi - pad + dx, yi - pad + dy)
    alpha_composite_at(base, cover, xi, yi)
