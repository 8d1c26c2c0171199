from __future__ import annotations

import numpy as np
from PIL import Image, ImageFilter

from Dithering import noise_dither, ordered_dither


def dither_rng(seed: float) -> np.random.Generator:
    """Noise generator derived from the batch seed (re-renders stay reproducible)."""
    bits = np.float64(seed).view(np.uint64)
    return np.random.default_rng(int(bits))


def apply_blur(image: Image.Image, radius: float) -> Image.Image:
    radius = float(radius)
    if radius <= 0.0:
        return image
    return image.filter(ImageFilter.GaussianBlur(radius=radius))


def apply_dither(
    image: Image.Image,
    *,
    mode: str = "noise",
    amount: float = 0.0,
    rng: np.random.Generator | None = None,
) -> Image.Image:
    amount = float(amount)
    if amount <= 0.0 or mode == "none":
        return image

    arr = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    if mode == "ordered":
        out = ordered_dither(arr, amount)
    else:
        out = noise_dither(arr, amount, rng=rng)
    return Image.fromarray(out, mode="RGBA")


def post_process(
    image: Image.Image,
    *,
    blur_amount: float = 0.0,
    dither_mode: str = "noise",
    dither_amount: float = 0.0,
    rng: np.random.Generator | None = None,
) -> Image.Image:
    """
    Blur then dither, after all compositing and before encoding.
    With both amounts at 0 the input image is returned untouched.
    """
    out = apply_blur(image, blur_amount)
    out = apply_dither(out, mode=dither_mode, amount=dither_amount, rng=rng)
    return out
