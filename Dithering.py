import numpy as np

# ==========================================================
# Bayer 4×4 (canonical 0..15)
# ==========================================================

_BAYER_4x4 = np.array(
    [
        [0, 8, 2, 10],
        [12, 4, 14, 6],
        [3, 11, 1, 9],
        [15, 7, 13, 5],
    ],
    dtype=np.int32,
)

QUANT_STEP = 16


def _quantize_u8(values: np.ndarray) -> np.ndarray:
    """Nearest multiple of QUANT_STEP (half up), clamped to [0, 255]."""
    q = np.floor(values / QUANT_STEP + 0.5) * QUANT_STEP
    return np.clip(q, 0, 255).astype(np.uint8)


def noise_dither(
    img_rgba_u8: np.ndarray,
    amount: float,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """
    Random-threshold dither.

    img_rgba_u8:
        np.ndarray (H, W, 4) uint8

    amount:
        >= 0. Each RGB channel gets uniform noise in ±(255 * amount / 2)
        before quantizing to 16 levels. Alpha is untouched.
    """
    amount = max(0.0, float(amount))
    if amount <= 0.0:
        return img_rgba_u8

    if rng is None:
        rng = np.random.default_rng()

    h, w, _ = img_rgba_u8.shape
    rgb = img_rgba_u8[..., :3].astype(np.float32)
    noise = (rng.random((h, w, 3), dtype=np.float32) - 0.5) * (255.0 * amount)

    out = img_rgba_u8.copy()
    out[..., :3] = _quantize_u8(rgb + noise)
    return out


def ordered_dither(
    img_rgba_u8: np.ndarray,
    amount: float,
) -> np.ndarray:
    """
    Ordered dithering usando matriz Bayer 4×4.

    Same 16-level quantization as noise_dither, but the perturbation is the
    canonical Bayer threshold ((b + 0.5)/16 - 0.5) scaled by 255 * amount, so
    the result is fully deterministic.
    """
    amount = max(0.0, float(amount))
    if amount <= 0.0:
        return img_rgba_u8

    h, w, _ = img_rgba_u8.shape
    ys = np.arange(h, dtype=np.int32)[:, None] & 3
    xs = np.arange(w, dtype=np.int32)[None, :] & 3
    b = _BAYER_4x4[ys, xs].astype(np.float32)
    threshold = ((b + 0.5) / 16.0) - 0.5

    perturb = (threshold * (255.0 * amount))[..., None]
    rgb = img_rgba_u8[..., :3].astype(np.float32)

    out = img_rgba_u8.copy()
    out[..., :3] = _quantize_u8(rgb + perturb)
    return out
