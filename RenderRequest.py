from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from PIL import Image

OVERLAY_STYLES = ("none", "transparent", "solid")
COVER_VARIANTS = ("text", "covers", "both")
DITHER_MODES = ("none", "noise", "ordered")


def _clamp(v: float, lo: float, hi: float) -> float:
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v


@dataclass(frozen=True)
class Size:
    width: int
    height: int
    name: str = ""

    @property
    def key(self) -> str:
        return f"{int(self.width)}x{int(self.height)}"


@dataclass(frozen=True, eq=False)
class SourceImage:
    """Handle de imagen de entrada (motivo o portada).

    Exactly one of `image`, `data` or `path` is expected. `image` is an
    already decoded Pillow image, `data` owns encoded bytes and `path` points at
    a file the caller can reach (the background engine cannot).
    """

    image: Optional[Image.Image] = None
    data: Optional[bytes] = None
    path: Optional[Path] = None
    name: str = ""

    @property
    def is_materialized(self) -> bool:
        return self.data is not None

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.path is not None:
            return Path(self.path).name
        return f"<{'bytes' if self.data is not None else 'image'}@{id(self):x}>"


@dataclass(frozen=True)
class RenderRequest:
    """Request inmutable para renderizar un batch de patrones.

    - palette[0] es el fondo, el resto son colores de objeto.
    - overlay_style: none | transparent | solid
    - cover_variant: text | covers | both (solo afecta al layout 1080x1080)
    - dithering: {"mode": "noise"|"ordered"|"none", "amount": float}
    - overlay_color: color del panel sólido; None = se elige con el seed
    """

    images: Tuple[SourceImage, ...]
    palette: Tuple[str, ...]
    target_sizes: Tuple[Size, ...]

    seed: float = field(default_factory=random.random)

    # Overlay
    overlay_style: str = "transparent"
    overlay_alpha: float = 0.8
    overlay_color: Optional[str] = None

    # Covers / text
    cover_images: Tuple[SourceImage, ...] = ()
    cover_variant: str = "text"
    text: str = ""
    font_size: int = 80
    line_height: int = 96
    letter_spacing: float = -2.0

    # Post-processing
    blur_amount: float = 0.0
    dithering: Dict[str, Any] = field(default_factory=lambda: {"mode": "noise", "amount": 0.0})

    @property
    def dither_amount(self) -> float:
        return max(0.0, float((self.dithering or {}).get("amount", 0.0)))

    @property
    def dither_mode(self) -> str:
        return _map_dither_mode((self.dithering or {}).get("mode"))

    def normalized(self) -> "RenderRequest":
        """Copy with every option clamped to its documented range."""
        style = (self.overlay_style or "transparent").strip().lower()
        if style not in OVERLAY_STYLES:
            style = "transparent"

        variant = (self.cover_variant or "text").strip().lower()
        if variant == "books":
            variant = "covers"
        if variant not in COVER_VARIANTS:
            variant = "text"

        return replace(
            self,
            images=tuple(self.images or ()),
            palette=tuple(self.palette or ()),
            target_sizes=tuple(self.target_sizes or ()),
            cover_images=tuple(self.cover_images or ()),
            seed=float(self.seed),
            overlay_style=style,
            overlay_alpha=_clamp(float(self.overlay_alpha), 0.1, 1.0),
            cover_variant=variant,
            text=self.text or "",
            font_size=int(_clamp(int(self.font_size), 20, 200)),
            line_height=int(_clamp(int(self.line_height), 20, 250)),
            blur_amount=max(0.0, float(self.blur_amount)),
            dithering={"mode": self.dither_mode, "amount": self.dither_amount},
        )


def _map_dither_mode(mode: str | None) -> str:
    if not mode:
        return "noise"
    mode = str(mode).strip().lower()
    if mode == "random":
        return "noise"
    if mode in ("bayer", "palette_ordered"):
        return "ordered"
    if mode not in DITHER_MODES:
        return "noise"
    return mode
