from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from ImageLoader import load_image, load_usable_images
from MasterPattern import MASTER_SIZE, render_master
from OverlayCompositor import LayoutKind, OverlayOptions, composite_overlay, resolve_layout
from PaletteColors import Palette, parse_color, pick_batch_overlay_color
from PatternErrors import EmptyInputError, EncodingError, PatternError, SizeFailure
from PostProcess import dither_rng, post_process
from RenderRequest import RenderRequest, Size, SourceImage
from SizeCropper import crop_to_size

log = logging.getLogger(__name__)

Progress = Callable[[float, str], None]

# Per-size errors that degrade to a recorded failure instead of aborting the batch
_SIZE_ERRORS = (PatternError, OSError, ValueError, MemoryError)


@dataclass
class BatchResult:
    patterns: Dict[str, bytes] = field(default_factory=dict)
    failures: List[SizeFailure] = field(default_factory=list)
    overlay_color: Optional[str] = None
    seed: float = 0.0
    request_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> List[str]:
        return [f.key for f in self.failures]


@dataclass(frozen=True)
class PreparedInputs:
    """Decoded inputs for one render (motifs/covers that failed to decode are gone)."""

    request: RenderRequest
    palette: Palette
    motifs: Tuple[Image.Image, ...]
    covers: Tuple[Image.Image, ...]
    overlay_color: Optional[str]


def output_key(size: Size, variant: str | None = None) -> str:
    return f"{size.key}-{variant}" if variant else size.key


class PatternService:
    """Ejecuta RenderRequest: renderer -> cropper -> compositor -> post -> PNG."""

    # ==================================================
    # Request-level preparation (fail fast)
    # ==================================================

    @staticmethod
    def resolve_overlay_color(request: RenderRequest, palette: Palette) -> Optional[str]:
        """One overlay color per batch, only for the solid style."""
        if request.overlay_style != "solid":
            return None
        if request.overlay_color:
            parse_color(request.overlay_color)
            return request.overlay_color
        return pick_batch_overlay_color(palette, request.seed)

    @staticmethod
    def prepare(request: RenderRequest) -> PreparedInputs:
        """
        Normaliza la request, valida paleta e imágenes y decodifica todo.
        Raises InvalidPaletteError / EmptyInputError before any rendering.
        """
        req = request.normalized()
        palette = Palette.from_colors(req.palette)
        overlay_color = PatternService.resolve_overlay_color(req, palette)

        if not req.images:
            raise EmptyInputError("No motif images in request")

        motifs = load_usable_images(req.images, what="motif")
        if not motifs:
            raise EmptyInputError("None of the motif images could be decoded")

        covers = load_usable_images(req.cover_images, what="cover")

        return PreparedInputs(
            request=req,
            palette=palette,
            motifs=tuple(motifs),
            covers=tuple(covers),
            overlay_color=overlay_color,
        )

    # ==================================================
    # Per-size steps
    # ==================================================

    @staticmethod
    def output_variants(request: RenderRequest, size: Size) -> List[Tuple[str, str]]:
        """[(result key, variant)] for one size; 'both' splits the grid layout in two."""
        if resolve_layout(size) is LayoutKind.GRID_PANEL and request.cover_variant == "both":
            return [(output_key(size, "text"), "text"), (output_key(size, "covers"), "covers")]
        return [(output_key(size), request.cover_variant)]

    @staticmethod
    def overlay_options(inputs: PreparedInputs, variant: str) -> OverlayOptions:
        req = inputs.request
        return OverlayOptions(
            style=req.overlay_style,
            alpha=req.overlay_alpha,
            overlay_color=inputs.overlay_color,
            variant=variant,
            text=req.text,
            font_size=req.font_size,
            line_height=req.line_height,
            letter_spacing=req.letter_spacing,
            text_palette=tuple(inputs.palette.object_colors),
        )

    @staticmethod
    def render_master(inputs: PreparedInputs, *, master_size: int = MASTER_SIZE) -> Image.Image:
        t0 = perf_counter()
        master = render_master(inputs.motifs, inputs.palette, inputs.request.seed, master_size=master_size)
        log.debug("master %dx%d in %.3fs", master_size, master_size, perf_counter() - t0)
        return master

    @staticmethod
    def composite(
        background: Image.Image,
        size: Size,
        inputs: PreparedInputs,
        variant: str,
    ) -> Image.Image:
        req = inputs.request
        out = composite_overlay(background, size, PatternService.overlay_options(inputs, variant), inputs.covers)
        return post_process(
            out,
            blur_amount=req.blur_amount,
            dither_mode=req.dither_mode,
            dither_amount=req.dither_amount,
            rng=dither_rng(req.seed),
        )

    @staticmethod
    def encode_png(image: Image.Image, key: str = "") -> bytes:
        buf = io.BytesIO()
        try:
            image.save(buf, format="PNG")
        except (OSError, ValueError) as e:
            raise EncodingError(f"PNG encoding failed: {e}", key=key) from e
        return buf.getvalue()

    # ==================================================
    # Batch
    # ==================================================

    @staticmethod
    def run_batch(
        request: RenderRequest,
        *,
        master_size: int = MASTER_SIZE,
        background_cache: Optional[Dict[str, Image.Image]] = None,
        composited_cache: Optional[Dict[str, bytes]] = None,
        progress: Optional[Progress] = None,
        inputs: Optional[PreparedInputs] = None,
    ) -> BatchResult:
        """
        Renders every target size, in request order, one at a time.

        The master surface is rendered lazily, once per request, and dropped
        when the batch ends. Backgrounds already present in `background_cache`
        skip the renderer entirely. Per-size errors are recorded in
        `failures` and the remaining sizes still complete.
        """
        if inputs is None:
            inputs = PatternService.prepare(request)
        req = inputs.request

        result = BatchResult(overlay_color=inputs.overlay_color, seed=req.seed)
        sizes = list(req.target_sizes)
        total = max(1, len(sizes))
        master: Optional[Image.Image] = None

        for i, size in enumerate(sizes):
            if progress is not None:
                progress(i / total, f"Rendering {size.name or size.key}")

            t0 = perf_counter()
            try:
                background = None
                if background_cache is not None:
                    background = background_cache.get(size.key)
                if background is None:
                    if master is None:
                        master = PatternService.render_master(inputs, master_size=master_size)
                    background = crop_to_size(master, size)
                    if background_cache is not None:
                        background_cache[size.key] = background
            except _SIZE_ERRORS as e:
                log.warning("Background for %s failed: %s", size.key, e)
                for key, _ in PatternService.output_variants(req, size):
                    result.failures.append(SizeFailure.from_exception(key, e))
                continue

            for key, variant in PatternService.output_variants(req, size):
                try:
                    img = PatternService.composite(background, size, inputs, variant)
                    data = PatternService.encode_png(img, key)
                except _SIZE_ERRORS as e:
                    log.warning("Size %s failed: %s", key, e)
                    result.failures.append(SizeFailure.from_exception(key, e))
                    continue
                result.patterns[key] = data
                if composited_cache is not None:
                    composited_cache[key] = data

            log.debug("size %s done in %.3fs", size.key, perf_counter() - t0)

        if progress is not None:
            progress(1.0, "Pattern generation complete")
        return result

    # ==================================================
    # Single-step entry points (worker messages)
    # ==================================================

    @staticmethod
    def generate_background(request: RenderRequest, size: Size, *, master_size: int = MASTER_SIZE) -> bytes:
        """Background only (no overlay, no post-processing) as PNG."""
        inputs = PatternService.prepare(request)
        master = PatternService.render_master(inputs, master_size=master_size)
        return PatternService.encode_png(crop_to_size(master, size), size.key)

    @staticmethod
    def composite_from_background(
        background_png: bytes,
        request: RenderRequest,
        size: Size,
        variant: str | None = None,
    ) -> bytes:
        """Overlay + post-processing on an already rendered background (PNG in, PNG out)."""
        req = request.normalized()
        palette = Palette.from_colors(req.palette)
        covers = load_usable_images(req.cover_images, what="cover")
        inputs = PreparedInputs(
            request=req,
            palette=palette,
            motifs=(),
            covers=tuple(covers),
            overlay_color=PatternService.resolve_overlay_color(req, palette),
        )
        background = load_image(SourceImage(data=background_png, name=f"background {size.key}"))
        v = variant or ("text" if req.cover_variant == "both" else req.cover_variant)
        img = PatternService.composite(background, size, inputs, v)
        return PatternService.encode_png(img, output_key(size))
