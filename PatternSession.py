# PatternSession.py
# Pattern Generator: per-render session state
# No shared reducer state: request in, result map out. Caches are replaced
# wholesale on every new render, never merged.

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import replace
from typing import Dict, Optional

from PIL import Image

from ImageLoader import load_usable_images
from MasterPattern import MASTER_SIZE
from PatternService import BatchResult, PatternService, PreparedInputs
from RenderRequest import RenderRequest

log = logging.getLogger(__name__)

# Fields that change the background itself; anything else only needs compositing
_BACKGROUND_FIELDS = frozenset({"images", "palette", "seed"})


class PatternSession:
    """
    Holds the result of the latest render plus its two caches:
    - background per size key (cropped, pre-overlay rasters)
    - composited per output key (encoded PNG bytes)

    Every render takes a generation token; a result that arrives with an older
    token is discarded, so a slow superseded render can never overwrite a
    newer one.
    """

    def __init__(self, *, master_size: int = MASTER_SIZE):
        self.master_size = int(master_size)

        self._lock = threading.Lock()
        self._generation = 0
        self._applied_generation = 0

        self.background_cache: Dict[str, Image.Image] = {}
        self.composited: Dict[str, bytes] = {}
        self.last_result: Optional[BatchResult] = None
        self._inputs: Optional[PreparedInputs] = None

    # ==================================================
    # Generation tokens
    # ==================================================

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def has_pending(self) -> bool:
        """True while the newest render has not published its result yet."""
        with self._lock:
            return self._applied_generation < self._generation

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def apply_result(
        self,
        token: int,
        result: BatchResult,
        *,
        background_cache: Optional[Dict[str, Image.Image]] = None,
        inputs: Optional[PreparedInputs] = None,
    ) -> bool:
        """Publishes `result` unless a newer render has started since `token`."""
        with self._lock:
            if token != self._generation:
                log.debug("Discarding stale result (token=%d, current=%d)", token, self._generation)
                return False
            self._applied_generation = token
            self.composited = dict(result.patterns)
            self.last_result = result
            # Wholesale replacement; a background-engine result carries no caches
            self.background_cache = background_cache if background_cache is not None else {}
            self._inputs = inputs
            return True

    def abandon(self, token: int) -> None:
        """A failed render settles its token without touching the caches."""
        with self._lock:
            if token == self._generation:
                self._applied_generation = token

    # ==================================================
    # Render paths
    # ==================================================

    def render(self, request: RenderRequest) -> BatchResult:
        """Full render on the caller's thread; caches start empty."""
        inputs = PatternService.prepare(request)
        token = self.begin()
        backgrounds: Dict[str, Image.Image] = {}
        result = PatternService.run_batch(
            inputs.request,
            master_size=self.master_size,
            background_cache=backgrounds,
            inputs=inputs,
        )
        self.apply_result(token, result, background_cache=backgrounds, inputs=inputs)
        return result

    def submit(self, engine, request: RenderRequest) -> Future:
        """
        Full render through `engine` (typically the background one).
        The returned future resolves to the BatchResult; the session only
        publishes it if no newer render started in the meantime.
        """
        fut = engine.submit_batch(request)
        token = self.begin()

        def _on_done(f: Future) -> None:
            if f.cancelled() or f.exception() is not None:
                self.abandon(token)
                return
            self.apply_result(token, f.result())

        fut.add_done_callback(_on_done)
        return fut

    def recomposite(self, **overrides) -> BatchResult:
        """
        Re-runs only compositing + post-processing with new overlay options,
        reusing the cached backgrounds of the last inline render.
        """
        with self._lock:
            inputs = self._inputs
            backgrounds = dict(self.background_cache)

        if inputs is None:
            raise RuntimeError("recomposite requires a previous inline render")

        touched = _BACKGROUND_FIELDS.intersection(overrides)
        if touched:
            raise ValueError(f"{', '.join(sorted(touched))} changed: a full render is required")

        req = replace(inputs.request, **overrides).normalized()
        covers = inputs.covers
        if "cover_images" in overrides:
            covers = tuple(load_usable_images(req.cover_images, what="cover"))

        new_inputs = replace(
            inputs,
            request=req,
            covers=covers,
            overlay_color=PatternService.resolve_overlay_color(req, inputs.palette),
        )

        token = self.begin()
        result = PatternService.run_batch(
            req,
            master_size=self.master_size,
            background_cache=backgrounds,
            inputs=new_inputs,
        )
        self.apply_result(token, result, background_cache=backgrounds, inputs=new_inputs)
        return result
