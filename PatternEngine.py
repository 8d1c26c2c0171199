# PatternEngine.py
# Pattern Generator: execution contexts
#
# Both engines call the same PatternService functions; only the thread the
# work runs on differs. The background engine speaks in messages:
#   request:  (job_id, kind, payload)
#   response: (job_id, ok, payload | (error_kind, message, key, traceback))

from __future__ import annotations

import abc
import itertools
import logging
import os
import queue
import threading
import traceback
from concurrent.futures import Future
from dataclasses import replace
from typing import Dict, Optional

from ImageLoader import materialize_all
from MasterPattern import MASTER_SIZE
from PatternErrors import rebuild_error
from PatternService import BatchResult, PatternService
from RenderRequest import RenderRequest, Size

log = logging.getLogger(__name__)

GENERATE_BACKGROUND = "GENERATE_BACKGROUND"
COMPOSITE_OVERLAY = "COMPOSITE_OVERLAY"
GENERATE_PATTERN_BATCH = "GENERATE_PATTERN_BATCH"


def _workers_from_env() -> int:
    try:
        n = int(os.getenv("PG_WORKERS", "1"))
    except ValueError:
        n = 1
    return max(1, min(n, 8))


class PatternEngine(abc.ABC):
    """Runs a RenderRequest and returns the encoded images per output key."""

    master_size: int = MASTER_SIZE

    @abc.abstractmethod
    def submit_batch(self, request: RenderRequest) -> Future:
        ...

    def render(self, request: RenderRequest, timeout: Optional[float] = None) -> BatchResult:
        return self.submit_batch(request).result(timeout=timeout)

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


# ======================================================
# Inline (caller thread)
# ======================================================

class InlinePatternEngine(PatternEngine):
    def __init__(self, *, master_size: int = MASTER_SIZE):
        self.master_size = int(master_size)

    def render(self, request: RenderRequest, timeout: Optional[float] = None) -> BatchResult:
        return PatternService.run_batch(request, master_size=self.master_size)

    def submit_batch(self, request: RenderRequest) -> Future:
        """Runs synchronously; the future is already resolved on return."""
        fut: Future = Future()
        try:
            fut.set_result(self.render(request))
        except Exception as e:
            fut.set_exception(e)
        return fut


# ======================================================
# Background (worker threads + message queue)
# ======================================================

class BackgroundPatternEngine(PatternEngine):
    """
    Worker pool fed through a request queue.

    Every request is materialized before it is queued: motifs and covers
    become locally-owned encoded bytes, because the worker side must not reach
    back into the caller's files or live image objects.
    """

    def __init__(self, workers: Optional[int] = None, *, master_size: int = MASTER_SIZE):
        self.master_size = int(master_size)

        self._req_q: "queue.Queue[Optional[tuple]]" = queue.Queue()
        self._pending: Dict[int, Future] = {}
        self._pending_lock = threading.Lock()
        self._job_seq = itertools.count(1)
        self._closed = False

        n = _workers_from_env() if workers is None else max(1, int(workers))
        self._threads = [
            threading.Thread(
                target=self._worker_loop,
                name=f"PatternWorker-{i}",
                daemon=True,
            )
            for i in range(n)
        ]
        for t in self._threads:
            t.start()

    # --------------------------------------------------
    # Caller side
    # --------------------------------------------------

    @staticmethod
    def materialize_request(request: RenderRequest) -> RenderRequest:
        return replace(
            request,
            images=materialize_all(request.images or ()),
            cover_images=materialize_all(request.cover_images or ()),
        )

    def _post(self, kind: str, payload: tuple) -> Future:
        if self._closed:
            raise RuntimeError("BackgroundPatternEngine is closed")

        job_id = next(self._job_seq)
        fut: Future = Future()
        with self._pending_lock:
            self._pending[job_id] = fut
        self._req_q.put((job_id, kind, payload))
        return fut

    def submit_batch(self, request: RenderRequest) -> Future:
        return self._post(GENERATE_PATTERN_BATCH, (self.materialize_request(request),))

    def submit_background(self, request: RenderRequest, size: Size) -> Future:
        """Future -> PNG bytes of the cropped background for `size`."""
        return self._post(GENERATE_BACKGROUND, (self.materialize_request(request), size))

    def submit_composite(
        self,
        background_png: bytes,
        request: RenderRequest,
        size: Size,
        variant: Optional[str] = None,
    ) -> Future:
        """Future -> PNG bytes of the overlay composited over `background_png`."""
        payload = (bytes(background_png), self.materialize_request(request), size, variant)
        return self._post(COMPOSITE_OVERLAY, payload)

    @property
    def pending(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self._req_q.put(None)
        for t in self._threads:
            t.join(timeout=timeout)

    # --------------------------------------------------
    # Worker side
    # --------------------------------------------------

    def _handle(self, job_id: int, kind: str, payload: tuple):
        if kind == GENERATE_PATTERN_BATCH:
            (request,) = payload
            result = PatternService.run_batch(request, master_size=self.master_size)
            result.request_id = job_id
            return result

        if kind == GENERATE_BACKGROUND:
            request, size = payload
            return PatternService.generate_background(request, size, master_size=self.master_size)

        if kind == COMPOSITE_OVERLAY:
            background_png, request, size, variant = payload
            return PatternService.composite_from_background(background_png, request, size, variant)

        raise ValueError(f"Unknown message type: {kind}")

    def _deliver(self, job_id: int, ok: bool, payload) -> None:
        with self._pending_lock:
            fut = self._pending.pop(job_id, None)
        if fut is None:
            return
        if ok:
            fut.set_result(payload)
        else:
            err_kind, message, key, tb = payload
            log.debug("Job %d failed:\n%s", job_id, tb)
            fut.set_exception(rebuild_error(err_kind, message, key))

    def _worker_loop(self) -> None:
        while True:
            job = self._req_q.get()
            if job is None:
                break

            job_id, kind, payload = job
            try:
                result = self._handle(job_id, kind, payload)
            except Exception as e:
                tb = traceback.format_exc()
                self._deliver(job_id, False, (getattr(e, "kind", None), str(e), getattr(e, "key", None), tb))
                continue
            self._deliver(job_id, True, result)
