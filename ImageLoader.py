# ImageLoader.py
# Pattern Generator: decoding + ownership transfer for source images
#
# - Decode SourceImage handles (PIL image / encoded bytes / file path) to RGBA
# - Small thread-safe LRU for decoded rasters
# - materialize(): copy everything into locally-owned encoded bytes

from __future__ import annotations

import hashlib
import io
import logging
import os
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Iterable, List

from PIL import Image, UnidentifiedImageError

from PatternErrors import DecodeError
from RenderRequest import SourceImage

log = logging.getLogger(__name__)


def _cache_max_from_env() -> int:
    try:
        v = int(os.getenv("PG_IMAGE_CACHE_MAX", "50"))
    except ValueError:
        v = 50
    return max(0, min(v, 500))


# ==========================================================
# Small thread-safe LRU cache for decoded images
# ==========================================================

_DECODE_CACHE_LOCK = threading.Lock()
_DECODE_CACHE: OrderedDict[tuple, Image.Image] = OrderedDict()
_DECODE_CACHE_MAX = _cache_max_from_env()


def _cache_key(source: SourceImage) -> tuple | None:
    if source.data is not None:
        return ("bytes", hashlib.sha1(source.data).hexdigest())
    if source.path is not None:
        p = Path(source.path)
        try:
            mtime = p.stat().st_mtime_ns
        except OSError:
            return None
        return ("path", str(p.resolve()), mtime)
    return None


def clear_decode_cache() -> None:
    with _DECODE_CACHE_LOCK:
        _DECODE_CACHE.clear()


def _decode(source: SourceImage) -> Image.Image:
    if source.image is not None:
        img = source.image
        img.load()
        return img.convert("RGBA")

    try:
        if source.data is not None:
            img = Image.open(io.BytesIO(source.data))
        elif source.path is not None:
            img = Image.open(Path(source.path))
        else:
            raise DecodeError(f"Empty image handle: {source.label}")
        img.load()
        return img.convert("RGBA")
    except (OSError, UnidentifiedImageError, ValueError) as e:
        if isinstance(e, DecodeError):
            raise
        raise DecodeError(f"Cannot decode {source.label}: {e}") from e


def load_image(source: SourceImage) -> Image.Image:
    """
    Decodes `source` to an RGBA Pillow image.
    Cached (bytes by content hash, files by path+mtime). Raises DecodeError.
    Callers must not mutate the returned image.
    """
    key = _cache_key(source)

    if key is not None and _DECODE_CACHE_MAX > 0:
        with _DECODE_CACHE_LOCK:
            hit = _DECODE_CACHE.get(key)
            if hit is not None:
                _DECODE_CACHE.move_to_end(key)
                return hit

    img = _decode(source)
    if img.width <= 0 or img.height <= 0:
        raise DecodeError(f"Image has no pixels: {source.label}")

    if key is not None and _DECODE_CACHE_MAX > 0:
        with _DECODE_CACHE_LOCK:
            _DECODE_CACHE[key] = img
            _DECODE_CACHE.move_to_end(key)
            while len(_DECODE_CACHE) > _DECODE_CACHE_MAX:
                _DECODE_CACHE.popitem(last=False)

    return img


def load_usable_images(sources: Iterable[SourceImage], *, what: str = "image") -> List[Image.Image]:
    """Decodes every source, skipping (and logging) the ones that fail."""
    out: List[Image.Image] = []
    for src in sources:
        try:
            out.append(load_image(src))
        except DecodeError as e:
            log.warning("Skipping %s %s: %s", what, src.label, e)
    return out


# ==========================================================
# Ownership transfer (background engine)
# ==========================================================

def materialize(source: SourceImage) -> SourceImage:
    """
    Returns a SourceImage that owns its encoded bytes.

    The background engine cannot reach the caller's files or live image
    objects, so every handle is turned into bytes before a request is queued.
    Unreadable handles are passed through unchanged; decoding them later fails
    with DecodeError and they are skipped like any other broken motif.
    """
    if source.data is not None:
        return source

    if source.path is not None:
        try:
            data = Path(source.path).read_bytes()
        except OSError as e:
            log.warning("Cannot read %s for background render: %s", source.label, e)
            return source
        return SourceImage(data=data, name=source.label)

    if source.image is not None:
        buf = io.BytesIO()
        img = source.image
        if img.mode not in ("RGBA", "RGB", "L", "LA", "P"):
            img = img.convert("RGBA")
        img.save(buf, format="PNG")
        return SourceImage(data=buf.getvalue(), name=source.label)

    return source


def materialize_all(sources: Iterable[SourceImage]) -> tuple[SourceImage, ...]:
    return tuple(materialize(s) for s in sources)
