"""Pytest configuration - import path and small synthetic images.

Everything here is drawn with Pillow at test time so the suite needs no
fixture files on disk.
"""
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ImageLoader import clear_decode_cache  # noqa: E402
from RenderRequest import RenderRequest, Size, SourceImage  # noqa: E402

# Small master keeps engine / session tests fast
TEST_MASTER = 64

PALETTE = ("#112233", "#445566")


@pytest.fixture(autouse=True)
def _fresh_decode_cache():
    clear_decode_cache()
    yield
    clear_decode_cache()


@pytest.fixture
def project_root():
    return ROOT


def make_motif(size: int = 32) -> Image.Image:
    """Opaque disc on a transparent square."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse((2, 2, size - 3, size - 3), fill=(255, 255, 255, 255))
    return img


def make_cover(width: int, height: int, color=(200, 40, 40)) -> Image.Image:
    return Image.new("RGB", (width, height), color)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_png(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def motif():
    return make_motif()


@pytest.fixture
def motif_source(motif):
    return SourceImage(image=motif, name="disc")


@pytest.fixture
def make_request(motif_source):
    """Factory for small, fully seeded requests."""

    def _make(**overrides) -> RenderRequest:
        kwargs = dict(
            images=(motif_source,),
            palette=PALETTE,
            target_sizes=(Size(40, 30),),
            seed=0.5,
        )
        kwargs.update(overrides)
        return RenderRequest(**kwargs)

    return _make
