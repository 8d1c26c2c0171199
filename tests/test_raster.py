"""
Tests for the per-pixel helpers: tint, clipped compositing, crop, post-processing.
"""

import numpy as np
import pytest
from PIL import Image

from Dithering import QUANT_STEP, noise_dither, ordered_dither
from ImageTinter import tint_image
from PostProcess import apply_blur, apply_dither, dither_rng, post_process
from RasterOps import alpha_composite_at, solid
from RenderRequest import Size
from SizeCropper import crop_to_size, plan_crop

from conftest import decode_png, png_bytes


def gradient_master(side: int) -> Image.Image:
    ys, xs = np.mgrid[0:side, 0:side]
    arr = np.zeros((side, side, 4), dtype=np.uint8)
    arr[..., 0] = xs % 256
    arr[..., 1] = ys % 256
    arr[..., 3] = 255
    return Image.fromarray(arr, mode="RGBA")


class TestTint:
    """Tests for tint_image."""

    def test_color_replaced_alpha_kept(self):
        src = Image.new("RGBA", (4, 1))
        src.putdata([(9, 9, 9, 0), (9, 9, 9, 64), (9, 9, 9, 128), (9, 9, 9, 255)])
        out = tint_image(src, "#ff8000")
        assert np.asarray(out).reshape(-1, 4).tolist() == [
            [255, 128, 0, 0],
            [255, 128, 0, 64],
            [255, 128, 0, 128],
            [255, 128, 0, 255],
        ]

    def test_color_alpha_scales_mask(self):
        src = Image.new("RGBA", (1, 1), (0, 0, 0, 255))
        out = tint_image(src, "#ff800080")
        assert out.getpixel((0, 0)) == (255, 128, 0, 128)

    def test_rgb_source_is_opaque(self):
        out = tint_image(Image.new("RGB", (2, 2), (1, 2, 3)), "#010203")
        assert (np.asarray(out) == (1, 2, 3, 255)).all()


class TestAlphaCompositeAt:
    """Tests for the clipped composite helper."""

    def test_negative_destination_clipped(self):
        base = solid((10, 10), (0, 0, 0, 255))
        alpha_composite_at(base, solid((6, 6), (255, 0, 0, 255)), -3, -3)
        assert base.getpixel((0, 0)) == (255, 0, 0, 255)
        assert base.getpixel((2, 2)) == (255, 0, 0, 255)
        assert base.getpixel((3, 3)) == (0, 0, 0, 255)

    def test_fully_outside_is_noop(self):
        base = solid((10, 10), (0, 0, 0, 255))
        before = base.tobytes()
        alpha_composite_at(base, solid((4, 4), (255, 0, 0, 255)), 20, -30)
        assert base.tobytes() == before

    def test_past_far_edge(self):
        base = solid((10, 10), (0, 0, 0, 255))
        alpha_composite_at(base, solid((6, 6), (0, 255, 0, 255)), 7, 8)
        assert base.getpixel((9, 9)) == (0, 255, 0, 255)
        assert base.getpixel((6, 9)) == (0, 0, 0, 255)


class TestSizeCropper:
    """Tests for plan_crop / crop_to_size."""

    def test_homepage_center_crop(self):
        plan = plan_crop(2400, Size(1200, 628))
        assert plan.mode == "crop"
        assert (plan.source_x, plan.source_y) == (600, 886)
        assert (plan.width, plan.height) == (1200, 628)

    def test_full_master(self):
        plan = plan_crop(2400, Size(2400, 2400))
        assert (plan.mode, plan.source_x, plan.source_y) == ("crop", 0, 0)

    def test_odd_remainder_floors(self):
        plan = plan_crop(100, Size(41, 20))
        assert (plan.source_x, plan.source_y) == (29, 40)

    def test_crop_pixels_come_from_center(self):
        master = gradient_master(100)
        out = crop_to_size(master, Size(40, 20))
        assert out.size == (40, 20)
        assert out.getpixel((0, 0)) == master.getpixel((30, 40))
        assert out.getpixel((39, 19)) == master.getpixel((69, 59))

    def test_larger_than_master_scales_to_cover(self):
        plan = plan_crop(100, Size(200, 50))
        assert plan.mode == "cover"
        assert plan.scale == pytest.approx(2.0)
        assert plan.offset_x == pytest.approx(0.0)
        assert plan.offset_y == pytest.approx(-75.0)

        out = crop_to_size(gradient_master(100), Size(200, 50))
        assert out.size == (200, 50)
        assert out.getpixel((100, 25))[3] == 255

    @pytest.mark.parametrize("size", [Size(0, 10), Size(10, -1)])
    def test_invalid_size(self, size):
        with pytest.raises(ValueError):
            plan_crop(100, size)


class TestPostProcess:
    """Tests for blur and dither."""

    def make_image(self):
        arr = np.zeros((16, 16, 4), dtype=np.uint8)
        arr[:, 8:, :3] = 200
        arr[..., 3] = np.arange(16, dtype=np.uint8)[None, :] * 16
        return Image.fromarray(arr, mode="RGBA")

    def test_noop_returns_same_object(self):
        img = self.make_image()
        out = post_process(img, blur_amount=0.0, dither_amount=0.0)
        assert out is img
        assert png_bytes(out) == png_bytes(img)

    def test_noop_for_none_mode(self):
        img = self.make_image()
        assert apply_dither(img, mode="none", amount=0.7) is img

    def test_blur_softens_edge(self):
        img = self.make_image()
        out = apply_blur(img, 2.0)
        assert out.size == img.size
        assert out.tobytes() != img.tobytes()
        assert apply_blur(img, 0) is img

    @pytest.mark.parametrize("mode", ["noise", "ordered"])
    def test_dither_quantizes_rgb_only(self, mode):
        img = self.make_image()
        out = apply_dither(img, mode=mode, amount=0.3, rng=dither_rng(0.5))
        arr = np.asarray(out)
        rgb = arr[..., :3]
        assert np.all((rgb % QUANT_STEP == 0) | (rgb == 255))
        assert np.array_equal(arr[..., 3], np.asarray(img)[..., 3])

    def test_noise_dither_reproducible_from_seed(self):
        arr = np.asarray(self.make_image())
        a = noise_dither(arr, 0.5, rng=dither_rng(0.25))
        b = noise_dither(arr, 0.5, rng=dither_rng(0.25))
        assert np.array_equal(a, b)

    def test_ordered_dither_deterministic(self):
        arr = np.asarray(self.make_image())
        assert np.array_equal(ordered_dither(arr, 0.4), ordered_dither(arr, 0.4))

    def test_zero_amount_passthrough(self):
        arr = np.asarray(self.make_image())
        assert noise_dither(arr, 0.0) is arr
        assert ordered_dither(arr, 0.0) is arr

    def test_png_roundtrip_of_dithered_output(self):
        out = apply_dither(self.make_image(), mode="noise", amount=0.2, rng=dither_rng(0.5))
        assert decode_png(png_bytes(out)).size == (16, 16)
