"""
Tests for color parsing, palettes and text-contrast selection.
"""

import pytest

from ContrastSelector import (
    BLACK,
    MIN_TEXT_CONTRAST,
    WHITE,
    best_color_combo,
    color_contrast,
    pick_text_color,
    relative_luminance,
)
from PaletteColors import Palette, parse_color, pick_batch_overlay_color, to_hex, with_alpha
from PatternErrors import InvalidPaletteError
from PatternPresets import GENRE_PALETTES


class TestParseColor:
    """Tests for parse_color."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("#112233", (0x11, 0x22, 0x33, 255)),
            ("112233", (0x11, 0x22, 0x33, 255)),
            ("#fff", (255, 255, 255, 255)),
            ("#11223380", (0x11, 0x22, 0x33, 0x80)),
            ("rgb(10, 20, 30)", (10, 20, 30, 255)),
            ("rgba(10, 20, 30, 0.5)", (10, 20, 30, 128)),
            ("red", (255, 0, 0, 255)),
            ((1, 2, 3), (1, 2, 3, 255)),
            ((1, 2, 3, 4), (1, 2, 3, 4)),
        ],
    )
    def test_accepted_formats(self, value, expected):
        assert parse_color(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "nope", "#12345", (1, 2), None])
    def test_invalid_colors(self, value):
        with pytest.raises(InvalidPaletteError):
            parse_color(value)

    def test_invalid_palette_is_value_error(self):
        with pytest.raises(ValueError):
            parse_color("not-a-color")

    def test_with_alpha(self):
        assert with_alpha("#112233", 0.8) == (0x11, 0x22, 0x33, 204)
        assert with_alpha("#112233", 2.0)[3] == 255

    def test_to_hex(self):
        assert to_hex("rgb(255, 0, 16)") == "#ff0010"


class TestPalette:
    """Tests for Palette."""

    def test_background_and_objects(self):
        p = Palette.from_colors(["#000000", "#ff0000", "#00ff00"])
        assert p.background == "#000000"
        assert p.object_colors == ("#ff0000", "#00ff00")
        assert p.overlay_candidates == ("#ff0000", "#00ff00", "#000000")

    def test_single_color_reuses_background(self):
        p = Palette.from_colors(["#abcdef"])
        assert p.object_colors == ("#abcdef",)

    def test_invalid_colors_skipped(self):
        p = Palette.from_colors(["bogus", "#010203", "#040506"])
        assert p.colors == ("#010203", "#040506")

    def test_empty_palette_raises(self):
        with pytest.raises(InvalidPaletteError):
            Palette.from_colors([])
        with pytest.raises(InvalidPaletteError):
            Palette.from_colors(["bogus"])

    def test_batch_overlay_color_seed_0_5(self):
        """First draw 0.2589... over two candidates picks the object color."""
        p = Palette.from_colors(["#112233", "#445566"])
        assert pick_batch_overlay_color(p, 0.5) == "#445566"

    def test_batch_overlay_color_is_stable(self):
        p = Palette.from_colors(GENRE_PALETTES["Romance"])
        picks = {pick_batch_overlay_color(p, 0.314) for _ in range(5)}
        assert len(picks) == 1
        assert picks.pop() in p.overlay_candidates

    def test_genre_palettes_parse(self):
        for name, colors in GENRE_PALETTES.items():
            assert len(Palette.from_colors(colors).colors) == len(colors), name


class TestContrast:
    """Tests for ContrastSelector."""

    def test_luminance_extremes(self):
        assert relative_luminance("#000000") == pytest.approx(0.0)
        assert relative_luminance("#ffffff") == pytest.approx(1.0)

    def test_black_white_ratio(self):
        assert color_contrast(BLACK, WHITE) == pytest.approx(21.0)
        assert color_contrast("#777777", "#777777") == pytest.approx(1.0)

    def test_light_background_gets_black(self):
        assert pick_text_color("#ffffff") == BLACK
        assert pick_text_color("#e5dfd6") == BLACK

    def test_dark_background_gets_white(self):
        assert pick_text_color("#000000") == WHITE
        assert pick_text_color("#112233") == WHITE

    @pytest.mark.parametrize(
        "background",
        ["#777777", "#ff0000", "#00ff00", "#0000ff", "#ffc636", "#573de8", "#e5dfd6", "#808080"],
    )
    def test_choice_is_readable_or_fallback(self, background):
        """Either contrast >= 4.5 or the black/white fallback."""
        palette = GENRE_PALETTES["Sci-Fi & Fantasy"]
        color = pick_text_color(background, palette)
        assert color_contrast(color, background) >= MIN_TEXT_CONTRAST or color in (BLACK, WHITE)

    @pytest.mark.parametrize("background", ["#777777", "#767676", "#808080", "#5a5a5a"])
    def test_mid_gray_takes_stronger_of_black_and_white(self, background):
        """Palette grays never reach 4.5 here, so the pick is the better of black and white."""
        palette = (background, "#6e6e6e", "#888888")
        color = pick_text_color(background, palette)
        assert color in (BLACK, WHITE)
        other = WHITE if color == BLACK else BLACK
        assert color_contrast(color, background) >= color_contrast(other, background)

    def test_mid_gray_fallback_values(self):
        assert pick_text_color("#777777", ("#777777",)) == BLACK
        assert pick_text_color("#5a5a5a", ("#5a5a5a",)) == WHITE

    def test_unparseable_palette_entries_ignored(self):
        assert pick_text_color("#ffffff", ["bogus"]) == BLACK

    def test_best_color_combo(self):
        overlay, text = best_color_combo(["#000000", "#ffffff", "#ff0000"], "#000000")
        assert overlay == "#ffffff"
        assert text == "#000000"

    def test_best_color_combo_fallback_text(self):
        overlay, text = best_color_combo(["#777777", "#787878"], "#777777")
        assert overlay == "#787878"
        assert text in (BLACK, WHITE)
