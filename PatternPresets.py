from __future__ import annotations

from typing import Dict, List, Tuple

from RenderRequest import Size

SIZES: Dict[str, Size] = {
    "1200x628": Size(1200, 628, "Homepage"),
    "2000x380": Size(2000, 380, "Landing Page"),
    "1080x1080": Size(1080, 1080, "Email"),
    "1080x1350": Size(1080, 1350, "Instagram Post (Portrait)"),
    "1080x1920": Size(1080, 1920, "Instagram Story"),
}

COLLECTIONS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "all-sizes": ("All Sizes", ("1200x628", "1080x1080", "1080x1350", "1080x1920")),
    "read-down-suite": ("Read-Down Suite", ("1200x628", "2000x380", "1080x1080")),
}

# First color is the background
GENRE_PALETTES: Dict[str, Tuple[str, ...]] = {
    "Romance": ("#ED5F93", "#FFC636", "#FF602B", "#7CCFD4", "#FFE4BC"),
    "Sci-Fi & Fantasy": ("#573DE8", "#4091ED", "#098E9B", "#DBD000", "#9565DE"),
    "Fiction": ("#F24911", "#3AABB1", "#90BD11", "#BA9DEC", "#F7C57E"),
    "Kids & YA": ("#FF8FB8", "#FFC636", "#FCF56F", "#64ABFB", "#C8EC64"),
    "Mysteries & Thrillers": ("#CF202A", "#750029", "#230F66", "#005761", "#554F46"),
    "Historical Fiction": ("#FF9B0D", "#AD4900", "#D97E00", "#90BD11", "#755F66"),
    "Nonfiction": ("#C8EC64", "#64ABFB", "#FFD978", "#005D81", "#709900"),
    "Women's Fiction": ("#FF9B0D", "#FF8FB8", "#9565DE", "#90BD11", "#FFE4BC"),
    "Book Club": ("#BA9DEC", "#7CCFD4", "#FFE4BC", "#FFD978", "#B5AFA6"),
    "New Books": ("#F24911", "#ED5F93", "#FF8FB8", "#573DE8", "#3AABB1", "#64ABFB"),
    "Biographies & Memoirs": ("#D97E00", "#FFE4BC", "#D5CFC6", "#755F66", "#005D81"),
}

DEFAULT_GENRE = "Romance"


def resolve_target_sizes(key: str) -> List[Size]:
    """Sizes for a size key ('1080x1080') or a collection key ('all-sizes')."""
    if key in COLLECTIONS:
        _, members = COLLECTIONS[key]
        return [SIZES[k] for k in members]
    if key in SIZES:
        return [SIZES[key]]
    raise KeyError(f"Unknown size or collection: {key}")


def parse_size(text: str) -> Size:
    """'1200x628' -> preset Size (named) or an anonymous Size."""
    if text in SIZES:
        return SIZES[text]
    try:
        w_s, h_s = text.lower().split("x", 1)
        w, h = int(w_s), int(h_s)
    except ValueError as e:
        raise ValueError(f"Invalid size: {text!r} (expected WIDTHxHEIGHT)") from e
    if w <= 0 or h <= 0:
        raise ValueError(f"Invalid size: {text!r}")
    return Size(w, h, text)


def genre_palette(name: str) -> Tuple[str, ...]:
    try:
        return GENRE_PALETTES[name]
    except KeyError:
        raise KeyError(f"Unknown genre: {name}") from None
