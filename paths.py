import os
import sys
from pathlib import Path

_FONT_EXTS = (".ttf", ".otf", ".ttc")

_SYSTEM_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Georgia.ttf",
    "/System/Library/Fonts/Supplemental/Georgia.ttf",
    "C:/Windows/Fonts/georgia.ttf",
)


def get_app_root() -> Path:
    if getattr(sys, "frozen", False):
        # PyInstaller
        return Path(sys._MEIPASS)
    else:
        # Modo desarrollo
        return Path(__file__).resolve().parent


def find_font_path() -> Path | None:
    """PG_FONT_PATH, then <app_root>/fonts, then a few system serif/sans fonts."""
    env = os.environ.get("PG_FONT_PATH", "").strip()
    if env:
        p = Path(env)
        if p.is_file():
            return p

    fonts_dir = get_app_root() / "fonts"
    if fonts_dir.is_dir():
        for p in sorted(fonts_dir.iterdir()):
            if p.suffix.lower() in _FONT_EXTS:
                return p

    for s in _SYSTEM_FONTS:
        p = Path(s)
        if p.is_file():
            return p
    return None
