from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from PatternEngine import BackgroundPatternEngine, InlinePatternEngine  # noqa: E402
from PatternErrors import PatternError  # noqa: E402
from PaletteColors import to_hex  # noqa: E402
from PatternPresets import DEFAULT_GENRE, genre_palette, parse_size, resolve_target_sizes  # noqa: E402
from RenderRequest import RenderRequest, SourceImage  # noqa: E402


def _sizes(key: str):
    try:
        return resolve_target_sizes(key)
    except KeyError:
        return [parse_size(s.strip()) for s in key.split(",") if s.strip()]


def main() -> int:
    ap = argparse.ArgumentParser(description="Render pattern artwork (one PNG per size key)")
    ap.add_argument("motifs", nargs="+", type=str, help="Motif image files (alpha is used as mask)")
    ap.add_argument("--out", type=str, default="patterns", help="Output directory")
    ap.add_argument("--sizes", type=str, default="all-sizes", help="Collection key, size key or 'WxH,WxH'")
    ap.add_argument("--palette", type=str, default="", help="Comma-separated colors, background first")
    ap.add_argument("--genre", type=str, default=DEFAULT_GENRE, help="Genre palette when --palette is empty")
    ap.add_argument("--seed", type=float, default=None)
    ap.add_argument("--overlay", choices=("none", "transparent", "solid"), default="transparent")
    ap.add_argument("--overlay-alpha", type=float, default=0.8)
    ap.add_argument("--covers", nargs="*", default=[], help="Cover image files")
    ap.add_argument("--variant", choices=("text", "covers", "both"), default="text")
    ap.add_argument("--text", type=str, default="")
    ap.add_argument("--font-size", type=int, default=80)
    ap.add_argument("--line-height", type=int, default=96)
    ap.add_argument("--blur", type=float, default=0.0)
    ap.add_argument("--dither", type=float, default=0.0)
    ap.add_argument("--dither-mode", choices=("noise", "ordered"), default="noise")
    ap.add_argument("--background", action="store_true", help="Render through the background engine")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    palette = [c.strip() for c in args.palette.split(",") if c.strip()]
    if not palette:
        try:
            palette = list(genre_palette(args.genre))
        except KeyError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

    try:
        sizes = tuple(_sizes(args.sizes))
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    kwargs = dict(
        images=tuple(SourceImage(path=Path(p)) for p in args.motifs),
        palette=tuple(palette),
        target_sizes=sizes,
        overlay_style=args.overlay,
        overlay_alpha=args.overlay_alpha,
        cover_images=tuple(SourceImage(path=Path(p)) for p in args.covers),
        cover_variant=args.variant,
        text=args.text,
        font_size=args.font_size,
        line_height=args.line_height,
        blur_amount=args.blur,
        dithering={"mode": args.dither_mode, "amount": args.dither},
    )
    if args.seed is not None:
        kwargs["seed"] = args.seed
    request = RenderRequest(**kwargs)

    engine = BackgroundPatternEngine() if args.background else InlinePatternEngine()
    try:
        with engine:
            result = engine.render(request)
    except PatternError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    for key, data in result.patterns.items():
        (out_dir / f"pattern-{key}.png").write_bytes(data)

    for f in result.failures:
        print(f"[WARN] {f.key}: {f.kind} | {f.message}", file=sys.stderr)

    if result.overlay_color:
        print(f"Overlay color: {to_hex(result.overlay_color)}")
    print(f"OK: {len(result.patterns)} image(s), seed={result.seed!r} -> {out_dir}")
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
