"""
Command-line entry point.

Usage:
    python -m listing_crop_kit photo.jpg --out crops/
    listing-crop-kit photo.jpg --preset main_4_3 --preset pattern_repeat --format jpeg
    listing-crop-kit room.jpg --pattern wallpaper.png --corners corners.json
    listing-crop-kit --list
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from listing_crop_kit.batch import batch_crop_images
from listing_crop_kit.config import (
    DEFAULT_WALL_INSET, IMAGE_EXTENSIONS, JPEG_QUALITY_DEFAULT,
    OUTPUT_FORMAT_DEFAULT, OUTPUT_FORMATS, PRESET_CATEGORIES,
)
from listing_crop_kit.corners import parse_wall_coordinates
from listing_crop_kit.errors import BatchPartialFailure, ListingCropError
from listing_crop_kit.image_io import open_image, unique_path
from listing_crop_kit.models import WallCoordinates
from listing_crop_kit.presets import get_catalog, get_grouped_presets, get_preset
from listing_crop_kit.warp import create_warped_image

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listing-crop-kit",
        description="Crop one photo into marketplace and social-media formats.",
    )
    parser.add_argument("source", nargs="?", type=Path, help="source image (PNG, JPEG, WebP, PSD)")
    parser.add_argument("--preset", action="append", dest="presets", metavar="ID",
                        help="preset id to render (repeatable; default: all)")
    parser.add_argument("--category", choices=PRESET_CATEGORIES, help="render every preset of a category")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default=OUTPUT_FORMAT_DEFAULT)
    parser.add_argument("--quality", type=float, default=JPEG_QUALITY_DEFAULT, help="JPEG quality, 0..1")
    parser.add_argument("--pattern", type=Path, help="pattern image for the wall mockup presets")
    parser.add_argument("--corners", help="wall corners as a JSON file or inline JSON")
    parser.add_argument("--out", type=Path, default=Path("."), help="output directory")
    parser.add_argument("--list", action="store_true", help="list the preset catalog and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _print_catalog() -> None:
    for category, presets in get_grouped_presets().items():
        print(f"[{category}]")
        for p in presets:
            mode = "" if p.mode == "none" else f"  ({p.mode})"
            print(f"  {p.id:<20} {p.width}x{p.height}  {p.label}{mode}")


def _check_extension(path: Path) -> None:
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        raise ValueError(f"Unsupported image type '{path.suffix}' for {path.name}")


def _load_corners(value: str | None):
    if value is None:
        return WallCoordinates.inset(DEFAULT_WALL_INSET)
    text = value if value.lstrip().startswith("{") else Path(value).read_text(encoding="utf-8")
    return parse_wall_coordinates(json.loads(text))


def _select_presets(args) -> list:
    if args.presets:
        return [get_preset(pid) for pid in args.presets]
    if args.category:
        return [p for p in get_catalog() if p.category == args.category]
    return list(get_catalog())


async def _run(args) -> dict:
    _check_extension(args.source)
    source = open_image(args.source)
    presets = _select_presets(args)
    batch = [p for p in presets if p.mode != "warp"]
    warps = [p for p in presets if p.mode == "warp"]

    results = await batch_crop_images(source, batch, args.format, args.quality) if batch else {}

    if warps:
        if args.pattern is None:
            logger.warning("Skipping %s: no --pattern given", ", ".join(p.id for p in warps))
        else:
            _check_extension(args.pattern)
            pattern = args.pattern.read_bytes()
            corners = _load_corners(args.corners)
            for preset in warps:
                results[preset.id] = await create_warped_image(
                    source, pattern, corners, preset.width, preset.height,
                    args.format, args.quality,
                )
    return results


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        _print_catalog()
        return 0
    if args.source is None:
        build_parser().error("a source image is required unless --list is given")

    try:
        results = asyncio.run(_run(args))
    except BatchPartialFailure as exc:
        for preset_id, error in exc.failures.items():
            print(f"{preset_id}: {error}", file=sys.stderr)
        return 1
    except (ListingCropError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    args.out.mkdir(parents=True, exist_ok=True)
    for preset_id, encoded in results.items():
        out_path = unique_path(args.out / f"{args.source.stem}_{preset_id}{encoded.extension}")
        out_path.write_bytes(encoded.data)
        print(out_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
