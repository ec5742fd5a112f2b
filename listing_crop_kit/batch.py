"""
Batch orchestrator: many presets against one source image.

The source is decoded once and shared read-only; every preset renders onto
its own private canvas, so no locking is needed.  Presets run as
independent asyncio tasks; the result mapping only becomes visible after
all of them have settled.  A single failure fails the whole batch.
"""

import asyncio
import logging

from PIL import Image

from listing_crop_kit.config import JPEG_QUALITY_DEFAULT
from listing_crop_kit.cropper import render_crop, render_tiled
from listing_crop_kit.errors import BatchPartialFailure
from listing_crop_kit.image_io import EncodedImage, decode_image_async, encode_image_async, normalize_format
from listing_crop_kit.models import calculate_crop_area
from listing_crop_kit.perspective import render_perspective
from listing_crop_kit.presets import Preset

logger = logging.getLogger(__name__)


def render_preset(image: Image.Image, preset: Preset, zoom: float | None = None,
                  anchor: str | None = None) -> Image.Image:
    """Render one non-warp preset at full size using its default framing."""
    if preset.mode == "warp":
        raise ValueError(f"Preset '{preset.id}' needs a pattern and corners; use the warp path")
    if preset.mode == "tile":
        return render_tiled(image, preset.width, preset.height)

    area = calculate_crop_area(
        image.width, image.height, preset.width, preset.height,
        zoom if zoom is not None else preset.default_zoom,
        anchor if anchor is not None else preset.default_anchor,
    )
    if preset.mode == "perspective":
        return render_perspective(
            image, area, preset.width, preset.height,
            preset.perspective_direction, preset.perspective_amount,
        )
    return render_crop(image, area, preset.width, preset.height)


async def process_preset(image: Image.Image, preset: Preset, fmt: str = "png",
                         quality: float = JPEG_QUALITY_DEFAULT) -> EncodedImage:
    result = render_preset(image, preset)
    encoded = await encode_image_async(result, fmt, quality)
    logger.debug("Preset %s done (%dx%d %s)", preset.id, encoded.width, encoded.height, encoded.format)
    return encoded


async def batch_crop_images(
    source, presets, fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
) -> dict[str, EncodedImage]:
    """
    Render every preset in *presets* from *source* (bytes or image).

    Returns ``{preset_id: EncodedImage}``.  Raises BatchPartialFailure if
    any preset fails; warp presets are rejected up front.
    """
    presets = list(presets)
    fmt = normalize_format(fmt)
    warp_ids = [p.id for p in presets if p.mode == "warp"]
    if warp_ids:
        raise ValueError(f"Warp presets cannot be batched: {', '.join(warp_ids)}")

    image = await decode_image_async(source)
    outcomes = await asyncio.gather(
        *(process_preset(image, preset, fmt, quality) for preset in presets),
        return_exceptions=True,
    )

    results: dict[str, EncodedImage] = {}
    failures: dict[str, BaseException] = {}
    for preset, outcome in zip(presets, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Preset %s failed: %s", preset.id, outcome)
            failures[preset.id] = outcome
        else:
            results[preset.id] = outcome

    if failures:
        raise BatchPartialFailure(failures)

    logger.info("Batch complete: %d preset(s) from %dx%d source", len(results), image.width, image.height)
    return results


def run_batch(source, presets, fmt: str = "png",
              quality: float = JPEG_QUALITY_DEFAULT) -> dict[str, EncodedImage]:
    """Synchronous wrapper around ``batch_crop_images``."""
    return asyncio.run(batch_crop_images(source, presets, fmt, quality))
