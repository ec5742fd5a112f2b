"""
Crop executor and 2x2 tile synthesizer.

``render_*`` functions are synchronous and return an RGBA image; they are
what the live preview calls.  The ``crop_image`` / ``create_tiled_image``
coroutines decode the source, render at full size and encode the result.
"""

import logging

from PIL import Image

from listing_crop_kit.config import JPEG_QUALITY_DEFAULT
from listing_crop_kit.image_io import EncodedImage, decode_image_async, encode_image_async
from listing_crop_kit.models import CropArea, check_crop_area
from listing_crop_kit.render import new_canvas, resample_region

logger = logging.getLogger(__name__)


def _check_target(target_w: int, target_h: int) -> None:
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"Target size must be positive, got {target_w}x{target_h}")


def render_crop(image: Image.Image, area: CropArea, target_w: int, target_h: int) -> Image.Image:
    """Sample *area* of *image* and resample it to exactly target_w x target_h."""
    _check_target(target_w, target_h)
    check_crop_area(area, image.width, image.height)
    canvas = new_canvas(target_w, target_h)
    canvas.paste(resample_region(image, area.box, (target_w, target_h)), (0, 0))
    return canvas


def render_tiled(image: Image.Image, target_w: int, target_h: int) -> Image.Image:
    """
    Draw the whole *image* into each quadrant of a target_w x target_h canvas.

    Odd sizes put the extra pixel in the right column / bottom row; each
    quadrant is resampled to its own box independently.
    """
    _check_target(target_w, target_h)
    canvas = new_canvas(target_w, target_h)
    half_w, half_h = target_w // 2, target_h // 2
    full_box = (0, 0, image.width, image.height)
    for left, right in ((0, half_w), (half_w, target_w)):
        for top, bottom in ((0, half_h), (half_h, target_h)):
            w, h = right - left, bottom - top
            if w <= 0 or h <= 0:
                continue
            canvas.paste(resample_region(image, full_box, (w, h)), (left, top))
    return canvas


async def crop_image(
    source, x: float, y: float, width: float, height: float,
    target_w: int, target_h: int,
    fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
) -> EncodedImage:
    """Crop (x, y, width, height) from *source* (bytes or image) and encode it."""
    image = await decode_image_async(source)
    result = render_crop(image, CropArea(x, y, width, height), target_w, target_h)
    logger.debug(
        "Cropped (%.1f, %.1f, %.1f, %.1f) -> %dx%d %s",
        x, y, width, height, target_w, target_h, fmt,
    )
    return await encode_image_async(result, fmt, quality)


async def create_tiled_image(
    source, target_w: int, target_h: int,
    fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
) -> EncodedImage:
    image = await decode_image_async(source)
    result = render_tiled(image, target_w, target_h)
    logger.debug("Tiled %dx%d source -> %dx%d %s", image.width, image.height, target_w, target_h, fmt)
    return await encode_image_async(result, fmt, quality)
