"""
Quadrilateral warp compositor for wall mockups.

The background photo fills the canvas first.  The pattern is then mapped
onto the four wall corners piecewise-affinely: the quad and the pattern
rectangle are both split along the top-right/bottom-left diagonal, each
triangle pair gets its own exact affine transform, and the full pattern is
drawn under that transform clipped to the destination triangle.  Both
triangles are assembled on a private layer which is multiplied onto the
background once, so shadows on the wall show through the print and the
shared diagonal is never darkened twice.

Corners are normalized; they are scaled to the canvas at draw time, so the
same ``WallCoordinates`` drive a small preview and the full-size export.
"""

import logging

from PIL import Image, ImageDraw, ImageFont

from listing_crop_kit.config import JPEG_QUALITY_DEFAULT, NO_PATTERN_MESSAGE, NO_PATTERN_OVERLAY_RGBA
from listing_crop_kit.errors import DegenerateGeometryError
from listing_crop_kit.image_io import EncodedImage, decode_image_async, encode_image_async
from listing_crop_kit.models import WallCoordinates
from listing_crop_kit.render import (
    DrawCommand, affine_from_triangles, new_canvas, rasterize, scale_transform,
)

logger = logging.getLogger(__name__)


def pattern_triangles(width: float, height: float) -> tuple:
    """Pattern rectangle split the same way as the destination quad."""
    return (
        ((0.0, 0.0), (width, 0.0), (0.0, height)),
        ((width, 0.0), (width, height), (0.0, height)),
    )


def quad_triangles(corners_px) -> tuple:
    """(tl, tr, bl) and (tr, br, bl) from pixel corners ordered tl, tr, br, bl."""
    tl, tr, br, bl = corners_px
    return ((tl, tr, bl), (tr, br, bl))


def warp_commands(pattern: Image.Image, corners: WallCoordinates, canvas_size) -> list[DrawCommand]:
    """
    Build one clipped draw command per non-degenerate triangle.

    Degenerate (collinear) destination triangles are skipped, leaving that
    half of the wall undrawn.
    """
    width, height = canvas_size
    commands = []
    for src, dst in zip(pattern_triangles(pattern.width, pattern.height),
                        quad_triangles(corners.scaled(width, height))):
        try:
            transform = affine_from_triangles(src, dst)
        except DegenerateGeometryError as exc:
            logger.debug("Skipping warp triangle %s: %s", dst, exc)
            continue
        commands.append(DrawCommand(pattern, transform, clip=dst))
    return commands


def _draw_background(background: Image.Image | None, canvas_size) -> Image.Image:
    width, height = canvas_size
    canvas = new_canvas(width, height, (255, 255, 255, 255))
    if background is None:
        return canvas
    transform = scale_transform(width / background.width, height / background.height)
    return rasterize(canvas, DrawCommand(background, transform))


def _draw_placeholder(canvas: Image.Image) -> Image.Image:
    overlay = new_canvas(canvas.width, canvas.height, NO_PATTERN_OVERLAY_RGBA)
    canvas = rasterize(canvas, DrawCommand(overlay))
    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), NO_PATTERN_MESSAGE, font=font)
    position = ((canvas.width - (right - left)) / 2, (canvas.height - (bottom - top)) / 2)
    draw.text(position, NO_PATTERN_MESSAGE, fill=(255, 255, 255, 255), font=font)
    return canvas


def draw_warp(
    background: Image.Image | None, pattern: Image.Image | None,
    corners: WallCoordinates, canvas_size: tuple[int, int],
) -> Image.Image:
    """Render *pattern* onto the *corners* quad over *background*."""
    width, height = int(canvas_size[0]), int(canvas_size[1])
    canvas = _draw_background(background, (width, height))

    if pattern is None:
        return _draw_placeholder(canvas)

    layer = new_canvas(width, height)
    for command in warp_commands(pattern, corners, (width, height)):
        try:
            layer = rasterize(layer, command)
        except DegenerateGeometryError as exc:
            logger.debug("Skipping degenerate warp draw: %s", exc)

    return rasterize(canvas, DrawCommand(layer, blend="multiply"))


async def create_warped_image(
    background_source, pattern_source, corners: WallCoordinates,
    width: int, height: int,
    fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
) -> EncodedImage:
    """Decode both images, render the mockup at width x height and encode it."""
    background = await decode_image_async(background_source)
    pattern = await decode_image_async(pattern_source) if pattern_source is not None else None
    result = draw_warp(background, pattern, corners, (width, height))
    logger.debug("Warped pattern onto %dx%d mockup %s", width, height, fmt)
    return await encode_image_async(result, fmt, quality)
