"""
Column-slice perspective synthesizer.

The destination width is cut into thin vertical slices.  Each slice samples
the matching column band of the crop rectangle and is drawn with a height
scaled by its horizontal position, vertically centered, which reads as a
wall turning away from the camera.  A linear darkening gradient then
suggests directional light.

``corner-in`` is composed from two single-direction renders (left half
tilted right, right half tilted left) plus a soft dark band on the join.
"""

import logging

from PIL import Image

from listing_crop_kit.config import (
    CORNER_SHADE_MAX, CORNER_SHADE_WIDTH, JPEG_QUALITY_DEFAULT,
    PERSPECTIVE_MAX_AMOUNT, PERSPECTIVE_SHADE_MAX, PERSPECTIVE_SLICES,
)
from listing_crop_kit.image_io import EncodedImage, decode_image_async, encode_image_async
from listing_crop_kit.models import CropArea, check_crop_area
from listing_crop_kit.render import DrawCommand, new_canvas, rasterize, resample_region

logger = logging.getLogger(__name__)

PERSPECTIVE_MODES = ("left", "right", "corner-in")


def clamp_amount(amount: float) -> float:
    """Validate *amount* in [0, 1] and cap it so no slice collapses."""
    if not 0.0 <= amount <= 1.0:
        raise ValueError(f"Perspective amount must be within [0, 1], got {amount!r}")
    return min(float(amount), PERSPECTIVE_MAX_AMOUNT)


def slice_scale(direction: str, t: float, amount: float) -> float:
    """Height scale of the slice at normalized position *t*."""
    if direction == "left":
        return 1.0 - t * amount
    if direction == "right":
        return (1.0 - amount) + t * amount
    raise ValueError(f"Unknown tilt direction {direction!r}")


# =============================================================================
# Shading
# =============================================================================
def _shade(canvas: Image.Image, alpha_row: list[int]) -> Image.Image:
    """Darken *canvas* by a per-column alpha profile, only where it has content."""
    width, height = canvas.size
    row = Image.new("L", (width, 1))
    row.putdata(alpha_row)
    ramp = row.resize((width, height), Image.Resampling.NEAREST)
    # Letterboxed (transparent) areas stay transparent
    alpha = Image.composite(ramp, Image.new("L", (width, height), 0), canvas.getchannel("A"))
    shade = Image.new("RGBA", (width, height), (0, 0, 0, 255))
    shade.putalpha(alpha)
    return rasterize(canvas, DrawCommand(shade))


def _directional_profile(direction: str, width: int, peak: float) -> list[int]:
    span = max(1, width - 1)
    if direction == "left":
        return [int(round(peak * x / span)) for x in range(width)]
    return [int(round(peak * (1.0 - x / span))) for x in range(width)]


def _corner_profile(width: int, peak: float) -> list[int]:
    center = width / 2.0
    half = max(1.0, width * CORNER_SHADE_WIDTH)
    row = []
    for x in range(width):
        d = abs(x + 0.5 - center) / half
        row.append(int(round(peak * (1.0 - d) ** 2)) if d < 1.0 else 0)
    return row


# =============================================================================
# Rendering
# =============================================================================
def render_tilt(
    image: Image.Image, area: CropArea, target_w: int, target_h: int,
    direction: str, amount: float, slices: int = PERSPECTIVE_SLICES,
) -> Image.Image:
    """Render a single left/right tilt of *area* into a target_w x target_h canvas."""
    amount = clamp_amount(amount)
    check_crop_area(area, image.width, image.height)
    canvas = new_canvas(target_w, target_h)
    count = max(1, min(slices, target_w))

    for i in range(count):
        x0 = round(i * target_w / count)
        x1 = round((i + 1) * target_w / count)
        if x1 <= x0:
            continue
        t = i / (count - 1) if count > 1 else 0.0
        dh = max(1, round(target_h * slice_scale(direction, t, amount)))
        y0 = (target_h - dh) // 2
        box = (
            area.x + area.width * x0 / target_w, area.y,
            area.x + area.width * x1 / target_w, area.y + area.height,
        )
        canvas.paste(resample_region(image, box, (x1 - x0, dh)), (x0, y0))

    if amount > 0:
        canvas = _shade(canvas, _directional_profile(direction, target_w, PERSPECTIVE_SHADE_MAX * amount))
    return canvas


def render_perspective(
    image: Image.Image, area: CropArea, target_w: int, target_h: int,
    mode: str, amount: float, slices: int = PERSPECTIVE_SLICES,
) -> Image.Image:
    """Render *area* with a left, right or corner-in perspective effect."""
    if mode not in PERSPECTIVE_MODES:
        raise ValueError(f"Unknown perspective mode {mode!r}")
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"Target size must be positive, got {target_w}x{target_h}")
    amount = clamp_amount(amount)
    check_crop_area(area, image.width, image.height)

    if mode != "corner-in":
        return render_tilt(image, area, target_w, target_h, mode, amount, slices)

    left_w = target_w // 2
    right_w = target_w - left_w
    split = area.width * left_w / target_w
    canvas = new_canvas(target_w, target_h)
    if left_w > 0:
        left_area = CropArea(area.x, area.y, split, area.height)
        canvas.paste(render_tilt(image, left_area, left_w, target_h, "right", amount, slices // 2 or 1), (0, 0))
    right_area = CropArea(area.x + split, area.y, area.width - split, area.height)
    canvas.paste(render_tilt(image, right_area, right_w, target_h, "left", amount, slices // 2 or 1), (left_w, 0))

    if amount > 0:
        canvas = _shade(canvas, _corner_profile(target_w, CORNER_SHADE_MAX * amount))
    return canvas


async def create_perspective_image(
    source, area: CropArea, target_w: int, target_h: int,
    mode: str, amount: float,
    fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
) -> EncodedImage:
    image = await decode_image_async(source)
    result = render_perspective(image, area, target_w, target_h, mode, amount)
    logger.debug("Perspective %s (amount=%.2f) -> %dx%d %s", mode, amount, target_w, target_h, fmt)
    return await encode_image_async(result, fmt, quality)
