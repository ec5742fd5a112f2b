"""
Stateless rasterization of immutable draw commands.

A ``DrawCommand`` fully describes one draw: the source image, a forward
affine transform from source pixels to canvas pixels, an optional clip
polygon, a blend mode and an opacity.  ``rasterize`` consumes one command
and returns a new canvas; nothing is carried over between draws, so a
blend mode or clip used for one triangle can never leak into the next.

Affine transforms are 6-tuples ``(a, b, c, d, e, f)`` meaning::

    X = a*x + b*y + c
    Y = d*x + e*y + f
"""

from dataclasses import dataclass

from PIL import Image, ImageChops, ImageDraw

from listing_crop_kit.errors import DegenerateGeometryError, RenderError

BLEND_MODES = ("normal", "multiply")

IDENTITY = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)

# Determinants below this are treated as singular
_EPSILON = 1e-12
# Twice-areas (px^2) below this mark a collapsed triangle
_AREA_EPSILON = 1e-6
# Tolerance for treating an axis-aligned placement as pixel-exact
_PIXEL_SNAP = 1e-6


@dataclass(frozen=True, eq=False)
class DrawCommand:
    """One draw of *image* onto a canvas."""
    image: Image.Image
    transform: tuple = IDENTITY
    clip: tuple | None = None  # polygon vertices in canvas pixels
    blend: str = "normal"
    opacity: float = 1.0

    def __post_init__(self):
        if self.blend not in BLEND_MODES:
            raise ValueError(f"Unknown blend mode {self.blend!r}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"opacity must be within [0, 1], got {self.opacity!r}")


# =============================================================================
# Canvas helpers
# =============================================================================
def new_canvas(width: int, height: int, color=(0, 0, 0, 0)) -> Image.Image:
    """Allocate an RGBA canvas; raises RenderError if that is impossible."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")
    try:
        return Image.new("RGBA", (int(width), int(height)), color)
    except (MemoryError, ValueError) as exc:
        raise RenderError(f"Could not allocate a {width}x{height} canvas: {exc}") from exc


def resample_region(image: Image.Image, box, size: tuple[int, int]) -> Image.Image:
    """
    Resample the source-space *box* (floats allowed) to exactly *size*.

    The box is snapped to the image bounds to absorb float round-off.
    """
    left, top, right, bottom = box
    left = max(0.0, left)
    top = max(0.0, top)
    right = min(float(image.width), right)
    bottom = min(float(image.height), bottom)
    if right <= left or bottom <= top:
        raise ValueError(f"Empty source region {box!r}")
    try:
        return image.resize(
            (int(size[0]), int(size[1])), Image.Resampling.LANCZOS,
            box=(left, top, right, bottom),
        )
    except MemoryError as exc:
        raise RenderError(f"Could not allocate a {size[0]}x{size[1]} surface") from exc


# =============================================================================
# Affine math
# =============================================================================
def scale_transform(sx: float, sy: float, tx: float = 0.0, ty: float = 0.0) -> tuple:
    return (sx, 0.0, tx, 0.0, sy, ty)


def invert_affine(transform: tuple) -> tuple:
    """Inverse of an affine 6-tuple; raises DegenerateGeometryError if singular."""
    a, b, c, d, e, f = transform
    det = a * e - b * d
    if abs(det) < _EPSILON:
        raise DegenerateGeometryError(f"Affine transform is singular (det={det!r})")
    ia = e / det
    ib = -b / det
    id_ = -d / det
    ie = a / det
    return (ia, ib, -(ia * c + ib * f), id_, ie, -(id_ * c + ie * f))


def affine_from_triangles(src, dst) -> tuple:
    """
    Solve the affine transform mapping triangle *src* onto triangle *dst*.

    Both arguments are three (x, y) pairs.  Closed-form solution of the
    2x3 system given by the three correspondences.  Raises
    DegenerateGeometryError when either triangle is (nearly) collinear.
    """
    (x0, y0), (x1, y1), (x2, y2) = src
    (u0, v0), (u1, v1), (u2, v2) = dst

    denom = (x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0)
    if abs(denom) < _AREA_EPSILON:
        raise DegenerateGeometryError("Source triangle is degenerate")
    dst_area = (u1 - u0) * (v2 - v0) - (u2 - u0) * (v1 - v0)
    if abs(dst_area) < _AREA_EPSILON:
        raise DegenerateGeometryError("Destination triangle is degenerate")

    a = ((u1 - u0) * (y2 - y0) - (u2 - u0) * (y1 - y0)) / denom
    b = ((u2 - u0) * (x1 - x0) - (u1 - u0) * (x2 - x0)) / denom
    c = u0 - a * x0 - b * y0
    d = ((v1 - v0) * (y2 - y0) - (v2 - v0) * (y1 - y0)) / denom
    e = ((v2 - v0) * (x1 - x0) - (v1 - v0) * (x2 - x0)) / denom
    f = v0 - d * x0 - e * y0
    return (a, b, c, d, e, f)


def apply_affine(transform: tuple, x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = transform
    return (a * x + b * y + c, d * x + e * y + f)


# =============================================================================
# Rasterization
# =============================================================================
def _is_pixel_aligned(*values: float) -> bool:
    return all(abs(v - round(v)) < _PIXEL_SNAP for v in values)


def _place(image: Image.Image, transform: tuple, size: tuple[int, int]) -> Image.Image:
    """Render *image* under *transform* into a transparent layer of *size*."""
    src = image if image.mode == "RGBA" else image.convert("RGBA")
    a, b, c, d, e, f = transform

    # Axis-aligned scale onto whole pixels: use a proper downsampling filter
    if abs(b) < _EPSILON and abs(d) < _EPSILON and a > 0 and e > 0:
        right = c + a * src.width
        bottom = f + e * src.height
        if _is_pixel_aligned(c, f, right, bottom):
            layer = Image.new("RGBA", size, (0, 0, 0, 0))
            w, h = round(right - c), round(bottom - f)
            if w > 0 and h > 0:
                scaled = src if (w, h) == src.size else src.resize((w, h), Image.Resampling.LANCZOS)
                layer.paste(scaled, (round(c), round(f)))
            return layer

    inverse = invert_affine(transform)
    # Premultiplied alpha keeps the transparent fill from darkening edges
    warped = src.convert("RGBa").transform(
        size, Image.Transform.AFFINE, inverse,
        resample=Image.Resampling.BICUBIC,
    )
    return warped.convert("RGBA")


def _clip_mask(polygon, size: tuple[int, int]) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).polygon([(float(x), float(y)) for x, y in polygon], fill=255)
    return mask


def rasterize(canvas: Image.Image, command: DrawCommand) -> Image.Image:
    """Apply *command* to a copy of *canvas* and return the new canvas."""
    base = canvas if canvas.mode == "RGBA" else canvas.convert("RGBA")
    try:
        layer = _place(command.image, command.transform, base.size)
    except MemoryError as exc:
        raise RenderError(f"Out of memory while drawing onto {base.size}") from exc

    mask = layer.getchannel("A")
    if command.clip is not None:
        mask = ImageChops.multiply(mask, _clip_mask(command.clip, base.size))
    if command.opacity < 1.0:
        opacity = command.opacity
        mask = mask.point(lambda v: int(round(v * opacity)))

    if command.blend == "multiply":
        blended = ImageChops.multiply(base.convert("RGB"), layer.convert("RGB")).convert("RGBA")
        blended.putalpha(ImageChops.lighter(base.getchannel("A"), mask))
        return Image.composite(blended, base, mask)

    layer.putalpha(mask)
    return Image.alpha_composite(base, layer)


def render(size: tuple[int, int], commands, background=(0, 0, 0, 0)) -> Image.Image:
    """Rasterize *commands* in order onto a fresh canvas."""
    canvas = new_canvas(size[0], size[1], background)
    for command in commands:
        canvas = rasterize(canvas, command)
    return canvas
