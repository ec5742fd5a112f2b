"""
Data models and crop-geometry utilities.

CropArea and WallCoordinates are the value types shared by the renderers,
the batch orchestrator and the interactive session.  Everything here is
resolution-independent: crop areas live in source-pixel space and wall
corners are normalized to [0, 1], so the same values drive a cheap preview
and a full-size export.
"""

from dataclasses import dataclass, replace

# Nine anchor names; each fixes the horizontal and vertical edge independently
ANCHORS = (
    "center", "top", "bottom", "left", "right",
    "top-left", "top-right", "bottom-left", "bottom-right",
)

CORNER_NAMES = ("top_left", "top_right", "bottom_right", "bottom_left")

# Float round-off allowed past the image edge (source pixels)
_BOUNDS_TOLERANCE = 1e-6


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class CropArea:
    """Crop rectangle in source-image pixel coordinates (floats)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> tuple[float, float, float, float]:
        """Pillow-style (left, upper, right, lower) box."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class WallCoordinates:
    """Four named quad corners, each normalized to [0, 1] of the canvas."""
    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    @classmethod
    def inset(cls, fraction: float) -> "WallCoordinates":
        """Axis-aligned rectangle inset from every edge by *fraction*."""
        lo, hi = fraction, 1.0 - fraction
        return cls(Point(lo, lo), Point(hi, lo), Point(hi, hi), Point(lo, hi))

    def corners(self) -> tuple[Point, Point, Point, Point]:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def scaled(self, width: float, height: float) -> tuple[tuple[float, float], ...]:
        """Corner positions in pixels for a canvas of *width* x *height*."""
        return tuple((p.x * width, p.y * height) for p in self.corners())

    def with_corner(self, name: str, x: float, y: float) -> "WallCoordinates":
        """Return a copy with corner *name* moved, clamped to [0, 1]."""
        if name not in CORNER_NAMES:
            raise ValueError(f"Unknown corner {name!r}; expected one of {', '.join(CORNER_NAMES)}")
        return replace(self, **{name: Point(_clamp01(x), _clamp01(y))})

    def to_dict(self) -> dict:
        return {name: {"x": p.x, "y": p.y} for name, p in zip(CORNER_NAMES, self.corners())}


# =============================================================================
# Crop math utilities
# =============================================================================
def calculate_crop_area(
    img_w: float, img_h: float,
    target_w: float, target_h: float,
    zoom: float = 1.0, anchor: str = "center",
) -> CropArea:
    """
    Compute the source rectangle that covers a *target_w* x *target_h* output.

    The largest rectangle with the target aspect that fits inside the image
    is shrunk by *zoom* and positioned by *anchor*.  With ``zoom >= 1`` the
    result always lies inside the image, so no clamping is applied.
    """
    if img_w <= 0 or img_h <= 0 or target_w <= 0 or target_h <= 0:
        raise ValueError("Image and target dimensions must be positive")
    if zoom < 1.0:
        raise ValueError(f"zoom must be >= 1.0, got {zoom!r}")
    if anchor not in ANCHORS:
        raise ValueError(f"Unknown anchor {anchor!r}")

    target_aspect = target_w / target_h
    if img_w / img_h > target_aspect:
        # Image is wider than the target: height-bound
        dh = img_h
        dw = img_h * target_aspect
    else:
        dw = img_w
        dh = img_w / target_aspect

    dw /= zoom
    dh /= zoom

    if "left" in anchor:
        x = 0.0
    elif "right" in anchor:
        x = img_w - dw
    else:
        x = (img_w - dw) / 2

    if "top" in anchor:
        y = 0.0
    elif "bottom" in anchor:
        y = img_h - dh
    else:
        y = (img_h - dh) / 2

    return CropArea(x, y, dw, dh)


def clamp_crop_area(area: CropArea, img_w: float, img_h: float) -> CropArea:
    """Move *area* (without resizing) so it lies inside the image bounds."""
    x = max(0.0, min(area.x, img_w - area.width))
    y = max(0.0, min(area.y, img_h - area.height))
    return CropArea(x, y, area.width, area.height)


def check_crop_area(area: CropArea, img_w: float, img_h: float) -> None:
    """Raise ValueError unless *area* is non-empty and inside the image."""
    if area.width <= 0 or area.height <= 0:
        raise ValueError(f"Crop area must be non-empty, got {area.width}x{area.height}")
    left, top, right, bottom = area.box
    if (left < -_BOUNDS_TOLERANCE or top < -_BOUNDS_TOLERANCE
            or right > img_w + _BOUNDS_TOLERANCE or bottom > img_h + _BOUNDS_TOLERANCE):
        raise ValueError(f"Crop area {area.box} lies outside the {img_w}x{img_h} image")


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
