"""
Wall-corner estimation strategies.

Every strategy exposes ``estimate(image) -> WallCoordinates``.  The warp
compositor only ever sees the resulting coordinates, never the strategy.
``FallbackCornerEstimator`` wraps an unreliable strategy (for example a
remote vision model) and fails closed to a fixed inset quad.
"""

import logging
from typing import Callable, Protocol

from PIL import Image

from listing_crop_kit.config import DEFAULT_WALL_INSET
from listing_crop_kit.models import CORNER_NAMES, Point, WallCoordinates

logger = logging.getLogger(__name__)

# camelCase keys as returned by JSON producers
_PAYLOAD_ALIASES = {
    "top_left": ("top_left", "topLeft"),
    "top_right": ("top_right", "topRight"),
    "bottom_right": ("bottom_right", "bottomRight"),
    "bottom_left": ("bottom_left", "bottomLeft"),
}


class CornerEstimator(Protocol):
    def estimate(self, image: Image.Image) -> WallCoordinates:
        ...


class InsetCornerEstimator:
    """Fixed rectangle inset from every edge; never fails."""

    def __init__(self, inset: float = DEFAULT_WALL_INSET):
        if not 0.0 <= inset < 0.5:
            raise ValueError(f"inset must be within [0, 0.5), got {inset!r}")
        self.inset = inset

    def estimate(self, image: Image.Image) -> WallCoordinates:
        return WallCoordinates.inset(self.inset)


class CallableCornerEstimator:
    """Adapt a callable returning a corner payload (dict) into a strategy."""

    def __init__(self, func: Callable[[Image.Image], dict]):
        self._func = func

    def estimate(self, image: Image.Image) -> WallCoordinates:
        return parse_wall_coordinates(self._func(image))


class FallbackCornerEstimator:
    """Try *primary*; on any failure log it and use *fallback* instead."""

    def __init__(self, primary: CornerEstimator, fallback: CornerEstimator | None = None):
        self.primary = primary
        self.fallback = fallback or InsetCornerEstimator()

    def estimate(self, image: Image.Image) -> WallCoordinates:
        try:
            return self.primary.estimate(image)
        except Exception as exc:
            logger.warning("Wall detection failed (%s), using default corners", exc)
            return self.fallback.estimate(image)


def parse_wall_coordinates(payload: dict) -> WallCoordinates:
    """
    Parse ``{"topLeft": {"x": .., "y": ..}, ...}`` (or snake_case keys).

    Raises ValueError on missing corners or values outside [0, 1].
    """
    if not isinstance(payload, dict):
        raise ValueError("Corner payload must be a dict")

    points = {}
    for name in CORNER_NAMES:
        raw = next((payload[k] for k in _PAYLOAD_ALIASES[name] if k in payload), None)
        if not isinstance(raw, dict) or "x" not in raw or "y" not in raw:
            raise ValueError(f"Corner payload missing {name}")
        x, y = float(raw["x"]), float(raw["y"])
        if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
            raise ValueError(f"Corner {name} out of range: ({x}, {y})")
        points[name] = Point(x, y)
    return WallCoordinates(**points)
