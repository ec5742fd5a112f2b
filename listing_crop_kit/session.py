"""
Interactive crop session and its result set.

``CropSession`` holds what a front end mutates on user input (selected
preset, zoom, crop offset, anchor, wall corners, pattern) and renders
through the same geometry functions for a small live preview and for the
full-size "apply".  Applied results accumulate in a ``ResultSet`` keyed
by preset id until explicitly cleared.
"""

import logging

from PIL import Image

from listing_crop_kit.batch import batch_crop_images
from listing_crop_kit.config import JPEG_QUALITY_DEFAULT, PREVIEW_MAX_WIDTH, ZOOM_MAX, ZOOM_MIN
from listing_crop_kit.corners import CornerEstimator, InsetCornerEstimator
from listing_crop_kit.cropper import render_crop, render_tiled
from listing_crop_kit.image_io import EncodedImage, encode_image_async, ensure_image
from listing_crop_kit.models import ANCHORS, CropArea, calculate_crop_area, clamp_crop_area
from listing_crop_kit.perspective import render_perspective
from listing_crop_kit.presets import Preset, get_catalog, get_preset
from listing_crop_kit.warp import draw_warp

logger = logging.getLogger(__name__)


class ResultSet:
    """Encoded results keyed by preset id; re-applying a preset overwrites it."""

    def __init__(self):
        self._items: dict[str, EncodedImage] = {}

    def store(self, preset_id: str, image: EncodedImage) -> None:
        self._items[preset_id] = image

    def update(self, results: dict[str, EncodedImage]) -> None:
        self._items.update(results)

    def get(self, preset_id: str) -> EncodedImage | None:
        return self._items.get(preset_id)

    def clear(self) -> None:
        self._items.clear()

    def items(self):
        return self._items.items()

    def __getitem__(self, preset_id: str) -> EncodedImage:
        return self._items[preset_id]

    def __contains__(self, preset_id) -> bool:
        return preset_id in self._items

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class CropSession:
    def __init__(self, source, catalog=None, corner_estimator: CornerEstimator | None = None):
        self.catalog = tuple(catalog) if catalog is not None else get_catalog()
        self.corner_estimator = corner_estimator or InsetCornerEstimator()
        self.results = ResultSet()
        self.pattern: Image.Image | None = None
        self.wall_corners = None
        self.source: Image.Image = ensure_image(source)
        self.preset: Preset = self.catalog[0]
        self.zoom = 1.0
        self.anchor = "center"
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.select_preset(self.preset.id)

    # =========================================================================
    # Source / pattern
    # =========================================================================
    def load_source(self, source) -> None:
        """Replace the source image; previous results and corners are dropped."""
        self.source = ensure_image(source)
        self.results.clear()
        self.wall_corners = None
        self.select_preset(self.preset.id)

    def set_pattern(self, source) -> None:
        self.pattern = ensure_image(source) if source is not None else None

    # =========================================================================
    # Framing
    # =========================================================================
    def select_preset(self, preset_id: str) -> Preset:
        """Switch preset and reset zoom/anchor/offset to its defaults."""
        self.preset = get_preset(preset_id, self.catalog)
        self.zoom = self.preset.default_zoom
        self.anchor = self.preset.default_anchor
        self._reframe()
        if self.preset.mode == "warp" and self.wall_corners is None:
            self.wall_corners = self.corner_estimator.estimate(self.source)
        return self.preset

    def _cover_area(self) -> CropArea:
        return calculate_crop_area(
            self.source.width, self.source.height,
            self.preset.width, self.preset.height,
            self.zoom, self.anchor,
        )

    def _reframe(self) -> None:
        area = self._cover_area()
        self.offset_x, self.offset_y = area.x, area.y

    def _set_offset(self, x: float, y: float) -> None:
        w, h = self.crop_size
        area = clamp_crop_area(CropArea(x, y, w, h), self.source.width, self.source.height)
        self.offset_x, self.offset_y = area.x, area.y

    @property
    def crop_size(self) -> tuple[float, float]:
        area = self._cover_area()
        return area.width, area.height

    @property
    def crop_area(self) -> CropArea:
        w, h = self.crop_size
        return CropArea(self.offset_x, self.offset_y, w, h)

    def set_zoom(self, zoom: float) -> None:
        """Change zoom, keeping the crop centred where it was."""
        cx, cy = self.crop_area.center
        self.zoom = max(ZOOM_MIN, min(ZOOM_MAX, float(zoom)))
        w, h = self.crop_size
        self._set_offset(cx - w / 2, cy - h / 2)

    def set_anchor(self, anchor: str) -> None:
        if anchor not in ANCHORS:
            raise ValueError(f"Unknown anchor {anchor!r}")
        self.anchor = anchor
        self._reframe()

    def pan_to(self, x: float, y: float) -> None:
        """Centre the crop on source point (x, y), clamped to the image."""
        w, h = self.crop_size
        self._set_offset(x - w / 2, y - h / 2)

    def move_by(self, dx: float, dy: float) -> None:
        self._set_offset(self.offset_x + dx, self.offset_y + dy)

    def move_corner(self, name: str, x: float, y: float) -> None:
        if self.wall_corners is None:
            self.wall_corners = self.corner_estimator.estimate(self.source)
        self.wall_corners = self.wall_corners.with_corner(name, x, y)

    # =========================================================================
    # Rendering
    # =========================================================================
    def render(self, width: int, height: int) -> Image.Image:
        """Render the current preset at width x height (preview or export)."""
        preset = self.preset
        if preset.mode == "tile":
            return render_tiled(self.source, width, height)
        if preset.mode == "warp":
            corners = self.wall_corners or self.corner_estimator.estimate(self.source)
            return draw_warp(self.source, self.pattern, corners, (width, height))
        if preset.mode == "perspective":
            return render_perspective(
                self.source, self.crop_area, width, height,
                preset.perspective_direction, preset.perspective_amount,
            )
        return render_crop(self.source, self.crop_area, width, height)

    def preview_size(self, max_width: int = PREVIEW_MAX_WIDTH) -> tuple[int, int]:
        width = min(self.preset.width, max_width)
        height = max(1, round(self.preset.height * width / self.preset.width))
        return width, height

    def render_preview(self, max_width: int = PREVIEW_MAX_WIDTH) -> Image.Image:
        return self.render(*self.preview_size(max_width))

    async def apply(self, fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT) -> EncodedImage:
        """Render the current preset at full size and store it in the results."""
        if self.preset.mode == "warp" and self.pattern is None:
            raise ValueError("Load a pattern image before applying the wall mockup")
        image = self.render(self.preset.width, self.preset.height)
        encoded = await encode_image_async(image, fmt, quality)
        self.results.store(self.preset.id, encoded)
        logger.info("Applied preset %s (%dx%d %s)", self.preset.id, encoded.width, encoded.height, encoded.format)
        return encoded

    async def batch_generate(self, preset_ids=None, fmt: str = "png",
                             quality: float = JPEG_QUALITY_DEFAULT) -> dict[str, EncodedImage]:
        """Render the selected presets (default: all) with their default framing."""
        if preset_ids is None:
            presets = list(self.catalog)
        else:
            presets = [get_preset(pid, self.catalog) for pid in preset_ids]
        skipped = [p.id for p in presets if p.mode == "warp"]
        if skipped:
            logger.info("Skipping warp preset(s) in batch: %s", ", ".join(skipped))
        presets = [p for p in presets if p.mode != "warp"]

        results = await batch_crop_images(self.source, presets, fmt, quality)
        self.results.update(results)
        return results

    def clear_results(self) -> None:
        self.results.clear()
