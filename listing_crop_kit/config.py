"""
Application constants and configuration.

DEFAULT_PRESETS provides the built-in output catalog.  A user override is
loaded from presets.json via the presets module.  All other constants
control export encoding, the perspective/warp synthesizers, and preview
rendering.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "listing-crop-kit"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT PRESETS: built-in catalog used when presets.json is missing or bad
# =============================================================================
PRESET_CATEGORIES = ("primary", "secondary", "social")

DEFAULT_PRESETS = [
    # Primary listing photos
    {
        "id": "main_4_3",
        "label": "Main 4:3",
        "description": "Main marketplace listing format (3000x2250)",
        "width": 3000,
        "height": 2250,
        "category": "primary",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "thumb_square",
        "label": "Square thumbnail",
        "description": "High quality thumbnails (2000x2000)",
        "width": 2000,
        "height": 2000,
        "category": "primary",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "vertical_wall",
        "label": "Vertical",
        "description": "Full-height wall view (2000x2700)",
        "width": 2000,
        "height": 2700,
        "category": "primary",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "lifestyle_context",
        "label": "Lifestyle",
        "description": "Interior shot with context (2400x1800)",
        "width": 2400,
        "height": 1800,
        "category": "primary",
        "default_zoom": 1.4,
        "default_anchor": "center",
    },
    {
        "id": "detail_macro_front",
        "label": "Detail (front)",
        "description": "Macro texture of the central area (2000x2000)",
        "width": 2000,
        "height": 2000,
        "category": "primary",
        "default_zoom": 2.5,
        "default_anchor": "center",
    },

    # Secondary: tilts and mockups
    {
        "id": "perspective_warp",
        "label": "Wall mockup",
        "description": "Pattern laid onto a wall, keeping its shadows",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "mode": "warp",
    },
    {
        "id": "tilt_left",
        "label": "Tilt left",
        "description": "Simulated camera angle, wall receding to the right",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "default_zoom": 1.0,
        "default_anchor": "center",
        "mode": "perspective",
        "perspective_direction": "left",
        "perspective_amount": 0.25,
    },
    {
        "id": "tilt_right",
        "label": "Tilt right",
        "description": "Simulated camera angle, wall receding to the left",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "default_zoom": 1.0,
        "default_anchor": "center",
        "mode": "perspective",
        "perspective_direction": "right",
        "perspective_amount": 0.25,
    },
    {
        "id": "corner_in",
        "label": "Interior corner",
        "description": "Two walls meeting at a shared corner line",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "default_zoom": 1.0,
        "default_anchor": "center",
        "mode": "perspective",
        "perspective_direction": "corner-in",
        "perspective_amount": 0.2,
    },
    {
        "id": "size_map",
        "label": "Size map",
        "description": "Dimension infographic base",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "pattern_repeat",
        "label": "Pattern repeat",
        "description": "Seam check (2x2 tile)",
        "width": 2000,
        "height": 2000,
        "category": "secondary",
        "mode": "tile",
    },

    # Social media
    {
        "id": "insta_feed",
        "label": "Instagram 4:5",
        "description": "Feed post (1080x1350)",
        "width": 1080,
        "height": 1350,
        "category": "social",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "stories_reels",
        "label": "Stories",
        "description": "Vertical for Reels/Stories (1080x1920)",
        "width": 1080,
        "height": 1920,
        "category": "social",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
    {
        "id": "pinterest_pin",
        "label": "Pinterest",
        "description": "Optimal pin format (1000x1500)",
        "width": 1000,
        "height": 1500,
        "category": "social",
        "default_zoom": 1.0,
        "default_anchor": "center",
    },
]

# =============================================================================
# EXPORT
# =============================================================================
# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# JPEG quality on the 0..1 scale; mapped to Pillow's 1..100
JPEG_QUALITY_DEFAULT = 1.0
JPEG_SUBSAMPLING_DEFAULT = "4:4:4"

# Map subsampling labels to Pillow integer values
JPEG_SUBSAMPLING_MAP = {"4:4:4": 0, "4:2:2": 1, "4:2:0": 2}

# Transparent pixels are flattened onto this colour for JPEG
JPEG_BACKGROUND = (255, 255, 255)

# Output format options
OUTPUT_FORMATS = ["png", "jpeg"]
OUTPUT_FORMAT_DEFAULT = "png"

# Supported source extensions (PSD is composited through psd-tools)
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tiff", ".tif", ".psd"}

# =============================================================================
# PERSPECTIVE SYNTHESIS
# =============================================================================
# Vertical slices across the destination width
PERSPECTIVE_SLICES = 120

# Upper bound for the distorted height fraction; keeps slice heights positive
PERSPECTIVE_MAX_AMOUNT = 0.95

# Peak darkening (0-255 alpha) of the directional light gradient at amount=1
PERSPECTIVE_SHADE_MAX = 110

# Peak darkening of the soft band along an interior corner join, and its
# half-width as a fraction of the canvas width
CORNER_SHADE_MAX = 90
CORNER_SHADE_WIDTH = 0.08

# =============================================================================
# WARP MOCKUP
# =============================================================================
# Fallback wall quad, inset from every edge by this fraction
DEFAULT_WALL_INSET = 0.2

NO_PATTERN_OVERLAY_RGBA = (0, 0, 0, 128)
NO_PATTERN_MESSAGE = "No pattern loaded"

# =============================================================================
# PREVIEW
# =============================================================================
PREVIEW_MAX_WIDTH = 800

# Zoom slider range used by the interactive session
ZOOM_MIN = 1.0
ZOOM_MAX = 5.0
