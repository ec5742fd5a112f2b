"""
Pytest configuration and shared fixtures for listing_crop_kit tests.
"""
import io

import pytest
from PIL import Image

from listing_crop_kit.config import DEFAULT_PRESETS
from listing_crop_kit.presets import Preset, get_catalog, preset_from_dict


def make_solid(width, height, color=(255, 0, 0, 255)):
    return Image.new("RGBA", (width, height), color)


def to_png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def decode(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def tolerance():
    """Standard floating point tolerance for geometry comparisons."""
    return 1e-6


@pytest.fixture
def red_source():
    """100x100 solid red source image."""
    return make_solid(100, 100)


@pytest.fixture
def gradient_source():
    """300x200 horizontal grey ramp with a vertical blue ramp, fully opaque."""
    ramp = Image.linear_gradient("L").rotate(90).resize((300, 200))
    blue = Image.linear_gradient("L").resize((300, 200))
    return Image.merge("RGBA", (ramp, ramp, blue, Image.new("L", (300, 200), 255)))


@pytest.fixture
def builtin_catalog():
    """The built-in catalog, without touching the user config directory."""
    return tuple(preset_from_dict(entry) for entry in DEFAULT_PRESETS)


@pytest.fixture
def small_catalog():
    """Small presets covering every mode, cheap to render."""
    return (
        Preset(id="crop", width=40, height=30, category="primary"),
        Preset(id="zoomed", width=40, height=40, category="primary", default_zoom=2.0, default_anchor="top-left"),
        Preset(id="tile", width=40, height=40, category="secondary", mode="tile"),
        Preset(id="wall", width=40, height=40, category="secondary", mode="warp"),
        Preset(id="tilt", width=40, height=40, category="secondary", mode="perspective",
               perspective_direction="left", perspective_amount=0.3),
        Preset(id="story", width=18, height=32, category="social"),
    )


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir and reset the cached catalog."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    get_catalog.cache_clear()
    yield tmp_path
    get_catalog.cache_clear()
