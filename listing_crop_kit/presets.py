"""
Preset catalog: load, validate and look up named output formats.

The catalog is built once per process.  It normally comes from
``DEFAULT_PRESETS``; a ``presets.json`` file in the user's config directory
(``config.config_dir()``) replaces it when present and valid.  Invalid or
corrupt files are ignored with a warning; the built-in table is never
overwritten.

The on-disk format uses a versioned envelope::

    {"version": 1, "presets": [ ... ]}
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from listing_crop_kit.config import DEFAULT_PRESETS, PRESET_CATEGORIES, config_dir
from listing_crop_kit.errors import UnknownPresetError
from listing_crop_kit.models import ANCHORS

logger = logging.getLogger(__name__)

_PRESETS_FILENAME = "presets.json"
_FORMAT_VERSION = 1

MODES = ("none", "tile", "warp", "perspective")
PERSPECTIVE_DIRECTIONS = ("left", "right", "corner-in")

_REQUIRED_KEYS = {"id", "width", "height", "category"}
_INT_KEYS = ("width", "height")


@dataclass(frozen=True)
class Preset:
    """A named, immutable output format."""
    id: str
    width: int
    height: int
    category: str
    label: str = ""
    description: str = ""
    default_zoom: float = 1.0
    default_anchor: str = "center"
    mode: str = "none"
    perspective_direction: str | None = None
    perspective_amount: float = 0.0

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


# =============================================================================
# Validation
# =============================================================================
def validate_presets(data: object) -> list[str]:
    """
    Validate a list of preset dicts.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Presets data must be a list")
        return errors

    ids_seen: set[str] = set()

    for i, entry in enumerate(data):
        prefix = f"Preset #{i + 1}"

        if not isinstance(entry, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _REQUIRED_KEYS - entry.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        pid = entry["id"]
        if not isinstance(pid, str) or not pid.strip():
            errors.append(f"{prefix}: id must be a non-empty string")
        elif pid in ids_seen:
            errors.append(f"{prefix}: duplicate id '{pid}'")
        else:
            ids_seen.add(pid)
            prefix = f"{prefix} ('{pid}')"

        for key in _INT_KEYS:
            val = entry.get(key)
            # bool is an int subclass; reject it explicitly
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")

        if entry["category"] not in PRESET_CATEGORIES:
            errors.append(f"{prefix}: category must be one of {', '.join(PRESET_CATEGORIES)}")

        zoom = entry.get("default_zoom", 1.0)
        if not isinstance(zoom, (int, float)) or zoom < 1.0:
            errors.append(f"{prefix}: default_zoom must be a number >= 1.0, got {zoom!r}")

        if entry.get("default_anchor", "center") not in ANCHORS:
            errors.append(f"{prefix}: unknown default_anchor {entry.get('default_anchor')!r}")

        mode = entry.get("mode", "none")
        if mode not in MODES:
            errors.append(f"{prefix}: mode must be one of {', '.join(MODES)}")
        elif mode == "perspective":
            if entry.get("perspective_direction") not in PERSPECTIVE_DIRECTIONS:
                errors.append(
                    f"{prefix}: perspective_direction must be one of "
                    f"{', '.join(PERSPECTIVE_DIRECTIONS)}"
                )
            amount = entry.get("perspective_amount", 0.0)
            if not isinstance(amount, (int, float)) or not 0.0 <= amount <= 1.0:
                errors.append(f"{prefix}: perspective_amount must be within [0, 1], got {amount!r}")

    return errors


def preset_from_dict(entry: dict) -> Preset:
    """Build a Preset from an already-validated dict."""
    return Preset(
        id=entry["id"],
        width=entry["width"],
        height=entry["height"],
        category=entry["category"],
        label=entry.get("label", entry["id"]),
        description=entry.get("description", ""),
        default_zoom=float(entry.get("default_zoom", 1.0)),
        default_anchor=entry.get("default_anchor", "center"),
        mode=entry.get("mode", "none"),
        perspective_direction=entry.get("perspective_direction"),
        perspective_amount=float(entry.get("perspective_amount", 0.0)),
    )


# =============================================================================
# Load
# =============================================================================
def _presets_path() -> Path:
    """Return the full path to presets.json."""
    return config_dir() / _PRESETS_FILENAME


def _builtin_presets() -> tuple[Preset, ...]:
    return tuple(preset_from_dict(entry) for entry in DEFAULT_PRESETS)


def load_presets(path: Path | None = None) -> tuple[Preset, ...]:
    """
    Load the preset catalog.

    Reads *path* (default: presets.json in the config directory).  If the
    file is missing, corrupt, or fails validation, the built-in catalog is
    returned instead.
    """
    if path is None:
        path = _presets_path()

    if not path.exists():
        logger.debug("%s not found, using built-in presets", path)
        return _builtin_presets()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s (%s), using built-in presets", path, exc)
        return _builtin_presets()

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "presets" not in raw:
        logger.warning("%s missing version envelope, using built-in presets", path)
        return _builtin_presets()

    data = raw["presets"]
    errors = validate_presets(data)
    if errors:
        logger.warning(
            "%s validation failed:\n  %s\nUsing built-in presets.",
            path, "\n  ".join(errors),
        )
        return _builtin_presets()

    logger.info("Loaded %d preset(s) from %s", len(data), path)
    return tuple(preset_from_dict(entry) for entry in data)


@lru_cache(maxsize=1)
def get_catalog() -> tuple[Preset, ...]:
    """Process-wide catalog, loaded on first use."""
    return load_presets()


# =============================================================================
# Lookup
# =============================================================================
def get_preset(preset_id: str, catalog=None) -> Preset:
    """Look up a preset by id; raises UnknownPresetError on a miss."""
    for preset in catalog if catalog is not None else get_catalog():
        if preset.id == preset_id:
            return preset
    raise UnknownPresetError(preset_id)


def get_presets_by_category(category: str, catalog=None) -> list[Preset]:
    if category not in PRESET_CATEGORIES:
        raise ValueError(f"Unknown category {category!r}")
    return [p for p in (catalog if catalog is not None else get_catalog()) if p.category == category]


def get_grouped_presets(catalog=None) -> dict[str, list[Preset]]:
    """Presets grouped by category, in catalog order."""
    return {category: get_presets_by_category(category, catalog) for category in PRESET_CATEGORIES}
