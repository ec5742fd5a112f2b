"""
Error taxonomy shared by the rendering core.

Decode and render failures are fatal to the single operation that raised
them.  ``DegenerateGeometryError`` never leaves the warp compositor, which
skips the affected triangle instead.  ``BatchPartialFailure`` is raised
once every preset of a batch has settled and at least one of them failed.
"""


class ListingCropError(Exception):
    """Base class for all errors raised by listing_crop_kit."""


class DecodeError(ListingCropError):
    """Source or pattern bytes could not be parsed into an image."""


class RenderError(ListingCropError):
    """A drawing surface could not be allocated or drawn into."""


class DegenerateGeometryError(ListingCropError):
    """An affine solve hit a (near) zero determinant."""


class UnknownPresetError(ListingCropError, KeyError):
    """Lookup of a preset id that is not in the catalog."""

    def __str__(self):
        return f"Unknown preset: {self.args[0]!r}" if self.args else "Unknown preset"


class BatchPartialFailure(ListingCropError):
    """One or more presets of a batch failed; no partial results are returned."""

    def __init__(self, failures: dict):
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"{len(self.failures)} preset(s) failed: {names}")
