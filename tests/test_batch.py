import asyncio

import pytest

from conftest import decode, make_solid, to_png_bytes
from listing_crop_kit.batch import batch_crop_images, render_preset, run_batch
from listing_crop_kit.errors import BatchPartialFailure, DecodeError
from listing_crop_kit.presets import Preset, get_preset


def _non_warp(catalog):
    return [p for p in catalog if p.mode != "warp"]


class TestRenderPreset:
    def test_dispatches_by_mode(self, small_catalog, gradient_source):
        for preset in _non_warp(small_catalog):
            assert render_preset(gradient_source, preset).size == preset.size, preset.id

    def test_warp_rejected(self, small_catalog, red_source):
        with pytest.raises(ValueError):
            render_preset(red_source, get_preset("wall", small_catalog))

    def test_overrides_default_framing(self, gradient_source):
        preset = Preset(id="p", width=30, height=20, category="primary")
        left = render_preset(gradient_source, preset, zoom=3.0, anchor="left")
        right = render_preset(gradient_source, preset, zoom=3.0, anchor="right")
        # grey ramp runs left to right
        assert left.getpixel((15, 10))[0] < right.getpixel((15, 10))[0]


class TestBatchCropImages:
    def test_one_result_per_preset(self, small_catalog, gradient_source):
        presets = _non_warp(small_catalog)
        results = asyncio.run(batch_crop_images(to_png_bytes(gradient_source), presets))
        assert set(results) == {p.id for p in presets}
        for preset in presets:
            encoded = results[preset.id]
            assert (encoded.width, encoded.height) == preset.size
            assert decode(encoded.data).size == preset.size

    def test_main_listing_photo_size(self, builtin_catalog):
        preset = get_preset("main_4_3", builtin_catalog)
        source = make_solid(800, 600, (40, 90, 160, 255))
        results = run_batch(source, [preset], "jpeg", 0.8)
        assert decode(results["main_4_3"].data).size == (3000, 2250)

    def test_format_applies_to_every_result(self, small_catalog, red_source):
        results = run_batch(red_source, _non_warp(small_catalog), "jpg")
        assert {encoded.format for encoded in results.values()} == {"jpeg"}

    def test_empty_batch(self, red_source):
        assert run_batch(red_source, []) == {}

    def test_failure_fails_whole_batch(self, small_catalog, red_source):
        broken = Preset(id="broken", width=20, height=20, category="secondary", mode="perspective",
                        perspective_direction="sideways", perspective_amount=0.2)
        with pytest.raises(BatchPartialFailure) as info:
            run_batch(red_source, [*_non_warp(small_catalog), broken])
        assert set(info.value.failures) == {"broken"}
        assert isinstance(info.value.failures["broken"], ValueError)
        assert "1 preset(s) failed: broken" in str(info.value)

    def test_warp_presets_rejected(self, small_catalog, red_source):
        with pytest.raises(ValueError):
            run_batch(red_source, small_catalog)

    def test_unknown_format_rejected(self, small_catalog, red_source):
        with pytest.raises(ValueError):
            run_batch(red_source, _non_warp(small_catalog), "gif")

    def test_undecodable_source(self, small_catalog):
        with pytest.raises(DecodeError):
            run_batch(b"definitely not an image", _non_warp(small_catalog))
