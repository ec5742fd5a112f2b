import asyncio

from PIL import ImageStat

from conftest import decode, make_solid, to_png_bytes
from listing_crop_kit.models import Point, WallCoordinates
from listing_crop_kit.warp import (
    create_warped_image, draw_warp, pattern_triangles, quad_triangles, warp_commands,
)

GREY = (128, 128, 128, 255)
WHITE = (255, 255, 255, 255)
FULL = WallCoordinates(Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1))


def _close(pixel, expected, tol=2):
    return all(abs(a - b) <= tol for a, b in zip(pixel, expected))


class TestTriangles:
    def test_pattern_split_matches_quad_split(self):
        first, second = pattern_triangles(40, 20)
        assert first == ((0, 0), (40, 0), (0, 20))
        assert second == ((40, 0), (40, 20), (0, 20))

    def test_quad_split(self):
        tl, tr, br, bl = (0, 0), (10, 0), (10, 10), (0, 10)
        assert quad_triangles((tl, tr, br, bl)) == ((tl, tr, bl), (tr, br, bl))


class TestDrawWarp:
    def test_pattern_covers_full_quad(self):
        out = draw_warp(make_solid(60, 60, WHITE), make_solid(50, 50), FULL, (100, 100))
        assert out.size == (100, 100)
        for xy in ((30, 70), (70, 30), (50, 50), (5, 95), (95, 5)):
            assert _close(out.getpixel(xy), (255, 0, 0, 255)), xy

    def test_multiply_keeps_background_shading(self):
        out = draw_warp(make_solid(100, 100, GREY), make_solid(30, 30, (255, 0, 0, 255)),
                        WallCoordinates.inset(0.2), (100, 100))
        assert _close(out.getpixel((50, 50)), (128, 0, 0, 255))
        # outside the wall the background is untouched
        assert out.getpixel((5, 5)) == GREY

    def test_white_pattern_is_invisible(self):
        out = draw_warp(make_solid(100, 100, GREY), make_solid(30, 30, WHITE), WallCoordinates.inset(0.2), (100, 100))
        assert _close(out.getpixel((50, 50)), GREY, tol=1)

    def test_skewed_quad(self):
        corners = WallCoordinates(Point(0.1, 0.2), Point(0.9, 0.05), Point(0.85, 0.95), Point(0.15, 0.8))
        out = draw_warp(make_solid(80, 80, WHITE), make_solid(64, 48, (0, 0, 255, 255)), corners, (200, 200))
        assert _close(out.getpixel((100, 100)), (0, 0, 255, 255), tol=3)
        assert out.getpixel((2, 2)) == WHITE

    def test_degenerate_quad_does_not_crash(self):
        # top-left, top-right and bottom-left are collinear
        corners = WallCoordinates(Point(0.1, 0.1), Point(0.5, 0.5), Point(0.9, 0.1), Point(0.9, 0.9))
        pattern = make_solid(20, 20)
        assert len(warp_commands(pattern, corners, (200, 200))) == 1
        out = draw_warp(make_solid(50, 50, WHITE), pattern, corners, (200, 200))
        assert out.size == (200, 200)

    def test_collapsed_quad_leaves_background(self):
        corners = WallCoordinates(*(Point(0.5, 0.5),) * 4)
        out = draw_warp(make_solid(50, 50, GREY), make_solid(20, 20), corners, (60, 40))
        assert out.size == (60, 40)
        assert ImageStat.Stat(out).extrema[:3] == [(128, 128)] * 3

    def test_missing_pattern_shows_placeholder(self):
        background = make_solid(100, 100, (200, 200, 200, 255))
        out = draw_warp(background, None, WallCoordinates.inset(0.2), (100, 100))
        assert out.size == (100, 100)
        assert out.getpixel((2, 2))[0] < 200

    def test_no_background_uses_white(self):
        out = draw_warp(None, make_solid(10, 10), WallCoordinates.inset(0.25), (40, 40))
        assert out.getpixel((1, 1)) == WHITE
        assert _close(out.getpixel((20, 20)), (255, 0, 0, 255))

    def test_same_corners_drive_preview_and_export(self):
        corners = WallCoordinates.inset(0.3)
        background = make_solid(100, 100, WHITE)
        pattern = make_solid(10, 10)
        small = draw_warp(background, pattern, corners, (50, 50))
        large = draw_warp(background, pattern, corners, (500, 500))
        assert _close(small.getpixel((25, 25)), (255, 0, 0, 255))
        assert _close(large.getpixel((250, 250)), (255, 0, 0, 255))
        assert small.getpixel((5, 5)) == large.getpixel((50, 50)) == WHITE


def test_create_warped_image():
    encoded = asyncio.run(create_warped_image(
        to_png_bytes(make_solid(120, 90, WHITE)), to_png_bytes(make_solid(30, 30)),
        WallCoordinates.inset(0.2), 160, 120,
    ))
    out = decode(encoded.data).convert("RGBA")
    assert out.size == (160, 120)
    assert _close(out.getpixel((80, 60)), (255, 0, 0, 255))
