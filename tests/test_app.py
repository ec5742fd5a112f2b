import json

import pytest

from conftest import decode, make_solid, to_png_bytes
from listing_crop_kit.app import main

CATALOG = {
    "version": 1,
    "presets": [
        {"id": "hero", "label": "Hero", "width": 60, "height": 45, "category": "primary"},
        {"id": "repeat", "label": "Repeat", "width": 40, "height": 40, "category": "secondary", "mode": "tile"},
        {"id": "wall", "label": "Wall", "width": 50, "height": 50, "category": "secondary", "mode": "warp"},
        {"id": "story", "label": "Story", "width": 27, "height": 48, "category": "social"},
    ],
}


@pytest.fixture
def user_catalog(isolated_config):
    config = isolated_config / "listing-crop-kit"
    config.mkdir(parents=True, exist_ok=True)
    (config / "presets.json").write_text(json.dumps(CATALOG), encoding="utf-8")
    return config


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "sofa.png"
    path.write_bytes(to_png_bytes(make_solid(120, 90, (90, 120, 200, 255))))
    return path


def test_list_builtin_catalog(isolated_config, capsys):
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "[primary]" in out
    assert "main_4_3" in out
    assert "3000x2250" in out


def test_list_user_catalog(user_catalog, capsys):
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "hero" in out
    assert "main_4_3" not in out


def test_source_required(isolated_config):
    with pytest.raises(SystemExit):
        main([])


def test_writes_non_warp_presets(user_catalog, source_file, tmp_path, capsys):
    out_dir = tmp_path / "out"
    assert main([str(source_file), "--out", str(out_dir)]) == 0
    written = sorted(p.name for p in out_dir.iterdir())
    assert written == ["sofa_hero.png", "sofa_repeat.png", "sofa_story.png"]
    assert decode((out_dir / "sofa_story.png").read_bytes()).size == (27, 48)
    assert str(out_dir / "sofa_hero.png") in capsys.readouterr().out


def test_category_and_jpeg(user_catalog, source_file, tmp_path):
    out_dir = tmp_path / "out"
    assert main([str(source_file), "--category", "social", "--format", "jpeg", "--out", str(out_dir)]) == 0
    assert [p.name for p in out_dir.iterdir()] == ["sofa_story.jpg"]


def test_does_not_overwrite(user_catalog, source_file, tmp_path):
    out_dir = tmp_path / "out"
    for _ in range(2):
        assert main([str(source_file), "--preset", "hero", "--out", str(out_dir)]) == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["sofa_hero-01.png", "sofa_hero.png"]


def test_warp_with_pattern_and_inline_corners(user_catalog, source_file, tmp_path):
    pattern = tmp_path / "print.png"
    pattern.write_bytes(to_png_bytes(make_solid(16, 16)))
    corners = json.dumps({
        "topLeft": {"x": 0.1, "y": 0.1}, "topRight": {"x": 0.9, "y": 0.1},
        "bottomRight": {"x": 0.9, "y": 0.9}, "bottomLeft": {"x": 0.1, "y": 0.9},
    })
    out_dir = tmp_path / "out"
    argv = [str(source_file), "--preset", "wall", "--pattern", str(pattern),
            "--corners", corners, "--out", str(out_dir)]
    assert main(argv) == 0
    mockup = decode((out_dir / "sofa_wall.png").read_bytes()).convert("RGBA")
    assert mockup.size == (50, 50)
    # pattern multiplied onto the blue wall leaves only the red channel's share
    r, g, b, a = mockup.getpixel((25, 25))
    assert r > 80 and g < 5 and b < 5


def test_warp_without_pattern_is_skipped(user_catalog, source_file, tmp_path):
    out_dir = tmp_path / "out"
    assert main([str(source_file), "--preset", "wall", "--out", str(out_dir)]) == 0
    assert list(out_dir.iterdir()) == []


def test_unknown_preset(user_catalog, source_file, tmp_path, capsys):
    assert main([str(source_file), "--preset", "nope", "--out", str(tmp_path)]) == 1
    assert "Unknown preset" in capsys.readouterr().err


def test_undecodable_source(isolated_config, tmp_path, capsys):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"not an image")
    assert main([str(bad), "--out", str(tmp_path / "out")]) == 1
    assert "Error" in capsys.readouterr().err


def test_unsupported_source_type(isolated_config, tmp_path, capsys):
    notes = tmp_path / "notes.txt"
    notes.write_bytes(to_png_bytes(make_solid(10, 10)))
    assert main([str(notes), "--out", str(tmp_path / "out")]) == 1
    assert "Unsupported image type '.txt'" in capsys.readouterr().err


def test_unsupported_pattern_type(user_catalog, source_file, tmp_path, capsys):
    pattern = tmp_path / "print.gif"
    pattern.write_bytes(b"GIF89a")
    argv = [str(source_file), "--preset", "wall", "--pattern", str(pattern), "--out", str(tmp_path / "out")]
    assert main(argv) == 1
    assert "Unsupported image type '.gif'" in capsys.readouterr().err
