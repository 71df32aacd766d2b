from __future__ import annotations

import numpy as np
import pytest

import generate_models
from generate_models import FURNITURE_BUILDERS, PALETTE, build_catalog, hex_color, main, parse_args
from mesh_geometry import merge_geometries
from scene_glb import build_glb, read_glb


def test_hex_color():
    assert hex_color(0xFF8800) == (1.0, 136 / 255, 0.0)
    assert hex_color(0x000000) == (0.0, 0.0, 0.0)


def test_palette_is_read_only():
    with pytest.raises(TypeError):
        PALETTE["gold"] = (0.0, 0.0, 0.0)  # type: ignore[index]


def test_catalog_lists_every_piece():
    catalog = build_catalog()
    assert list(catalog) == [
        "table",
        "chair",
        "sofa",
        "bed",
        "desk",
        "bookshelf",
        "candle",
        "wineGlass",
        "wardrobe",
        "cabinet",
        "drawer",
        "armchair",
        "chandelier",
        "wineBottle",
        "potionBottle",
    ]


@pytest.mark.parametrize("name", list(FURNITURE_BUILDERS))
def test_every_piece_encodes(name):
    mesh = merge_geometries(build_catalog(PALETTE, [name])[name])

    assert mesh.index_count % 3 == 0
    assert int(mesh.indices.max()) < mesh.vertex_count
    gltf, _bin = read_glb(build_glb(mesh))
    assert gltf["accessors"][1]["count"] == mesh.vertex_count


def test_bookshelf_fills_three_shelves():
    parts = build_catalog(PALETTE, ["bookshelf"])["bookshelf"]
    # frame, four boards, seven books on each of three shelves
    assert len(parts) == 1 + 4 + 3 * 7


def test_chandelier_arms_are_rotated():
    parts = build_catalog(PALETTE, ["chandelier"])["chandelier"]
    assert len(parts) == 2 + 5 * 4
    arms = [p for p in parts if p.rotate_y != 0.0]
    assert len(arms) == 4  # the first arm points along +X
    mesh = merge_geometries(parts)
    bounds_xz = np.abs(mesh.positions[:, [0, 2]]).max()
    assert bounds_xz == pytest.approx(0.25 + 0.03, abs=1e-6)


def test_palette_is_passed_through():
    custom = dict(PALETTE, gold=(0.0, 0.0, 1.0))
    parts = build_catalog(custom, ["desk"])["desk"]
    assert parts[-1].color == (0.0, 0.0, 1.0)


def test_main_writes_selected_models(tmp_path, capsys):
    assert main(["--out-dir", str(tmp_path), "--only", "chair", "candle", "--check"]) == 0

    assert sorted(p.name for p in tmp_path.iterdir()) == ["candle.glb", "chair.glb"]
    out = capsys.readouterr().out
    assert "chair.glb" in out
    assert "All 2 models generated!" in out


def test_unknown_model_is_rejected():
    with pytest.raises(SystemExit):
        parse_args(["--only", "throne"])


def test_run_maps_glb_errors_to_exit_code(monkeypatch, capsys):
    def broken(argv=None):
        raise generate_models.GlbError("boom")

    monkeypatch.setattr(generate_models, "main", broken)
    with pytest.raises(SystemExit) as exc_info:
        generate_models.run()
    assert exc_info.value.code == 2
    assert "error: boom" in capsys.readouterr().err
