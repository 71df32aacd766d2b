#!/usr/bin/env python3
from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from mesh_geometry import (
    PlacedPart,
    box_geometry as box,
    cylinder_geometry as cyl,
    merge_geometries,
    sphere_geometry as sph,
)
from scene_glb import GlbError, read_glb, write_glb


Color = tuple[float, float, float]
Palette = Mapping[str, Color]


def hex_color(value: int) -> Color:
    return ((value >> 16 & 0xFF) / 255, (value >> 8 & 0xFF) / 255, (value & 0xFF) / 255)


PALETTE: Palette = MappingProxyType(
    {
        "dark_wood": hex_color(0x3A2210),
        "med_wood": hex_color(0x5A3A1A),
        "light_wood": hex_color(0x7A5A2A),
        "fabric": hex_color(0x2A1A2A),
        "fabric_cushion": hex_color(0x3A2040),
        "green": hex_color(0x1A3A1A),
        "green_cushion": hex_color(0x2A4A2A),
        "bed": hex_color(0x1A2A3A),
        "blanket": hex_color(0x4A1A1A),
        "pillow": hex_color(0x6666AA),
        "metal": hex_color(0x888888),
        "gold": hex_color(0xCCAA44),
        "wax": hex_color(0xEEDDAA),
        "flame": hex_color(0xFF8800),
        "glass": hex_color(0x8899BB),
        "wine": hex_color(0x660022),
        "bottle": hex_color(0x1A3A1A),
        "potion": hex_color(0x2A6A4A),
        "cork": hex_color(0x8A6A3A),
        "label": hex_color(0xDDCCAA),
        "book1": hex_color(0x8A2222),
        "book2": hex_color(0x225588),
        "book3": hex_color(0x228844),
        "book4": hex_color(0x886622),
        "book5": hex_color(0x553366),
        "book6": hex_color(0x884422),
        "book7": hex_color(0x224466),
    }
)


def _table(c: Palette) -> list[PlacedPart]:
    parts = [PlacedPart(box(2.0, 0.08, 1.2), c["med_wood"], (0, 0.76, 0))]
    for x, z in ((-0.85, -0.5), (0.85, -0.5), (-0.85, 0.5), (0.85, 0.5)):
        parts.append(PlacedPart(box(0.08, 0.72, 0.08), c["dark_wood"], (x, 0.36, z)))
    for z in (-0.5, 0.5):
        parts.append(PlacedPart(box(1.7, 0.06, 0.06), c["dark_wood"], (0, 0.15, z)))
    return parts


def _chair(c: Palette) -> list[PlacedPart]:
    parts = [PlacedPart(box(0.45, 0.05, 0.45), c["med_wood"], (0, 0.45, 0))]
    for x, z in ((-0.18, -0.18), (0.18, -0.18), (-0.18, 0.18), (0.18, 0.18)):
        parts.append(PlacedPart(box(0.05, 0.45, 0.05), c["dark_wood"], (x, 0.225, z)))
    parts.append(PlacedPart(box(0.45, 0.5, 0.05), c["dark_wood"], (0, 0.73, -0.2)))
    for x in (-0.12, 0.12):
        parts.append(PlacedPart(box(0.04, 0.35, 0.03), c["med_wood"], (x, 0.66, -0.2)))
    return parts


def _sofa(c: Palette) -> list[PlacedPart]:
    parts = [
        PlacedPart(box(2.0, 0.35, 0.9), c["fabric"], (0, 0.25, 0)),
        PlacedPart(box(1.8, 0.12, 0.7), c["fabric_cushion"], (0, 0.48, 0.05)),
        PlacedPart(box(2.0, 0.45, 0.2), c["fabric"], (0, 0.55, -0.35)),
        PlacedPart(box(0.15, 0.3, 0.7), c["fabric"], (-0.92, 0.5, 0.05)),
        PlacedPart(box(0.15, 0.3, 0.7), c["fabric"], (0.92, 0.5, 0.05)),
    ]
    for x, z in ((-0.85, -0.35), (0.85, -0.35), (-0.85, 0.35), (0.85, 0.35)):
        parts.append(PlacedPart(box(0.06, 0.08, 0.06), c["dark_wood"], (x, 0.04, z)))
    return parts


def _bed(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(box(1.8, 0.3, 2.4), c["dark_wood"], (0, 0.2, 0)),
        PlacedPart(box(1.6, 0.2, 2.2), c["bed"], (0, 0.45, 0)),
        PlacedPart(box(0.5, 0.1, 0.3), c["pillow"], (0.2, 0.6, -0.85)),
        PlacedPart(box(0.5, 0.1, 0.3), c["pillow"], (-0.4, 0.6, -0.85)),
        PlacedPart(box(1.8, 0.8, 0.08), c["dark_wood"], (0, 0.6, -1.2)),
        PlacedPart(box(1.8, 0.4, 0.08), c["dark_wood"], (0, 0.4, 1.2)),
        PlacedPart(box(1.55, 0.06, 1.6), c["blanket"], (0, 0.55, 0.2)),
    ]


def _desk(c: Palette) -> list[PlacedPart]:
    parts = [PlacedPart(box(1.6, 0.06, 0.8), c["med_wood"], (0, 0.76, 0))]
    for x, z in ((-0.72, -0.32), (0.72, -0.32), (-0.72, 0.32), (0.72, 0.32)):
        parts.append(PlacedPart(box(0.06, 0.74, 0.06), c["dark_wood"], (x, 0.37, z)))
    parts.append(PlacedPart(box(0.5, 0.25, 0.7), c["dark_wood"], (0.5, 0.6, 0)))
    parts.append(PlacedPart(box(0.15, 0.03, 0.03), c["gold"], (0.5, 0.6, 0.36)))
    return parts


def _bookshelf(c: Palette) -> list[PlacedPart]:
    parts = [PlacedPart(box(1.2, 2.2, 0.35), c["dark_wood"], (0, 1.1, 0))]
    for i in range(4):
        parts.append(PlacedPart(box(1.1, 0.04, 0.3), c["med_wood"], (0, 0.3 + i * 0.5, 0)))

    book_colors = [c[f"book{n}"] for n in range(1, 8)]
    for shelf in range(3):
        y = 0.35 + shelf * 0.5
        x = -0.45
        for b in range(7):
            w = 0.05 + (b % 3) * 0.02
            h = 0.25 + (b % 4) * 0.05
            parts.append(PlacedPart(box(w, h, 0.2), book_colors[b % 7], (x, y + h / 2, 0)))
            x += w + 0.01
            if x > 0.45:
                break
    return parts


def _candle(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(cyl(0.08, 0.12, 0.06, 8), c["metal"], (0, 0.03, 0)),
        PlacedPart(cyl(0.03, 0.03, 0.1, 8), c["metal"], (0, 0.11, 0)),
        PlacedPart(cyl(0.07, 0.04, 0.03, 8), c["metal"], (0, 0.17, 0)),
        PlacedPart(cyl(0.03, 0.035, 0.18, 8), c["wax"], (0, 0.28, 0)),
        PlacedPart(sph(0.02, 6, 5), c["flame"], (0, 0.39, 0)),
    ]


def _wine_glass(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(cyl(0.035, 0.04, 0.01, 8), c["glass"], (0, 0.005, 0)),
        PlacedPart(cyl(0.008, 0.008, 0.1, 6), c["glass"], (0, 0.06, 0)),
        PlacedPart(cyl(0.04, 0.02, 0.07, 8), c["glass"], (0, 0.145, 0)),
        PlacedPart(cyl(0.035, 0.015, 0.04, 8), c["wine"], (0, 0.13, 0)),
    ]


def _wardrobe(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(box(1.0, 2.2, 0.6), c["dark_wood"], (0, 1.1, 0)),
        PlacedPart(box(0.48, 2.0, 0.03), c["med_wood"], (-0.24, 1.1, 0.31)),
        PlacedPart(box(0.48, 2.0, 0.03), c["med_wood"], (0.24, 1.1, 0.31)),
        PlacedPart(box(0.02, 0.08, 0.03), c["gold"], (-0.05, 1.1, 0.33)),
        PlacedPart(box(0.02, 0.08, 0.03), c["gold"], (0.05, 1.1, 0.33)),
        PlacedPart(box(1.1, 0.06, 0.65), c["dark_wood"], (0, 2.22, 0)),
    ]


def _cabinet(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(box(1.4, 0.9, 0.5), c["dark_wood"], (0, 0.45, 0)),
        PlacedPart(box(1.5, 0.04, 0.55), c["med_wood"], (0, 0.92, 0)),
        PlacedPart(box(0.65, 0.75, 0.03), c["med_wood"], (-0.33, 0.42, 0.26)),
        PlacedPart(box(0.65, 0.75, 0.03), c["med_wood"], (0.33, 0.42, 0.26)),
        PlacedPart(box(0.02, 0.06, 0.02), c["gold"], (-0.06, 0.45, 0.28)),
        PlacedPart(box(0.02, 0.06, 0.02), c["gold"], (0.06, 0.45, 0.28)),
    ]


def _drawer(c: Palette) -> list[PlacedPart]:
    parts = [
        PlacedPart(box(0.5, 0.55, 0.4), c["dark_wood"], (0, 0.275, 0)),
        PlacedPart(box(0.55, 0.03, 0.45), c["med_wood"], (0, 0.565, 0)),
    ]
    for y in (0.15, 0.4):
        parts.append(PlacedPart(box(0.44, 0.2, 0.02), c["med_wood"], (0, y, 0.2)))
        parts.append(PlacedPart(box(0.08, 0.03, 0.02), c["gold"], (0, y, 0.22)))
    return parts


def _armchair(c: Palette) -> list[PlacedPart]:
    parts = [
        PlacedPart(box(0.7, 0.3, 0.65), c["green"], (0, 0.25, 0)),
        PlacedPart(box(0.6, 0.1, 0.55), c["green_cushion"], (0, 0.45, 0.02)),
        PlacedPart(box(0.7, 0.5, 0.12), c["green"], (0, 0.6, -0.28)),
        PlacedPart(box(0.1, 0.25, 0.55), c["green"], (-0.35, 0.45, 0.02)),
        PlacedPart(box(0.1, 0.25, 0.55), c["green"], (0.35, 0.45, 0.02)),
    ]
    for x, z in ((-0.28, -0.25), (0.28, -0.25), (-0.28, 0.25), (0.28, 0.25)):
        parts.append(PlacedPart(box(0.06, 0.1, 0.06), c["dark_wood"], (x, 0.05, z)))
    return parts


def _chandelier(c: Palette) -> list[PlacedPart]:
    parts = [
        PlacedPart(cyl(0.01, 0.01, 0.4, 6), c["metal"], (0, 0.3, 0)),
        PlacedPart(cyl(0.08, 0.06, 0.06, 8), c["metal"], (0, 0.08, 0)),
    ]
    for i in range(5):
        a = (i / 5) * math.pi * 2
        ax = math.cos(a) * 0.25
        az = math.sin(a) * 0.25
        parts.append(PlacedPart(box(0.25, 0.02, 0.02), c["metal"], (ax / 2, 0.06, az / 2), rotate_y=a))
        parts.append(PlacedPart(cyl(0.03, 0.02, 0.03, 6), c["metal"], (ax, 0.04, az)))
        parts.append(PlacedPart(cyl(0.015, 0.018, 0.08, 6), c["wax"], (ax, 0.09, az)))
        parts.append(PlacedPart(sph(0.012, 5, 4), c["flame"], (ax, 0.14, az)))
    return parts


def _wine_bottle(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(cyl(0.035, 0.04, 0.18, 8), c["bottle"], (0, 0.09, 0)),
        PlacedPart(cyl(0.015, 0.03, 0.1, 8), c["bottle"], (0, 0.23, 0)),
        PlacedPart(cyl(0.013, 0.015, 0.03, 6), c["cork"], (0, 0.295, 0)),
        PlacedPart(box(0.06, 0.06, 0.002), c["label"], (0, 0.1, 0.042)),
    ]


def _potion_bottle(c: Palette) -> list[PlacedPart]:
    return [
        PlacedPart(sph(0.04, 8, 6), c["potion"], (0, 0.05, 0)),
        PlacedPart(cyl(0.012, 0.02, 0.06, 6), c["potion"], (0, 0.11, 0)),
        PlacedPart(cyl(0.01, 0.012, 0.02, 6), c["cork"], (0, 0.15, 0)),
    ]


FURNITURE_BUILDERS: dict[str, Callable[[Palette], list[PlacedPart]]] = {
    "table": _table,
    "chair": _chair,
    "sofa": _sofa,
    "bed": _bed,
    "desk": _desk,
    "bookshelf": _bookshelf,
    "candle": _candle,
    "wineGlass": _wine_glass,
    "wardrobe": _wardrobe,
    "cabinet": _cabinet,
    "drawer": _drawer,
    "armchair": _armchair,
    "chandelier": _chandelier,
    "wineBottle": _wine_bottle,
    "potionBottle": _potion_bottle,
}


def build_catalog(palette: Palette = PALETTE, names: list[str] | None = None) -> dict[str, list[PlacedPart]]:
    selected = names or list(FURNITURE_BUILDERS)
    return {name: FURNITURE_BUILDERS[name](palette) for name in selected}


def _model_name(value: str) -> str:
    if value not in FURNITURE_BUILDERS:
        choices = ", ".join(FURNITURE_BUILDERS)
        raise argparse.ArgumentTypeError(f"Unknown model: {value} (choose from {choices})")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate vertex-coloured furniture models as GLB files.")
    parser.add_argument("--out-dir", type=Path, default=Path("models"), help="Output directory (default: models)")
    parser.add_argument(
        "--only",
        nargs="+",
        type=_model_name,
        default=None,
        metavar="NAME",
        help="Generate only these models (default: all)",
    )
    parser.add_argument("--check", action="store_true", help="Re-read every written GLB and validate its framing")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    out_dir: Path = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    print("Generating furniture models...\n")

    catalog = build_catalog(PALETTE, args.only)
    for name, parts in catalog.items():
        glb_path = out_dir / f"{name}.glb"
        size = write_glb(glb_path, merge_geometries(parts))
        if args.check:
            read_glb(glb_path)
        print(f"  ✓ {glb_path.as_posix()} ({size / 1024:.1f} KB)")

    print(f"\nAll {len(catalog)} models generated!")
    return 0


def run() -> None:
    try:
        raise SystemExit(main())
    except GlbError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    run()
