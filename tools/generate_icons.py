#!/usr/bin/env python3
from __future__ import annotations

import argparse
import math
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np

from png_encoder import COMPRESSION_MODES, PngError, encode_png, read_png_chunks


DEFAULT_SIZES = (192, 512)

Rgba = tuple[float, float, float, int]

GOLD: Rgba = (200, 168, 80, 255)
HANDLE_BROWN: Rgba = (138, 106, 48, 255)
BONE: Rgba = (200, 180, 122, 255)
BONE_OUTLINE: Rgba = (200, 180, 122, 200)
BONE_TEXT: Rgba = (200, 180, 122, 150)
TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class IconShape:
    size: int
    cx: float
    cy: float
    corner_margin: float
    corner_radius: float
    ring_cx: float
    ring_cy: float
    ring_radius: float
    ring_width: float
    handle_start: tuple[float, float]
    handle_end: tuple[float, float]
    handle_half_width: float
    eye_left: tuple[float, float]
    eye_right: tuple[float, float]
    eye_radius: float
    skull_center: tuple[float, float]
    skull_radii: tuple[float, float]
    skull_band: float
    bars_top: float
    bars_height: float
    bar_half_width: float
    bar_gap: float

    @classmethod
    def for_size(cls, size: int) -> "IconShape":
        ring_cx = ring_cy = size * 0.43
        ring_radius = size * 0.234
        return cls(
            size=size,
            cx=size / 2,
            cy=size / 2,
            corner_margin=size * 0.156,
            corner_radius=size * 0.156,
            ring_cx=ring_cx,
            ring_cy=ring_cy,
            ring_radius=ring_radius,
            ring_width=size * 0.027,
            handle_start=(ring_cx + ring_radius * 0.65, ring_cy + ring_radius * 0.65),
            handle_end=(size * 0.82, size * 0.86),
            handle_half_width=size * 0.025,
            eye_left=(ring_cx - size * 0.033, ring_cy - size * 0.04),
            eye_right=(ring_cx + size * 0.033, ring_cy - size * 0.04),
            eye_radius=size * 0.027,
            skull_center=(ring_cx, ring_cy - size * 0.01),
            skull_radii=(size * 0.094, size * 0.082),
            skull_band=0.12,
            bars_top=size * 0.76,
            bars_height=size * 0.06,
            bar_half_width=size * 0.012,
            bar_gap=size * 0.04,
        )


def inside_rounded_rect(x: float, y: float, shape: IconShape) -> bool:
    margin = shape.corner_margin
    far = shape.size - margin
    if x < margin:
        corner_x = margin
    elif x >= far:
        corner_x = far
    else:
        return True
    if y < margin:
        corner_y = margin
    elif y >= far:
        corner_y = far
    else:
        return True
    return math.hypot(x - corner_x, y - corner_y) <= shape.corner_radius


def _ring_distance(x: float, y: float, s: IconShape) -> float:
    return math.hypot(x - s.ring_cx, y - s.ring_cy)


def _on_ring(x: float, y: float, s: IconShape) -> bool:
    return abs(_ring_distance(x, y, s) - s.ring_radius) < s.ring_width


def _in_glass(x: float, y: float, s: IconShape) -> bool:
    return _ring_distance(x, y, s) < s.ring_radius - s.ring_width


def _on_handle(x: float, y: float, s: IconShape) -> bool:
    sx, sy = s.handle_start
    ex, ey = s.handle_end
    length = math.hypot(ex - sx, ey - sy)
    nx, ny = (ex - sx) / length, (ey - sy) / length
    px, py = x - sx, y - sy
    projection = px * nx + py * ny
    if not 0 <= projection <= length:
        return False
    return abs(px * ny - py * nx) < s.handle_half_width


def _on_eye(x: float, y: float, s: IconShape) -> bool:
    return (
        math.hypot(x - s.eye_left[0], y - s.eye_left[1]) < s.eye_radius
        or math.hypot(x - s.eye_right[0], y - s.eye_right[1]) < s.eye_radius
    )


def _on_skull_outline(x: float, y: float, s: IconShape) -> bool:
    dx = (x - s.skull_center[0]) / s.skull_radii[0]
    dy = (y - s.skull_center[1]) / s.skull_radii[1]
    return abs(math.hypot(dx, dy) - 1) < s.skull_band


def _on_bars(x: float, y: float, s: IconShape) -> bool:
    if not s.bars_top < y < s.bars_top + s.bars_height:
        return False
    return any(abs(x - (s.cx + b * s.bar_gap)) < s.bar_half_width for b in (-1, 0, 1))


def _glass_tint(color: Rgba) -> Rgba:
    r, g, b, a = color
    return (r * 0.85 + 200 * 0.05, g * 0.85 + 180 * 0.05, b * 0.85 + 120 * 0.03, a)


def _fill(color: Rgba) -> Callable[[Rgba], Rgba]:
    return lambda _previous: color


# Painted in order; a later layer overwrites earlier ones where its test holds.
LAYERS: tuple[tuple[Callable[[float, float, IconShape], bool], Callable[[Rgba], Rgba]], ...] = (
    (_on_ring, _fill(GOLD)),
    (_in_glass, _glass_tint),
    (_on_handle, _fill(HANDLE_BROWN)),
    (_on_eye, _fill(BONE)),
    (_on_skull_outline, _fill(BONE_OUTLINE)),
    (_on_bars, _fill(BONE_TEXT)),
)


def _background(x: float, y: float, s: IconShape) -> Rgba:
    distance = math.hypot(x - s.cx, y - s.cy) / (s.size * 0.7)
    bg = max(0.0, min(1.0, 1 - distance))
    return (5 + bg * 21, 4 + bg * 16, 3 + bg * 5, 255)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def paint_pixel(x: int, y: int, shape: IconShape) -> tuple[int, int, int, int]:
    if not inside_rounded_rect(x, y, shape):
        return TRANSPARENT

    color = _background(x, y, shape)
    for test, shade in LAYERS:
        if test(x, y, shape):
            color = shade(color)

    r, g, b, a = color
    return (_round_half_up(r), _round_half_up(g), _round_half_up(b), a)


def paint_icon(size: int) -> np.ndarray:
    shape = IconShape.for_size(size)
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    for y in range(size):
        for x in range(size):
            pixels[y, x] = paint_pixel(x, y, shape)
    return pixels


def _icon_size(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Icon size must be > 0: {value}")
    return parsed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the square PWA home-screen icons as PNG files.")
    parser.add_argument("--out-dir", type=Path, default=Path("."), help="Output directory (default: current directory)")
    parser.add_argument(
        "--sizes",
        nargs="+",
        type=_icon_size,
        default=list(DEFAULT_SIZES),
        help="Icon edge lengths in pixels (default: 192 512)",
    )
    parser.add_argument(
        "--compression",
        default="stored",
        choices=COMPRESSION_MODES,
        help="IDAT stream: uncompressed stored blocks or zlib deflate (default: stored)",
    )
    parser.add_argument("--check", action="store_true", help="Re-read every written PNG and verify chunk CRCs")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    out_dir: Path = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    for size in args.sizes:
        png = encode_png(paint_icon(size), size, size, compression=args.compression)
        png_path = out_dir / f"icon-{size}.png"
        png_path.write_bytes(png)
        if args.check:
            tags = [tag for tag, _payload in read_png_chunks(png)]
            if tags != [b"IHDR", b"IDAT", b"IEND"]:
                raise PngError(f"Unexpected chunk layout in {png_path}: {tags}")
        print(f"Created {png_path.name} ({len(png)} bytes)")

    return 0


def run() -> None:
    try:
        raise SystemExit(main())
    except PngError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    run()
