from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np


DEFAULT_PART_COLOR = (0.5, 0.3, 0.15)

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class Geometry:
    positions: np.ndarray  # (n, 3) float32
    normals: np.ndarray  # (n, 3) float32
    indices: np.ndarray  # (k,) uint32

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])


@dataclass(frozen=True)
class PlacedPart:
    geometry: Geometry
    color: Vec3 = DEFAULT_PART_COLOR
    translate: Vec3 = (0.0, 0.0, 0.0)
    rotate_y: float = 0.0


@dataclass(frozen=True)
class MergedMesh:
    positions: np.ndarray
    normals: np.ndarray
    colors: np.ndarray
    indices: np.ndarray = field(repr=False)

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def index_count(self) -> int:
        return int(self.indices.shape[0])


def _geometry(positions: list[float], normals: list[float], indices: list[int]) -> Geometry:
    return Geometry(
        positions=np.asarray(positions, dtype=np.float32).reshape(-1, 3),
        normals=np.asarray(normals, dtype=np.float32).reshape(-1, 3),
        indices=np.asarray(indices, dtype=np.uint32),
    )


def box_geometry(width: float, height: float, depth: float) -> Geometry:
    hw, hh, hd = width / 2, height / 2, depth / 2
    positions = [
        # +Z
        -hw, -hh, hd, hw, -hh, hd, hw, hh, hd, -hw, hh, hd,
        # -Z
        -hw, -hh, -hd, -hw, hh, -hd, hw, hh, -hd, hw, -hh, -hd,
        # +Y
        -hw, hh, -hd, -hw, hh, hd, hw, hh, hd, hw, hh, -hd,
        # -Y
        -hw, -hh, -hd, hw, -hh, -hd, hw, -hh, hd, -hw, -hh, hd,
        # +X
        hw, -hh, -hd, hw, hh, -hd, hw, hh, hd, hw, -hh, hd,
        # -X
        -hw, -hh, -hd, -hw, -hh, hd, -hw, hh, hd, -hw, hh, -hd,
    ]
    face_normals = [(0, 0, 1), (0, 0, -1), (0, 1, 0), (0, -1, 0), (1, 0, 0), (-1, 0, 0)]
    normals: list[float] = []
    for n in face_normals:
        normals.extend(n * 4)

    indices: list[int] = []
    for face in range(6):
        o = face * 4
        indices.extend((o, o + 1, o + 2, o, o + 2, o + 3))
    return _geometry(positions, normals, indices)


def cylinder_geometry(radius_top: float, radius_bottom: float, height: float, segments: int = 8) -> Geometry:
    """Side wall with smooth radial normals plus two flat-shaded cap fans.

    A zero radius on either end collapses that ring to a point (a cone).
    """
    positions: list[float] = []
    normals: list[float] = []
    indices: list[int] = []
    hh = height / 2

    angles = [(i / segments) * math.pi * 2 for i in range(segments + 1)]

    for a in angles:
        cos_a, sin_a = math.cos(a), math.sin(a)
        positions.extend((radius_bottom * cos_a, -hh, radius_bottom * sin_a))
        normals.extend((cos_a, 0.0, sin_a))
        positions.extend((radius_top * cos_a, hh, radius_top * sin_a))
        normals.extend((cos_a, 0.0, sin_a))
    for i in range(segments):
        a, b, c, d = i * 2, i * 2 + 1, i * 2 + 2, i * 2 + 3
        indices.extend((a, b, c, b, d, c))

    top_center = len(positions) // 3
    positions.extend((0.0, hh, 0.0))
    normals.extend((0.0, 1.0, 0.0))
    for a in angles:
        positions.extend((radius_top * math.cos(a), hh, radius_top * math.sin(a)))
        normals.extend((0.0, 1.0, 0.0))
    for i in range(segments):
        indices.extend((top_center, top_center + 2 + i, top_center + 1 + i))

    bottom_center = len(positions) // 3
    positions.extend((0.0, -hh, 0.0))
    normals.extend((0.0, -1.0, 0.0))
    for a in angles:
        positions.extend((radius_bottom * math.cos(a), -hh, radius_bottom * math.sin(a)))
        normals.extend((0.0, -1.0, 0.0))
    for i in range(segments):
        indices.extend((bottom_center, bottom_center + 1 + i, bottom_center + 2 + i))

    return _geometry(positions, normals, indices)


def sphere_geometry(radius: float, width_segments: int = 8, height_segments: int = 6) -> Geometry:
    positions: list[float] = []
    normals: list[float] = []
    indices: list[int] = []

    for y in range(height_segments + 1):
        phi = (y / height_segments) * math.pi
        for x in range(width_segments + 1):
            theta = (x / width_segments) * math.pi * 2
            nx = math.cos(theta) * math.sin(phi)
            ny = math.cos(phi)
            nz = math.sin(theta) * math.sin(phi)
            positions.extend((radius * nx, radius * ny, radius * nz))
            normals.extend((nx, ny, nz))

    row = width_segments + 1
    for y in range(height_segments):
        for x in range(width_segments):
            a = y * row + x
            b = a + row
            indices.extend((a, a + 1, b, b, a + 1, b + 1))

    return _geometry(positions, normals, indices)


def _rotate_y(vectors: np.ndarray, cos_r: float, sin_r: float) -> np.ndarray:
    x = vectors[:, 0]
    z = vectors[:, 2]
    out = np.empty_like(vectors)
    out[:, 0] = x * cos_r - z * sin_r
    out[:, 1] = vectors[:, 1]
    out[:, 2] = x * sin_r + z * cos_r
    return out


def merge_geometries(parts: Iterable[PlacedPart]) -> MergedMesh:
    """Concatenate placed parts into one vertex-coloured, indexed mesh.

    Each part is rotated about +Y, then translated; normals are only rotated.
    Indices are re-based by the number of vertices emitted before the part.
    """
    positions: list[np.ndarray] = []
    normals: list[np.ndarray] = []
    colors: list[np.ndarray] = []
    indices: list[np.ndarray] = []
    vertex_count = 0

    for part in parts:
        geo = part.geometry
        cos_r = math.cos(part.rotate_y)
        sin_r = math.sin(part.rotate_y)
        nv = geo.vertex_count

        moved = _rotate_y(geo.positions.astype(np.float64), cos_r, sin_r)
        moved += np.asarray(part.translate, dtype=np.float64)
        positions.append(moved.astype(np.float32))
        normals.append(_rotate_y(geo.normals.astype(np.float64), cos_r, sin_r).astype(np.float32))
        colors.append(np.tile(np.asarray(part.color, dtype=np.float32), (nv, 1)))
        indices.append(geo.indices.astype(np.uint32) + np.uint32(vertex_count))
        vertex_count += nv

    if not positions:
        empty3 = np.zeros((0, 3), dtype=np.float32)
        return MergedMesh(empty3, empty3.copy(), empty3.copy(), np.zeros(0, dtype=np.uint32))

    return MergedMesh(
        positions=np.concatenate(positions),
        normals=np.concatenate(normals),
        colors=np.concatenate(colors),
        indices=np.concatenate(indices),
    )
