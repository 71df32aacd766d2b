from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from mesh_geometry import MergedMesh


GLB_MAGIC = b"glTF"
GLB_VERSION = 2
GLB_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

CHUNK_TYPE_JSON = 0x4E4F534A  # b"JSON"
CHUNK_TYPE_BIN = 0x004E4942  # b"BIN\0"

TRIANGLES_MODE = 4

TARGET_ARRAY_BUFFER = 34962
TARGET_ELEMENT_ARRAY_BUFFER = 34963

COMPONENT_TYPE_UINT16 = 5123
COMPONENT_TYPE_FLOAT32 = 5126

MAX_UINT16_VERTICES = 0xFFFF  # 0xFFFF itself is the primitive-restart index

DEFAULT_GENERATOR = "ManorGen"


class GlbError(RuntimeError):
    pass


@dataclass(frozen=True)
class Aabb:
    min_xyz: tuple[float, float, float]
    max_xyz: tuple[float, float, float]

    @staticmethod
    def from_points(points: np.ndarray) -> "Aabb":
        if len(points) == 0:
            raise GlbError("Cannot bound an empty point set")
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return Aabb(
            (float(lo[0]), float(lo[1]), float(lo[2])),
            (float(hi[0]), float(hi[1]), float(hi[2])),
        )


def _pad4(n: int) -> int:
    return n + (4 - n % 4) % 4


def _le_bytes(arr: np.ndarray, dtype: str) -> bytes:
    return np.ascontiguousarray(arr, dtype=np.dtype(dtype).newbyteorder("<")).tobytes()


def build_gltf_document(
    mesh: MergedMesh,
    *,
    index_bytes: int,
    vec3_bytes: int,
    aabb: Aabb,
    generator: str = DEFAULT_GENERATOR,
) -> dict[str, Any]:
    index_padded = _pad4(index_bytes)
    bin_length = index_padded + 3 * vec3_bytes
    return {
        "asset": {"version": "2.0", "generator": generator},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [
            {
                "primitives": [
                    {
                        "attributes": {"POSITION": 1, "NORMAL": 2, "COLOR_0": 3},
                        "indices": 0,
                        "mode": TRIANGLES_MODE,
                    }
                ]
            }
        ],
        "accessors": [
            {"bufferView": 0, "componentType": COMPONENT_TYPE_UINT16, "count": mesh.index_count, "type": "SCALAR"},
            {
                "bufferView": 1,
                "componentType": COMPONENT_TYPE_FLOAT32,
                "count": mesh.vertex_count,
                "type": "VEC3",
                "min": list(aabb.min_xyz),
                "max": list(aabb.max_xyz),
            },
            {"bufferView": 2, "componentType": COMPONENT_TYPE_FLOAT32, "count": mesh.vertex_count, "type": "VEC3"},
            {"bufferView": 3, "componentType": COMPONENT_TYPE_FLOAT32, "count": mesh.vertex_count, "type": "VEC3"},
        ],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": index_bytes, "target": TARGET_ELEMENT_ARRAY_BUFFER},
            {"buffer": 0, "byteOffset": index_padded, "byteLength": vec3_bytes, "target": TARGET_ARRAY_BUFFER},
            {
                "buffer": 0,
                "byteOffset": index_padded + vec3_bytes,
                "byteLength": vec3_bytes,
                "target": TARGET_ARRAY_BUFFER,
            },
            {
                "buffer": 0,
                "byteOffset": index_padded + 2 * vec3_bytes,
                "byteLength": vec3_bytes,
                "target": TARGET_ARRAY_BUFFER,
            },
        ],
        "buffers": [{"byteLength": bin_length}],
    }


def build_glb(mesh: MergedMesh, *, generator: str = DEFAULT_GENERATOR) -> bytes:
    if mesh.vertex_count == 0:
        raise GlbError("Mesh has no vertices")
    if mesh.vertex_count > MAX_UINT16_VERTICES:
        raise GlbError(f"Mesh has {mesh.vertex_count} vertices; 16-bit indices address at most {MAX_UINT16_VERTICES}")

    index_data = _le_bytes(mesh.indices, "u2")
    index_data += b"\x00" * ((4 - len(index_data) % 4) % 4)
    position_data = _le_bytes(mesh.positions, "f4")
    normal_data = _le_bytes(mesh.normals, "f4")
    color_data = _le_bytes(mesh.colors, "f4")
    bin_chunk = index_data + position_data + normal_data + color_data

    gltf = build_gltf_document(
        mesh,
        index_bytes=mesh.index_count * 2,
        vec3_bytes=len(position_data),
        aabb=Aabb.from_points(mesh.positions),
        generator=generator,
    )

    json_bytes = json.dumps(gltf, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    json_padding = (4 - len(json_bytes) % 4) % 4
    if json_padding:
        json_bytes += b" " * json_padding

    total_length = GLB_HEADER_SIZE + CHUNK_HEADER_SIZE + len(json_bytes) + CHUNK_HEADER_SIZE + len(bin_chunk)
    header = struct.pack("<4sII", GLB_MAGIC, GLB_VERSION, total_length)
    json_header = struct.pack("<II", len(json_bytes), CHUNK_TYPE_JSON)
    bin_header = struct.pack("<II", len(bin_chunk), CHUNK_TYPE_BIN)

    return header + json_header + json_bytes + bin_header + bin_chunk


def write_glb(glb_path: Path, mesh: MergedMesh, *, generator: str = DEFAULT_GENERATOR) -> int:
    data = build_glb(mesh, generator=generator)
    glb_path.write_bytes(data)
    return len(data)


def read_glb(source: Path | bytes) -> tuple[dict[str, Any], bytes]:
    data = source.read_bytes() if isinstance(source, Path) else bytes(source)
    if len(data) < GLB_HEADER_SIZE:
        raise GlbError("Invalid GLB: file too small")

    magic, version, total_length = struct.unpack_from("<4sII", data, 0)
    if magic != GLB_MAGIC:
        raise GlbError("Invalid GLB: bad magic")
    if version != GLB_VERSION:
        raise GlbError(f"Unsupported GLB version: {version} (expected {GLB_VERSION})")
    if total_length != len(data):
        raise GlbError("Invalid GLB: length mismatch")

    json_chunk: bytes | None = None
    bin_chunk: bytes | None = None

    offset = GLB_HEADER_SIZE
    while offset < total_length:
        if offset + CHUNK_HEADER_SIZE > total_length:
            raise GlbError("Invalid GLB: truncated chunk header")
        chunk_length, chunk_type = struct.unpack_from("<II", data, offset)
        offset += CHUNK_HEADER_SIZE
        if chunk_length % 4:
            raise GlbError("Invalid GLB: chunk length not 4-byte aligned")
        if offset + chunk_length > total_length:
            raise GlbError("Invalid GLB: truncated chunk data")
        chunk_data = data[offset : offset + chunk_length]
        offset += chunk_length

        if chunk_type == CHUNK_TYPE_JSON and json_chunk is None:
            json_chunk = chunk_data
        elif chunk_type == CHUNK_TYPE_BIN and bin_chunk is None:
            bin_chunk = chunk_data

    if json_chunk is None:
        raise GlbError("Invalid GLB: missing JSON chunk")
    if bin_chunk is None:
        raise GlbError("Invalid GLB: missing BIN chunk")

    try:
        gltf = json.loads(json_chunk.decode("utf-8"))
    except Exception as exc:  # noqa: BLE001 - surface parse failure as GlbError
        raise GlbError(f"Invalid GLB JSON chunk: {exc}") from exc

    if not isinstance(gltf, dict):
        raise GlbError("Invalid GLB: JSON root is not an object")

    return gltf, bin_chunk
