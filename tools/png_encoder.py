from __future__ import annotations

import struct
import zlib
from typing import Iterator

import numpy as np


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

BIT_DEPTH = 8
COLOR_TYPE_RGBA = 6
BYTES_PER_PIXEL = 4

FILTER_NONE = 0

ZLIB_HEADER = b"\x78\x01"  # CM=8, CINFO=7, FLEVEL=0
STORED_BLOCK_MAX = 65535
ADLER_MOD = 65521

CRC32_POLYNOMIAL = 0xEDB88320

COMPRESSION_MODES = ("stored", "zlib")


class PngError(RuntimeError):
    pass


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = CRC32_POLYNOMIAL ^ (c >> 1) if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


CRC_TABLE = _make_crc_table()


def crc32(data: bytes, crc: int = 0) -> int:
    """Table-driven CRC-32; pass a previous result as ``crc`` to continue it."""
    c = crc ^ 0xFFFFFFFF
    table = CRC_TABLE
    for byte in data:
        c = (c >> 8) ^ table[(c ^ byte) & 0xFF]
    return c ^ 0xFFFFFFFF


def adler32(data: bytes) -> int:
    a, b = 1, 0
    for byte in data:
        a = (a + byte) % ADLER_MOD
        b = (b + a) % ADLER_MOD
    return (b << 16) | a


def filter_scanlines(pixels: bytes | np.ndarray, width: int, height: int) -> bytes:
    row_bytes = width * BYTES_PER_PIXEL
    rows = np.frombuffer(bytes(pixels), dtype=np.uint8) if not isinstance(pixels, np.ndarray) else pixels
    rows = np.ascontiguousarray(rows, dtype=np.uint8).reshape(height, row_bytes)
    filter_column = np.full((height, 1), FILTER_NONE, dtype=np.uint8)
    return np.hstack([filter_column, rows]).tobytes()


def zlib_stored(raw: bytes) -> bytes:
    """Wrap ``raw`` in a zlib stream made of uncompressed deflate blocks."""
    out = bytearray(ZLIB_HEADER)
    offsets = range(0, len(raw), STORED_BLOCK_MAX) if raw else [0]
    for start in offsets:
        block = raw[start : start + STORED_BLOCK_MAX]
        final = start + STORED_BLOCK_MAX >= len(raw)
        length = len(block)
        out.append(1 if final else 0)
        out += struct.pack("<HH", length, ~length & 0xFFFF)
        out += block
    out += struct.pack(">I", adler32(raw))
    return bytes(out)


def png_chunk(tag: bytes, payload: bytes) -> bytes:
    if len(tag) != 4:
        raise PngError(f"Chunk tag must be 4 bytes: {tag!r}")
    return struct.pack(">I", len(payload)) + tag + payload + struct.pack(">I", crc32(tag + payload))


def encode_png(
    pixels: bytes | np.ndarray,
    width: int,
    height: int | None = None,
    *,
    compression: str = "stored",
) -> bytes:
    height = width if height is None else height
    if width <= 0 or height <= 0:
        raise PngError(f"Invalid image size: {width}x{height}")
    expected = width * height * BYTES_PER_PIXEL
    actual = pixels.size if isinstance(pixels, np.ndarray) else len(pixels)
    if actual != expected:
        raise PngError(f"Pixel buffer has {actual} bytes, expected {expected} for {width}x{height} RGBA")
    if compression not in COMPRESSION_MODES:
        raise PngError(f"Unsupported compression: {compression}")

    raw = filter_scanlines(pixels, width, height)
    data = zlib_stored(raw) if compression == "stored" else zlib.compress(raw, 9)

    ihdr = struct.pack(">IIBBBBB", width, height, BIT_DEPTH, COLOR_TYPE_RGBA, 0, 0, 0)
    return PNG_SIGNATURE + png_chunk(b"IHDR", ihdr) + png_chunk(b"IDAT", data) + png_chunk(b"IEND", b"")


def read_png_chunks(data: bytes) -> Iterator[tuple[bytes, bytes]]:
    if not data.startswith(PNG_SIGNATURE):
        raise PngError("Invalid PNG: bad signature")

    offset = len(PNG_SIGNATURE)
    while offset < len(data):
        if offset + 8 > len(data):
            raise PngError("Invalid PNG: truncated chunk header")
        length, tag = struct.unpack_from(">I4s", data, offset)
        end = offset + 8 + length + 4
        if end > len(data):
            raise PngError(f"Invalid PNG: truncated {tag!r} chunk")
        payload = data[offset + 8 : offset + 8 + length]
        (stored_crc,) = struct.unpack_from(">I", data, end - 4)
        if stored_crc != crc32(tag + payload):
            raise PngError(f"Invalid PNG: CRC mismatch in {tag!r} chunk")
        yield tag, payload
        offset = end
        if tag == b"IEND":
            break
