from __future__ import annotations

import io
import struct
import zlib

import numpy as np
import pytest
from PIL import Image

from png_encoder import (
    PNG_SIGNATURE,
    STORED_BLOCK_MAX,
    PngError,
    adler32,
    crc32,
    encode_png,
    filter_scanlines,
    png_chunk,
    read_png_chunks,
    zlib_stored,
)


def _decode(png: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(png)) as img:
        assert img.mode == "RGBA"
        return np.asarray(img.convert("RGBA"))


@pytest.mark.parametrize("data", [b"", b"IEND", b"The quick brown fox", bytes(range(256)) * 5])
def test_checksums_match_zlib(data):
    assert crc32(data) == zlib.crc32(data)
    assert adler32(data) == zlib.adler32(data)


def test_crc32_can_be_continued():
    assert crc32(b"IDAT" + b"payload") == crc32(b"payload", crc32(b"IDAT"))


def test_filter_scanlines_prefixes_each_row():
    pixels = np.arange(2 * 3 * 4, dtype=np.uint8)
    raw = filter_scanlines(pixels.tobytes(), 3, 2)

    assert len(raw) == 2 * (1 + 12)
    assert raw[0] == 0 and raw[13] == 0
    assert raw[1:13] == bytes(range(12))
    assert raw[14:26] == bytes(range(12, 24))


def test_stored_stream_splits_blocks():
    raw = bytes(i % 251 for i in range(STORED_BLOCK_MAX * 2 + 10))
    stream = zlib_stored(raw)

    assert stream[:2] == b"\x78\x01"
    assert zlib.decompress(stream) == raw
    assert len(stream) == 2 + 3 * 5 + len(raw) + 4

    offset = 2
    for expected_len, final in ((STORED_BLOCK_MAX, 0), (STORED_BLOCK_MAX, 0), (10, 1)):
        assert stream[offset] == final
        length, nlength = struct.unpack_from("<HH", stream, offset + 1)
        assert length == expected_len
        assert nlength == length ^ 0xFFFF
        offset += 5 + length
    assert struct.unpack_from(">I", stream, offset)[0] == zlib.adler32(raw)


def test_stored_stream_for_exact_block_size_has_one_final_block():
    raw = b"\x07" * STORED_BLOCK_MAX
    stream = zlib_stored(raw)
    assert stream[2] == 1
    assert len(stream) == 2 + 5 + STORED_BLOCK_MAX + 4
    assert zlib.decompress(stream) == raw


def test_empty_stream_is_valid():
    assert zlib.decompress(zlib_stored(b"")) == b""


def test_black_4x4_image_layout():
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    png = encode_png(pixels, 4)

    raw_len = 4 * (1 + 4 * 4)
    idat_len = 2 + 5 + raw_len + 4
    assert raw_len == 68
    assert len(png) == 8 + 3 * 12 + 13 + idat_len + 0 == 136
    assert png.startswith(PNG_SIGNATURE)

    decoded = _decode(png)
    assert decoded.shape == (4, 4, 4)
    assert np.all(decoded == (0, 0, 0, 255))


def test_chunks_are_ordered_and_checksummed():
    pixels = np.random.default_rng(7).integers(0, 256, size=(6, 6, 4), dtype=np.uint8)
    png = encode_png(pixels, 6)

    chunks = list(read_png_chunks(png))
    assert [tag for tag, _ in chunks] == [b"IHDR", b"IDAT", b"IEND"]
    ihdr, idat, iend = (payload for _, payload in chunks)
    assert ihdr == struct.pack(">IIBBBBB", 6, 6, 8, 6, 0, 0, 0)
    assert iend == b""

    raw = filter_scanlines(pixels, 6, 6)
    assert struct.unpack(">I", idat[-4:])[0] == zlib.adler32(raw)
    assert zlib.decompress(idat) == raw

    offset = len(PNG_SIGNATURE)
    for tag, payload in chunks:
        stored = struct.unpack_from(">I", png, offset + 8 + len(payload))[0]
        assert stored == zlib.crc32(tag + payload)
        offset += 12 + len(payload)
    assert offset == len(png)


@pytest.mark.parametrize("compression", ["stored", "zlib"])
def test_pillow_round_trip(compression):
    pixels = np.random.default_rng(3).integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    png = encode_png(pixels, 7, 5, compression=compression)
    assert np.array_equal(_decode(png), pixels)


def test_large_image_spans_several_stored_blocks():
    size = 200  # 200 * (1 + 800) bytes of scanlines > two stored blocks
    pixels = np.full((size, size, 4), (12, 34, 56, 255), dtype=np.uint8)
    png = encode_png(pixels, size)
    assert np.array_equal(_decode(png), pixels)


def test_zlib_mode_is_smaller_but_equivalent():
    pixels = np.zeros((32, 32, 4), dtype=np.uint8)
    stored = encode_png(pixels, 32)
    deflated = encode_png(pixels, 32, compression="zlib")
    assert len(deflated) < len(stored)
    assert np.array_equal(_decode(stored), _decode(deflated))


def test_bytes_input_is_accepted():
    pixels = bytes([255, 0, 0, 255]) * 4
    assert np.all(_decode(encode_png(pixels, 2)) == (255, 0, 0, 255))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pixels": b"\x00" * 15, "width": 2},
        {"pixels": b"", "width": 0},
        {"pixels": b"\x00" * 16, "width": 2, "compression": "lzma"},
    ],
)
def test_encode_png_rejects_bad_input(kwargs):
    with pytest.raises(PngError):
        encode_png(**kwargs)


def test_read_png_chunks_detects_corruption():
    png = bytearray(encode_png(b"\x10" * 16, 2))
    png[len(PNG_SIGNATURE) + 8] ^= 0xFF  # first IHDR payload byte
    with pytest.raises(PngError, match="CRC mismatch"):
        list(read_png_chunks(bytes(png)))


def test_read_png_chunks_requires_signature():
    with pytest.raises(PngError, match="signature"):
        list(read_png_chunks(b"GIF89a" + b"\x00" * 20))


def test_png_chunk_framing():
    chunk = png_chunk(b"tEXt", b"abc")
    assert chunk[:4] == struct.pack(">I", 3)
    assert chunk[4:11] == b"tEXtabc"
    assert chunk[11:] == struct.pack(">I", zlib.crc32(b"tEXtabc"))
