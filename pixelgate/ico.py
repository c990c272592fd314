"""ICO container helpers: embedded BMP header repair and single-image ICO files."""

from __future__ import annotations

import struct

_ICO_MAX_DIMENSION = 256
_ICO_DATA_OFFSET = 22


class IcoError(ValueError):
    """Raised when ICO data cannot be built or repaired."""


def fix_bmp_header(data: bytes) -> bytes:
    """Turn a BMP image stored inside an ICO file into a standalone BMP file.

    ICO entries omit the BMP file header and store double the image height
    (colour data plus AND mask); both are fixed here.
    """
    if len(data) < 36:
        raise IcoError("ICO image data is too short")

    file_size = (14 + len(data)) & 0xFFFFFFFF
    colors_used = struct.unpack_from("<I", data, 32)[0]
    bit_count = struct.unpack_from("<H", data, 14)[0]

    if colors_used == 0 and bit_count <= 8:
        pix_offset = 14 + 40 + 4 * (1 << bit_count)
    else:
        pix_offset = (14 + 40 + 4 * colors_used) & 0xFFFFFFFF

    height = struct.unpack_from("<I", data, 8)[0] // 2

    return b"".join((
        b"BM",
        struct.pack("<III", file_size, 0, pix_offset),
        data[:8],
        struct.pack("<I", height),
        data[12:],
    ))


def build_ico(png_data: bytes, width: int, height: int, has_alpha: bool) -> bytes:
    """Wrap PNG data as the single image of an ICO file."""
    if width > _ICO_MAX_DIMENSION or height > _ICO_MAX_DIMENSION:
        raise IcoError("Image dimensions is too big. Max dimension size for ICO is 256")

    entry = bytes((
        width % 256,
        height % 256,
        0,  # number of colours: not used
        0,  # reserved
        1, 0,  # colour planes
        32 if has_alpha else 24, 0,  # bits per pixel
    ))

    return b"".join((
        bytes((0, 0, 1, 0, 1, 0)),
        entry,
        struct.pack("<I", len(png_data)),
        struct.pack("<I", _ICO_DATA_OFFSET),
        png_data,
    ))