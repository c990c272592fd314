"""BMP decoding into raw pixel buffers and 24-bit BMP encoding."""

from __future__ import annotations

import itertools
import struct
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

_FILE_HEADER_LEN = 14
_INFO_HEADER_LEN = 40
_V4_INFO_HEADER_LEN = 108
_V5_INFO_HEADER_LEN = 124

_HEADER_FORMAT = "<2sIHHIIIIHHIIIIII"

UNSUPPORTED = "unsupported BMP image"


class BmpError(ValueError):
    """Raised when BMP data is malformed or uses an unsupported feature."""


@dataclass
class Bitmap:
    """An 8-bit image stored row by row, top row first, bands interleaved."""

    width: int
    height: int
    bands: int
    data: bytes
    palette_bit_depth: int | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0 or self.bands <= 0:
            raise ValueError("Bitmap dimensions must be positive")
        expected = self.width * self.height * self.bands
        if len(self.data) != expected:
            raise ValueError(
                f"Bitmap data has {len(self.data)} bytes, expected {expected}"
            )
        self.data = bytes(self.data)

    @property
    def has_alpha(self) -> bool:
        return self.bands == 4

    def pixel(self, x: int, y: int) -> tuple[int, ...]:
        """Return the band values of the pixel at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) is outside the image")
        start = (y * self.width + x) * self.bands
        return tuple(self.data[start:start + self.bands])


class _Stream:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def read_full(self, size: int) -> bytes:
        if self._pos + size > len(self._data):
            raise BmpError("unexpected EOF")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def seek(self, offset: int) -> None:
        self._pos = offset


def _u16(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<H", buf, offset)[0]


def _u32(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<I", buf, offset)[0]


def _rows(height: int, top_down: bool) -> range:
    return range(height) if top_down else range(height - 1, -1, -1)


def _bit_depth(colors: int) -> int:
    if colors > 16:
        return 8
    if colors > 4:
        return 4
    if colors > 2:
        return 2
    return 0


def _indices(buf: bytes, count: int, bpp: int) -> Iterator[int]:
    """Yield `count` packed palette indices of `bpp` bits, most significant first."""
    mask = (1 << bpp) - 1
    j, bit = 0, 8 - bpp
    for _ in range(count):
        yield (buf[j] >> bit) & mask
        if bit == 0:
            bit = 8 - bpp
            j += 1
        else:
            bit -= bpp


def _colour(palette: Sequence[bytes], index: int) -> bytes:
    if index >= len(palette):
        raise BmpError("palette index out of range")
    return palette[index]


def _decode_paletted(
    stream: _Stream, width: int, height: int, bpp: int,
    palette: Sequence[bytes], top_down: bool,
) -> bytearray:
    per_byte = 8 // bpp
    row_len = ((width + per_byte - 1) // per_byte + 3) & ~3
    stride = width * 3
    out = bytearray(stride * height)

    for y in _rows(height, top_down):
        row = stream.read_full(row_len)
        base = y * stride
        for x, index in enumerate(_indices(row, width, bpp)):
            out[base + 3 * x:base + 3 * x + 3] = _colour(palette, index)

    return out


def _decode_rle(
    stream: _Stream, width: int, height: int, bpp: int, palette: Sequence[bytes]
) -> bytearray:
    out = bytearray(width * height * 3)
    per_byte = 8 // bpp
    mask = (1 << bpp) - 1
    x, y = 0, height - 1

    while True:
        b1, b2 = stream.read_full(2)

        if b1 == 0:
            if b2 == 0:  # end of line
                x, y = 0, y - 1
                if y < 0:
                    break
            elif b2 == 1:  # end of bitmap
                break
            elif b2 == 2:  # delta
                dx, dy = stream.read_full(2)
                x = min(x + dx, width)
                y -= dy
                if y < 0:
                    break
            else:  # absolute run
                size = ((b2 + per_byte - 1) // per_byte + 1) & ~1
                run = stream.read_full(size)
                count = min(b2, width - x)
                if count > 0:
                    start = (y * width + x) * 3
                    for i, index in enumerate(_indices(run, count, bpp)):
                        out[start + 3 * i:start + 3 * i + 3] = _colour(palette, index)
                    x += count
        else:
            count = min(b1, width - x)
            if count > 0:
                start = (y * width + x) * 3
                packed = [(b2 >> bit) & mask for bit in range(8 - bpp, -1, -bpp)]
                for i, index in enumerate(itertools.islice(itertools.cycle(packed), count)):
                    out[start + 3 * i:start + 3 * i + 3] = _colour(palette, index)
                x += count

    return out


def _decode_rgb(
    stream: _Stream, width: int, height: int, bands: int,
    top_down: bool, no_alpha: bool,
) -> tuple[bytearray, int]:
    if bands not in (3, 4):
        raise BmpError(UNSUPPORTED)

    img_bands = 4 if bands == 4 and not no_alpha else 3
    row_len = (bands * width + 3) & ~3
    stride = width * img_bands
    used = width * bands
    out = bytearray(stride * height)

    for y in _rows(height, top_down):
        row = stream.read_full(row_len)
        line = bytearray(stride)
        # BMP stores pixels in BGR(A) order.
        line[0::img_bands] = row[2:used:bands]
        line[1::img_bands] = row[1:used:bands]
        line[2::img_bands] = row[0:used:bands]
        if img_bands == 4:
            line[3::4] = row[3:used:bands]
        out[y * stride:(y + 1) * stride] = line

    return out, img_bands


def _decode_rgb16(
    stream: _Stream, width: int, height: int, top_down: bool, bmp565: bool
) -> bytearray:
    row_len = (2 * width + 3) & ~3
    stride = width * 3
    out = bytearray(stride * height)

    for y in _rows(height, top_down):
        row = stream.read_full(row_len)
        base = y * stride
        for x, pixel in enumerate(struct.unpack_from(f"<{width}H", row)):
            if bmp565:
                r = ((pixel & 0xF800) >> 11) << 3
                g = ((pixel & 0x7E0) >> 5) << 2
            else:
                r = ((pixel & 0x7C00) >> 10) << 3
                g = ((pixel & 0x3E0) >> 5) << 3
            b = (pixel & 0x1F) << 3
            out[base + 3 * x:base + 3 * x + 3] = bytes((r, g, b))

    return out


def decode_bmp(data: bytes, no_alpha: bool = True) -> Bitmap:
    """Decode a BMP file (BITMAPFILEHEADER plus an info, V4 or V5 header).

    32-bit images without an alpha mask keep their fourth band only when
    no_alpha is False. Raises BmpError on malformed or unsupported data.
    """
    stream = _Stream(bytes(data))

    head = bytearray(stream.read_full(_FILE_HEADER_LEN + 4))
    if head[:2] != b"BM":
        raise BmpError("not a BMP image")

    offset = _u32(head, 10)
    info_len = _u32(head, 14)
    if info_len not in (_INFO_HEADER_LEN, _V4_INFO_HEADER_LEN, _V5_INFO_HEADER_LEN):
        raise BmpError(UNSUPPORTED)

    head += stream.read_full(info_len - 4)

    width, height = struct.unpack_from("<ii", head, 18)
    top_down = False
    if height < 0:
        height, top_down = -height, True
    if width <= 0 or height <= 0:
        raise BmpError(UNSUPPORTED)

    planes, bpp, compression = _u16(head, 26), _u16(head, 28), _u32(head, 30)
    if planes != 1:
        raise BmpError(UNSUPPORTED)

    rle = False
    bmp565 = False

    if compression == 0:
        pass
    elif (compression == 1 and bpp == 8) or (compression == 2 and bpp == 4):
        rle = True
    elif compression == 3:
        if info_len == _INFO_HEADER_LEN:
            # Colour masks follow the plain info header.
            head += stream.read_full(12)
        head = head.ljust(70, b"\0")

        rmask, gmask, bmask, amask = struct.unpack_from("<IIII", head, 54)

        if bpp == 16 and (rmask, gmask, bmask) == (0xF800, 0x7E0, 0x1F):
            bmp565 = True
        elif bpp == 16 and (rmask, gmask, bmask) == (0x7C00, 0x3E0, 0x1F):
            pass
        elif bpp == 32 and (rmask, gmask, bmask, amask) == (0xFF0000, 0xFF00, 0xFF, 0xFF000000):
            pass
        else:
            raise BmpError(UNSUPPORTED)
    else:
        raise BmpError(UNSUPPORTED)

    palette: list[bytes] = []
    if bpp <= 8:
        colors = _u32(head, 46) or (1 << bpp)
        if colors > 256:
            raise BmpError(UNSUPPORTED)
        raw = stream.read_full(colors * 4)
        # Entries are stored as BGR plus a padding byte.
        palette = [bytes((raw[i + 2], raw[i + 1], raw[i])) for i in range(0, len(raw), 4)]

    stream.seek(offset)

    if rle:
        pixels = _decode_rle(stream, width, height, bpp, palette)
        return Bitmap(width, height, 3, bytes(pixels), _bit_depth(len(palette)))

    if bpp in (1, 2, 4, 8):
        pixels = _decode_paletted(stream, width, height, bpp, palette, top_down)
        return Bitmap(width, height, 3, bytes(pixels), _bit_depth(len(palette)))
    if bpp == 16:
        pixels = _decode_rgb16(stream, width, height, top_down, bmp565)
        return Bitmap(width, height, 3, bytes(pixels))
    if bpp == 24:
        pixels, bands = _decode_rgb(stream, width, height, 3, top_down, True)
        return Bitmap(width, height, bands, bytes(pixels))
    if bpp == 32:
        if info_len >= 70:
            # An empty alpha mask means there is no alpha channel.
            no_alpha = _u32(head, 66) == 0
        pixels, bands = _decode_rgb(stream, width, height, 4, top_down, no_alpha)
        return Bitmap(width, height, bands, bytes(pixels))

    raise BmpError(UNSUPPORTED)


def encode_bmp(image: Bitmap) -> bytes:
    """Encode an RGB or RGBA bitmap as an uncompressed 24-bit BMP.

    Alpha is dropped after premultiplying the colour bands with it.
    """
    if image.bands not in (3, 4):
        raise BmpError(UNSUPPORTED)

    width, height, bands = image.width, image.height, image.bands
    line_size = (width * 3 + 3) & ~3
    image_size = height * line_size
    header_size = _FILE_HEADER_LEN + _INFO_HEADER_LEN

    out = bytearray(struct.pack(
        _HEADER_FORMAT,
        b"BM",
        header_size + image_size,
        0, 0,
        header_size,
        _INFO_HEADER_LEN,
        width & 0xFFFFFFFF,
        height & 0xFFFFFFFF,
        1,
        24,
        0,
        image_size,
        2835,
        2835,
        0,
        0,
    ))

    stride = width * bands
    padding = bytes(line_size - width * 3)

    for y in range(height - 1, -1, -1):
        src = image.data[y * stride:(y + 1) * stride]
        line = bytearray(width * 3)
        line[0::3] = src[2::bands]
        line[1::3] = src[1::bands]
        line[2::3] = src[0::bands]

        if bands == 4:
            for x, alpha in enumerate(src[3::4]):
                if alpha < 255:
                    j = 3 * x
                    line[j:j + 3] = bytes(c * alpha // 255 for c in line[j:j + 3])

        out += line
        out += padding

    return bytes(out)