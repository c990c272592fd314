"""Size, scale and position calculations for the processing pipeline."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass


class GravityType(enum.Enum):
    UNKNOWN = ""
    CENTER = "ce"
    NORTH = "no"
    EAST = "ea"
    SOUTH = "so"
    WEST = "we"
    NORTH_WEST = "nowe"
    NORTH_EAST = "noea"
    SOUTH_WEST = "sowe"
    SOUTH_EAST = "soea"
    SMART = "sm"
    FOCUS_POINT = "fp"


class ResizeType(enum.Enum):
    FIT = "fit"
    FILL = "fill"
    FILL_DOWN = "fill-down"
    FORCE = "force"
    AUTO = "auto"


@dataclass
class GravityOptions:
    """Gravity type with its offsets (pixels) or focus point (fractions)."""

    type: GravityType = GravityType.CENTER
    x: float = 0.0
    y: float = 0.0


@dataclass
class ScaleOptions:
    """The resizing-related subset of processing options."""

    width: int = 0
    height: int = 0
    dpr: float = 1.0
    zoom_width: float = 1.0
    zoom_height: float = 1.0
    resizing_type: ResizeType = ResizeType.FIT
    enlarge: bool = False
    min_width: int = 0
    min_height: int = 0


_NORTH = {GravityType.NORTH, GravityType.NORTH_EAST, GravityType.NORTH_WEST}
_EAST = {GravityType.EAST, GravityType.NORTH_EAST, GravityType.SOUTH_EAST}
_SOUTH = {GravityType.SOUTH, GravityType.SOUTH_EAST, GravityType.SOUTH_WEST}
_WEST = {GravityType.WEST, GravityType.NORTH_WEST, GravityType.SOUTH_WEST}


def _round(value: float) -> int:
    """Round half away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def scale_int(value: int, scale: float) -> int:
    """Multiply an integer size by a factor and round."""
    if value == 0:
        return 0
    return _round(value * scale)


def shrink_int(value: int, shrink: float) -> int:
    """Divide an integer size by a factor and round."""
    if value == 0:
        return 0
    return _round(value / shrink)


def min_non_zero(a: int, b: int) -> int:
    """Return the smaller of two values, ignoring zeros."""
    if a == 0:
        return b
    if b == 0:
        return a
    return min(a, b)


def calc_position(
    width: int,
    height: int,
    inner_width: int,
    inner_height: int,
    gravity: GravityOptions,
    allow_overflow: bool,
) -> tuple[int, int]:
    """Return (left, top) of an inner box placed inside an outer box by gravity."""
    if gravity.type is GravityType.FOCUS_POINT:
        left = scale_int(width, gravity.x) - _tdiv(inner_width, 2)
        top = scale_int(height, gravity.y) - _tdiv(inner_height, 2)
    else:
        off_x, off_y = int(gravity.x), int(gravity.y)

        left = _tdiv(width - inner_width + 1, 2) + off_x
        top = _tdiv(height - inner_height + 1, 2) + off_y

        if gravity.type in _NORTH:
            top = off_y
        if gravity.type in _EAST:
            left = width - inner_width - off_x
        if gravity.type in _SOUTH:
            top = height - inner_height - off_y
        if gravity.type in _WEST:
            left = off_x

    if allow_overflow:
        min_x, max_x = -inner_width + 1, width - 1
        min_y, max_y = -inner_height + 1, height - 1
    else:
        min_x, max_x = 0, width - inner_width
        min_y, max_y = 0, height - inner_height

    left = max(min_x, min(left, max_x))
    top = max(min_y, min(top, max_y))
    return left, top


def result_size(options: ScaleOptions) -> tuple[int, int]:
    """Return the requested output size with DPR and zoom applied."""
    return (
        scale_int(options.width, options.dpr * options.zoom_width),
        scale_int(options.height, options.dpr * options.zoom_height),
    )


def extract_meta(
    width: int, height: int, orientation: int, base_angle: int, use_orientation: bool
) -> tuple[int, int, int, bool]:
    """Return (width, height, angle, flip) after applying EXIF orientation and rotation."""
    angle = 0
    flip = False

    if use_orientation:
        if orientation in (3, 4):
            angle = 180
        if orientation in (5, 6):
            angle = 90
        if orientation in (7, 8):
            angle = 270
        if orientation in (2, 4, 5, 7):
            flip = True

    if (angle + base_angle) % 180 != 0:
        width, height = height, width

    return width, height, angle, flip


def calc_scale(width: int, height: int, options: ScaleOptions, is_svg: bool) -> tuple[float, float]:
    """Return (width scale, height scale) that turn the source size into the result size."""
    src_w, src_h = float(width), float(height)
    dst_w = float(options.width) if options.width else src_w
    dst_h = float(options.height) if options.height else src_h

    wshrink = 1.0 if dst_w == src_w else src_w / dst_w
    hshrink = 1.0 if dst_h == src_h else src_h / dst_h

    wshrink /= options.dpr
    hshrink /= options.dpr

    if wshrink != 1 or hshrink != 1:
        rt = options.resizing_type

        if rt is ResizeType.AUTO:
            src_d = src_w - src_h
            dst_d = dst_w - dst_h
            if (src_d >= 0) == (dst_d >= 0):
                rt = ResizeType.FILL
            else:
                rt = ResizeType.FIT

        if options.width == 0 and rt is not ResizeType.FORCE:
            wshrink = hshrink
        elif options.height == 0 and rt is not ResizeType.FORCE:
            hshrink = wshrink
        elif rt is ResizeType.FIT:
            wshrink = hshrink = max(wshrink, hshrink)
        elif rt in (ResizeType.FILL, ResizeType.FILL_DOWN):
            wshrink = hshrink = min(wshrink, hshrink)

    wshrink /= options.zoom_width
    hshrink /= options.zoom_height

    if not options.enlarge and not is_svg:
        if wshrink < 1:
            hshrink /= wshrink
            wshrink = 1.0
        if hshrink < 1:
            wshrink /= hshrink
            hshrink = 1.0

    if options.min_width > 0:
        min_shrink = src_w / options.min_width
        if min_shrink < wshrink:
            hshrink /= wshrink / min_shrink
            wshrink = min_shrink

    if options.min_height > 0:
        min_shrink = src_h / options.min_height
        if min_shrink < hshrink:
            wshrink /= hshrink / min_shrink
            hshrink = min_shrink

    wshrink = min(wshrink, src_w)
    hshrink = min(hshrink, src_h)

    return 1.0 / wshrink, 1.0 / hshrink


def calc_crop_size(orig: int, crop: float) -> int:
    """Turn a crop value (absolute pixels or a fraction) into pixels; 0 means no crop."""
    if crop == 0.0:
        return 0
    if crop >= 1.0:
        return int(crop)
    return max(1, scale_int(orig, crop))


def calc_jpeg_shrink(scale: float) -> int:
    """Return the JPEG shrink-on-load factor (1, 2, 4 or 8) for a scale."""
    shrink = int(1.0 / scale)
    if shrink >= 8:
        return 8
    if shrink >= 4:
        return 4
    if shrink >= 2:
        return 2
    return 1