"""
Color value helpers shared by the extractor, the builder and the API layer.
"""
from typing import NamedTuple

import numpy as np


# Relative luminance weights (Rec. 709)
LUMA_RED = 0.2126
LUMA_GREEN = 0.7152
LUMA_BLUE = 0.0722

PACKED_RGB_SPACE = 256 ** 3


class RGB(NamedTuple):
    """Immutable 8-bit RGB color."""
    red: int
    green: int
    blue: int

    @property
    def packed(self) -> int:
        return pack_rgb(self.red, self.green, self.blue)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self)

    @classmethod
    def from_packed(cls, value: int) -> "RGB":
        return unpack_rgb(value)


def pack_rgb(red: int, green: int, blue: int) -> int:
    """Pack 8-bit channels into a single ``0xRRGGBB`` integer."""
    return ((red & 0xFF) << 16) | ((green & 0xFF) << 8) | (blue & 0xFF)


def unpack_rgb(value: int) -> RGB:
    """Unpack a ``0xRRGGBB`` (or ``0xAARRGGBB``) integer; alpha is ignored."""
    value = int(value)
    return RGB((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def rgb_to_hex(rgb) -> str:
    """Convert an RGB triple (tuple or uint8 array) to ``#RRGGBB``."""
    r, g, b = [int(x) for x in rgb]
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert ``#RRGGBB`` (leading ``#`` optional) to an RGB value."""
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError(f"Invalid hex color: #{hex_color}")
    return RGB(*(int(hex_color[i:i+2], 16) for i in (0, 2, 4)))


def relative_luminance(red: int, green: int, blue: int) -> int:
    """Weighted channel sum truncated to an integer."""
    return int(LUMA_RED * red + LUMA_GREEN * green + LUMA_BLUE * blue)


def is_near_gray(red: int, green: int, blue: int, tolerance: int) -> bool:
    """True when every channel lies within ``tolerance`` of the pixel's luminance."""
    luminance = relative_luminance(red, green, blue)
    return (abs(red - luminance) <= tolerance
            and abs(green - luminance) <= tolerance
            and abs(blue - luminance) <= tolerance)


def luminance_array(rgb_u8: np.ndarray) -> np.ndarray:
    """
    Vectorised :func:`relative_luminance` for an ``(N, 3)`` array.

    Evaluated in float64 in the same order as the scalar version so both
    truncate to the same integers.
    """
    channels = rgb_u8.astype(np.float64)
    weighted = (LUMA_RED * channels[:, 0] + LUMA_GREEN * channels[:, 1]) + LUMA_BLUE * channels[:, 2]
    return weighted.astype(np.int64)


def near_gray_mask(rgb_u8: np.ndarray, tolerance: int) -> np.ndarray:
    """Vectorised :func:`is_near_gray`; returns a boolean array of length N."""
    luminance = luminance_array(rgb_u8)[:, None]
    deviation = np.abs(rgb_u8.astype(np.int64) - luminance)
    return np.all(deviation <= tolerance, axis=1)


def pack_rgb_array(rgb_u8: np.ndarray) -> np.ndarray:
    """Pack an ``(N, 3)`` uint8 array into int64 ``0xRRGGBB`` values."""
    channels = rgb_u8.astype(np.int64)
    return (channels[:, 0] << 16) | (channels[:, 1] << 8) | channels[:, 2]
