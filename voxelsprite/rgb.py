"""Floating-point colour values on a 16-bit scale."""

from __future__ import annotations

import math
from dataclasses import dataclass

_MAX = 65535.0
_MARGIN = 256.0


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Limit value to the closed range [minimum, maximum]."""
    if value > maximum:
        return maximum
    if value < minimum:
        return minimum
    return value


def _to_uint16(value: float) -> int:
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 0xFFFF if value > 0 else 0
    return int(value) & 0xFFFF


@dataclass(frozen=True)
class RGB:
    """A colour with components nominally in the range 0 to 65535."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __add__(self, other: RGB) -> RGB:
        return RGB(self.r + other.r, self.g + other.g, self.b + other.b)

    def __sub__(self, other: RGB) -> RGB:
        return RGB(self.r - other.r, self.g - other.g, self.b - other.b)

    def __mul__(self, value: float) -> RGB:
        return RGB(self.r * value, self.g * value, self.b * value)

    def divide_and_clamp(self, divisor: float) -> RGB:
        """Divide every component and clamp it away from the extremes."""
        low, high = _MARGIN, _MAX - _MARGIN
        return RGB(
            clamp(self.r / divisor, low, high),
            clamp(self.g / divisor, low, high),
            clamp(self.b / divisor, low, high),
        )

    def to_rgba64(self, alpha: float) -> tuple[int, int, int, int]:
        """Return non-premultiplied 16-bit (r, g, b, a) values."""
        return (
            _to_uint16(self.r),
            _to_uint16(self.g),
            _to_uint16(self.b),
            _to_uint16(alpha * _MAX),
        )


def clamp_rgb(rgb: RGB) -> RGB:
    """Clamp every component a little inside the 16-bit range."""
    low, high = _MARGIN, _MAX - _MARGIN
    return RGB(clamp(rgb.r, low, high), clamp(rgb.g, low, high), clamp(rgb.b, low, high))


def permissive_clamp_rgb(rgb: RGB) -> RGB:
    """Clamp every component to the full 16-bit range."""
    return RGB(clamp(rgb.r, 0.0, _MAX), clamp(rgb.g, 0.0, _MAX), clamp(rgb.b, 0.0, _MAX))