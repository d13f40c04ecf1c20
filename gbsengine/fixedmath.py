"""Fixed-point helpers: integer square root, 8-bit angles, directions and bounding boxes.

Positions are 16-bit values in 1/16 pixel units; one tile is 8 pixels (128 units).
Angles are 8-bit: 0 points up, 64 right, 128 down and 192 left.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

SINE_WAVE: tuple[int, ...] = (
    0, 3, 6, 9, 12, 16, 19, 22, 25, 28, 31, 34, 37, 40, 43, 46,
    49, 51, 54, 57, 60, 63, 65, 68, 71, 73, 76, 78, 81, 83, 85, 88,
    90, 92, 94, 96, 98, 100, 102, 104, 106, 107, 109, 111, 112, 113, 115, 116,
    117, 118, 120, 121, 122, 122, 123, 124, 125, 125, 126, 126, 126, 127, 127, 127,
    127, 127, 127, 127, 126, 126, 126, 125, 125, 124, 123, 122, 122, 121, 120, 118,
    117, 116, 115, 113, 112, 111, 109, 107, 106, 104, 102, 100, 98, 96, 94, 92,
    90, 88, 85, 83, 81, 78, 76, 73, 71, 68, 65, 63, 60, 57, 54, 51,
    49, 46, 43, 40, 37, 34, 31, 28, 25, 22, 19, 16, 12, 9, 6, 3,
    0, -3, -6, -9, -12, -16, -19, -22, -25, -28, -31, -34, -37, -40, -43, -46,
    -49, -51, -54, -57, -60, -63, -65, -68, -71, -73, -76, -78, -81, -83, -85, -88,
    -90, -92, -94, -96, -98, -100, -102, -104, -106, -107, -109, -111, -112, -113, -115, -116,
    -117, -118, -120, -121, -122, -122, -123, -124, -125, -125, -126, -126, -126, -127, -127, -127,
    -127, -127, -127, -127, -126, -126, -126, -125, -125, -124, -123, -122, -122, -121, -120, -118,
    -117, -116, -115, -113, -112, -111, -109, -107, -106, -104, -102, -100, -98, -96, -94, -92,
    -90, -88, -85, -83, -81, -78, -76, -73, -71, -68, -65, -63, -60, -57, -54, -51,
    -49, -46, -43, -40, -37, -34, -31, -28, -25, -22, -19, -16, -12, -9, -6, -3,
)

_ATAN2_TABLE: tuple[tuple[int, ...], ...] = (
    (64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64, 64),
    (0, 32, 45, 51, 54, 56, 57, 58, 59, 59, 60, 60, 61, 61, 61, 61, 61, 62),
    (0, 19, 32, 40, 45, 48, 51, 53, 54, 55, 56, 57, 57, 58, 58, 59, 59, 59),
    (0, 13, 24, 32, 38, 42, 45, 48, 49, 51, 52, 53, 54, 55, 55, 56, 56, 57),
    (0, 10, 19, 26, 32, 37, 40, 43, 45, 47, 48, 50, 51, 52, 53, 53, 54, 55),
    (0, 8, 16, 22, 27, 32, 36, 39, 41, 43, 45, 47, 48, 49, 50, 51, 52, 52),
    (0, 7, 13, 19, 24, 28, 32, 35, 38, 40, 42, 44, 45, 46, 48, 48, 49, 50),
    (0, 6, 11, 16, 21, 25, 29, 32, 35, 37, 39, 41, 42, 44, 45, 46, 47, 48),
    (0, 5, 10, 15, 19, 23, 26, 29, 32, 34, 37, 38, 40, 42, 43, 44, 45, 46),
    (0, 5, 9, 13, 17, 21, 24, 27, 30, 32, 34, 36, 38, 39, 41, 42, 43, 44),
    (0, 4, 8, 12, 16, 19, 22, 25, 27, 30, 32, 34, 36, 37, 39, 40, 41, 42),
    (0, 4, 7, 11, 14, 17, 20, 23, 26, 28, 30, 32, 34, 35, 37, 38, 39, 41),
    (0, 3, 7, 10, 13, 16, 19, 22, 24, 26, 28, 30, 32, 34, 35, 37, 38, 39),
    (0, 3, 6, 9, 12, 15, 18, 20, 22, 25, 27, 29, 30, 32, 34, 35, 36, 37),
    (0, 3, 6, 9, 11, 14, 16, 19, 21, 23, 25, 27, 29, 30, 32, 33, 35, 36),
    (0, 3, 5, 8, 11, 13, 16, 18, 20, 22, 24, 26, 27, 29, 31, 32, 33, 35),
    (0, 3, 5, 8, 10, 12, 15, 17, 19, 21, 23, 25, 26, 28, 29, 31, 32, 33),
    (0, 2, 5, 7, 9, 12, 14, 16, 18, 20, 22, 23, 25, 27, 28, 29, 31, 32),
    (0, 2, 5, 7, 9, 11, 13, 15, 17, 19, 21, 22, 24, 25, 27, 28, 30, 31),
    (0, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 21, 23, 24, 26, 27, 29, 30),
)


class Direction(IntEnum):
    """Facing direction of an actor."""

    DOWN = 0
    RIGHT = 1
    UP = 2
    LEFT = 3

    @property
    def vector(self) -> tuple[int, int]:
        """Unit step (dx, dy) for this direction; y grows downwards."""
        return _DIR_VECTORS[self]

    @property
    def angle(self) -> int:
        """The 8-bit angle this direction points at."""
        return _DIR_ANGLES[self]


_DIR_VECTORS = ((0, 1), (1, 0), (0, -1), (-1, 0))
_DIR_ANGLES = (128, 64, 0, 192)


@dataclass
class BoundingBox:
    """Collision box in pixels, relative to an actor's position."""

    left: int = 0
    right: int = 15
    top: int = 0
    bottom: int = 15


def isqrt(x: int) -> int:
    """Integer square root of a 16-bit value."""
    x &= 0xFFFF
    m, y = 0x4000, 0
    while m:
        b = y | m
        y >>= 1
        if x >= b:
            x -= b
            y |= m
        m >>= 2
    return y & 0xFF


def atan2(y: int, x: int) -> int:
    """8-bit angle of the vector (x, y), with x clamped to ±19 and y to ±17."""
    x = max(-19, min(19, x))
    y = max(-17, min(17, y))
    if x >= 0 and y <= 0:
        result = 64 - _ATAN2_TABLE[x][-y]
    elif x >= 0 and y >= 0:
        result = 64 + _ATAN2_TABLE[x][y]
    elif x <= 0 and y >= 0:
        result = 192 - _ATAN2_TABLE[-x][y]
    else:
        result = 192 + _ATAN2_TABLE[-x][-y]
    return result & 0xFF


def sin8(angle: int) -> int:
    """Sine of an 8-bit angle, scaled to -127..127."""
    return SINE_WAVE[angle & 0xFF]


def cos8(angle: int) -> int:
    """Cosine of an 8-bit angle, scaled to -127..127."""
    return SINE_WAVE[(angle + 64) & 0xFF]


def flipped_dir(direction: Direction) -> Direction:
    """The opposite direction."""
    return Direction((int(direction) + 2) & 3)


def translate_dir(x: int, y: int, direction: Direction, amount: int) -> tuple[int, int]:
    """Move the 16-bit point (x, y) by amount units in a direction."""
    dx, dy = Direction(direction).vector
    return (x + dx * amount) & 0xFFFF, (y + dy * amount) & 0xFFFF


def angle_to_delta(angle: int, speed: int) -> tuple[int, int]:
    """Per-frame (dx, dy) for travelling at speed along an angle; dy is positive upwards."""
    return (sin8(angle) * speed) >> 7, (cos8(angle) * speed) >> 7


def bb_intersects(bb_a: BoundingBox, ax: int, ay: int, bb_b: BoundingBox, bx: int, by: int) -> bool:
    """Whether two boxes placed at sub-pixel positions overlap."""
    apx, apy, bpx, bpy = ax >> 4, ay >> 4, bx >> 4, by >> 4
    if bpx + bb_b.left > apx + bb_a.right or bpx + bb_b.right < apx + bb_a.left:
        return False
    if bpy + bb_b.top > apy + bb_a.bottom or bpy + bb_b.bottom < apy + bb_a.top:
        return False
    return True