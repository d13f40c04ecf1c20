"""Camera that follows the player within a dead zone."""

from __future__ import annotations

from dataclasses import dataclass

from gbsengine.vm import to_int16

CAMERA_LOCK_X_FLAG = 0x10
CAMERA_LOCK_Y_FLAG = 0x20
CAMERA_LOCK_FLAG = CAMERA_LOCK_X_FLAG | CAMERA_LOCK_Y_FLAG
CAMERA_FIXED_OFFSET_X = 128
CAMERA_FIXED_OFFSET_Y = 128


def _follow(current: int, player: int, fixed: int, deadzone: int, offset: int) -> int:
    anchor = (player + fixed) & 0xFFFF
    low = (anchor - (deadzone << 4) - (offset << 4)) & 0xFFFF
    high = (anchor + (deadzone << 4) - (offset << 4)) & 0xFFFF
    position = current & 0xFFFF
    if position < low:
        return to_int16(low)
    if position > high:
        return to_int16(high)
    return current


@dataclass
class Camera:
    """Camera centre in 1/16 pixel units; offsets and dead zones are in pixels."""

    x: int = 0
    y: int = 0
    offset_x: int = 0
    offset_y: int = 0
    deadzone_x: int = 0
    deadzone_y: int = 0
    settings: int = CAMERA_LOCK_FLAG

    def reset(self) -> None:
        """Lock to the player on both axes with no offset or dead zone."""
        self.settings = CAMERA_LOCK_FLAG
        self.x = self.y = 0
        self.offset_x = self.offset_y = 0
        self.deadzone_x = self.deadzone_y = 0

    def update(self, player_x: int, player_y: int) -> None:
        """Pull the camera along each locked axis until the player is inside the dead zone."""
        if self.settings & CAMERA_LOCK_X_FLAG:
            self.x = _follow(self.x, player_x, CAMERA_FIXED_OFFSET_X, self.deadzone_x, self.offset_x)
        if self.settings & CAMERA_LOCK_Y_FLAG:
            self.y = _follow(self.y, player_y, CAMERA_FIXED_OFFSET_Y, self.deadzone_y, self.offset_y)