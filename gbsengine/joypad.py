"""Joypad state tracking."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag


class Button(IntFlag):
    """Joypad button bits."""

    RIGHT = 0x01
    LEFT = 0x02
    UP = 0x04
    DOWN = 0x08
    A = 0x10
    B = 0x20
    SELECT = 0x40
    START = 0x80


DPAD = Button.RIGHT | Button.LEFT | Button.UP | Button.DOWN


@dataclass
class Joypad:
    """Current and previous button state.

    ``joy`` is the working copy for this frame and may be altered by input
    handlers; ``raw`` keeps the value last read from the pad.
    """

    joy: int = 0
    last_joy: int = 0
    recent_joy: int = 0
    raw: int = 0
    npads: int = 1

    def reset(self) -> None:
        """Forget all button state."""
        self.joy = self.last_joy = self.recent_joy = self.raw = 0
        self.npads = 1

    def update(self, buttons: int) -> None:
        """Take a new reading of the pad."""
        self.last_joy = self.raw
        self.raw = self.joy = int(buttons) & 0xFF
        if (self.joy ^ self.last_joy) & DPAD:
            self.recent_joy = (self.joy & ~self.last_joy) & DPAD

    def pressed(self, mask: int) -> bool:
        """Whether any button in mask went down this frame."""
        return bool((self.joy & ~self.last_joy) & mask)