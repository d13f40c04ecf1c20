"""Screen fading by stepping monochrome palette shades."""

from __future__ import annotations

from dataclasses import dataclass, field

from gbsengine.palette import default_dmg_palettes

FADED_OUT_FRAME = 5
FADED_IN_FRAME = 0
FADE_SPEEDS = (0x0, 0x1, 0x3, 0x7, 0xF, 0x1F, 0x3F)
FADE_WHITE = 0
FADE_BLACK = 1

_FADE_IN = 0
_FADE_OUT = 1


def _map_shades(pal: int, shade) -> int:
    return sum(shade((pal >> s) & 3) << s for s in (0, 2, 4, 6))


def dmg_fade_to_white_step(step: int, pal: int) -> int:
    """Lighten every shade of a palette by step levels."""
    pal &= 0xFF
    for _ in range(step & 0xFF):
        pal = _map_shades(pal, lambda c: max(c - 1, 0))
    return pal


def dmg_fade_to_black_step(step: int, pal: int) -> int:
    """Darken every shade of a palette by step levels."""
    pal &= 0xFF
    for _ in range(step & 0xFF):
        pal = _map_shades(pal, lambda c: min(c + 1, 3))
    return pal


@dataclass
class FadeManager:
    """Fades the screen in and out towards white or black."""

    palettes: tuple[int, int, int] = field(default_factory=default_dmg_palettes)
    style: int = FADE_WHITE
    frames_per_step: int = FADE_SPEEDS[2]
    timer: int = FADED_OUT_FRAME
    running: bool = False
    registers: tuple[int, int, int] = (0, 0, 0)
    _frame: int = 0
    _direction: int = _FADE_IN

    def __post_init__(self) -> None:
        self.init()

    def _apply(self, index: int) -> tuple[int, int, int]:
        index = min(index, 4)
        step = dmg_fade_to_black_step if self.style else dmg_fade_to_white_step
        self.registers = tuple(step(index, pal) for pal in self.palettes)
        return self.registers

    def init(self) -> None:
        """Start fully faded out."""
        self.frames_per_step = FADE_SPEEDS[2]
        self.timer = FADED_OUT_FRAME
        self.running = False
        self._apply(FADED_OUT_FRAME)

    def fade_in(self) -> None:
        """Begin fading in, unless already faded in."""
        if self.timer == FADED_IN_FRAME:
            self._apply(FADED_IN_FRAME)
            return
        self._frame = 0
        self._direction = _FADE_IN
        self.running = True
        self.timer = FADED_OUT_FRAME
        self._apply(FADED_OUT_FRAME)

    def fade_out(self) -> None:
        """Begin fading out, unless already faded out."""
        if self.timer == FADED_OUT_FRAME:
            self._apply(FADED_OUT_FRAME)
            return
        self._frame = 0
        self._direction = _FADE_OUT
        self.running = True
        self.timer = FADED_IN_FRAME
        self._apply(FADED_IN_FRAME)

    def update(self) -> None:
        """Advance a running fade by one frame."""
        if not self.running:
            return
        frame = self._frame
        self._frame = (frame + 1) & 0xFF
        if frame & self.frames_per_step:
            return
        if self._direction == _FADE_IN:
            if self.timer > FADED_IN_FRAME:
                self.timer -= 1
            if self.timer == FADED_IN_FRAME:
                self.running = False
        else:
            if self.timer < FADED_OUT_FRAME:
                self.timer += 1
            if self.timer == FADED_OUT_FRAME:
                self.running = False
        self._apply(self.timer)

    def set_speed(self, speed: int) -> None:
        """Choose one of the fade speeds, 0 being the fastest."""
        if not 0 <= speed < len(FADE_SPEEDS):
            raise ValueError(f"fade speed must be 0..{len(FADE_SPEEDS) - 1}, got {speed}")
        self.frames_per_step = FADE_SPEEDS[speed]

    def is_fading(self) -> bool:
        return self.running

    def _run(self) -> int:
        frames = 0
        while self.is_fading():
            frames += 1
            self.update()
        return frames

    def run_in(self) -> int:
        """Fade in to completion; returns the number of frames taken."""
        self.fade_in()
        return self._run()

    def run_out(self) -> int:
        """Fade out to completion; returns the number of frames taken."""
        self.fade_out()
        return self._run()

    def applied_palettes(self) -> tuple[int, int, int]:
        """Reapply the palettes for the current fade level and return the register values."""
        return self._apply(self.timer)