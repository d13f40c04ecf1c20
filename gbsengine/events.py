"""Scripts bound to joypad buttons and to periodic timers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from gbsengine.joypad import Joypad
from gbsengine.vm import ScriptRunner, ThreadHandle

INPUT_SLOTS = 8
SLOT_OVERRIDE = 0x80
MAX_CONCURRENT_TIMERS = 4


@dataclass
class ScriptEvent:
    """A script to start on an event, and the handle of its running thread."""

    script: Optional[Sequence[Any]] = None
    handle: ThreadHandle = field(default_factory=ThreadHandle)


@dataclass
class TimerTime:
    """Timer interval and the 8-bit countdown towards its next tick."""

    value: int = 0
    remains: int = 0


@dataclass
class InputEvents:
    """Starts scripts when buttons go down.

    ``slots[bit]`` holds the 1-based event index for the button with that bit
    number; SLOT_OVERRIDE in a slot hides the button from further handling.
    """

    runner: ScriptRunner
    events: list[ScriptEvent] = field(
        default_factory=lambda: [ScriptEvent() for _ in range(INPUT_SLOTS)])
    slots: list[int] = field(default_factory=lambda: [0] * INPUT_SLOTS)

    def init(self, preserve: bool) -> None:
        """Drop all bindings, or with preserve just forget running threads."""
        if preserve:
            for event in self.events:
                event.handle.value = 0
        else:
            self.slots[:] = [0] * INPUT_SLOTS
            self.events[:] = [ScriptEvent() for _ in range(INPUT_SLOTS)]

    def update(self, joypad: Joypad) -> None:
        """Start the scripts of newly pressed buttons."""
        pressed = joypad.joy
        for bit, slot in enumerate(self.slots):
            key = 1 << bit
            if not pressed & key or not slot:
                continue
            index = (slot & 0x0F) - 1
            if not 0 <= index < len(self.events):
                continue
            event = self.events[index]
            if not event.script:
                continue
            if slot & SLOT_OVERRIDE:
                joypad.joy ^= key
            if joypad.last_joy & key:
                continue
            if event.handle.ready():
                self.runner.execute(event.script, event.handle, key)
        joypad.recent_joy &= joypad.joy


@dataclass
class Timers:
    """Starts scripts every given number of timer ticks."""

    runner: ScriptRunner
    count: int = MAX_CONCURRENT_TIMERS
    events: list[ScriptEvent] = field(default_factory=list)
    values: list[TimerTime] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.events:
            self.events = [ScriptEvent() for _ in range(self.count)]
        if not self.values:
            self.values = [TimerTime() for _ in range(self.count)]

    def init(self, preserve: bool) -> None:
        """Stop all timers, or with preserve just forget running threads."""
        if preserve:
            for event in self.events:
                event.handle.value = 0
        else:
            self.values[:] = [TimerTime() for _ in range(self.count)]
            self.events[:] = [ScriptEvent() for _ in range(self.count)]

    def update(self) -> None:
        """Count down every running timer and start the scripts that are due."""
        for timer, event in zip(self.values, self.events):
            if not timer.value:
                continue
            timer.remains = (timer.remains - 1) & 0xFF
            if timer.remains:
                continue
            timer.remains = timer.value
            if event.script and event.handle.ready():
                self.runner.execute(event.script, event.handle)