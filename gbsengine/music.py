"""Music routine events: tracker callbacks queued and turned into script threads."""

from __future__ import annotations

from dataclasses import dataclass, field

from gbsengine.events import ScriptEvent
from gbsengine.vm import ScriptRunner

MAX_ROUTINE_QUEUE_LEN = 4
MUSIC_EVENTS = 4


@dataclass
class MusicEvents:
    """Queue of routine calls from the music player and the scripts they start.

    The low two bits of a routine parameter select the event; the high nibble
    is passed to the script.
    """

    runner: ScriptRunner
    events: list[ScriptEvent] = field(
        default_factory=lambda: [ScriptEvent() for _ in range(MUSIC_EVENTS)])
    queue: list[int] = field(default_factory=lambda: [0] * MAX_ROUTINE_QUEUE_LEN)
    head: int = 0
    tail: int = 0

    def init(self, preserve: bool) -> None:
        """Empty the queue; drop the bindings unless preserve is set."""
        if preserve:
            for event in self.events:
                event.handle.value = 0
        else:
            self.events[:] = [ScriptEvent() for _ in range(MUSIC_EVENTS)]
        self.head = self.tail = 0

    def routine(self, tick: int, param: int) -> None:
        """Queue a routine call; only tick zero counts, and a full queue drops its oldest entry."""
        if tick:
            return
        mask = MAX_ROUTINE_QUEUE_LEN - 1
        self.head = (self.head + 1) & mask
        if self.head == self.tail:
            self.tail = (self.tail + 1) & mask
        self.queue[self.head] = param & 0xFF

    def _next(self) -> int:
        self.tail = (self.tail + 1) & (MAX_ROUTINE_QUEUE_LEN - 1)
        return self.queue[self.tail]

    def update(self) -> None:
        """Start scripts for queued routines; stops at the first unbound event."""
        while self.head != self.tail:
            data = self._next()
            event = self.events[data & 0x03]
            if not event.script:
                return
            if event.handle.ready():
                self.runner.execute(event.script, event.handle, data >> 4)

    def poll(self) -> int:
        """Take the next queued routine value, or 0 when the queue is empty.

        Only bit 2 of the low nibble is kept alongside the high nibble.
        """
        if self.head == self.tail:
            return 0
        data = self._next()
        return data & 0xF4