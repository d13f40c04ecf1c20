"""Scene triggers: tile rectangles that run scripts on enter and leave."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from gbsengine.fixedmath import BoundingBox

HAS_ENTER_SCRIPT = 1
HAS_LEAVE_SCRIPT = 2

ENTER = 1
LEAVE = 2


@dataclass
class Trigger:
    """A rectangle of tiles with an attached script."""

    x: int
    y: int
    width: int
    height: int
    script: Any = None
    script_flags: int = 0


@dataclass
class TriggerManager:
    """Finds triggers under tiles or boxes and runs their scripts.

    ``execute(script, event)`` is called with ENTER or LEAVE as the event;
    when no callback is set, scripts are not started.
    """

    triggers: list[Trigger] = field(default_factory=list)
    execute: Optional[Callable[[Any, int], Any]] = None
    last_tx: int = 0
    last_ty: int = 0
    last_trigger: Optional[int] = None

    def _run(self, script: Any, event: int) -> None:
        if self.execute is not None:
            self.execute(script, event)

    def reset(self) -> None:
        """Forget the last visited tile and trigger."""
        self.last_tx = 0
        self.last_ty = 0
        self.last_trigger = None

    def interact(self, index: int) -> None:
        """Run the enter script of a trigger, if it has one."""
        trigger = self.triggers[index]
        if trigger.script_flags & HAS_ENTER_SCRIPT:
            self._run(trigger.script, ENTER)

    def at_tile(self, tx: int, ty: int) -> Optional[int]:
        """Index of the first trigger covering a tile, or None."""
        for i, trigger in enumerate(self.triggers):
            right = (trigger.x + trigger.width - 1) & 0xFF
            bottom = (trigger.y + trigger.height - 1) & 0xFF
            if tx + 1 >= trigger.x and tx <= right and trigger.y <= ty <= bottom:
                return i
        return None

    def at_intersection(self, bb: BoundingBox, x: int, y: int) -> Optional[int]:
        """Index of the first trigger overlapping a box at a sub-pixel position, or None."""
        tile_left = (((x >> 4) + bb.left) >> 3) & 0xFF
        tile_right = (((x >> 4) + bb.right) >> 3) & 0xFF
        tile_top = (((y >> 4) + bb.top) >> 3) & 0xFF
        tile_bottom = (((y >> 4) + bb.bottom) >> 3) & 0xFF
        for i, trigger in enumerate(self.triggers):
            right = (trigger.x + trigger.width - 1) & 0xFF
            bottom = (trigger.y + trigger.height - 1) & 0xFF
            if (tile_left <= right and tile_right >= trigger.x
                    and tile_top <= bottom and tile_bottom >= trigger.y):
                return i
        return None

    def activate_at(self, tx: int, ty: int, force: bool) -> bool:
        """Run the trigger on a tile, skipping a repeat of the same tile unless forced."""
        if not force and tx == self.last_tx and ty == self.last_ty:
            return False
        hit = self.at_tile(tx, ty)
        self.last_tx, self.last_ty = tx, ty
        if hit is not None:
            self.interact(hit)
            return True
        return False

    def activate_at_intersection(self, bb: BoundingBox, x: int, y: int, force: bool) -> bool:
        """Run enter and leave scripts as a box moves between triggers."""
        hit = self.at_intersection(bb, x, y)
        if not force and self.last_trigger == hit:
            return False

        last = self.last_trigger
        if last is not None and (hit is None or hit != last):
            called = False
            if hit is not None and self.triggers[hit].script_flags & HAS_ENTER_SCRIPT:
                self._run(self.triggers[hit].script, ENTER)
                called = True
            if self.triggers[last].script_flags & HAS_LEAVE_SCRIPT:
                self._run(self.triggers[last].script, LEAVE)
                called = True
            self.last_trigger = hit
            return called

        self.last_trigger = hit
        if hit is not None and self.triggers[hit].script_flags & HAS_ENTER_SCRIPT:
            self._run(self.triggers[hit].script, ENTER)
            return True
        return False