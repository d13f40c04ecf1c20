"""Actors: animation state, activation lists, overlap queries and tile collision sweeps."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Iterable, Optional, Sequence

from gbsengine.fixedmath import BoundingBox, Direction, bb_intersects, translate_dir
from gbsengine.vm import SCRIPT_TERMINATED, ScriptRunner, ThreadHandle

ANIM_PAUSED = 255
N_DIRECTIONS = 4
N_ANIMATIONS = 8
SCREEN_TILE_REFRES_W = 23
SCREEN_TILE_REFRES_H = 21
PLAYER_HURT_IFRAMES = 20
COLLISION_GROUP_PLAYER = 1


class CheckDir(IntEnum):
    """Direction of a tile collision sweep."""

    LEFT = 1
    RIGHT = 2
    UP = 3
    DOWN = 4


class Collision(IntFlag):
    """Collision sides of a background tile."""

    NONE = 0
    TOP = 0x01
    BOTTOM = 0x02
    LEFT = 0x04
    RIGHT = 0x08
    ALL = 0x0F


@dataclass
class Animation:
    """Range of sprite frames, end inclusive."""

    start: int = 0
    end: int = 0


def _terminated_handle() -> ThreadHandle:
    return ThreadHandle(SCRIPT_TERMINATED)


@dataclass(eq=False)
class Actor:
    """A sprite in the scene, with position in 1/16 pixel units."""

    x: int = 0
    y: int = 0
    dir: Direction = Direction.DOWN
    bounds: BoundingBox = field(default_factory=BoundingBox)
    animations: list[Animation] = field(
        default_factory=lambda: [Animation() for _ in range(N_ANIMATIONS)])
    frame: int = 0
    frame_start: int = 0
    frame_end: int = 0
    anim_tick: int = 0
    anim_noloop: bool = False
    move_speed: int = 16
    pinned: bool = False
    hidden: bool = False
    disabled: bool = False
    persistent: bool = False
    active: bool = False
    collision_enabled: bool = True
    collision_group: int = 0
    movement_interrupt: bool = False
    base_tile: int = 0
    reserve_tiles: int = 0
    script: Optional[Sequence[Any]] = None
    script_update: Optional[Sequence[Any]] = None
    hscript_update: ThreadHandle = field(default_factory=_terminated_handle)
    hscript_hit: ThreadHandle = field(default_factory=_terminated_handle)

    def set_frames(self, frame_start: int, frame_end: int) -> None:
        """Switch to a frame range, restarting only if the range changed."""
        if self.frame_start != frame_start or self.frame_end != frame_end:
            self.frame = frame_start
            self.frame_start = frame_start
            self.frame_end = frame_end

    def set_frame_offset(self, offset: int) -> None:
        """Jump to a frame within the current range, wrapping around."""
        length = self.frame_end - self.frame_start
        if length <= 0:
            raise ValueError("actor has an empty frame range")
        self.frame = (self.frame_start + (offset & 0xFF) % length) & 0xFF

    def frame_offset(self) -> int:
        """Position of the current frame within the range."""
        return (self.frame - self.frame_start) & 0xFF

    def set_anim(self, index: int) -> None:
        """Play one of the actor's animations."""
        animation = self.animations[index]
        self.set_frames(animation.start, animation.end + 1)

    def set_anim_idle(self) -> None:
        self.set_anim(int(self.dir))

    def set_anim_moving(self) -> None:
        self.set_anim(int(self.dir) + N_DIRECTIONS)

    def set_dir(self, direction: Direction, moving: bool) -> None:
        """Face a direction and play its idle or moving animation."""
        self.dir = Direction(direction)
        self.set_anim(int(self.dir) + N_DIRECTIONS if moving else int(self.dir))

    def advance_animation(self, game_time: int) -> int:
        """Step the animation if this frame is a tick; returns the current frame."""
        if self.anim_tick != ANIM_PAUSED and (game_time & self.anim_tick) == 0:
            self.frame = (self.frame + 1) & 0xFF
            if self.frame == self.frame_end:
                if self.anim_noloop:
                    self.frame = (self.frame - 1) & 0xFF
                else:
                    self.frame = self.frame_start
        return self.frame


@dataclass
class ActorManager:
    """The scene's actors, split into active and inactive lists.

    The first actor is the player. Lists are ordered head first; newly
    activated actors go to the head, so the player stays at the tail.
    """

    actors: list[Actor] = field(default_factory=lambda: [Actor()])
    runner: ScriptRunner = field(default_factory=ScriptRunner)
    hurt_iframes: int = PLAYER_HURT_IFRAMES
    player_iframes: int = 0
    player_collision_actor: Optional[Actor] = None
    active: list[Actor] = field(default_factory=list, init=False)
    inactive: list[Actor] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if not self.actors:
            raise ValueError("an actor manager needs at least the player")
        player = self.player
        player.active = False
        self.inactive.insert(0, player)
        self.activate(player)
        for actor in self.actors[1:]:
            actor.active = False
            self.inactive.insert(0, actor)
            if actor.pinned or actor.persistent:
                self.activate(actor)

    @property
    def player(self) -> Actor:
        return self.actors[0]

    def activate(self, actor: Actor) -> None:
        """Move an inactive actor to the active list and start its update script."""
        if actor.active or actor.disabled:
            return
        self.inactive.remove(actor)
        actor.active = True
        actor.set_anim_idle()
        self.active.insert(0, actor)
        actor.hscript_update.value = SCRIPT_TERMINATED
        if actor.script_update:
            self.runner.execute(actor.script_update, actor.hscript_update)
        actor.hscript_hit.value = SCRIPT_TERMINATED

    def deactivate(self, actor: Actor) -> None:
        """Move an active actor (never the player) to the inactive list, stopping its scripts."""
        if not actor.active or actor is self.player:
            return
        self.active.remove(actor)
        actor.active = False
        self.inactive.insert(0, actor)
        if not actor.hscript_update.terminated():
            self.runner.terminate(actor.hscript_update.context_id)
        if not actor.hscript_hit.terminated():
            self.runner.detach(actor.hscript_hit.context_id)

    def activate_in_row(self, x: int, y: int) -> None:
        """Activate inactive actors on tile row y within the refresh width from column x."""
        for actor in list(self.inactive):
            if ((actor.y >> 7) & 0xFF) != y:
                continue
            tx = (actor.x >> 7) & 0xFF
            if tx + 1 > x and tx < x + SCREEN_TILE_REFRES_W:
                self.activate(actor)

    def activate_in_col(self, x: int, y: int) -> None:
        """Activate inactive actors spanning tile column x within the refresh height from row y."""
        for actor in list(self.inactive):
            tx_left = (actor.x >> 7) & 0xFF
            ty_bottom = (actor.y >> 7) & 0xFF
            tx_right = (((actor.x >> 4) + actor.bounds.right) >> 3) & 0xFF
            ty_top = (((actor.y >> 4) + actor.bounds.top) >> 3) & 0xFF
            if tx_left <= x <= tx_right and ty_top <= y + SCREEN_TILE_REFRES_H and ty_bottom >= y:
                self.activate(actor)

    def actor_at_tile(self, tx: int, ty: int, include_noclip: bool) -> Optional[Actor]:
        """First active actor occupying a tile, or None."""
        for actor in self.active:
            if not include_noclip and not actor.collision_enabled:
                continue
            a_tx = (actor.x >> 7) & 0xFF
            a_ty = (actor.y >> 7) & 0xFF
            if ty in (a_ty, a_ty + 1) and tx in (a_tx, a_tx + 1, a_tx - 1):
                return actor
        return None

    def _from_player(self) -> Iterable[Actor]:
        player = self.player
        if player in self.active:
            return reversed(self.active[:self.active.index(player) + 1])
        return reversed(self.active)

    def in_front_of_player(self, grid_size: int, include_noclip: bool) -> Optional[Actor]:
        """Actor overlapping the player's box moved grid_size pixels the way the player faces."""
        player = self.player
        ox, oy = translate_dir(player.x, player.y, player.dir, grid_size << 4)
        return self.overlapping_bb(player.bounds, ox, oy, player, include_noclip)

    def overlapping_player(self, include_noclip: bool) -> Optional[Actor]:
        """First other active actor overlapping the player."""
        player = self.player
        for actor in self._from_player():
            if actor is player:
                continue
            if not include_noclip and not actor.collision_enabled:
                continue
            if bb_intersects(player.bounds, player.x, player.y, actor.bounds, actor.x, actor.y):
                return actor
        return None

    def overlapping_bb(self, bb: BoundingBox, x: int, y: int, ignore: Optional[Actor],
                       include_noclip: bool) -> Optional[Actor]:
        """First active actor, player first, overlapping a box placed at (x, y)."""
        for actor in self._from_player():
            if actor is ignore or (not include_noclip and not actor.collision_enabled):
                continue
            if bb_intersects(bb, x, y, actor.bounds, actor.x, actor.y):
                return actor
        return None

    def handle_player_collision(self) -> None:
        """Run hit scripts for the actor touching the player, then count down invincibility."""
        other = self.player_collision_actor
        if self.player_iframes == 0 and other is not None:
            if other.collision_group:
                player = self.player
                if player.script:
                    self.runner.execute(player.script, None, other.collision_group)
                if other.script:
                    self.runner.execute(other.script, None, 0)
                self.player_iframes = self.hurt_iframes
        elif self.player_iframes:
            self.player_iframes -= 1
        self.player_collision_actor = None


def check_collision_in_direction(start_x: int, start_y: int, bounds: BoundingBox, end_pos: int,
                                 check_dir: CheckDir,
                                 tile_at: Callable[[int, int], int]) -> int:
    """Furthest position towards end_pos a box can reach before a solid tile side.

    tile_at(tx, ty) gives the Collision flags of a tile.
    """
    px, py = start_x >> 4, start_y >> 4
    check_dir = CheckDir(check_dir)
    if check_dir is CheckDir.LEFT:
        ty1, ty2 = (py + bounds.top) >> 3, ((py + bounds.bottom) >> 3) + 1
        for tx in range((px + bounds.left) >> 3, (((end_pos >> 4) + bounds.left) >> 3) - 1, -1):
            if any(tile_at(tx, ty) & Collision.RIGHT for ty in range(ty1, ty2)):
                return (((tx + 1) << 7) - (bounds.left << 4)) & 0xFFFF
    elif check_dir is CheckDir.RIGHT:
        ty1, ty2 = (py + bounds.top) >> 3, ((py + bounds.bottom) >> 3) + 1
        for tx in range((px + bounds.right) >> 3, (((end_pos >> 4) + bounds.right) >> 3) + 1):
            if any(tile_at(tx, ty) & Collision.LEFT for ty in range(ty1, ty2)):
                return ((tx << 7) - ((bounds.right + 1) << 4)) & 0xFFFF
    elif check_dir is CheckDir.UP:
        tx1, tx2 = (px + bounds.left) >> 3, ((px + bounds.right) >> 3) + 1
        for ty in range((py + bounds.top) >> 3, (((end_pos >> 4) + bounds.top) >> 3) - 1, -1):
            if any(tile_at(tx, ty) & Collision.BOTTOM for tx in range(tx1, tx2)):
                return (((ty + 1) << 7) - (bounds.top << 4)) & 0xFFFF
    else:
        tx1, tx2 = (px + bounds.left) >> 3, ((px + bounds.right) >> 3) + 1
        for ty in range((py + bounds.bottom) >> 3, (((end_pos >> 4) + bounds.bottom) >> 3) + 1):
            if any(tile_at(tx, ty) & Collision.TOP for tx in range(tx1, tx2)):
                return ((ty << 7) - ((bounds.bottom + 1) << 4)) & 0xFFFF
    return end_pos