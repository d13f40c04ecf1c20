"""Script instructions that move, animate and configure actors."""

from __future__ import annotations

from enum import IntFlag
from typing import Callable, MutableSequence, Optional

from gbsengine.actors import Actor, ActorManager, CheckDir, check_collision_in_direction
from gbsengine.fixedmath import Direction, flipped_dir, translate_dir
from gbsengine.vm import ScriptContext

EMOTE_TOTAL_FRAMES = 60
TILE_FRACTION_MASK = 0b1111111
ONE_TILE_DISTANCE = 128

ACTOR_ATTR_H_FIRST = 0x01
ACTOR_ATTR_CHECK_COLL = 0x02
ACTOR_ATTR_DIAGONAL = 0x04

ACTOR_FLAG_PINNED = 0x01
ACTOR_FLAG_HIDDEN = 0x02
ACTOR_FLAG_ANIM_NOLOOP = 0x04
ACTOR_FLAG_COLLISION = 0x08
ACTOR_FLAG_PERSISTENT = 0x10

_DIR_ANGLE = {
    Direction.DOWN: 128,
    Direction.RIGHT: 64,
    Direction.UP: 0,
    Direction.LEFT: 192,
}


class MoveFlags(IntFlag):
    """Progress of a move instruction, kept in the context flags."""

    INACTIVE = 0
    ALLOW_H = 1
    ALLOW_V = 2
    DIR_H = 4
    DIR_V = 8
    ACTIVE_H = 16
    ACTIVE_V = 32
    NEEDED_H = 64
    NEEDED_V = 128


MOVE_H = MoveFlags.ALLOW_H | MoveFlags.NEEDED_H
MOVE_V = MoveFlags.ALLOW_V | MoveFlags.NEEDED_V


def _actor(manager: ActorManager, index: int) -> Actor:
    index = int(index)
    if not 0 <= index < len(manager.actors):
        raise IndexError(f"no actor {index}")
    return manager.actors[index]


def _no_tiles(tx: int, ty: int) -> int:
    return 0


def _check_collisions(actor: Actor, params: MutableSequence[int], attr: int,
                      tile_at: Callable[[int, int], int]) -> None:
    def horizontal(from_y: int) -> None:
        target = params[1] & 0xFFFF
        if actor.x != target:
            check = CheckDir.LEFT if actor.x > target else CheckDir.RIGHT
            params[1] = check_collision_in_direction(actor.x, from_y, actor.bounds, target, check, tile_at)

    def vertical(from_x: int) -> None:
        target = params[2] & 0xFFFF
        if actor.y != target:
            check = CheckDir.UP if actor.y > target else CheckDir.DOWN
            params[2] = check_collision_in_direction(from_x, actor.y, actor.bounds, target, check, tile_at)

    if attr & ACTOR_ATTR_H_FIRST:
        horizontal(actor.y)
        vertical(params[1] & 0xFFFF)
    else:
        vertical(actor.x)
        horizontal(params[2] & 0xFFFF)


def _move(actor: Actor, direction: Direction, amount: int) -> None:
    x, y = translate_dir(actor.x, actor.y, direction, amount)
    actor.x, actor.y = x & 0xFFFF, y & 0xFFFF


def _step_axis(ctx: ScriptContext, manager: ActorManager, actor: Actor,
               params: MutableSequence[int], attr: int, horizontal: bool) -> bool:
    """Move one step along an axis; False when blocked by another actor."""
    if horizontal:
        dir_flag, active_flag, axis, other_allow = MoveFlags.DIR_H, MoveFlags.ACTIVE_H, MOVE_H, MoveFlags.ALLOW_V
        new_dir = Direction.LEFT if ctx.flags & dir_flag else Direction.RIGHT
    else:
        dir_flag, active_flag, axis, other_allow = MoveFlags.DIR_V, MoveFlags.ACTIVE_V, MOVE_V, MoveFlags.ALLOW_H
        new_dir = Direction.UP if ctx.flags & dir_flag else Direction.DOWN

    _move(actor, new_dir, actor.move_speed)

    if attr & ACTOR_ATTR_CHECK_COLL and \
            manager.overlapping_bb(actor.bounds, actor.x, actor.y, actor, False) is not None:
        _move(actor, flipped_dir(new_dir), actor.move_speed)
        ctx.flags = 0
        actor.set_anim_idle()
        return False

    if not ctx.flags & active_flag:
        ctx.flags |= active_flag
        actor.set_dir(new_dir, True)

    target = (params[1] if horizontal else params[2]) & 0xFFFF
    position = actor.x if horizontal else actor.y
    backwards = new_dir in (Direction.LEFT, Direction.UP)
    if (backwards and position <= target) or (not backwards and position >= target):
        if horizontal:
            actor.x = target
        else:
            actor.y = target
        ctx.flags = (ctx.flags | other_allow) & ~int(axis)
    return True


def actor_move_to(ctx: ScriptContext, manager: ActorManager, params: MutableSequence[int],
                  tile_at: Optional[Callable[[int, int], int]] = None) -> None:
    """Move an actor one step towards a destination, repeating until it arrives.

    params holds four words, updated in place: actor index, destination x,
    destination y and attribute flags (ACTOR_ATTR_*). tile_at gives the
    collision flags of a background tile when collisions are checked.
    """
    ctx.waitable = True
    actor = _actor(manager, params[0])
    attr = int(params[3])

    if ctx.flags == 0:
        actor.movement_interrupt = False
        actor.set_anim_moving()
        actor.x &= 0xFFF0
        actor.y &= 0xFFF0

        flags = 0
        if attr & ACTOR_ATTR_DIAGONAL:
            flags |= MoveFlags.ALLOW_H | MoveFlags.ALLOW_V
        if attr & ACTOR_ATTR_H_FIRST:
            flags |= MoveFlags.ALLOW_H
        else:
            flags |= MoveFlags.ALLOW_V

        if attr & ACTOR_ATTR_CHECK_COLL:
            _check_collisions(actor, params, attr, tile_at or _no_tiles)

        target_x, target_y = params[1] & 0xFFFF, params[2] & 0xFFFF
        flags |= MoveFlags.NEEDED_H if actor.x != target_x else MoveFlags.ALLOW_V
        flags |= MoveFlags.NEEDED_V if actor.y != target_y else MoveFlags.ALLOW_H
        if actor.x > target_x:
            flags |= MoveFlags.DIR_H
        if actor.y > target_y:
            flags |= MoveFlags.DIR_V
        ctx.flags = int(flags)

    if actor.movement_interrupt:
        target_x, target_y = params[1] & 0xFFFF, params[2] & 0xFFFF
        if actor.x < target_x and actor.x & TILE_FRACTION_MASK:
            params[1] = (actor.x & ~TILE_FRACTION_MASK) + ONE_TILE_DISTANCE
        else:
            params[1] = actor.x & ~TILE_FRACTION_MASK
        if actor.y < target_y and actor.y & TILE_FRACTION_MASK:
            params[2] = (actor.y & ~TILE_FRACTION_MASK) + ONE_TILE_DISTANCE
        else:
            params[2] = actor.y & ~TILE_FRACTION_MASK
        actor.movement_interrupt = False

    if (ctx.flags & MOVE_H) == MOVE_H:
        if not _step_axis(ctx, manager, actor, params, attr, True):
            return
    if (ctx.flags & MOVE_V) == MOVE_V:
        if not _step_axis(ctx, manager, actor, params, attr, False):
            return

    if not ctx.flags & (MoveFlags.NEEDED_H | MoveFlags.NEEDED_V):
        ctx.flags = int(MoveFlags.INACTIVE)
        actor.set_anim_idle()
        return

    ctx.pc -= 1


def actor_move_cancel(manager: ActorManager, index: int) -> None:
    """Make a moving actor stop at the next tile boundary."""
    _actor(manager, index).movement_interrupt = True


def actor_activate(manager: ActorManager, index: int) -> None:
    """Show the player, or enable and activate another actor."""
    actor = _actor(manager, index)
    if actor is manager.player:
        actor.hidden = False
    else:
        actor.disabled = False
        manager.activate(actor)


def actor_deactivate(manager: ActorManager, index: int) -> None:
    """Hide the player, or disable and deactivate another actor."""
    actor = _actor(manager, index)
    if actor is manager.player:
        actor.hidden = True
    else:
        actor.disabled = True
        manager.deactivate(actor)


def actor_set_flags(manager: ActorManager, index: int, flags: int, mask: int) -> None:
    """Set the actor flags selected by mask to their values in flags."""
    actor = _actor(manager, index)
    if mask & ACTOR_FLAG_PINNED:
        actor.pinned = bool(flags & ACTOR_FLAG_PINNED)
    if mask & ACTOR_FLAG_HIDDEN:
        actor.hidden = bool(flags & ACTOR_FLAG_HIDDEN)
    if mask & ACTOR_FLAG_ANIM_NOLOOP:
        actor.anim_noloop = bool(flags & ACTOR_FLAG_ANIM_NOLOOP)
    if mask & ACTOR_FLAG_COLLISION:
        actor.collision_enabled = bool(flags & ACTOR_FLAG_COLLISION)
    if mask & ACTOR_FLAG_PERSISTENT:
        actor.persistent = bool(flags & ACTOR_FLAG_PERSISTENT)


def actor_emote(ctx: ScriptContext, manager: ActorManager, index: int) -> Optional[tuple[Actor, int]]:
    """Show an emote over an actor, repeating each frame until it has run its course.

    The context flags count the emote frames. Returns the emoting actor and
    the current frame, or None once the emote is over.
    """
    if ctx.flags == 0:
        ctx.flags = 1
    actor = _actor(manager, index)
    if ctx.flags == EMOTE_TOTAL_FRAMES:
        ctx.flags = 0
        return None
    ctx.waitable = True
    ctx.flags += 1
    ctx.pc -= 1
    return actor, ctx.flags


def actor_set_bounds(manager: ActorManager, index: int, left: int, right: int,
                     top: int, bottom: int) -> None:
    """Set an actor's collision box, in pixels relative to its position."""
    bounds = _actor(manager, index).bounds
    bounds.left = left
    bounds.right = right
    bounds.top = top
    bounds.bottom = bottom


def actor_set_pos(manager: ActorManager, index: int, x: int, y: int) -> None:
    actor = _actor(manager, index)
    actor.x = x & 0xFFFF
    actor.y = y & 0xFFFF


def actor_get_pos(manager: ActorManager, index: int) -> tuple[int, int]:
    actor = _actor(manager, index)
    return actor.x, actor.y


def actor_get_dir(manager: ActorManager, index: int) -> Direction:
    return _actor(manager, index).dir


def actor_get_angle(manager: ActorManager, index: int) -> int:
    """The 8-bit angle the actor faces."""
    return _DIR_ANGLE[Direction(_actor(manager, index).dir)]


def actor_set_anim_frame(manager: ActorManager, index: int, frame: int) -> None:
    _actor(manager, index).set_frame_offset(frame)


def actor_get_anim_frame(manager: ActorManager, index: int) -> int:
    return _actor(manager, index).frame_offset()