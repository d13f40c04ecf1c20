import pytest

from gbsengine.actor_commands import (
    ACTOR_ATTR_CHECK_COLL,
    ACTOR_ATTR_DIAGONAL,
    ACTOR_ATTR_H_FIRST,
    ACTOR_FLAG_COLLISION,
    ACTOR_FLAG_HIDDEN,
    ACTOR_FLAG_PINNED,
    EMOTE_TOTAL_FRAMES,
    ONE_TILE_DISTANCE,
    MoveFlags,
    actor_activate,
    actor_deactivate,
    actor_emote,
    actor_get_angle,
    actor_get_anim_frame,
    actor_get_dir,
    actor_get_pos,
    actor_move_cancel,
    actor_move_to,
    actor_set_anim_frame,
    actor_set_bounds,
    actor_set_flags,
    actor_set_pos,
)
from gbsengine.actors import Actor, ActorManager, CheckDir, Collision, check_collision_in_direction
from gbsengine.fixedmath import Direction, bb_intersects
from gbsengine.vm import ScriptContext, ScriptRunner


@pytest.fixture
def runner():
    return ScriptRunner()


@pytest.fixture
def ctx(runner):
    return ScriptContext(id=1, base_addr=runner.heap_size, runner=runner)


@pytest.fixture
def manager(runner):
    m = ActorManager(actors=[Actor(), Actor(x=4000, y=4000)], runner=runner)
    actor_set_bounds(m, 0, 0, 7, 0, 7)
    actor_set_bounds(m, 1, 0, 7, 0, 7)
    return m


def run_move(ctx, manager, params, tile_at=None, limit=1000):
    for count in range(1, limit):
        ctx.pc = 1
        actor_move_to(ctx, manager, params, tile_at)
        if ctx.pc == 1:
            return count
    raise AssertionError("move never finished")


def test_move_right_reaches_destination(ctx, manager):
    params = [0, 64, 0, ACTOR_ATTR_H_FIRST]
    run_move(ctx, manager, params)
    assert actor_get_pos(manager, 0) == (64, 0)
    assert ctx.flags == MoveFlags.INACTIVE
    assert actor_get_dir(manager, 0) == Direction.RIGHT


def test_move_clamps_overshoot(ctx, manager):
    params = [0, 40, 0, ACTOR_ATTR_H_FIRST]
    run_move(ctx, manager, params)
    assert actor_get_pos(manager, 0) == (40, 0)


def test_move_vertical_then_horizontal(ctx, manager):
    params = [0, 64, 64, 0]
    ctx.pc = 1
    actor_move_to(ctx, manager, params)
    x, y = actor_get_pos(manager, 0)
    assert x == 0 and y > 0
    run_move(ctx, manager, params)
    assert actor_get_pos(manager, 0) == (64, 64)
    assert actor_get_dir(manager, 0) == Direction.RIGHT


def test_move_diagonal_moves_both_axes(ctx, manager):
    params = [0, 256, 256, ACTOR_ATTR_DIAGONAL]
    ctx.pc = 1
    actor_move_to(ctx, manager, params)
    speed = manager.player.move_speed
    assert actor_get_pos(manager, 0) == (speed, speed)
    assert ctx.pc == 0
    assert ctx.waitable


def test_move_stops_at_wall(ctx, manager):
    def tile_at(tx, ty):
        return Collision.LEFT if tx == 4 else Collision.NONE

    player = manager.player
    expected = check_collision_in_direction(0, 0, player.bounds, 1024, CheckDir.RIGHT, tile_at)
    params = [0, 1024, 0, ACTOR_ATTR_H_FIRST | ACTOR_ATTR_CHECK_COLL]
    run_move(ctx, manager, params, tile_at)
    assert expected < 1024
    assert player.x == expected
    assert params[1] == expected


def test_move_blocked_by_actor(ctx, manager):
    other = manager.actors[1]
    actor_set_pos(manager, 1, 256, 0)
    actor_activate(manager, 1)
    params = [0, 1024, 0, ACTOR_ATTR_H_FIRST | ACTOR_ATTR_CHECK_COLL]
    run_move(ctx, manager, params, lambda tx, ty: 0)
    player = manager.player
    assert player.x < other.x
    assert not bb_intersects(player.bounds, player.x, player.y, other.bounds, other.x, other.y)
    assert ctx.flags == 0


def test_move_cancel_stops_at_next_tile(ctx, manager):
    params = [0, 1024, 0, ACTOR_ATTR_H_FIRST]
    ctx.pc = 1
    actor_move_to(ctx, manager, params)
    actor_move_cancel(manager, 0)
    assert manager.player.movement_interrupt
    run_move(ctx, manager, params)
    assert manager.player.x == ONE_TILE_DISTANCE
    assert not manager.player.movement_interrupt


def test_emote_runs_total_frames(ctx, manager):
    results = []
    for _ in range(EMOTE_TOTAL_FRAMES + 5):
        ctx.pc = 1
        result = actor_emote(ctx, manager, 1)
        results.append(result)
        if result is None:
            break
    assert len(results) == EMOTE_TOTAL_FRAMES
    assert results[0][0] is manager.actors[1]
    assert ctx.flags == 0
    assert ctx.pc == 1


def test_activate_and_deactivate_other_actor(manager):
    other = manager.actors[1]
    actor_activate(manager, 1)
    assert other.active and other in manager.active
    actor_deactivate(manager, 1)
    assert other.disabled
    assert other in manager.inactive and not other.active


def test_deactivate_player_hides(manager):
    actor_deactivate(manager, 0)
    assert manager.player.hidden
    assert manager.player.active
    actor_activate(manager, 0)
    assert not manager.player.hidden


def test_set_flags_respects_mask(manager):
    actor_set_flags(manager, 1, ACTOR_FLAG_PINNED | ACTOR_FLAG_HIDDEN, ACTOR_FLAG_PINNED)
    other = manager.actors[1]
    assert other.pinned
    assert not other.hidden
    actor_set_flags(manager, 1, 0, ACTOR_FLAG_COLLISION)
    assert not other.collision_enabled
    assert other.pinned


def test_pos_round_trip(manager):
    actor_set_pos(manager, 1, 300, 500)
    assert actor_get_pos(manager, 1) == (300, 500)


def test_angles_follow_direction(manager):
    actor = manager.player
    actor.set_dir(Direction.UP, False)
    assert actor_get_angle(manager, 0) == 0
    actor.set_dir(Direction.DOWN, False)
    assert actor_get_angle(manager, 0) == 128
    angles = set()
    for direction in Direction:
        actor.set_dir(direction, False)
        angles.add(actor_get_angle(manager, 0))
    assert len(angles) == len(list(Direction))


def test_anim_frame_round_trip(manager):
    actor = manager.actors[1]
    actor.set_frames(0, 4)
    actor_set_anim_frame(manager, 1, 3)
    assert actor_get_anim_frame(manager, 1) == 3
    actor_set_anim_frame(manager, 1, 6)
    assert actor_get_anim_frame(manager, 1) == 2


def test_set_bounds(manager):
    actor_set_bounds(manager, 1, -4, 11, -8, 3)
    bounds = manager.actors[1].bounds
    assert (bounds.left, bounds.right, bounds.top, bounds.bottom) == (-4, 11, -8, 3)


def test_unknown_actor_raises(manager):
    with pytest.raises(IndexError):
        actor_get_pos(manager, 5)
    with pytest.raises(IndexError):
        actor_move_cancel(manager, -1)