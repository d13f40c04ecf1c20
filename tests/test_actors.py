import pytest

from gbsengine.actors import (
    ANIM_PAUSED,
    Actor,
    ActorManager,
    Animation,
    CheckDir,
    Collision,
    check_collision_in_direction,
)
from gbsengine.fixedmath import BoundingBox, Direction

TILE = 128


def small_box():
    return BoundingBox(left=0, right=7, top=0, bottom=7)


def animated_actor(**kwargs):
    anims = [Animation(i * 10, i * 10 + 2) for i in range(8)]
    return Actor(animations=anims, **kwargs)


def test_set_frames_restarts_only_on_change():
    actor = Actor()
    actor.set_frames(2, 5)
    assert actor.frame == 2
    actor.frame = 4
    actor.set_frames(2, 5)
    assert actor.frame == 4
    actor.set_frames(3, 5)
    assert actor.frame == 3


def test_frame_offset_round_trip_and_wrap():
    actor = Actor()
    actor.set_frames(4, 8)
    actor.set_frame_offset(2)
    assert actor.frame_offset() == 2
    actor.set_frame_offset(6)
    assert actor.frame_offset() == 2
    assert actor.frame_start <= actor.frame < actor.frame_end


def test_frame_offset_empty_range_raises():
    actor = Actor()
    actor.set_frames(3, 3)
    with pytest.raises(ValueError):
        actor.set_frame_offset(1)


def test_set_dir_picks_idle_or_moving_animation():
    actor = animated_actor()
    actor.set_dir(Direction.LEFT, False)
    assert actor.dir == Direction.LEFT
    assert (actor.frame_start, actor.frame_end) == (30, 33)
    actor.set_dir(Direction.LEFT, True)
    assert (actor.frame_start, actor.frame_end) == (70, 73)
    actor.set_anim_idle()
    assert actor.frame_start == actor.animations[Direction.LEFT].start


def test_advance_animation_loops():
    actor = Actor(anim_tick=0)
    actor.set_frames(0, 3)
    frames = [actor.advance_animation(t) for t in range(3)]
    assert frames == [1, 2, 0]


def test_advance_animation_noloop_holds_last_frame():
    actor = Actor(anim_tick=0, anim_noloop=True)
    actor.set_frames(0, 3)
    for t in range(5):
        actor.advance_animation(t)
    assert actor.frame == 2


def test_advance_animation_paused():
    actor = Actor(anim_tick=ANIM_PAUSED)
    actor.set_frames(0, 3)
    actor.advance_animation(0)
    assert actor.frame == 0


def test_initial_lists_player_active_at_tail():
    player = Actor()
    pinned = Actor(pinned=True)
    other = Actor()
    manager = ActorManager(actors=[player, pinned, other])
    assert manager.active[-1] is player
    assert pinned in manager.active
    assert manager.inactive == [other]


def test_activate_and_deactivate():
    other = Actor()
    manager = ActorManager(actors=[Actor(), other])
    manager.activate(other)
    assert other.active and manager.active[0] is other
    manager.deactivate(other)
    assert not other.active
    assert manager.inactive[0] is other


def test_player_never_deactivated_and_disabled_not_activated():
    disabled = Actor(disabled=True)
    manager = ActorManager(actors=[Actor(), disabled])
    manager.deactivate(manager.player)
    assert manager.player.active
    assert manager.actor_at_tile(0, 0, True) is manager.player
    manager.activate(disabled)
    assert not disabled.active
    assert manager.actor_at_tile(0, 0, True) is manager.player


def test_activate_in_row():
    other = Actor(x=3 * TILE, y=10 * TILE)
    manager = ActorManager(actors=[Actor(), other])
    manager.activate_in_row(5, 10)
    assert manager.actor_at_tile(3, 10, True) is None
    manager.activate_in_row(0, 11)
    assert manager.actor_at_tile(3, 10, True) is None
    manager.activate_in_row(0, 10)
    assert manager.actor_at_tile(3, 10, True) is other
    assert other.active


def test_activate_in_col():
    other = Actor(x=3 * TILE, y=10 * TILE, bounds=small_box())
    manager = ActorManager(actors=[Actor(), other])
    manager.activate_in_col(10, 0)
    assert manager.actor_at_tile(3, 10, True) is None
    manager.activate_in_col(3, 0)
    assert manager.actor_at_tile(3, 10, True) is other
    assert other.active


def test_actor_at_tile():
    other = Actor(x=5 * TILE, y=5 * TILE, persistent=True)
    manager = ActorManager(actors=[Actor(x=30 * TILE, y=30 * TILE), other])
    for tx, ty in [(5, 5), (4, 5), (6, 5), (5, 6)]:
        assert manager.actor_at_tile(tx, ty, False) is other
    assert manager.actor_at_tile(5, 4, False) is None
    assert manager.actor_at_tile(7, 5, False) is None
    other.collision_enabled = False
    assert manager.actor_at_tile(5, 5, False) is None
    assert manager.actor_at_tile(5, 5, True) is other


def test_overlapping_player_and_bb():
    player = Actor(bounds=small_box())
    other = Actor(bounds=small_box(), persistent=True)
    manager = ActorManager(actors=[player, other])
    assert manager.overlapping_player(False) is other
    assert manager.overlapping_bb(small_box(), 0, 0, None, False) is player
    assert manager.overlapping_bb(small_box(), 0, 0, player, False) is other
    other.x = 10 * TILE
    assert manager.overlapping_player(False) is None


def test_in_front_of_player():
    player = Actor(bounds=small_box(), dir=Direction.RIGHT)
    other = Actor(x=2 * TILE, bounds=small_box(), persistent=True)
    manager = ActorManager(actors=[player, other])
    assert manager.in_front_of_player(16, False) is other
    player.dir = Direction.LEFT
    assert manager.in_front_of_player(16, False) is None


def test_handle_player_collision_runs_scripts_and_counts_down():
    player = Actor(script=[None])
    enemy = Actor(script=[None], collision_group=2)
    manager = ActorManager(actors=[player, enemy])
    manager.player_collision_actor = enemy
    manager.handle_player_collision()
    assert manager.player_iframes == manager.hurt_iframes
    assert manager.player_collision_actor is None
    contexts = manager.runner.active
    assert len(contexts) == 2
    assert contexts[0].read(-1) == enemy.collision_group
    assert contexts[1].read(-1) == 0
    manager.player_collision_actor = enemy
    manager.handle_player_collision()
    assert manager.player_iframes == manager.hurt_iframes - 1
    assert len(manager.runner.active) == 2


def test_collision_without_group_does_nothing():
    enemy = Actor(script=[None], collision_group=0)
    manager = ActorManager(actors=[Actor(script=[None]), enemy])
    manager.player_collision_actor = enemy
    manager.handle_player_collision()
    assert manager.player_iframes == 0
    assert manager.runner.active == []


def wall_at_column(column):
    def tile_at(tx, ty):
        return Collision.ALL if tx == column else Collision.NONE
    return tile_at


def wall_at_row(row):
    def tile_at(tx, ty):
        return Collision.ALL if ty == row else Collision.NONE
    return tile_at


def test_collision_right_stops_before_wall():
    box = small_box()
    result = check_collision_in_direction(0, 0, box, 20 * TILE, CheckDir.RIGHT, wall_at_column(5))
    assert result < 20 * TILE
    assert ((result >> 4) + box.right) >> 3 == 5 - 1


def test_collision_left_stops_after_wall():
    box = small_box()
    result = check_collision_in_direction(10 * TILE, 0, box, 0, CheckDir.LEFT, wall_at_column(2))
    assert result > 0
    assert ((result >> 4) + box.left) >> 3 == 2 + 1


def test_collision_vertical():
    box = small_box()
    down = check_collision_in_direction(0, 0, box, 20 * TILE, CheckDir.DOWN, wall_at_row(6))
    assert ((down >> 4) + box.bottom) >> 3 == 6 - 1
    up = check_collision_in_direction(0, 15 * TILE, box, 0, CheckDir.UP, wall_at_row(3))
    assert ((up >> 4) + box.top) >> 3 == 3 + 1


def test_collision_free_path_reaches_end():
    box = small_box()
    end = 12 * TILE
    assert check_collision_in_direction(0, 0, box, end, CheckDir.RIGHT, wall_at_column(40)) == end