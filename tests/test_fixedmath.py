import pytest

from gbsengine.fixedmath import (
    BoundingBox,
    Direction,
    angle_to_delta,
    atan2,
    bb_intersects,
    cos8,
    flipped_dir,
    isqrt,
    sin8,
    translate_dir,
)


@pytest.mark.parametrize("n", range(256))
def test_isqrt_of_perfect_squares(n):
    assert isqrt(n * n) == n


@pytest.mark.parametrize("x", [2, 3, 15, 17, 99, 1000, 40000, 65535])
def test_isqrt_is_floor_root(x):
    r = isqrt(x)
    assert r * r <= x < (r + 1) * (r + 1)


@pytest.mark.parametrize("direction", list(Direction))
def test_atan2_of_direction_vector_matches_angle(direction):
    dx, dy = direction.vector
    assert atan2(dy, dx) == direction.angle


def test_atan2_clamps_inputs():
    assert atan2(1000, 5) == atan2(17, 5)
    assert atan2(-3, -500) == atan2(-3, -19)


def test_atan2_stays_in_byte_range():
    for y in range(-20, 21):
        for x in range(-20, 21):
            assert 0 <= atan2(y, x) <= 255


@pytest.mark.parametrize("angle", [0, 1, 17, 64, 100, 200, 255])
def test_sine_symmetries(angle):
    assert cos8(angle) == sin8(angle + 64)
    assert sin8(angle + 128) == -sin8(angle)
    assert sin8(angle + 256) == sin8(angle)


def test_sine_zero_at_up_and_down():
    assert sin8(0) == 0
    assert sin8(128) == 0


@pytest.mark.parametrize("direction", list(Direction))
def test_flipped_dir_is_involution(direction):
    flipped = flipped_dir(direction)
    assert flipped != direction
    assert flipped_dir(flipped) == direction


def test_flipped_pairs():
    assert flipped_dir(Direction.DOWN) == Direction.UP
    assert flipped_dir(Direction.LEFT) == Direction.RIGHT


@pytest.mark.parametrize("direction", list(Direction))
def test_translate_and_back(direction):
    x, y = translate_dir(1000, 2000, direction, 48)
    assert translate_dir(x, y, flipped_dir(direction), 48) == (1000, 2000)


def test_translate_right_changes_only_x():
    x, y = translate_dir(100, 200, Direction.RIGHT, 16)
    assert y == 200
    assert x > 100


def test_angle_to_delta_directions():
    dx, dy = angle_to_delta(0, 128)
    assert dx == 0 and dy > 0
    dx, dy = angle_to_delta(128, 128)
    assert dx == 0 and dy < 0
    dx, dy = angle_to_delta(64, 128)
    assert dx > 0 and dy == 0


def test_bb_intersects_same_box():
    box = BoundingBox(0, 15, 0, 15)
    assert bb_intersects(box, 0, 0, box, 0, 0)


def test_bb_intersects_edges_and_symmetry():
    box = BoundingBox(0, 15, 0, 15)
    assert bb_intersects(box, 0, 0, box, 15 << 4, 0)
    assert not bb_intersects(box, 0, 0, box, 16 << 4, 0)
    assert bb_intersects(box, 15 << 4, 0, box, 0, 0)
    assert not bb_intersects(box, 0, 16 << 4, box, 0, 0)