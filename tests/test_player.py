import itertools
import math

import pytest

from collision import Collision
from conftest import grass_map
from player import Player, input_to_velocity, facing, DOWN, LEFT, RIGHT, UP
from world import WATER


@pytest.mark.parametrize("up, down, left, right", list(itertools.product([False, True], repeat=4)))
def test_velocity_magnitude_is_the_same_on_every_heading(up, down, left, right):
    vx, vy = input_to_velocity(up, down, left, right)
    magnitude = math.hypot(vx, vy)
    assert magnitude == pytest.approx(0.0) or magnitude == pytest.approx(1.0)


def test_diagonal_factor():
    vx, vy = input_to_velocity(True, False, False, True)
    assert vx == pytest.approx(0.7071, abs=1e-4)
    assert vy == pytest.approx(-0.7071, abs=1e-4)


def test_opposite_keys_cancel():
    assert input_to_velocity(True, True, True, True) == (0.0, 0.0)


def test_facing_prefers_vertical_on_ties():
    assert facing(1, 1) == DOWN
    assert facing(-1, -1) == UP
    assert facing(0.7, -0.7) == UP
    assert facing(1, 0.5) == RIGHT
    assert facing(-1, 0.5) == LEFT
    assert facing(0, 0, current=LEFT) == LEFT


def test_set_velocity_updates_direction_and_moving():
    p = Player("p1", "Ann")
    p.set_velocity(-1, 0)
    assert p.direction == LEFT and p.is_moving
    p.set_velocity(0, 0)
    assert p.direction == LEFT and not p.is_moving


def test_missing_nickname_becomes_guest():
    assert Player("p1", None).nickname == "Guest"


def test_update_without_collision_moves_freely():
    p = Player("p1", "Ann", 100, 100)
    p.set_velocity(1, 0)
    p.update(16)
    assert (p.x, p.y) == (104, 100)


def test_wall_stops_x_but_y_still_slides():
    c = Collision(grass_map(overrides={(5, y): WATER for y in range(20)}))
    p = Player("p1", "Ann", 216, 216)
    p.set_velocity(1, 0)
    for _ in range(10):
        p.update(16, c)
    # right foot sample is x + 14; tile 5 starts at 240
    assert p.x == 224

    p.set_velocity(0, 1)
    p.update(16, c)
    assert p.y == 220


def test_out_of_bounds_blocks_movement():
    c = Collision(grass_map(2, 2))
    p = Player("p1", "Ann", 20, 24)
    p.set_velocity(-1, 0)
    for _ in range(5):
        p.update(16, c)
    assert p.x >= 14


def test_history_is_bounded_and_oldest_first():
    p = Player("p1", "Ann", 0, 0)
    p.set_velocity(1, 0)
    for _ in range(100):
        p.update(16)
        assert len(p.history) <= 30
    assert len(p.history) == 30
    xs = [h[0] for h in p.history]
    assert xs == sorted(xs)
    assert p.historical_position(0) == (p.x, p.y, RIGHT)
    assert p.historical_position(29)[0] == p.x - 29 * 4
    # reaching further back than the buffer clamps to the oldest sample
    assert p.historical_position(500) == p.history[0]


def test_history_only_grows_while_moving():
    p = Player("p1", "Ann", 0, 0)
    p.update(16)
    assert len(p.history) == 0
    assert p.historical_position(20) == (0, 0, DOWN)


def test_animation_advances_while_moving_and_resets_when_idle():
    p = Player("p1", "Ann")
    p.set_velocity(0, 1)
    p.update(120)
    assert p.animation_frame == 1
    p.update(60)
    assert p.animation_frame == 1
    p.update(60)
    assert p.animation_frame == 2
    assert p.bounce_offset != 0

    p.set_velocity(0, 0)
    p.update(16)
    assert p.animation_frame == 0


def test_bounce_decays_to_zero_when_stopped():
    p = Player("p1", "Ann")
    p.bounce_offset = 3.0
    previous = abs(p.bounce_offset)
    for _ in range(40):
        p.update(16)
        assert abs(p.bounce_offset) <= previous
        previous = abs(p.bounce_offset)
    assert p.bounce_offset == 0


def test_serialize_and_deserialize():
    p = Player("p1", "Ann", 10, 20)
    p.set_velocity(1, 0)
    data = p.serialize()
    assert data == {'id': 'p1', 'nickname': 'Ann', 'x': 10, 'y': 20, 'direction': RIGHT, 'isMoving': True}

    mirror = Player("p1", "Ann")
    mirror.deserialize({'x': 5, 'y': 6, 'direction': UP, 'isMoving': False, 'nickname': None})
    assert (mirror.x, mirror.y, mirror.direction, mirror.is_moving) == (5, 6, UP, False)
    assert mirror.nickname == "Ann"


def test_color_is_stable_per_id():
    assert Player.get_color("abc") == Player.get_color("abc")
    assert all(0 <= c <= 1 for c in Player.get_color("abc"))
