import gc
import math
import random

import pytest

from cat import Cat, CAT_TYPES, CAT_COLORS, MEOWS
from player import Player, RIGHT, LEFT


@pytest.fixture
def owner():
    return Player("p1", "Ann", 100, 100)


def distance(cat, owner):
    return math.hypot(owner.x - cat.x, owner.y - cat.y)


def test_starts_left_of_owner(owner):
    cat = Cat('tabby', 'Whiskers', owner)
    assert (cat.x, cat.y) == (50, 100)
    assert cat.owner is owner
    assert not cat.is_moving and cat.is_awake


@pytest.mark.parametrize("cat_type", CAT_TYPES)
def test_every_type_has_a_palette(owner, cat_type):
    assert Cat(cat_type, 'Kit', owner).colors == CAT_COLORS[cat_type]


def test_unknown_type_becomes_tabby(owner):
    assert Cat('dragon', 'Kit', owner).type == 'tabby'


def test_closes_in_on_a_stationary_target(owner):
    cat = Cat('black', 'Shadow', owner)
    cat.x = owner.x - 200
    previous = distance(cat, owner)
    frames = 0
    while previous > 35:
        cat.update(16)
        assert cat.is_moving
        now = distance(cat, owner)
        assert now < previous
        previous = now
        frames += 1
        assert frames < 100
    # the frame that sees the cat within range stops it
    cat.update(16)
    assert not cat.is_moving
    assert distance(cat, owner) == previous


def test_follows_the_history_not_the_live_position(owner):
    owner.set_velocity(1, 0)
    for _ in range(30):
        owner.update(16)
    cat = Cat('orange', 'Ginger', owner)
    cat.update(16)
    # 30 samples, look-back 20 -> sample index 9
    assert (cat.target_x, cat.target_y) == owner.history[9][:2]
    assert cat.target_x < owner.x


def test_faces_its_heading(owner):
    cat = Cat('tabby', 'Kit', owner)
    cat.update(16)
    assert cat.direction == RIGHT
    cat.x = owner.x + 100
    cat.update(16)
    assert cat.direction == LEFT


def test_falls_asleep_after_ten_idle_seconds(owner):
    cat = Cat('calico', 'Patches', owner)
    cat.x = owner.x
    cat.update(9999)
    assert cat.is_awake
    cat.update(1)
    assert not cat.is_awake
    assert cat.idle_timer == 10000


def test_wakes_and_resets_idle_when_moving_again(owner):
    cat = Cat('calico', 'Patches', owner)
    cat.x = owner.x
    cat.update(10000)
    assert not cat.is_awake
    owner.x += 300
    cat.update(16)
    assert cat.is_awake
    assert cat.is_moving
    assert cat.idle_timer == 0


def test_meows_when_countdown_runs_out(owner):
    heard = []
    cat = Cat('siamese', 'Cream', owner, rng=random.Random(1))
    cat.on_meow = lambda c, text: heard.append(text)
    cat.x = owner.x
    cat.meow_timer = 100
    cat.update(50)
    assert heard == []
    cat.update(60)
    assert len(heard) == 1 and heard[0] in MEOWS
    assert cat.meow_text == heard[0]
    assert 5000 <= cat.meow_timer <= 15000


def test_no_meowing_while_asleep(owner):
    heard = []
    cat = Cat('tabby', 'Kit', owner)
    cat.on_meow = lambda c, text: heard.append(text)
    cat.x = owner.x
    cat.meow_timer = 20000
    cat.update(10000)
    assert not cat.is_awake
    cat.meow_timer = 1
    cat.update(100)
    assert heard == []


def test_meow_text_expires(owner):
    cat = Cat('tabby', 'Kit', owner)
    cat.meow()
    cat.x = owner.x
    cat.meow_timer = 50000
    cat.update(1000)
    assert cat.meow_text is not None
    cat.update(1000)
    assert cat.meow_text is None


def test_does_not_keep_its_owner_alive():
    owner = Player("p1", "Ann", 100, 100)
    cat = Cat('tabby', 'Kit', owner)
    del owner
    gc.collect()
    assert cat.owner is None
    cat.update(16)  # no owner, nothing happens
    assert (cat.x, cat.y) == (50, 100)
