import math
import random
import weakref

from config import (
    CAT_SPEED, CAT_FOLLOW_DISTANCE, CAT_ARRIVE_DISTANCE, CAT_SLEEP_MS,
    CAT_MEOW_MIN_MS, CAT_MEOW_MAX_MS, CAT_MEOW_DISPLAY_MS, CAT_ANIMATION_MS,
)
from player import DOWN, facing

CAT_TYPES = ('tabby', 'black', 'orange', 'calico', 'siamese')

# primary, secondary, stripes, nose
CAT_COLORS = {
    'tabby': ((0.83, 0.65, 0.45), (0.55, 0.44, 0.28), (0.42, 0.34, 0.20), (1.0, 0.63, 0.63)),
    'black': ((0.18, 0.18, 0.18), (0.10, 0.10, 0.10), (0.24, 0.24, 0.24), (0.29, 0.29, 0.29)),
    'orange': ((1.0, 0.60, 0.34), (0.90, 0.49, 0.13), (0.80, 0.40, 0.0), (1.0, 0.71, 0.71)),
    'calico': ((1.0, 1.0, 1.0), (1.0, 0.60, 0.34), (0.18, 0.18, 0.18), (1.0, 0.63, 0.63)),
    'siamese': ((0.96, 0.90, 0.83), (0.55, 0.44, 0.28), (0.36, 0.25, 0.22), (0.83, 0.65, 0.65)),
}

MEOWS = ('Meow!', 'Mew~', 'Nyaa!', 'Mrrow!', 'Purr~')


class Cat:
    """Companion that trails its owner by replaying the owner's position
    history instead of chasing the live position.

    Awake/asleep is a two-state machine: idling past CAT_SLEEP_MS puts the
    cat to sleep, moving again wakes it up and clears the idle timer.
    """

    def __init__(self, cat_type, name, owner, rng=None):
        self.type = cat_type if cat_type in CAT_TYPES else 'tabby'
        self.name = name
        # The owner keeps the cat alive, not the other way round
        self._owner = weakref.ref(owner)
        self.rng = rng or random.Random()

        self.x = owner.x - 50
        self.y = owner.y

        self.speed = CAT_SPEED
        self.direction = DOWN
        self.is_moving = False

        self.follow_distance = CAT_FOLLOW_DISTANCE
        self.target_x = self.x
        self.target_y = self.y

        self.animation_frame = 0
        self.animation_timer = 0.0
        self.bounce_offset = 0.0
        self.bounce_timer = 0.0

        self.is_awake = True
        self.idle_timer = 0.0

        self.meow_timer = self.random_meow_interval()
        self.meow_text = None
        self.meow_display_timer = 0.0
        self.on_meow = None  # hook: fn(cat, text)

        self.zzz_offset = 0.0

        self.colors = CAT_COLORS[self.type]

    @property
    def owner(self):
        return self._owner()

    def random_meow_interval(self):
        return self.rng.uniform(CAT_MEOW_MIN_MS, CAT_MEOW_MAX_MS)

    def update(self, dt):
        owner = self.owner
        if owner is None:
            return

        self.target_x, self.target_y, _ = owner.historical_position(self.follow_distance)

        dx = self.target_x - self.x
        dy = self.target_y - self.y
        distance = math.hypot(dx, dy)

        if distance > CAT_ARRIVE_DISTANCE:
            self.is_moving = True
            self.is_awake = True
            self.idle_timer = 0.0

            self.x += dx / distance * self.speed
            self.y += dy / distance * self.speed
            self.direction = facing(dx, dy, self.direction)

            self.animation_timer += dt
            if self.animation_timer >= CAT_ANIMATION_MS:
                self.animation_timer = 0.0
                self.animation_frame = (self.animation_frame + 1) % 4

            self.bounce_timer += dt * 0.03
            self.bounce_offset = math.sin(self.bounce_timer * math.pi) * 3
        else:
            self.is_moving = False
            self.animation_frame = 0
            self.bounce_offset *= 0.8

            self.idle_timer += dt
            if self.idle_timer >= CAT_SLEEP_MS:
                self.is_awake = False

        if self.is_awake and not self.is_moving:
            self.meow_timer -= dt
            if self.meow_timer <= 0:
                self.meow()
                self.meow_timer = self.random_meow_interval()

        if self.meow_text:
            self.meow_display_timer -= dt
            if self.meow_display_timer <= 0:
                self.meow_text = None

        if not self.is_awake:
            self.zzz_offset = (self.zzz_offset + dt * 0.02) % 20

    def meow(self):
        self.meow_text = self.rng.choice(MEOWS)
        self.meow_display_timer = CAT_MEOW_DISPLAY_MS
        if self.on_meow:
            self.on_meow(self, self.meow_text)

    def describe(self):
        return {'type': self.type, 'name': self.name}
