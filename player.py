import colorsys
import math
import random
from collections import deque

from config import (
    PLAYER_SPEED, PLAYER_WIDTH, PLAYER_HEIGHT, HISTORY_LENGTH,
    PLAYER_ANIMATION_MS, DIAGONAL_FACTOR, GUEST_NAME,
)

# Facing directions (wire values)
DOWN = 0
LEFT = 1
RIGHT = 2
UP = 3
DIRECTIONS = (DOWN, LEFT, RIGHT, UP)


def input_to_velocity(up, down, left, right):
    """Resolve held keys to a velocity whose magnitude is 1 on any heading."""
    vx, vy = 0.0, 0.0
    if up: vy -= 1
    if down: vy += 1
    if left: vx -= 1
    if right: vx += 1
    if vx != 0 and vy != 0:
        vx *= DIAGONAL_FACTOR
        vy *= DIAGONAL_FACTOR
    return vx, vy


def facing(dx, dy, current=DOWN):
    # Ties go to the vertical axis
    if abs(dx) > abs(dy):
        return RIGHT if dx > 0 else LEFT
    if dy != 0:
        return DOWN if dy > 0 else UP
    return current


class Player:
    def __init__(self, player_id, nickname, x=0.0, y=0.0, is_local=False):
        self.id = player_id
        self.nickname = nickname or GUEST_NAME
        self.x = x
        self.y = y
        self.is_local = is_local

        # Movement
        self.speed = PLAYER_SPEED
        self.direction = DOWN
        self.is_moving = False
        self.vx = 0.0
        self.vy = 0.0

        # Animation
        self.animation_frame = 0
        self.animation_timer = 0.0
        self.bounce_offset = 0.0
        self.bounce_timer = 0.0

        self.width = PLAYER_WIDTH
        self.height = PLAYER_HEIGHT

        # (x, y, direction) samples, oldest first, for followers
        self.history = deque(maxlen=HISTORY_LENGTH)

        # Companion descriptor {'type', 'name'} as last synced, or None
        self.cat_info = None

    def set_velocity(self, vx, vy):
        self.vx = vx
        self.vy = vy
        self.direction = facing(vx, vy, self.direction)
        self.is_moving = vx != 0 or vy != 0

    def update(self, dt, collision=None):
        """Advance one frame. dt is in milliseconds and only drives animation;
        displacement is velocity * speed per frame."""
        new_x = self.x + self.vx * self.speed
        new_y = self.y + self.vy * self.speed

        if collision is not None:
            # Axes are checked separately so the player slides along walls
            if self.vx != 0 and collision.is_area_walkable(
                    new_x - self.width / 2, self.y - self.height / 2, self.width, self.height):
                self.x = new_x
            if self.vy != 0 and collision.is_area_walkable(
                    self.x - self.width / 2, new_y - self.height / 2, self.width, self.height):
                self.y = new_y
        else:
            self.x = new_x
            self.y = new_y

        if self.is_moving:
            self.history.append((self.x, self.y, self.direction))

            self.animation_timer += dt
            if self.animation_timer >= PLAYER_ANIMATION_MS:
                self.animation_timer = 0.0
                self.animation_frame = (self.animation_frame + 1) % 4

            self.bounce_timer += dt * 0.02
            self.bounce_offset = math.sin(self.bounce_timer * math.pi) * 3
        else:
            self.animation_frame = 0
            self.bounce_offset *= 0.8
            if abs(self.bounce_offset) < 0.1:
                self.bounce_offset = 0.0

    def historical_position(self, steps_back):
        """Sample from history; 0 is the most recent entry. Clamps to the
        oldest entry, and falls back to the live position when empty."""
        if not self.history:
            return self.x, self.y, self.direction
        index = max(0, len(self.history) - 1 - steps_back)
        return self.history[index]

    def serialize(self):
        return {
            'id': self.id,
            'nickname': self.nickname,
            'x': self.x,
            'y': self.y,
            'direction': self.direction,
            'isMoving': self.is_moving,
        }

    def deserialize(self, data):
        self.x = data['x']
        self.y = data['y']
        self.direction = data['direction']
        self.is_moving = data['isMoving']
        if data.get('nickname'):
            self.nickname = data['nickname']

    @staticmethod
    def get_color(player_id):
        h = random.Random(player_id).random()  # consistent per id
        return colorsys.hsv_to_rgb(h, 0.55, 0.85)
