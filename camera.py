import math

from config import CAMERA_SMOOTHING, CAMERA_SNAP


class Camera:
    def __init__(self, viewport_width, viewport_height, world_width, world_height):
        self.x = 0.0
        self.y = 0.0
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.world_width = world_width
        self.world_height = world_height

        self.target_x = 0.0
        self.target_y = 0.0
        self.smoothing = CAMERA_SMOOTHING

    def follow(self, x, y):
        """Aim at centring (x, y), clamped so the view stays inside the world.
        A world smaller than the viewport pins the target to 0."""
        tx = x - self.viewport_width / 2
        ty = y - self.viewport_height / 2
        self.target_x = max(0, min(tx, self.world_width - self.viewport_width))
        self.target_y = max(0, min(ty, self.world_height - self.viewport_height))

    def update(self):
        self.x += (self.target_x - self.x) * self.smoothing
        self.y += (self.target_y - self.y) * self.smoothing

        # snap to avoid endless sub-pixel creeping
        if abs(self.target_x - self.x) < CAMERA_SNAP:
            self.x = self.target_x
        if abs(self.target_y - self.y) < CAMERA_SNAP:
            self.y = self.target_y

    def world_to_screen(self, wx, wy):
        return wx - self.x, wy - self.y

    def screen_to_world(self, sx, sy):
        return sx + self.x, sy + self.y

    def is_visible(self, x, y, width, height):
        return (x + width > self.x and x < self.x + self.viewport_width and
                y + height > self.y and y < self.y + self.viewport_height)

    def visible_tile_range(self, tile_size):
        """(start_x, start_y, end_x, end_y) in tiles, end exclusive."""
        return (math.floor(self.x / tile_size),
                math.floor(self.y / tile_size),
                math.ceil((self.x + self.viewport_width) / tile_size),
                math.ceil((self.y + self.viewport_height) / tile_size))

    def set_viewport_size(self, width, height):
        self.viewport_width = width
        self.viewport_height = height
