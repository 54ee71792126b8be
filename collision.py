import math


class Collision:
    """Answers walkability / flower-zone questions in world coordinates."""

    def __init__(self, game_map):
        self.map = game_map

    def to_tile(self, x, y):
        ts = self.map.tile_size
        return math.floor(x / ts), math.floor(y / ts)

    def get_tile_at(self, x, y):
        return self.map.get_tile(*self.to_tile(x, y))

    def is_walkable(self, x, y):
        return self.map.is_walkable(*self.to_tile(x, y))

    def is_area_walkable(self, x, y, width, height):
        """Checks the feet of a box (top-left at x, y), not its full area:
        bottom-left, bottom-right and bottom-centre, each inset by 4 units."""
        points = (
            (x + 4, y + height - 4),
            (x + width - 4, y + height - 4),
            (x + width / 2, y + height - 4),
        )
        return all(self.is_walkable(px, py) for px, py in points)

    def can_place_flower(self, x, y):
        return self.map.is_flower_zone(*self.to_tile(x, y))
