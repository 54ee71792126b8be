import math
import random

from config import TILE_SIZE, MAP_WIDTH_TILES, MAP_HEIGHT_TILES, MAP_SEED

# Tile classes
GRASS = 0
PATH = 1
HOUSE = 2
WATER = 3
LAMPPOST = 4
TREE = 5
FENCE = 6
FLOWER_BED = 7
DENSE_TREE = 8  # forest border, also what lies outside the map
GRASS_DARK = 9
ROOF = 10
DOOR = 11

WALKABLE_TILES = frozenset({GRASS, GRASS_DARK, PATH, FLOWER_BED})
FLOWER_ZONES = frozenset({GRASS, GRASS_DARK, FLOWER_BED})

BORDER_THICKNESS = 4


def _round(v):
    # half-up, so generated paths do not depend on banker's rounding
    return int(math.floor(v + 0.5))


class Flower:
    def __init__(self, flower_id, x, y, image_data, created_by, created_at):
        self.id = flower_id
        self.x = x
        self.y = y
        self.image_data = image_data
        self.created_by = created_by
        self.created_at = created_at


class GameMap:
    """Static tile grid. Generated once from a seed, never mutated afterwards
    (apart from the list of flowers drawn on top of it)."""

    def __init__(self, width_tiles=MAP_WIDTH_TILES, height_tiles=MAP_HEIGHT_TILES,
                 tile_size=TILE_SIZE, seed=MAP_SEED, tiles=None):
        self.tile_size = tile_size
        self.width_tiles = width_tiles
        self.height_tiles = height_tiles
        self.width = width_tiles * tile_size
        self.height = height_tiles * tile_size
        self.rng = random.Random(seed)
        self.tiles = tiles if tiles is not None else self.generate()
        self.flowers = []  # list of Flower

    @classmethod
    def from_rows(cls, rows, tile_size=TILE_SIZE):
        """Build a map from explicit rows of tile classes (row-major, y first)."""
        rows = [list(r) for r in rows]
        return cls(len(rows[0]), len(rows), tile_size, tiles=rows)

    # ---- generation ----

    def generate(self):
        tiles = []
        for y in range(self.height_tiles):
            tiles.append([GRASS_DARK if self.rng.random() > 0.85 else GRASS
                          for _ in range(self.width_tiles)])

        self.create_forest_border(tiles)
        self.create_paths(tiles)
        self.create_pond(tiles, 38, 12, 6, 5)

        self.create_house_cluster(tiles, 8, 8, 3)
        self.create_house_cluster(tiles, 28, 6, 2)
        self.create_house_cluster(tiles, 12, 22, 2)
        self.create_house_cluster(tiles, 32, 20, 3)

        self.scatter_trees(tiles, 25)

        self.add_flower_bed(tiles, 20, 15, 4, 3)
        self.add_flower_bed(tiles, 6, 28, 3, 2)
        self.add_flower_bed(tiles, 40, 25, 3, 3)

        self.add_lampposts(tiles)
        return tiles

    def create_forest_border(self, tiles):
        for y in range(self.height_tiles):
            for x in range(self.width_tiles):
                min_dist = min(y, self.height_tiles - 1 - y, x, self.width_tiles - 1 - x)
                if min_dist < BORDER_THICKNESS:
                    # organic edge
                    noise = math.sin(x * 0.5) * math.cos(y * 0.7) + self.rng.random() * 0.5
                    if min_dist < 2 or noise > -0.3:
                        tiles[y][x] = DENSE_TREE

    def create_paths(self, tiles):
        # Main winding path, left to right
        for x in range(5, 45):
            py = _round(17 + math.sin(x * 0.3) * 2)
            self.draw_path_tile(tiles, x, py)
            self.draw_path_tile(tiles, x, py + 1)

        # Top to centre
        for y in range(5, 18):
            px = _round(18 + math.sin(y * 0.4) * 1.5)
            self.draw_path_tile(tiles, px, y)
            self.draw_path_tile(tiles, px + 1, y)

        # Centre to bottom
        for y in range(18, 30):
            px = _round(25 + math.cos(y * 0.35) * 2)
            self.draw_path_tile(tiles, px, y)
            self.draw_path_tile(tiles, px + 1, y)

        self.create_straight_path(tiles, 10, 17, 10, 10)
        self.create_straight_path(tiles, 35, 18, 35, 22)
        self.create_straight_path(tiles, 15, 19, 15, 24)

    def create_straight_path(self, tiles, x1, y1, x2, y2):
        steps = max(abs(x2 - x1), abs(y2 - y1))
        for i in range(steps + 1):
            t = i / steps
            self.draw_path_tile(tiles, _round(x1 + (x2 - x1) * t), _round(y1 + (y2 - y1) * t))

    def draw_path_tile(self, tiles, x, y):
        if self.in_bounds(x, y) and tiles[y][x] != DENSE_TREE:
            tiles[y][x] = PATH

    def create_pond(self, tiles, cx, cy, radius_x, radius_y):
        for y in range(cy - radius_y, cy + radius_y + 1):
            for x in range(cx - radius_x, cx + radius_x + 1):
                if 4 <= x < self.width_tiles - 4 and 4 <= y < self.height_tiles - 4:
                    dx = (x - cx) / radius_x
                    dy = (y - cy) / radius_y
                    noise = math.sin(x * 0.8) * math.cos(y * 0.6) * 0.2
                    if dx * dx + dy * dy + noise < 1:
                        tiles[y][x] = WATER

    def create_house_cluster(self, tiles, start_x, start_y, count):
        for i in range(count):
            hx = start_x + (i % 2) * 6 + self.rng.randrange(2)
            hy = start_y + (i // 2) * 5 + self.rng.randrange(2)
            if hx + 4 < self.width_tiles - 4 and hy + 4 < self.height_tiles - 4:
                self.add_house(tiles, hx, hy)

    def add_house(self, tiles, x, y):
        """3x3 house: roof row, walls, door in the middle of the bottom row."""
        for dy in range(3):
            for dx in range(3):
                if tiles[y + dy][x + dx] == DENSE_TREE:
                    return
        for dy in range(3):
            for dx in range(3):
                if dy == 0:
                    tiles[y + dy][x + dx] = ROOF
                elif dy == 2 and dx == 1:
                    tiles[y + dy][x + dx] = DOOR
                else:
                    tiles[y + dy][x + dx] = HOUSE

    def scatter_trees(self, tiles, count):
        placed = 0
        attempts = 0
        while placed < count and attempts < 200:
            x = self.rng.randrange(self.width_tiles - 8) + 4
            y = self.rng.randrange(self.height_tiles - 8) + 4
            if tiles[y][x] in (GRASS, GRASS_DARK) and not self.is_near(tiles, x, y, PATH):
                tiles[y][x] = TREE
                placed += 1
            attempts += 1

    def is_near(self, tiles, x, y, tile):
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if self.in_bounds(x + dx, y + dy) and tiles[y + dy][x + dx] == tile:
                    return True
        return False

    def add_flower_bed(self, tiles, x, y, width, height):
        for dy in range(height):
            for dx in range(width):
                if self.in_bounds(x + dx, y + dy) and tiles[y + dy][x + dx] in (GRASS, GRASS_DARK):
                    tiles[y + dy][x + dx] = FLOWER_BED

    def add_lampposts(self, tiles, limit=10):
        count = 0
        for y in range(5, self.height_tiles - 5, 6):
            for x in range(5, self.width_tiles - 5, 8):
                if tiles[y][x] in (GRASS, GRASS_DARK) and self.is_near(tiles, x, y, PATH):
                    tiles[y][x] = LAMPPOST
                    count += 1
                if count >= limit:
                    return

    # ---- queries (tile coordinates) ----

    def in_bounds(self, tile_x, tile_y):
        return 0 <= tile_x < self.width_tiles and 0 <= tile_y < self.height_tiles

    def get_tile(self, tile_x, tile_y):
        if not self.in_bounds(tile_x, tile_y):
            return DENSE_TREE
        return self.tiles[tile_y][tile_x]

    def is_walkable(self, tile_x, tile_y):
        return self.get_tile(tile_x, tile_y) in WALKABLE_TILES

    def is_flower_zone(self, tile_x, tile_y):
        return self.get_tile(tile_x, tile_y) in FLOWER_ZONES

    def random_spawn_position(self, rng=None):
        rng = rng or random
        if self.width_tiles <= 10 or self.height_tiles <= 10:
            return self.width / 2, self.height / 2
        for _ in range(100):
            tile_x = rng.randrange(self.width_tiles - 10) + 5
            tile_y = rng.randrange(self.height_tiles - 10) + 5
            if self.is_walkable(tile_x, tile_y):
                return (tile_x * self.tile_size + self.tile_size / 2,
                        tile_y * self.tile_size + self.tile_size / 2)
        return self.width / 2, self.height / 2

    def add_flower(self, flower):
        self.flowers.append(flower)
