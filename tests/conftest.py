import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from world import GameMap, GRASS  # noqa: E402


def grass_map(width=20, height=20, overrides=None):
    """All-grass map; overrides maps (tile_x, tile_y) -> tile class."""
    rows = [[GRASS] * width for _ in range(height)]
    for (tx, ty), tile in (overrides or {}).items():
        rows[ty][tx] = tile
    return GameMap.from_rows(rows)


@pytest.fixture
def open_map():
    return grass_map()


class RecordingNetwork:
    def __init__(self):
        self.moves = []
        self.cats = []
        self.flowers = []

    def send_player_move(self, data):
        self.moves.append(data)

    def send_cat_update(self, data):
        self.cats.append(data)

    def send_flower_place(self, data):
        self.flowers.append(data)


@pytest.fixture
def recording_network():
    return RecordingNetwork()
