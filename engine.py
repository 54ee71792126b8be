import random

from camera import Camera
from cat import Cat
from collision import Collision
from config import WIDTH, HEIGHT, GUEST_NAME
from player import Player, input_to_velocity
from world import Flower, GameMap


class Engine:
    """Per-frame client simulation.

    Owns the local player, its cat, the mirrored remote players/cats and the
    flowers on the map. Network sends go through `network`, any object with
    send_player_move / send_cat_update / send_flower_place (a SocketClient in
    the game, a recorder in tests); None runs offline.
    """

    def __init__(self, network=None, game_map=None, viewport_width=WIDTH, viewport_height=HEIGHT):
        self.network = network
        self.map = game_map if game_map is not None else GameMap()
        self.camera = Camera(viewport_width, viewport_height, self.map.width, self.map.height)
        self.collision = Collision(self.map)

        self.local_player = None
        self.cat = None
        self.remote_players = {}  # id -> Player
        self.remote_cats = {}     # owner id -> Cat

        self.keys = {'up': False, 'down': False, 'left': False, 'right': False}

        self.placement_mode = False
        self.pending_flower = None

    # ---- input ----

    def set_key(self, name, pressed):
        if name in self.keys:
            self.keys[name] = pressed

    def handle_click(self, screen_x, screen_y):
        """Second phase of flower placement. Returns True if a flower was placed;
        a click outside a flower zone leaves placement mode armed."""
        if not self.placement_mode or self.pending_flower is None:
            return False
        x, y = self.camera.screen_to_world(screen_x, screen_y)
        if not self.collision.can_place_flower(x, y):
            return False
        self.place_flower(x, y, self.pending_flower)
        self.placement_mode = False
        self.pending_flower = None
        return True

    # ---- local entities ----

    def init_local_player(self, player_id, nickname, x=None, y=None, rng=None):
        if x is None or y is None:
            x, y = self.map.random_spawn_position(rng or random)
        self.local_player = Player(player_id, nickname, x, y, is_local=True)
        self.camera.follow(x, y)
        self.camera.x, self.camera.y = self.camera.target_x, self.camera.target_y
        return self.local_player

    def adopt_cat(self, cat_type, name):
        if self.local_player is None:
            return None
        self.cat = Cat(cat_type, name, self.local_player)
        self.local_player.cat_info = self.cat.describe()
        if self.network is not None:
            self.network.send_cat_update(self.cat.describe())
        return self.cat

    def abandon_cat(self):
        if self.cat is None:
            return
        self.cat = None
        self.local_player.cat_info = None
        if self.network is not None:
            self.network.send_cat_update(None)

    def start_flower_placement(self, image_data):
        self.placement_mode = True
        self.pending_flower = image_data

    def cancel_flower_placement(self):
        self.placement_mode = False
        self.pending_flower = None

    def place_flower(self, x, y, image_data):
        created_by = self.local_player.nickname if self.local_player else GUEST_NAME
        # id stays None until the relay echoes the stored record back
        self.map.add_flower(Flower(None, x, y, image_data, created_by, None))
        if self.network is not None:
            self.network.send_flower_place({'x': x, 'y': y, 'imageData': image_data, 'createdBy': created_by})

    # ---- remote state ----

    def update_remote_player(self, snapshot):
        p = self.remote_players.get(snapshot.id)
        if p is None:
            p = Player(snapshot.id, snapshot.nickname, snapshot.x, snapshot.y)
            self.remote_players[snapshot.id] = p
        p.deserialize(snapshot.to_payload(with_cat=False))
        return p

    def set_remote_players(self, snapshots):
        for snapshot in snapshots:
            if self.local_player is not None and snapshot.id == self.local_player.id:
                continue
            self.update_remote_player(snapshot)
            if snapshot.cat is not None:
                self.update_remote_player_cat(snapshot.id, snapshot.cat)

    def remove_remote_player(self, player_id):
        self.remote_players.pop(player_id, None)
        self.remote_cats.pop(player_id, None)

    def update_remote_player_cat(self, player_id, cat_info):
        owner = self.remote_players.get(player_id)
        if cat_info is None:
            self.remote_cats.pop(player_id, None)
        elif owner is not None:
            owner.cat_info = cat_info.to_payload()
            self.remote_cats[player_id] = Cat(cat_info.type, cat_info.name, owner)

    def add_flower(self, flower):
        # The relay's echo of our own placement fills in the pending copy
        for f in self.map.flowers:
            if (f.id is None and f.x == flower.x and f.y == flower.y
                    and f.image_data == flower.image_data):
                f.id = flower.id
                f.created_at = flower.created_at
                return
        if flower.id is not None and any(f.id == flower.id for f in self.map.flowers):
            return
        self.map.add_flower(flower)

    def add_flowers(self, flowers):
        for flower in flowers:
            self.add_flower(flower)

    def player_count(self):
        return (1 if self.local_player else 0) + len(self.remote_players)

    # ---- frame ----

    def update(self, dt):
        """One frame. dt is elapsed milliseconds; movement itself is per frame."""
        p = self.local_player
        if p is not None:
            was_moving = p.is_moving
            p.set_velocity(*input_to_velocity(self.keys['up'], self.keys['down'],
                                              self.keys['left'], self.keys['right']))
            p.update(dt, self.collision)

            if self.network is not None and (p.is_moving or was_moving):
                self.network.send_player_move(p.serialize())

            self.camera.follow(p.x, p.y)

        self.camera.update()

        if self.cat is not None:
            self.cat.update(dt)

        # Remote positions come from the network as-is, no collision
        for remote in self.remote_players.values():
            remote.update(dt, None)

        for cat in self.remote_cats.values():
            cat.update(dt)
