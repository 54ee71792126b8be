import glfw
import imgui
import sys
import time

from cat import CAT_TYPES
from config import WIDTH, HEIGHT, FPS, SERVER_IP, PORT, GUEST_NAME, MAX_NAME_LENGTH, SIM_LATENCY, SIM_JITTER
from content_filter import ContentFilter
from engine import Engine
from flower_drawer import FlowerDrawing, PALETTE, decode_image
from gui import GUI
from player import Player, LEFT, RIGHT
import protocol
from socket_client import SocketClient
from storage import Preferences
import world

FLOWER_SIZE = 40
SHADOW = (0.25, 0.45, 0.22)
SKIN = (1.0, 0.86, 0.72)

TILE_COLORS = {
    world.GRASS: (0.42, 0.75, 0.36),
    world.GRASS_DARK: (0.36, 0.66, 0.31),
    world.PATH: (0.85, 0.75, 0.55),
    world.HOUSE: (0.93, 0.87, 0.75),
    world.WATER: (0.30, 0.55, 0.90),
    world.LAMPPOST: (0.30, 0.30, 0.35),
    world.TREE: (0.16, 0.45, 0.20),
    world.FENCE: (0.60, 0.45, 0.30),
    world.FLOWER_BED: (0.55, 0.40, 0.28),
    world.DENSE_TREE: (0.08, 0.30, 0.12),
    world.ROOF: (0.80, 0.30, 0.25),
    world.DOOR: (0.45, 0.28, 0.15),
}


class Client:
    def __init__(self, nickname=None):
        self.prefs = Preferences()
        if nickname:
            self.prefs.set_nickname(nickname)
        nickname = self.prefs.nickname() or GUEST_NAME

        # Networking
        self.network = SocketClient(SERVER_IP, PORT, latency=SIM_LATENCY, jitter=SIM_JITTER)
        self.engine = Engine(network=self.network)
        self.player_count = 1

        # Drawing / adoption panels
        self.content_filter = ContentFilter()
        self.drawing = FlowerDrawing()
        self.drawing_open = False
        self.drawing_status = ""
        self.drawing_tex = None
        self.drawing_dirty = True
        self.cat_type_index = 0
        self.cat_name = "Whiskers"
        self.flower_textures = {}  # id(Flower) -> texture
        self.mouse_was_down = False
        self.name_input = nickname if self.prefs.has_completed_setup() else ""

        # GUI
        self.gui = GUI(WIDTH, HEIGHT, f"Digital Garden - {nickname}")
        self.gui.on_resize = self.engine.camera.set_viewport_size

        self.engine.init_local_player(self.prefs.player_id(), nickname)
        cat = self.prefs.cat()
        if cat:
            self.engine.adopt_cat(cat['type'], cat['name'])

        self.setup_network_callbacks()

        print(f"Connecting to server at {SERVER_IP}:{PORT} as {nickname}...")
        try:
            self.network.connect(self.join_payload())
            self.network.request_flowers()
        except ConnectionError as e:
            print(f"{e}; playing offline")

    def join_payload(self):
        player = self.engine.local_player
        return {'id': player.id, 'nickname': player.nickname, 'x': player.x, 'y': player.y,
                'cat': self.prefs.cat()}

    def save_name(self):
        name = self.name_input.strip()[:MAX_NAME_LENGTH]
        if not name:
            return
        self.prefs.set_nickname(name)
        self.engine.local_player.nickname = name
        # a rejoin under the same id just refreshes our entry on the relay
        self.network.send(protocol.JOIN, self.join_payload())

    def setup_network_callbacks(self):
        engine = self.engine

        def players_current(players):
            engine.set_remote_players(players)
            self.player_count = engine.player_count()

        def player_joined(snapshot):
            print(f"Player joined: {snapshot.nickname}")
            engine.set_remote_players([snapshot])

        def player_left(player_id):
            engine.remove_remote_player(player_id)

        def player_count(count):
            self.player_count = count

        self.network.on_players_current = players_current
        self.network.on_player_joined = player_joined
        self.network.on_player_left = player_left
        self.network.on_player_moved = engine.update_remote_player
        self.network.on_player_cat_updated = engine.update_remote_player_cat
        self.network.on_player_count = player_count
        self.network.on_flowers_all = engine.add_flowers
        self.network.on_flower_placed = engine.add_flower

    def read_input(self):
        keys = self.engine.keys
        keys['up'] = self.gui.is_key_down(glfw.KEY_UP, glfw.KEY_W)
        keys['down'] = self.gui.is_key_down(glfw.KEY_DOWN, glfw.KEY_S)
        keys['left'] = self.gui.is_key_down(glfw.KEY_LEFT, glfw.KEY_A)
        keys['right'] = self.gui.is_key_down(glfw.KEY_RIGHT, glfw.KEY_D)
        if self.gui.ui_wants_keyboard():
            # typing a cat name must not walk the player
            for k in keys:
                keys[k] = False

        down = self.gui.mouse_pressed()
        if down and not self.mouse_was_down and not self.gui.ui_wants_mouse():
            if self.engine.handle_click(*self.gui.cursor_pos()):
                print("Flower placed")
        self.mouse_was_down = down

    def run(self):
        last = time.time()
        while not self.gui.should_close():
            now = time.time()
            dt = (now - last) * 1000.0
            last = now

            self.gui.poll_events()
            self.network.poll()
            self.read_input()
            self.engine.update(dt)

            self.gui.begin_frame()
            self.render()
            self.draw_panels()
            self.gui.end_frame()
            time.sleep(1 / FPS)

    # ---- rendering ----

    def render(self):
        engine = self.engine
        cam = engine.camera
        game_map = engine.map
        ts = game_map.tile_size

        start_x, start_y, end_x, end_y = cam.visible_tile_range(ts)
        for ty in range(max(0, start_y), min(game_map.height_tiles, end_y)):
            for tx in range(max(0, start_x), min(game_map.width_tiles, end_x)):
                sx, sy = cam.world_to_screen(tx * ts, ty * ts)
                self.gui.fill_rect(sx, sy, ts + 1, ts + 1, TILE_COLORS[game_map.tiles[ty][tx]])

        for flower in game_map.flowers:
            if not cam.is_visible(flower.x - FLOWER_SIZE / 2, flower.y - FLOWER_SIZE / 2, FLOWER_SIZE, FLOWER_SIZE):
                continue
            tex = self.flower_texture(flower)
            if tex:
                sx, sy = cam.world_to_screen(flower.x, flower.y)
                self.gui.draw_image(tex, sx, sy, FLOWER_SIZE, FLOWER_SIZE)

        imgui.set_next_window_position(0, 0)
        imgui.set_next_window_size(self.gui.width, self.gui.height)
        imgui.set_next_window_bg_alpha(0.0)
        imgui.begin("Overlay", flags=imgui.WINDOW_NO_TITLE_BAR | imgui.WINDOW_NO_RESIZE | imgui.WINDOW_NO_MOVE | imgui.WINDOW_NO_SCROLLBAR | imgui.WINDOW_NO_INPUTS | imgui.WINDOW_NO_BRING_TO_FRONT_ON_FOCUS)
        draw_list = imgui.get_window_draw_list()

        players = list(engine.remote_players.values())
        if engine.local_player:
            players.append(engine.local_player)
        # painter's order: further up the screen is further away
        for p in sorted(players, key=lambda p: p.y):
            sx, sy = cam.world_to_screen(p.x, p.y - p.bounce_offset)
            self.gui.fill_ellipse(sx, sy + p.height / 2 - 2, p.width / 2, 5, SHADOW)
            self.gui.fill_ellipse(sx, sy + 6, p.width / 2 - 4, p.height / 2 - 8, Player.get_color(p.id))
            self.gui.fill_circle(sx, sy - p.height / 4, p.width / 3, SKIN)
            self.gui.label(draw_list, sx, sy - p.height / 2 - 8, p.nickname)

        cats = list(engine.remote_cats.values())
        if engine.cat:
            cats.append(engine.cat)
        for c in cats:
            self.draw_cat(draw_list, c)

        if engine.placement_mode and engine.local_player:
            sx, sy = cam.world_to_screen(engine.local_player.x, engine.local_player.y)
            self.gui.stroke_circle(sx, sy, 50, (0.29, 0.87, 0.5))
            self.gui.label(draw_list, sx, sy + 80, "Click to place flower")

        imgui.end()

    def draw_cat(self, draw_list, c):
        primary, secondary, _, nose = c.colors
        sx, sy = self.engine.camera.world_to_screen(c.x, c.y - c.bounce_offset)
        # head leads on the side the cat faces
        lead = {LEFT: -9, RIGHT: 9}.get(c.direction, 0)
        self.gui.fill_ellipse(sx, sy + 12, 12, 4, SHADOW)
        self.gui.fill_ellipse(sx - lead / 3, sy + 3, 12, 8, primary)
        self.gui.fill_circle(sx + lead, sy - 6, 8, secondary)
        for ear in (-5, 5):
            self.gui.fill_ellipse(sx + lead + ear, sy - 13, 3, 4, secondary)
        if c.is_awake:
            self.gui.fill_circle(sx + lead, sy - 4, 1.5, nose)

        self.gui.label(draw_list, sx, sy + 26, c.name)
        if c.meow_text:
            self.gui.label(draw_list, sx, sy - 28, c.meow_text)
        elif not c.is_awake:
            self.gui.label(draw_list, sx + 12, sy - 20 - c.zzz_offset, "z Z")

    def flower_texture(self, flower):
        key = id(flower)
        if key not in self.flower_textures:
            try:
                self.flower_textures[key] = self.gui.upload_image(decode_image(flower.image_data))
            except (ValueError, OSError) as e:
                print(f"Unreadable flower image {flower.id}: {e}")
                self.flower_textures[key] = 0
        return self.flower_textures[key]

    def draw_panels(self):
        engine = self.engine
        imgui.begin("Garden")
        imgui.text(f"Players online: {self.player_count}")
        imgui.text("Online" if self.network.connected else "Offline")
        imgui.text(f"FPS: {imgui.get_io().framerate:.1f}")
        if not self.prefs.has_completed_setup():
            _, self.name_input = imgui.input_text("Your name", self.name_input, MAX_NAME_LENGTH)
            if imgui.button("Save name"):
                self.save_name()
        latency_changed, latency = imgui.slider_float("Latency", self.network.latency, 0.0, 1.0)
        jitter_changed, jitter = imgui.slider_float("Jitter", self.network.jitter, 0.0, 0.5)
        if latency_changed or jitter_changed:
            self.network.set_latency(latency, jitter)
        if engine.placement_mode:
            if imgui.button("Cancel placement"):
                engine.cancel_flower_placement()
        elif imgui.button("Draw a flower"):
            self.drawing_open = True
            self.drawing.clear()
            self.drawing_dirty = True
            self.drawing_status = ""

        imgui.separator()
        if engine.cat:
            imgui.text(f"Companion: {engine.cat.name} ({engine.cat.type})")
            if imgui.button("Say goodbye"):
                engine.abandon_cat()
                self.prefs.clear_cat()
        else:
            _, self.cat_type_index = imgui.combo("Cat", self.cat_type_index, list(CAT_TYPES))
            _, self.cat_name = imgui.input_text("Name", self.cat_name, 24)
            if imgui.button("Adopt") and self.cat_name.strip():
                cat_type = CAT_TYPES[self.cat_type_index]
                engine.adopt_cat(cat_type, self.cat_name.strip())
                self.prefs.set_cat(cat_type, self.cat_name.strip())
        imgui.end()

        if self.drawing_open:
            self.draw_flower_window()

    def draw_flower_window(self):
        d = self.drawing
        _, self.drawing_open = imgui.begin("Draw a flower", closable=True)

        for i, (r, g, b) in enumerate(PALETTE):
            if i:
                imgui.same_line()
            if imgui.color_button(f"colour{i}", r / 255, g / 255, b / 255, 1, 0, 24, 24):
                d.color = (r, g, b)
        _, d.brush_size = imgui.slider_int("Brush", d.brush_size, 2, 30)

        pos = imgui.get_cursor_screen_pos()
        imgui.invisible_button("canvas", d.size, d.size)
        if imgui.is_item_active():
            mx, my = imgui.get_mouse_pos()
            x, y = mx - pos[0], my - pos[1]
            if d.drawing:
                d.stroke_to(x, y)
            else:
                d.begin_stroke(x, y)
            self.drawing_dirty = True
        elif d.drawing:
            d.end_stroke()

        if self.drawing_dirty:
            self.drawing_tex = self.gui.upload_image(d.image, self.drawing_tex)
            self.drawing_dirty = False
        draw_list = imgui.get_window_draw_list()
        draw_list.add_rect_filled(pos[0], pos[1], pos[0] + d.size, pos[1] + d.size,
                                  imgui.get_color_u32_rgba(0.94, 0.94, 0.94, 1))
        draw_list.add_image(self.drawing_tex, (pos[0], pos[1]), (pos[0] + d.size, pos[1] + d.size))

        if imgui.button("Clear"):
            d.clear()
            self.drawing_dirty = True
        imgui.same_line()
        if imgui.button("Plant it"):
            self.drawing_status, image_data = d.submit(self.content_filter)
            if image_data:
                self.engine.start_flower_placement(image_data)
                self.drawing_open = False
        if self.drawing_status:
            imgui.text(self.drawing_status)
        imgui.end()

    def close(self):
        self.network.disconnect()

        for tex in self.flower_textures.values():
            self.gui.free_texture(tex)
        self.gui.free_texture(self.drawing_tex)
        self.gui.shutdown()


if __name__ == "__main__":
    if len(sys.argv) > 2:
        print("Usage: python client.py [nickname]")
        sys.exit(1)

    client = Client(sys.argv[1] if len(sys.argv) > 1 else None)

    try:
        client.run()
    except KeyboardInterrupt:
        pass
    finally:
        client.close()
