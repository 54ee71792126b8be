import os

# Networking
HOST = os.environ.get("GARDEN_HOST", "0.0.0.0")
PORT = int(os.environ.get("GARDEN_PORT", "9999"))
SERVER_IP = os.environ.get("GARDEN_SERVER", "127.0.0.1")
CONNECT_TIMEOUT = 3.0  # seconds

# Flower persistence (empty -> in-memory only)
DB_PATH = os.environ.get("GARDEN_DB", "")
FLOWER_LIST_LIMIT = 500
MEMORY_FLOWER_CAPACITY = 1000

# Window
WIDTH, HEIGHT = 960, 640
FPS = 60

# Map
TILE_SIZE = 48
MAP_WIDTH_TILES = 50   # 50 * 48 = 2400 px
MAP_HEIGHT_TILES = 35  # 35 * 48 = 1680 px
MAP_SEED = 1337

# Player
PLAYER_SPEED = 4.0  # units per frame
PLAYER_WIDTH = 36
PLAYER_HEIGHT = 48
HISTORY_LENGTH = 30
PLAYER_ANIMATION_MS = 120
DIAGONAL_FACTOR = 0.7071067811865476  # 1/sqrt(2)

# Cat
CAT_SPEED = 4.5
CAT_FOLLOW_DISTANCE = 20  # history samples behind the owner
CAT_ARRIVE_DISTANCE = 35
CAT_SLEEP_MS = 10000
CAT_MEOW_MIN_MS = 5000
CAT_MEOW_MAX_MS = 15000
CAT_MEOW_DISPLAY_MS = 2000
CAT_ANIMATION_MS = 100

# Camera
CAMERA_SMOOTHING = 0.1
CAMERA_SNAP = 0.5

GUEST_NAME = "Guest"
MAX_NAME_LENGTH = 24

# Wire limits; a flower image is a base64 PNG data URL
MAX_IMAGE_DATA_LENGTH = 512 * 1024
FLOWERS_BATCH_BYTES = 1024 * 1024  # flowers-all replies are split near this size

# Simulated network conditions for the client, in seconds
SIM_LATENCY = float(os.environ.get("GARDEN_LATENCY", "0"))
SIM_JITTER = float(os.environ.get("GARDEN_JITTER", "0"))
