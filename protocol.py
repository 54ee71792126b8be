"""Event records exchanged between the relay and clients.

Every inbound payload is turned into one of the records below before any
game code sees it. Structural problems (a non-numeric coordinate, a join
without an id) raise ProtocolError; merely missing optional fields are
defaulted.
"""
import math
from dataclasses import dataclass, field
from typing import Optional

from config import GUEST_NAME, MAX_NAME_LENGTH, MAX_IMAGE_DATA_LENGTH
from cat import CAT_TYPES
from player import DOWN, DIRECTIONS
from world import Flower

# client -> server
JOIN = 'join'
MOVE = 'move'
CAT_UPDATE = 'cat-update'
FLOWERS_REQUEST = 'flowers-request'
FLOWER_PLACE = 'flower-place'

# server -> client
PLAYERS_CURRENT = 'players-current'
PLAYER_JOINED = 'player-joined'
PLAYER_LEFT = 'player-left'
PLAYER_MOVED = 'player-moved'
PLAYER_CAT_UPDATED = 'player-cat-updated'
PLAYER_COUNT = 'player-count'
FLOWERS_ALL = 'flowers-all'
FLOWER_PLACED = 'flower-placed'


class ProtocolError(ValueError):
    pass


def _number(data, key, default=None):
    value = data.get(key, default)
    if value is None:
        if default is None:
            raise ProtocolError(f"missing field {key!r}")
        return default
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProtocolError(f"field {key!r} is not a number: {value!r}")
    try:
        value = float(value)
    except OverflowError:
        raise ProtocolError(f"field {key!r} is out of range") from None
    if not math.isfinite(value):
        raise ProtocolError(f"field {key!r} is not finite")
    return value


def _encodable(value, key):
    # JSON can carry lone surrogates, which no UTF-8 sink accepts
    try:
        value.encode('utf-8')
    except UnicodeEncodeError:
        raise ProtocolError(f"field {key!r} is not valid text") from None
    return value


def _text(data, key, default, max_length=MAX_NAME_LENGTH):
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return _encodable(value.strip(), key)[:max_length]
    return default


def _player_id(data):
    player_id = data.get('id')
    if not isinstance(player_id, str) or not player_id:
        return None
    return _encodable(player_id, 'id')


def _optional_cat(data):
    # a join or snapshot with a garbled companion still counts, minus the cat
    cat = data.get('cat')
    return CatInfo.from_payload(cat) if isinstance(cat, dict) else None


def _direction(data):
    value = data.get('direction', DOWN)
    return value if value in DIRECTIONS and not isinstance(value, bool) else DOWN


def _require_dict(data, what):
    if not isinstance(data, dict):
        raise ProtocolError(f"{what} payload must be an object")
    return data


@dataclass
class CatInfo:
    type: str
    name: str

    @classmethod
    def from_payload(cls, data):
        if data is None:
            return None
        data = _require_dict(data, 'cat')
        cat_type = data.get('type')
        if cat_type not in CAT_TYPES:
            cat_type = 'tabby'
        return cls(cat_type, _text(data, 'name', cat_type.capitalize()))

    def to_payload(self):
        return {'type': self.type, 'name': self.name}


@dataclass
class Join:
    id: str
    nickname: str = GUEST_NAME
    x: float = 0.0
    y: float = 0.0
    cat: Optional[CatInfo] = None

    @classmethod
    def from_payload(cls, data):
        data = _require_dict(data, JOIN)
        player_id = _player_id(data)
        if player_id is None:
            raise ProtocolError("join without a player id")
        return cls(player_id,
                   _text(data, 'nickname', GUEST_NAME),
                   _number(data, 'x', 0.0),
                   _number(data, 'y', 0.0),
                   _optional_cat(data))


@dataclass
class Move:
    x: float
    y: float
    direction: int = DOWN
    is_moving: bool = False

    @classmethod
    def from_payload(cls, data):
        data = _require_dict(data, MOVE)
        return cls(_number(data, 'x'), _number(data, 'y'),
                   _direction(data), bool(data.get('isMoving', False)))


@dataclass
class CatUpdate:
    cat: Optional[CatInfo]

    @classmethod
    def from_payload(cls, data):
        return cls(CatInfo.from_payload(data))


@dataclass
class FlowersRequest:
    @classmethod
    def from_payload(cls, data):
        return cls()


@dataclass
class FlowerPlace:
    x: float
    y: float
    image_data: str
    created_by: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        data = _require_dict(data, FLOWER_PLACE)
        image_data = data.get('imageData')
        if not isinstance(image_data, str) or not image_data:
            raise ProtocolError("flower-place without image data")
        if len(image_data) > MAX_IMAGE_DATA_LENGTH or not image_data.isascii():
            raise ProtocolError("flower image is not a PNG data URL of acceptable size")
        return cls(_number(data, 'x'), _number(data, 'y'), image_data,
                   _text(data, 'createdBy', None))


CLIENT_RECORDS = {
    JOIN: Join,
    MOVE: Move,
    CAT_UPDATE: CatUpdate,
    FLOWERS_REQUEST: FlowersRequest,
    FLOWER_PLACE: FlowerPlace,
}


def parse_client_event(event, payload):
    """Turn a raw (event, payload) pair into its record."""
    record = CLIENT_RECORDS.get(event)
    if record is None:
        raise ProtocolError(f"unknown event {event!r}")
    return record.from_payload(payload)


@dataclass
class PlayerSnapshot:
    id: str
    nickname: str = GUEST_NAME
    x: float = 0.0
    y: float = 0.0
    direction: int = DOWN
    is_moving: bool = False
    cat: Optional[CatInfo] = field(default=None)

    @classmethod
    def from_payload(cls, data):
        data = _require_dict(data, 'player')
        player_id = _player_id(data)
        if player_id is None:
            raise ProtocolError("player snapshot without an id")
        return cls(player_id,
                   _text(data, 'nickname', GUEST_NAME),
                   _number(data, 'x', 0.0),
                   _number(data, 'y', 0.0),
                   _direction(data),
                   bool(data.get('isMoving', False)),
                   _optional_cat(data))

    def to_payload(self, with_cat=True):
        payload = {
            'id': self.id,
            'nickname': self.nickname,
            'x': self.x,
            'y': self.y,
            'direction': self.direction,
            'isMoving': self.is_moving,
        }
        if with_cat:
            payload['cat'] = self.cat.to_payload() if self.cat else None
        return payload


def flower_to_wire(flower):
    """Flower records travel in the persisted (snake_case) shape."""
    return {
        'id': flower.id,
        'x': flower.x,
        'y': flower.y,
        'image_data': flower.image_data,
        'created_by': flower.created_by,
        'created_at': flower.created_at,
    }


def flower_from_wire(data):
    """Accepts either the snake_case or the camelCase shape."""
    data = _require_dict(data, 'flower')

    def pick(snake, camel, default=None):
        value = data.get(snake)
        return value if value is not None else data.get(camel, default)

    image_data = pick('image_data', 'imageData')
    if not isinstance(image_data, str) or not image_data:
        raise ProtocolError("flower without image data")
    flower_id = data.get('id')
    if isinstance(flower_id, str):
        _encodable(flower_id, 'id')
    created_by = pick('created_by', 'createdBy', GUEST_NAME)
    if isinstance(created_by, str):
        _encodable(created_by, 'created_by')
    return Flower(flower_id, _number(data, 'x'), _number(data, 'y'),
                  _encodable(image_data, 'image_data'), created_by,
                  pick('created_at', 'createdAt'))
