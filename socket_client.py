import socket

import network
import protocol
from config import SERVER_IP, PORT, CONNECT_TIMEOUT


class SocketClient:
    """Client side of the relay protocol.

    Inbound events are decoded and handed to one hook per event type
    (assigning a hook replaces the previous one). Senders are
    fire-and-forget: while disconnected they do nothing.
    """

    HOOKS = {
        protocol.PLAYERS_CURRENT: 'on_players_current',
        protocol.PLAYER_JOINED: 'on_player_joined',
        protocol.PLAYER_LEFT: 'on_player_left',
        protocol.PLAYER_MOVED: 'on_player_moved',
        protocol.PLAYER_CAT_UPDATED: 'on_player_cat_updated',
        protocol.PLAYER_COUNT: 'on_player_count',
        protocol.FLOWERS_ALL: 'on_flowers_all',
        protocol.FLOWER_PLACED: 'on_flower_placed',
    }

    def __init__(self, host=SERVER_IP, port=PORT, latency=0.0, jitter=0.0):
        self.host = host
        self.port = port
        self.latency = latency
        self.jitter = jitter
        self.sock = None
        self.frames = None
        self.connected = False

        self.on_players_current = None     # fn(list[PlayerSnapshot])
        self.on_player_joined = None       # fn(PlayerSnapshot)
        self.on_player_left = None         # fn(player_id)
        self.on_player_moved = None        # fn(PlayerSnapshot)
        self.on_player_cat_updated = None  # fn(player_id, CatInfo | None)
        self.on_player_count = None        # fn(int)
        self.on_flowers_all = None         # fn(list[Flower])
        self.on_flower_placed = None       # fn(Flower)
        self.on_disconnect = None          # fn()

    def connect(self, player_data):
        """Open the connection and send the join. Returns once the join is on
        its way; the players-current reply arrives later through poll().
        Raises ConnectionError if the server cannot be reached."""
        try:
            raw = socket.create_connection((self.host, self.port), timeout=CONNECT_TIMEOUT)
        except OSError as e:
            raise ConnectionError(f"Could not connect to {self.host}:{self.port}: {e}") from e
        raw.setblocking(False)
        self.sock = network.SimulatedSocket(raw, latency=self.latency, jitter=self.jitter)
        self.frames = network.FrameBuffer()
        self.connected = True
        print(f"Connected to server at {self.host}:{self.port}")
        self.send(protocol.JOIN, player_data)

    def set_latency(self, latency, jitter):
        """Change the simulated delay, in seconds; applies to the live connection too."""
        self.latency = latency
        self.jitter = jitter
        if self.sock is not None:
            self.sock.latency = latency
            self.sock.jitter = jitter

    def disconnect(self):
        if self.sock is not None:
            self.sock.close()
        self.sock = None
        self.connected = False

    def connection_lost(self, reason=None):
        was_connected = self.connected
        self.disconnect()
        if was_connected:
            print("Disconnected from server" + (f": {reason}" if reason else ""))
            if self.on_disconnect:
                self.on_disconnect()

    # ---- senders ----

    def send(self, event, payload=None):
        if not self.connected:
            return False
        try:
            self.sock.send(network.pack_message(event, payload))
            self.sock.flush()
        except OSError as e:
            self.connection_lost(e)
            return False
        return True

    def send_player_move(self, player_data):
        return self.send(protocol.MOVE, player_data)

    def send_cat_update(self, cat_data):
        return self.send(protocol.CAT_UPDATE, cat_data)

    def send_flower_place(self, flower_data):
        return self.send(protocol.FLOWER_PLACE, flower_data)

    def request_flowers(self):
        return self.send(protocol.FLOWERS_REQUEST)

    # ---- inbound ----

    def poll(self):
        """Pump the socket and dispatch every complete event."""
        if not self.connected:
            return
        try:
            chunks = self.sock.update()
        except OSError as e:
            self.connection_lost(e)
            return
        for chunk in chunks:
            if not chunk:
                self.connection_lost()
                return
            try:
                messages = self.frames.feed(chunk)
            except network.FramingError as e:
                self.connection_lost(e)
                return
            for event, payload in messages:
                self.dispatch(event, payload)

    def dispatch(self, event, payload):
        hook = getattr(self, self.HOOKS.get(event, ''), None)
        if hook is None:
            return
        try:
            args = self.decode(event, payload)
        except (protocol.ProtocolError, TypeError, ValueError, OverflowError) as e:
            print(f"Ignoring malformed {event}: {e}")
            return
        hook(*args)

    def decode(self, event, payload):
        if event == protocol.PLAYERS_CURRENT:
            return (self._decode_list(protocol.PlayerSnapshot.from_payload, payload),)
        if event in (protocol.PLAYER_JOINED, protocol.PLAYER_MOVED):
            return (protocol.PlayerSnapshot.from_payload(payload),)
        if event == protocol.PLAYER_LEFT:
            return (str(payload),)
        if event == protocol.PLAYER_CAT_UPDATED:
            if not isinstance(payload, dict) or not payload.get('playerId'):
                raise protocol.ProtocolError("cat update without a player id")
            return payload['playerId'], protocol.CatInfo.from_payload(payload.get('cat'))
        if event == protocol.PLAYER_COUNT:
            return (int(payload),)
        if event == protocol.FLOWERS_ALL:
            return (self._decode_list(protocol.flower_from_wire, payload),)
        return (protocol.flower_from_wire(payload),)

    @staticmethod
    def _decode_list(decode, payload):
        if not isinstance(payload, list):
            raise protocol.ProtocolError("expected a list")
        items = []
        for item in payload:
            try:
                items.append(decode(item))
            except protocol.ProtocolError as e:
                print(f"Skipping malformed entry: {e}")
        return items
