import selectors
import socket
import sys

import network
import protocol
from config import HOST, PORT, GUEST_NAME, MAX_IMAGE_DATA_LENGTH, FLOWERS_BATCH_BYTES
from flowers import FlowerStore
from player import Player


class Relay:
    """Session registry and event fan-out.

    Transport-agnostic: a connection is anything with a `send(event, payload)`
    method and a `player` attribute the relay manages. Handlers run to
    completion one at a time, so the registry needs no locking.
    """

    def __init__(self, flower_store):
        self.flowers = flower_store
        self.connections = []
        self.players = {}  # id -> Player, one per joined connection

        self.handlers = {
            protocol.JOIN: self.on_join,
            protocol.MOVE: self.on_move,
            protocol.CAT_UPDATE: self.on_cat_update,
            protocol.FLOWERS_REQUEST: self.on_flowers_request,
            protocol.FLOWER_PLACE: self.on_flower_place,
        }

    # ---- connection lifecycle ----

    def connect(self, conn):
        conn.player = None
        self.connections.append(conn)

    def disconnect(self, conn):
        if conn in self.connections:
            self.connections.remove(conn)
        p = conn.player
        conn.player = None
        # A newer connection may have taken over this id
        if p is None or self.players.get(p.id) is not p:
            return
        del self.players[p.id]
        self.emit_all(protocol.PLAYER_LEFT, p.id)
        self.emit_all(protocol.PLAYER_COUNT, len(self.players))
        print(f"Player left: {p.nickname} ({p.id})")

    def handle(self, conn, event, payload):
        try:
            message = protocol.parse_client_event(event, payload)
        except protocol.ProtocolError as e:
            print(f"Ignoring {event} from {getattr(conn, 'addr', conn)}: {e}")
            return
        self.handlers[event](conn, message)

    # ---- fan-out ----

    def emit_all(self, event, payload=None):
        for conn in list(self.connections):
            conn.send(event, payload)

    def broadcast(self, sender, event, payload=None):
        """Send to every connection except the sender."""
        for conn in list(self.connections):
            if conn is not sender:
                conn.send(event, payload)

    @staticmethod
    def snapshot(p):
        return protocol.PlayerSnapshot(p.id, p.nickname, p.x, p.y, p.direction,
                                       p.is_moving, p.cat_info).to_payload()

    # ---- handlers ----

    def on_join(self, conn, msg):
        previous = conn.player
        if previous is not None and previous.id != msg.id and self.players.get(previous.id) is previous:
            del self.players[previous.id]
            self.broadcast(conn, protocol.PLAYER_LEFT, previous.id)

        displaced = self.players.get(msg.id)
        if displaced is not None and displaced is not previous:
            for other in self.connections:
                if other is not conn and other.player is displaced:
                    other.player = None

        p = Player(msg.id, msg.nickname, msg.x, msg.y)
        p.cat_info = msg.cat
        conn.player = p
        self.players[p.id] = p

        others = [self.snapshot(q) for q in self.players.values() if q.id != p.id]
        conn.send(protocol.PLAYERS_CURRENT, others)
        self.broadcast(conn, protocol.PLAYER_JOINED, self.snapshot(p))
        self.emit_all(protocol.PLAYER_COUNT, len(self.players))
        print(f"Player joined: {p.nickname} ({p.id})")

    def on_move(self, conn, msg):
        p = conn.player
        if p is None:
            return
        p.x = msg.x
        p.y = msg.y
        p.direction = msg.direction
        p.is_moving = msg.is_moving
        self.broadcast(conn, protocol.PLAYER_MOVED,
                       protocol.PlayerSnapshot(p.id, p.nickname, p.x, p.y, p.direction,
                                               p.is_moving).to_payload(with_cat=False))

    def on_cat_update(self, conn, msg):
        p = conn.player
        if p is None:
            return
        p.cat_info = msg.cat
        self.broadcast(conn, protocol.PLAYER_CAT_UPDATED, {
            'playerId': p.id,
            'cat': msg.cat.to_payload() if msg.cat else None,
        })

    def on_flowers_request(self, conn, msg):
        batches = flower_batches(self.flowers.list_flowers())
        for batch in batches:
            conn.send(protocol.FLOWERS_ALL, batch)

    def on_flower_place(self, conn, msg):
        if conn.player is not None:
            created_by = conn.player.nickname
        else:
            created_by = msg.created_by or GUEST_NAME
        flower = self.flowers.create_flower(msg.x, msg.y, msg.image_data, created_by)
        # The sender gets it too: it needs the assigned id
        self.emit_all(protocol.FLOWER_PLACED, protocol.flower_to_wire(flower))
        print(f"Flower {flower.id} placed by {created_by} at ({msg.x:.0f}, {msg.y:.0f})")

    def player_count(self):
        return len(self.players)


FLOWER_OVERHEAD = 200  # bytes of JSON around one image


def flower_batches(flowers, budget=FLOWERS_BATCH_BYTES):
    """Split stored flowers into flowers-all payloads that each fit in one
    frame. Always yields at least one (possibly empty) batch."""
    batches = [[]]
    size = 0
    for f in flowers:
        if len(f.image_data) > MAX_IMAGE_DATA_LENGTH or not f.image_data.isascii():
            print(f"Not sending flower {f.id}: unusable image")
            continue
        cost = len(f.image_data) + FLOWER_OVERHEAD
        if batches[-1] and size + cost > budget:
            batches.append([])
            size = 0
        batches[-1].append(protocol.flower_to_wire(f))
        size += cost
    return batches


class Connection:
    def __init__(self, sock, addr, server):
        self.sock = sock
        self.addr = addr
        self.server = server
        self.frames = network.FrameBuffer()
        self.outbox = bytearray()
        self.player = None
        self.closed = False

    def send(self, event, payload=None):
        if self.closed:
            return
        self.outbox.extend(network.pack_message(event, payload))
        self.server.want_write(self)


class GameServer:
    def __init__(self, host=HOST, port=PORT, flower_store=None):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind((host, port))
        self.sock.listen()
        self.sock.setblocking(False)
        self.selector = selectors.DefaultSelector()
        self.selector.register(self.sock, selectors.EVENT_READ, data=None)
        self.relay = Relay(flower_store if flower_store is not None else FlowerStore())
        self.running = True

    @property
    def address(self):
        return self.sock.getsockname()

    def run(self):
        host, port = self.address
        print(f"Server started on {host}:{port}")
        if self.relay.flowers.is_configured():
            print("Flowers are stored in SQLite")
        else:
            print("Flowers are kept in memory only (set GARDEN_DB to persist them)")
        try:
            while self.running:
                self.poll(0.5)
        except KeyboardInterrupt:
            self.running = False
        finally:
            self.close()

    def poll(self, timeout=0.0):
        """Handle whatever is ready, one event at a time."""
        for key, mask in self.selector.select(timeout):
            if key.data is None:
                self.accept()
                continue
            conn = key.data
            if mask & selectors.EVENT_READ and not conn.closed:
                self.receive(conn)
            if mask & selectors.EVENT_WRITE and not conn.closed:
                self.flush(conn)

    def accept(self):
        try:
            sock, addr = self.sock.accept()
        except BlockingIOError:
            return
        sock.setblocking(False)
        conn = Connection(sock, addr, self)
        self.selector.register(sock, selectors.EVENT_READ, data=conn)
        self.relay.connect(conn)
        print(f"Player connected from {addr}")

    def receive(self, conn):
        try:
            data = conn.sock.recv(65536)
        except BlockingIOError:
            return
        except OSError as e:
            print("recv error", e)
            self.drop(conn)
            return
        if not data:
            self.drop(conn)
            return
        try:
            messages = conn.frames.feed(data)
        except network.FramingError as e:
            print(f"Dropping {conn.addr}: {e}")
            self.drop(conn)
            return
        for event, payload in messages:
            if conn.closed:
                break
            try:
                self.relay.handle(conn, event, payload)
            except Exception as e:
                print("handler error", repr(e))

    def want_write(self, conn):
        if not conn.closed:
            self.selector.modify(conn.sock, selectors.EVENT_READ | selectors.EVENT_WRITE, data=conn)

    def flush(self, conn):
        try:
            sent = conn.sock.send(conn.outbox)
        except BlockingIOError:
            return
        except OSError as e:
            print("send error", e)
            self.drop(conn)
            return
        del conn.outbox[:sent]
        if not conn.outbox:
            self.selector.modify(conn.sock, selectors.EVENT_READ, data=conn)

    def drop(self, conn):
        if conn.closed:
            return
        conn.closed = True
        self.selector.unregister(conn.sock)
        conn.sock.close()
        self.relay.disconnect(conn)

    def close(self):
        for conn in list(self.relay.connections):
            self.drop(conn)
        self.selector.close()
        self.sock.close()
        self.relay.flowers.close()


if __name__ == "__main__":
    port = PORT
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            print("Usage: python server.py [port]")
            sys.exit(1)
    server = GameServer(port=port)
    server.run()
