import json
import random
import time

import protocol

# Framing constants
HEADER_SIZE = 8
MSG_TYPE_SIZE = 3
MAX_BODY_SIZE = 5 * 1024 * 1024  # flower images ride in frames

# Event class IDs
EVENT_CODES = {
    protocol.JOIN: 1,
    protocol.MOVE: 2,
    protocol.CAT_UPDATE: 3,
    protocol.FLOWERS_REQUEST: 4,
    protocol.FLOWER_PLACE: 5,
    protocol.PLAYERS_CURRENT: 10,
    protocol.PLAYER_JOINED: 11,
    protocol.PLAYER_LEFT: 12,
    protocol.PLAYER_MOVED: 13,
    protocol.PLAYER_CAT_UPDATED: 14,
    protocol.PLAYER_COUNT: 15,
    protocol.FLOWERS_ALL: 16,
    protocol.FLOWER_PLACED: 17,
}
EVENT_NAMES = {code: name for name, code in EVENT_CODES.items()}


class FramingError(ValueError):
    """The byte stream can no longer be split into frames."""


def pack_message(event, payload=None):
    body = f"{EVENT_CODES[event]:03}".encode('ascii') + json.dumps(payload, separators=(',', ':')).encode('utf-8')
    header = f"{len(body):08}".encode('ascii')
    return header + body


def unpack_message(data):
    """Decode one complete frame. Returns (event, payload), or (None, None)
    when the frame is short, unknown or undecodable."""
    if len(data) < HEADER_SIZE + MSG_TYPE_SIZE:
        return None, None
    try:
        body_size = int(data[:HEADER_SIZE].decode('ascii'))
        body = data[HEADER_SIZE:HEADER_SIZE + body_size]
        if len(body) < body_size:
            return None, None
        event = EVENT_NAMES.get(int(body[:MSG_TYPE_SIZE].decode('ascii')))
        if event is None:
            return None, None
        payload = json.loads(body[MSG_TYPE_SIZE:].decode('utf-8'))
        return event, payload
    except (ValueError, UnicodeDecodeError):
        return None, None


class FrameBuffer:
    """Reassembles frames from a TCP byte stream."""

    def __init__(self, max_body_size=MAX_BODY_SIZE):
        self.buffer = bytearray()
        self.max_body_size = max_body_size

    def feed(self, data):
        """Append received bytes; return the (event, payload) pairs completed.
        Frames that decode to nothing are skipped. A broken header raises
        FramingError since the stream cannot be resynchronised."""
        self.buffer.extend(data)
        messages = []
        while len(self.buffer) >= HEADER_SIZE:
            header = bytes(self.buffer[:HEADER_SIZE])
            if not header.isdigit():
                self.buffer.clear()
                raise FramingError(f"bad frame header {header!r}")
            body_size = int(header)
            if body_size > self.max_body_size:
                self.buffer.clear()
                raise FramingError(f"frame of {body_size} bytes exceeds limit")
            end = HEADER_SIZE + body_size
            if len(self.buffer) < end:
                break
            frame = bytes(self.buffer[:end])
            del self.buffer[:end]
            event, payload = unpack_message(frame)
            if event is not None:
                messages.append((event, payload))
        return messages


class SimulatedSocket:
    """Wraps a connected non-blocking stream socket, optionally delaying
    traffic in both directions to emulate latency and jitter.

    Release times are kept monotonic so a stream never gets reordered.
    """

    def __init__(self, sock, latency=0.0, jitter=0.0):
        self.sock = sock
        self.latency = latency
        self.jitter = jitter
        self.send_queue = []  # (time, data)
        self.recv_queue = []  # (time, data)
        self.outgoing = bytearray()
        self.last_send_at = 0.0
        self.last_recv_at = 0.0

    def _delay(self):
        if self.latency <= 0 and self.jitter <= 0:
            return 0.0
        return max(0.0, random.gauss(self.latency, self.jitter))

    def send(self, data):
        self.last_send_at = max(time.time() + self._delay(), self.last_send_at)
        self.send_queue.append((self.last_send_at, data))

    def flush(self):
        """Write whatever is due. OSErrors other than a full buffer propagate."""
        now = time.time()
        while self.send_queue and self.send_queue[0][0] <= now:
            self.outgoing.extend(self.send_queue.pop(0)[1])
        while self.outgoing:
            try:
                sent = self.sock.send(self.outgoing)
            except BlockingIOError:
                break
            del self.outgoing[:sent]

    def update(self):
        """
        Flushes due sends, reads from the real socket and queues incoming with delay.
        Returns the list of byte chunks whose delay has elapsed; an empty
        chunk means the peer closed the connection.
        """
        self.flush()
        now = time.time()

        while True:
            try:
                data = self.sock.recv(65536)
            except BlockingIOError:
                break
            self.last_recv_at = max(now + self._delay(), self.last_recv_at)
            self.recv_queue.append((self.last_recv_at, data))
            if not data:
                break

        ready = []
        while self.recv_queue and self.recv_queue[0][0] <= now:
            ready.append(self.recv_queue.pop(0)[1])
        return ready

    def close(self):
        self.sock.close()
