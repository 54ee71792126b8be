import sqlite3
import sys
import uuid
from collections import deque
from datetime import datetime, timezone

from config import DB_PATH, FLOWER_LIST_LIMIT, MEMORY_FLOWER_CAPACITY
from world import Flower


def utc_timestamp():
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class FlowerStore:
    """Flower persistence with a transient fallback.

    With a database path, flowers go to SQLite. Without one, or whenever
    SQLite fails, they are kept in a bounded in-memory list (oldest dropped)
    for the life of the process. Callers never see a storage error.
    """

    def __init__(self, db_path=DB_PATH, memory_capacity=MEMORY_FLOWER_CAPACITY):
        self.db_path = db_path
        self.memory = deque(maxlen=memory_capacity)
        self.conn = None
        if db_path:
            try:
                self.conn = sqlite3.connect(db_path)
                self.conn.execute("""
                CREATE TABLE IF NOT EXISTS flowers (
                  id          TEXT PRIMARY KEY,
                  x           REAL NOT NULL,
                  y           REAL NOT NULL,
                  image_data  TEXT NOT NULL,
                  created_by  TEXT NOT NULL,
                  created_at  TEXT NOT NULL
                );
                """)
                self.conn.commit()
            except sqlite3.Error as e:
                print(f"Flower database unavailable ({e}), using in-memory storage")
                self.conn = None

    def is_configured(self):
        return self.conn is not None

    def list_flowers(self, limit=FLOWER_LIST_LIMIT):
        """The newest `limit` flowers, oldest first."""
        flowers = list(self.memory)
        if self.conn is not None:
            try:
                rows = self.conn.execute(
                    "SELECT id, x, y, image_data, created_by, created_at FROM flowers "
                    "ORDER BY created_at DESC LIMIT ?", (-1 if limit is None else limit,)).fetchall()
                flowers.extend(Flower(*row) for row in rows)
            except sqlite3.Error as e:
                print("Error fetching flowers:", e)
        flowers.sort(key=lambda f: f.created_at)
        if limit is None:
            return flowers
        return flowers[-limit:] if limit > 0 else []

    def create_flower(self, x, y, image_data, created_by):
        flower = Flower(str(uuid.uuid4()), x, y, image_data, created_by, utc_timestamp())

        if self.conn is None:
            self.memory.append(flower)
            return flower

        try:
            with self.conn:
                self.conn.execute(
                    "INSERT INTO flowers (id, x, y, image_data, created_by, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (flower.id, flower.x, flower.y, flower.image_data,
                     flower.created_by, flower.created_at))
        except sqlite3.Error as e:
            print("Error creating flower in DB, keeping it in memory:", e)
            self.memory.append(flower)
        return flower

    def delete_flower(self, flower_id):
        """Administrative removal. Returns True if something was deleted."""
        before = len(self.memory)
        self.memory = deque((f for f in self.memory if f.id != flower_id), maxlen=self.memory.maxlen)
        deleted = len(self.memory) != before
        if self.conn is not None:
            try:
                with self.conn:
                    cur = self.conn.execute("DELETE FROM flowers WHERE id = ?", (flower_id,))
                deleted = deleted or cur.rowcount > 0
            except sqlite3.Error as e:
                print("Error deleting flower:", e)
        return deleted

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None


def main(argv):
    if len(argv) < 2 or argv[1] not in ('list', 'delete') or (argv[1] == 'delete' and len(argv) < 3):
        print("Usage: python flowers.py list | delete <flower_id>")
        return 1
    if not DB_PATH:
        print("GARDEN_DB is not set; nothing is persisted")
        return 1

    store = FlowerStore(DB_PATH)
    try:
        if argv[1] == 'list':
            for f in store.list_flowers(limit=None):
                print(f"{f.id}  ({f.x:.0f}, {f.y:.0f})  by {f.created_by}  at {f.created_at}")
        else:
            if store.delete_flower(argv[2]):
                print(f"Deleted flower {argv[2]}")
            else:
                print(f"No flower with id {argv[2]}")
                return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
