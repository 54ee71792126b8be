import json
import random
import string
from pathlib import Path

PREFS_PATH = Path.home() / ".digital_garden.json"

PLAYER_ID = 'player_id'
NICKNAME = 'nickname'
CAT_TYPE = 'cat_type'
CAT_NAME = 'cat_name'


def generate_player_id():
    return 'player_' + ''.join(random.choices(string.ascii_lowercase + string.digits, k=13))


class Preferences:
    """Small JSON file of per-user settings that survive restarts."""

    def __init__(self, path=PREFS_PATH):
        self.path = Path(path)
        self.data = {}
        if self.path.exists():
            try:
                self.data = json.loads(self.path.read_text(encoding='utf-8'))
            except (OSError, ValueError) as e:
                print(f"Ignoring unreadable preferences {self.path}: {e}")
            if not isinstance(self.data, dict):
                self.data = {}

    def save(self):
        try:
            self.path.write_text(json.dumps(self.data, indent=2), encoding='utf-8')
        except OSError as e:
            print(f"Could not save preferences to {self.path}: {e}")

    def player_id(self):
        pid = self.data.get(PLAYER_ID)
        if not pid:
            pid = generate_player_id()
            self.data[PLAYER_ID] = pid
            self.save()
        return pid

    def nickname(self):
        return self.data.get(NICKNAME) or None

    def set_nickname(self, nickname):
        self.data[NICKNAME] = nickname
        self.save()

    def cat(self):
        cat_type = self.data.get(CAT_TYPE)
        cat_name = self.data.get(CAT_NAME)
        if cat_type and cat_name:
            return {'type': cat_type, 'name': cat_name}
        return None

    def set_cat(self, cat_type, name):
        self.data[CAT_TYPE] = cat_type
        self.data[CAT_NAME] = name
        self.save()

    def clear_cat(self):
        self.data.pop(CAT_TYPE, None)
        self.data.pop(CAT_NAME, None)
        self.save()

    def has_completed_setup(self):
        return self.nickname() is not None
