from __future__ import annotations
import json
import logging
import os
from typing import Optional

from . import config
from .logic.state import GameState

log = logging.getLogger("handtris.storage")


def _write_json(path: str, data):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    os.replace(tmp, path)


def _read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class HighScoreStore:
    def __init__(self, path: str = config.HIGH_SCORE_FILE):
        self.path = path

    def load(self) -> int:
        if not os.path.exists(self.path):
            return 0
        try:
            value = int(_read_json(self.path)["high_score"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            log.warning("ignoring unreadable high score file %s: %s", self.path, e)
            return 0
        return max(0, value)

    def save(self, value: int):
        _write_json(self.path, {"high_score": int(value)})
        log.debug("high score %d saved to %s", value, self.path)


class SessionStore:
    """Holds one suspended game between runs."""

    def __init__(self, path: str = config.SESSION_FILE):
        self.path = path

    def save(self, state: GameState):
        _write_json(self.path, state.to_dict())
        log.debug("session saved to %s", self.path)

    def load(self) -> Optional[GameState]:
        if not os.path.exists(self.path):
            return None
        try:
            return GameState.from_dict(_read_json(self.path))
        except (OSError, ValueError, AttributeError) as e:
            log.warning("ignoring unreadable session %s: %s", self.path, e)
            return None

    def clear(self):
        if os.path.exists(self.path):
            os.remove(self.path)
