from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Dict-backed KeyValueStore"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """KeyValueStore kept in a JSON file, rewritten on every `set`.

    A missing file starts empty. An unreadable file is logged and ignored,
    and is replaced on the next write.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected an object", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)


class SoundEffect(str, Enum):
    PLACE_PIECE = "place_piece"
    CLEAR_LINE = "clear_line"
    CLEAR_COMBO = "clear_combo"
    INVALID_MOVE = "invalid_move"
    GAME_OVER = "game_over"
    NEW_HIGH_SCORE = "new_high_score"


@dataclass
class Settings:
    sound_enabled: bool = True

    SOUND_KEY = "sound_enabled"

    @classmethod
    def load(cls, store: KeyValueStore) -> "Settings":
        return cls(sound_enabled=bool(store.get(cls.SOUND_KEY, True)))

    def save(self, store: KeyValueStore) -> None:
        store.set(self.SOUND_KEY, self.sound_enabled)


SoundPlayer = Callable[[SoundEffect], None]


class AudioService:
    """Routes sound events to a player callable.

    Constructed explicitly and handed to whoever needs it. Without a player,
    events are only logged.
    """

    def __init__(self, settings: Optional[Settings] = None, player: Optional[SoundPlayer] = None) -> None:
        self.settings = settings or Settings()
        self._player = player

    def play(self, effect: SoundEffect) -> None:
        if not self.settings.sound_enabled:
            return
        logger.debug("sfx %s", effect.value)
        if self._player is None:
            return
        try:
            self._player(effect)
        except Exception:
            logger.exception("Error playing sound effect %s", effect.value)

    def toggle_sound(self, store: Optional[KeyValueStore] = None) -> bool:
        self.settings.sound_enabled = not self.settings.sound_enabled
        if store is not None:
            self.settings.save(store)
        return self.settings.sound_enabled
