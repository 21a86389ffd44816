from __future__ import annotations

"""
Per-chat settings storage for the bots.

In-memory only: settings are created with defaults on first interaction and
are lost when the process restarts.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol


class AudioMode(str, Enum):
    BOTH = "Both"
    VOICE = "Voice"
    AUDIO = "Audio"
    LINK = "Link"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["AudioMode"]:
        for mode in cls:
            if raw == mode.value:
                return mode
        return None


@dataclass
class UserSettings:
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    prompt: str = ""
    inject_language: bool = False
    audio_mode: AudioMode = AudioMode.LINK


class SessionStore(Protocol):
    def get(self, chat_id: int) -> Optional[UserSettings]: ...

    def set(self, chat_id: int, settings: UserSettings) -> None: ...

    def remove(self, chat_id: int) -> None: ...

    def get_or_create(self, chat_id: int) -> UserSettings: ...


class InMemorySessionStore:
    """Thread-safe chat_id -> UserSettings map."""

    def __init__(self, defaults: Callable[[], UserSettings] = UserSettings):
        self._defaults = defaults
        self._storage: Dict[int, UserSettings] = {}
        self._lock = threading.Lock()

    def get(self, chat_id: int) -> Optional[UserSettings]:
        with self._lock:
            return self._storage.get(chat_id)

    def set(self, chat_id: int, settings: UserSettings) -> None:
        with self._lock:
            self._storage[chat_id] = settings

    def remove(self, chat_id: int) -> None:
        with self._lock:
            self._storage.pop(chat_id, None)

    def get_or_create(self, chat_id: int) -> UserSettings:
        with self._lock:
            settings = self._storage.get(chat_id)
            if settings is None:
                settings = self._defaults()
                self._storage[chat_id] = settings
            return settings
