# memory_game/storage.py
"""
Session Store: one local profile plus the in-flight ("current") session.

The store holds at most one profile. Logging in with a new email replaces
whatever profile was saved before. Records are whole JSON documents written
to a key-value backend, so every write is a single atomic overwrite.
"""
from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Optional

from .models import GameSession, UserData

logger = logging.getLogger(__name__)

USER_DATA_KEY = "memory_game_user_data"
CURRENT_SESSION_KEY = "memory_game_current_session"


# ----- backends -----

class MemoryBackend:
    """Dict-backed key-value store (tests, throwaway servers)."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend:
    """One <key>.json file per key under a directory."""

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        with self._lock:
            if not path.is_file():
                return None
            return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with self._lock:
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                self._path(key).unlink()
            except FileNotFoundError:
                pass


# ----- store -----

class SessionStore:
    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryBackend()

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("ignoring unreadable record %s: %s", key, e)
            return None
        if not isinstance(data, dict):
            logger.warning("ignoring record %s: expected an object", key)
            return None
        return data

    def _write(self, key: str, data: Dict[str, Any]) -> None:
        self.backend.set(key, json.dumps(data, ensure_ascii=False))

    # -- profile --

    def save_profile(self, user: UserData) -> None:
        self._write(USER_DATA_KEY, user.to_dict())

    def get_profile(self) -> Optional[UserData]:
        data = self._read(USER_DATA_KEY)
        if data is None:
            return None
        try:
            return UserData.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("ignoring malformed profile: %s", e)
            return None

    def get_profile_by_email(self, email: str) -> Optional[UserData]:
        user = self.get_profile()
        if user is not None and user.email == email:
            return user
        return None

    def add_session(self, session: GameSession) -> None:
        user = self.get_profile()
        if user is None:
            return
        user.sessions.append(session)
        self.save_profile(user)

    def next_game_number(self, email: str) -> int:
        user = self.get_profile_by_email(email)
        if user is None:
            return 1
        return len(user.sessions) + 1

    # -- current session --

    def set_current_session(self, session: GameSession) -> None:
        self._write(CURRENT_SESSION_KEY, session.to_dict())

    def get_current_session(self) -> Optional[GameSession]:
        data = self._read(CURRENT_SESSION_KEY)
        if data is None:
            return None
        try:
            return GameSession.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("ignoring malformed current session: %s", e)
            return None

    def clear_current_session(self) -> None:
        self.backend.delete(CURRENT_SESSION_KEY)

    def complete_session(self, end_time: str, duration: int, status: str) -> Optional[GameSession]:
        """
        Finish the current session and upsert it into the profile by game number.

        Returns the finished session, or None (and changes nothing) when there
        is no current session or no profile.
        """
        current = self.get_current_session()
        user = self.get_profile()
        if current is None or user is None:
            logger.debug("complete_session skipped: current=%s profile=%s",
                         current is not None, user is not None)
            return None

        current.end_time = end_time
        current.duration = duration
        current.status = status

        for i, existing in enumerate(user.sessions):
            if existing.game_number == current.game_number:
                user.sessions[i] = current
                break
        else:
            user.sessions.append(current)

        self.save_profile(user)
        self.clear_current_session()
        return current
