# memory_game/models.py
from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class GameStatus:
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    LOST = "lost"

    FINISHED = (COMPLETED, LOST)


@dataclass
class Tile:
    id: int
    icon: str
    is_flipped: bool = False
    is_matched: bool = False

    def to_dict(self, reveal: bool = True) -> Dict[str, Any]:
        shown = reveal or self.is_flipped or self.is_matched
        return {
            "id": self.id,
            "icon": self.icon if shown else None,
            "is_flipped": self.is_flipped,
            "is_matched": self.is_matched,
        }


@dataclass
class GameSession:
    """
    One play-through record.

    While in flight it is held as the store's "current session" and has no
    end_time/duration. Serialized with the camelCase keys the browser client
    has always written, so existing saved profiles keep loading.
    """
    game_number: int
    start_time: str
    status: str = GameStatus.IN_PROGRESS
    board_size: int = 0
    end_time: Optional[str] = None
    duration: Optional[int] = None

    @property
    def finished(self) -> bool:
        return self.status in GameStatus.FINISHED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "gameNumber": self.game_number,
            "startTime": self.start_time,
            "status": self.status,
            "boardSize": self.board_size,
        }
        if self.end_time is not None:
            data["endTime"] = self.end_time
        if self.duration is not None:
            data["duration"] = self.duration
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameSession":
        duration = data.get("duration")
        return cls(
            game_number=int(data["gameNumber"]),
            start_time=str(data.get("startTime", "")),
            status=data.get("status", GameStatus.IN_PROGRESS),
            board_size=int(data.get("boardSize", 0)),
            end_time=data.get("endTime"),
            duration=int(duration) if duration is not None else None,
        )


@dataclass
class UserData:
    name: str
    email: str
    sessions: List[GameSession] = field(default_factory=list)

    @property
    def games_played(self) -> int:
        return len(self.sessions)

    @property
    def games_completed(self) -> int:
        return sum(1 for s in self.sessions if s.status == GameStatus.COMPLETED)

    @property
    def games_lost(self) -> int:
        return sum(1 for s in self.sessions if s.status == GameStatus.LOST)

    def recent_sessions(self) -> List[GameSession]:
        """Sessions newest first (reverse of creation order)."""
        return list(reversed(self.sessions))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserData":
        return cls(
            name=str(data["name"]),
            email=str(data["email"]),
            sessions=[GameSession.from_dict(s) for s in data.get("sessions", [])],
        )


# ----- time helpers -----

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    text = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_iso(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start_iso: str, end_iso: str) -> int:
    delta = parse_iso(end_iso) - parse_iso(start_iso)
    return math.floor(delta.total_seconds())


# ----- display helpers -----

def format_duration(seconds: int) -> str:
    """Dashboard style, e.g. 75 -> '1:15'."""
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}:{rest:02d}"


def format_clock(seconds: int) -> str:
    """Running timer style, e.g. 75 -> '01:15'."""
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes:02d}:{rest:02d}"
