"""Memory (pairs) game: board engine, session store and game controller."""
from .board import ICONS, Board, board_size, check_match, create_board
from .controller import GameController
from .storage import JsonFileBackend, MemoryBackend, SessionStore

__all__ = [
    "ICONS",
    "Board",
    "GameController",
    "JsonFileBackend",
    "MemoryBackend",
    "SessionStore",
    "board_size",
    "check_match",
    "create_board",
]
