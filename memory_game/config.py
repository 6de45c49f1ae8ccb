"""Runtime settings, read from the environment."""
from __future__ import annotations
import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Config:
    data_dir: str = ".memory_game"
    storage: str = "file"  # "file" | "memory"
    match_delay: float = 0.5
    mismatch_delay: float = 1.0
    win_delay: float = 2.0
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"


def load_config(environ=None) -> Config:
    env = os.environ if environ is None else environ
    return Config(
        data_dir=env.get("MEMORY_GAME_DATA_DIR", ".memory_game"),
        storage=env.get("MEMORY_GAME_STORAGE", "file").lower(),
        match_delay=float(env.get("MEMORY_GAME_MATCH_DELAY", "0.5")),
        mismatch_delay=float(env.get("MEMORY_GAME_MISMATCH_DELAY", "1.0")),
        win_delay=float(env.get("MEMORY_GAME_WIN_DELAY", "2.0")),
        host=env.get("MEMORY_GAME_HOST", "127.0.0.1"),
        port=int(env.get("MEMORY_GAME_PORT", "5000")),
        log_level=env.get("MEMORY_GAME_LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_config() -> Config:
    return load_config()
