import random
from datetime import datetime, timezone

import pytest

from memory_game.controller import GameController
from memory_game.scheduling import ManualScheduler
from memory_game.storage import MemoryBackend, SessionStore

START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def paired(pool):
    """Deterministic 'shuffle' that puts each pair side by side: A A B B ..."""
    return sorted(pool, key=pool.index)


@pytest.fixture
def scheduler():
    return ManualScheduler(start=START)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return SessionStore(MemoryBackend())


@pytest.fixture
def controller(store, scheduler):
    return GameController(store, scheduler=scheduler, shuffler=paired)


@pytest.fixture
def playing(controller):
    controller.login("Ann", "a@x.com")
    controller.start_game()
    return controller
