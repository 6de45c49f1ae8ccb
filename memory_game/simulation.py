# memory_game/simulation.py
# Headless player: logs in to a running server and plays games over HTTP.

from __future__ import annotations

import argparse
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

State = Dict[str, Any]


@dataclass
class Stats:
    total_flips: int = 0
    matches: int = 0
    mismatches: int = 0
    waits: int = 0
    game_number: Optional[int] = None
    elapsed: int = 0


class Player:
    """
    Plays with perfect memory: every icon it has seen face up is remembered,
    and a known pair is always cleared before anything new is explored.
    """

    def __init__(
        self,
        base_url: str,
        name: str,
        email: str,
        session: Optional[requests.Session] = None,
        sleep=time.sleep,
        poll_interval: float = 0.25,
        timeout: float = 5.0,
        max_polls: int = 1000,
        rng: Optional[random.Random] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.email = email
        self.http = session or requests.Session()
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.max_polls = max_polls
        self.rng = rng
        self.known: Dict[int, str] = {}

    # ----- http -----

    def _get(self, path: str) -> State:
        r = self.http.get(f"{self.base_url}{path}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _post(self, path: str, payload: Optional[dict] = None) -> State:
        r = self.http.post(f"{self.base_url}{path}", json=payload or {}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # ----- play -----

    def state(self) -> State:
        return self._get("/state")

    def login(self) -> State:
        return self._post("/login", {"name": self.name, "email": self.email})

    def play_game(self) -> Stats:
        state = self._post("/start")
        if state.get("phase") != "playing":
            raise RuntimeError("server did not start a game (logged in?)")

        stats = Stats(game_number=(state.get("session") or {}).get("gameNumber"))
        self.known = {}
        polls = 0

        while state["phase"] == "playing":
            if state["checking"]:
                polls += 1
                if polls > self.max_polls:
                    raise RuntimeError("server never finished checking")
                stats.waits += 1
                self.sleep(self.poll_interval)
                state = self._get("/state")
                continue
            polls = 0
            state = self._turn(state, stats)

        stats.elapsed = state["timer"]["elapsed"]
        logger.info("game #%s finished: %s", stats.game_number, state["phase"])
        return stats

    def _turn(self, state: State, stats: Stats) -> State:
        self._remember(state["board"])
        hidden = [t["id"] for t in state["board"] if not t["is_flipped"] and not t["is_matched"]]

        if state["selected"]:
            first = state["selected"][0]
            second = self._partner(first, hidden)
        else:
            pair = self._known_pair(hidden)
            if pair:
                first, second = pair
                state = self._click(first, stats)
            else:
                first = self._unknown(hidden)
                state = self._click(first, stats)
                self._remember(state["board"])
                hidden.remove(first)
                second = self._partner(first, hidden)

        state = self._click(second, stats)
        self._remember(state["board"])
        if self.known.get(first) == self.known.get(second):
            stats.matches += 1
        else:
            stats.mismatches += 1
        return state

    def _click(self, index: int, stats: Stats) -> State:
        stats.total_flips += 1
        return self._post("/click", {"index": index})

    def _remember(self, board: List[dict]) -> None:
        for tile in board:
            if tile["icon"] is not None:
                self.known[tile["id"]] = tile["icon"]

    def _known_pair(self, hidden: List[int]) -> Optional[Tuple[int, int]]:
        seen: Dict[str, int] = {}
        for index in hidden:
            icon = self.known.get(index)
            if icon is None:
                continue
            if icon in seen:
                return seen[icon], index
            seen[icon] = index
        return None

    def _unknown(self, hidden: List[int]) -> int:
        """Pick a tile never seen face up; in order, or at random when given an rng."""
        unseen = [i for i in hidden if i not in self.known]
        if not unseen:
            return hidden[0]
        if self.rng is not None:
            return self.rng.choice(unseen)
        return unseen[0]

    def _partner(self, first: int, hidden: List[int]) -> int:
        icon = self.known.get(first)
        candidates = [i for i in hidden if i != first]
        for index in candidates:
            if self.known.get(index) == icon:
                return index
        return self._unknown(candidates)


def main():
    ap = argparse.ArgumentParser(description="Play memory games against a running server")
    ap.add_argument("--url", default="http://127.0.0.1:5000")
    ap.add_argument("--name", default="Robot")
    ap.add_argument("--email", default="robot@example.com")
    ap.add_argument("--games", type=int, default=1)
    ap.add_argument("--poll", type=float, default=0.25)
    ap.add_argument("--seed", type=int, help="explore unseen tiles in a seeded random order")
    a = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    rng = random.Random(a.seed) if a.seed is not None else None
    player = Player(a.url, a.name, a.email, poll_interval=a.poll, rng=rng)
    player.login()

    for _ in range(a.games):
        stats = player.play_game()
        print(f"Game #{stats.game_number}")
        print(f"  flips:      {stats.total_flips}")
        print(f"  matches:    {stats.matches}")
        print(f"  mismatches: {stats.mismatches}")
        print(f"  waits:      {stats.waits}")
        print(f"  time:       {stats.elapsed}s")

    profile = player.state()["user"] or {}
    s = profile.get("stats", {})
    print(f"\n{profile.get('name')}: played {s.get('played')}, completed {s.get('completed')}, lost {s.get('lost')}")


if __name__ == "__main__":
    main()
