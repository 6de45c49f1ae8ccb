# memory_game/controller.py
"""
Game Controller: one player's login, games and session bookkeeping.

Every intent is a short synchronous step. Intents that arrive in the wrong
state (clicking while two tiles are being checked, starting a game with no
user, ...) are ignored rather than reported. The reveal/flip-back pauses and
the win screen dwell are scheduled callbacks. Each carries the token of the
game that scheduled it and does nothing once that game is over.
"""
from __future__ import annotations
import logging
import random
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Sequence

from .board import ICONS, Board, board_size, check_match, create_board
from .models import (
    GameSession,
    GameStatus,
    UserData,
    elapsed_seconds,
    format_clock,
    format_duration,
    to_iso,
)
from .scheduling import GameTimer, ThreadingScheduler
from .storage import SessionStore

logger = logging.getLogger(__name__)


class View:
    LOGIN = "login"
    DASHBOARD = "dashboard"
    GAME = "game"


class Phase:
    IDLE = "idle"
    PLAYING = "playing"
    WON = "won"
    STOPPED = "stopped"


def validate_login(name: str, email: str) -> tuple:
    """Trim and check login fields; raises ValueError when one is blank."""
    name = "" if name is None else str(name).strip()
    email = "" if email is None else str(email).strip()
    if not name or not email:
        raise ValueError("Please fill in all fields")
    return name, email


def _session_row(session: GameSession) -> Dict[str, Any]:
    row = session.to_dict()
    if session.duration is not None:
        row["durationText"] = format_duration(session.duration)
    return row


class GameController:
    def __init__(
        self,
        store: SessionStore,
        icons: Sequence[str] = ICONS,
        scheduler=None,
        rng: Optional[random.Random] = None,
        shuffler: Optional[Callable[[List[str]], List[str]]] = None,
        match_delay: float = 0.5,
        mismatch_delay: float = 1.0,
        win_delay: float = 2.0,
    ):
        self.store = store
        self.icons = list(icons)
        self.scheduler = scheduler or ThreadingScheduler()
        self.rng = rng
        self.shuffler = shuffler
        self.match_delay = match_delay
        self.mismatch_delay = mismatch_delay
        self.win_delay = win_delay

        self.grid = board_size(len(self.icons))
        self.timer = GameTimer(self.scheduler)

        self.user: Optional[UserData] = None
        self.view = View.LOGIN
        self.phase = Phase.IDLE
        self.board = Board([], rows=self.grid.rows, cols=self.grid.cols)
        self.selected: List[int] = []
        self.checking = False
        self.stop_pending = False
        self.current_session: Optional[GameSession] = None

        self._token = 0
        self._deferred: list = []
        self._lock = RLock()

    # ----- intents -----

    def login(self, name: str, email: str) -> Optional[UserData]:
        with self._lock:
            if self.user is not None:
                logger.debug("login ignored: %s is already logged in", self.user.email)
                return None
            if not name or not email:
                return None

            user = self.store.get_profile_by_email(email)
            if user is not None:
                logger.info("returning player %s (%d sessions)", email, user.games_played)
            else:
                user = UserData(name=name, email=email, sessions=[])
                self.store.save_profile(user)
                logger.info("created profile for %s", email)

            self.user = user
            self.view = View.DASHBOARD
            return user

    def start_game(self) -> Optional[GameSession]:
        with self._lock:
            if self.user is None:
                logger.debug("start_game ignored: nobody logged in")
                return None

            self._cancel_deferred()
            self._token += 1

            session = GameSession(
                game_number=self.store.next_game_number(self.user.email),
                start_time=to_iso(self.scheduler.now()),
                status=GameStatus.IN_PROGRESS,
                board_size=len(self.icons),
            )
            self.store.set_current_session(session)
            self.current_session = session

            tiles = create_board(self.icons, rng=self.rng, shuffler=self.shuffler)
            self.board = Board(tiles, rows=self.grid.rows, cols=self.grid.cols)
            self.selected = []
            self.checking = False
            self.stop_pending = False
            self.timer.start()

            self.phase = Phase.PLAYING
            self.view = View.GAME
            logger.info("game #%d started for %s", session.game_number, self.user.email)
            return session

    def click_tile(self, index: int) -> bool:
        """Flip one tile. Returns False when the click was ignored."""
        with self._lock:
            if self.phase != Phase.PLAYING or self.checking:
                return False
            if not (0 <= index < len(self.board)):
                return False
            tile = self.board.peek(index)
            if tile.is_flipped or tile.is_matched:
                return False

            self.board.flip_up(index)
            self.selected.append(index)

            if len(self.selected) == 2:
                self.checking = True
                first, second = self.selected
                if check_match(self.board.peek(first), self.board.peek(second)):
                    self._defer(self.match_delay, lambda: self._resolve_match(first, second))
                else:
                    self._defer(self.mismatch_delay, lambda: self._resolve_mismatch(first, second))
            return True

    @property
    def pending_deferrals(self) -> int:
        return len(self._deferred)

    def check_win(self) -> bool:
        with self._lock:
            return self._check_win()

    def request_stop(self) -> bool:
        with self._lock:
            if self.phase != Phase.PLAYING:
                return False
            self.stop_pending = True
            return True

    def cancel_stop(self) -> None:
        with self._lock:
            self.stop_pending = False

    def confirm_stop(self) -> Optional[GameSession]:
        with self._lock:
            if not self.stop_pending or self.phase != Phase.PLAYING:
                return None

            self.timer.stop()
            self._cancel_deferred()
            self._token += 1
            recorded = self._finish_session(GameStatus.LOST)

            self._clear_board()
            self.stop_pending = False
            self.phase = Phase.STOPPED
            self.view = View.DASHBOARD
            self._reload_profile()
            logger.info("game stopped by %s", self.user.email if self.user else "?")
            return recorded

    def logout(self) -> None:
        with self._lock:
            self.timer.stop()
            self._cancel_deferred()
            self._token += 1
            # an unfinished game is dropped, not recorded as lost
            self.store.clear_current_session()
            if self.user is not None:
                logger.info("%s logged out", self.user.email)

            self.user = None
            self.current_session = None
            self._clear_board()
            self.stop_pending = False
            self.phase = Phase.IDLE
            self.view = View.LOGIN

    # ----- deferred transitions -----

    def _resolve_match(self, first: int, second: int) -> None:
        self.board.mark_matched(first, second)
        self.selected = []
        self.checking = False
        logger.debug("matched tiles %d and %d", first, second)
        self._check_win()

    def _resolve_mismatch(self, first: int, second: int) -> None:
        self.board.flip_down(first)
        self.board.flip_down(second)
        self.selected = []
        self.checking = False
        logger.debug("tiles %d and %d did not match", first, second)

    def _check_win(self) -> bool:
        if self.phase != Phase.PLAYING or not self.board.all_matched():
            return False

        self.timer.stop()
        recorded = self._finish_session(GameStatus.COMPLETED)
        self._reload_profile()
        self.phase = Phase.WON
        self.stop_pending = False
        logger.info("game #%s won in %ss",
                    recorded.game_number if recorded else "?",
                    recorded.duration if recorded else "?")
        self._defer(self.win_delay, self._return_to_dashboard)
        return True

    def _return_to_dashboard(self) -> None:
        self._clear_board()
        self.view = View.DASHBOARD

    # ----- helpers -----

    def _defer(self, delay: float, action: Callable[[], None]) -> None:
        token = self._token
        handle = None

        def run() -> None:
            with self._lock:
                if handle in self._deferred:
                    self._deferred.remove(handle)
                if token != self._token:
                    logger.debug("discarding deferred step from an earlier game")
                    return
                action()

        handle = self.scheduler.call_later(delay, run)
        self._deferred.append(handle)

    def _cancel_deferred(self) -> None:
        for handle in self._deferred:
            handle.cancel()
        self._deferred = []

    def _finish_session(self, status: str) -> Optional[GameSession]:
        session = self.current_session
        self.current_session = None
        if session is None or not session.start_time:
            return None
        end_time = to_iso(self.scheduler.now())
        duration = elapsed_seconds(session.start_time, end_time)
        return self.store.complete_session(end_time, duration, status)

    def _clear_board(self) -> None:
        self.board = Board([], rows=self.grid.rows, cols=self.grid.cols)
        self.selected = []
        self.checking = False

    def _reload_profile(self) -> None:
        if self.user is None:
            return
        updated = self.store.get_profile_by_email(self.user.email)
        if updated is not None:
            self.user = updated

    # ----- presentation output -----

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            user = None
            if self.user is not None:
                user = {
                    "name": self.user.name,
                    "email": self.user.email,
                    "stats": {
                        "played": self.user.games_played,
                        "completed": self.user.games_completed,
                        "lost": self.user.games_lost,
                    },
                    "sessions": [_session_row(s) for s in self.user.recent_sessions()],
                }
            rows, cols = self.board.size()
            return {
                "view": self.view,
                "phase": self.phase,
                "won": self.phase == Phase.WON,
                "board": self.board.to_list(reveal=False),
                "grid": {"rows": rows, "cols": cols},
                "selected": list(self.selected),
                "checking": self.checking,
                "stop_pending": self.stop_pending,
                "timer": {
                    "elapsed": self.timer.elapsed,
                    "active": self.timer.active,
                    "display": format_clock(self.timer.elapsed),
                },
                "session": self.current_session.to_dict() if self.current_session else None,
                "user": user,
            }
