from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from memgrid.core.engine.engine import SequenceEngine
from memgrid.core.engine.router import EventHandler
from memgrid.core.engine.state import GameState, RoundState
from memgrid.core.events.base import Event
from memgrid.core.events.game import GameOverFlashFinished, GameStarted, GameStopped
from memgrid.leaderboard.client import LeaderboardClient
from memgrid.leaderboard.gateway import DEFAULT_TOP_LIMIT
from memgrid.leaderboard.models import LeaderboardEntry, PersonalBest

log = structlog.get_logger()


class SaveNotOffered(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class GameView:
    """
    Everything the board screen renders, as one snapshot.
    """
    session_id: int
    round_state: RoundState
    level: int
    score: int
    high_score: int
    highlighted_tile: int | None
    message: str
    start_label: str
    can_start: bool
    offer_save: bool
    score_saved: bool


def _message(s: GameState) -> str:
    if s.round_state == "game_over":
        return f"Game Over! Your score: {s.score}"
    if s.round_state == "displaying":
        return "Watch carefully!"
    if s.round_state in ("awaiting_input", "round_complete"):
        return "Your turn! Repeat the sequence"
    return ""


def _start_label(s: GameState) -> str:
    if s.is_game_over:
        return "Play Again"
    if s.is_playing:
        return "Playing..."
    return "Start Game"


class GameHost:
    """
    Presentation-side host for one board.

    Subscribes to engine events, forwards user actions, and owns the
    "save score" flow: the offer appears once the game-over flash has
    finished and only for scores above the save threshold.
    """

    def __init__(self, *, engine: SequenceEngine, leaderboard: LeaderboardClient) -> None:
        self._engine = engine
        self._leaderboard = leaderboard
        self._offer_save = False
        self._score_saved = False

    @property
    def engine(self) -> SequenceEngine:
        return self._engine

    @property
    def leaderboard(self) -> LeaderboardClient:
        return self._leaderboard

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        return (
            (GameStarted.event_type, self._on_started),
            (GameStopped.event_type, self._on_stopped),
            (GameOverFlashFinished.event_type, self._on_flash_finished),
        )

    # ---------------- User actions ----------------

    def start(self) -> bool:
        if self._engine.state.is_playing:
            return False
        self._engine.start_game()
        return True

    def tap(self, index: int) -> None:
        self._engine.submit_tap(index)

    def close(self) -> None:
        """
        Screen went away: stop the session and drop in-flight responses.
        """
        self._engine.stop()
        self._leaderboard.invalidate()

    def skip_save(self) -> None:
        self._offer_save = False

    async def save_score(self, name: str) -> bool | None:
        if not self._offer_save:
            raise SaveNotOffered("no score is waiting to be saved")

        score = self._engine.state.score
        # the offer is consumed even if the response turns out stale
        self._offer_save = False
        result = await self._leaderboard.save_score(score, name)
        if result is None:
            return None

        self._score_saved = result
        log.info("host.score_saved" if result else "host.score_not_saved", score=score)
        return result

    async def load_leaderboard(self, limit: int = DEFAULT_TOP_LIMIT) -> list[LeaderboardEntry] | None:
        # None -> superseded by a newer load or a new game
        return await self._leaderboard.load_top_scores(limit)

    async def personal_best(self) -> PersonalBest | None:
        return await self._leaderboard.load_personal_best()

    # ---------------- Rendering ----------------

    def view(self) -> GameView:
        s = self._engine.state
        return GameView(
            session_id=s.session_id,
            round_state=s.round_state,
            level=s.level,
            score=s.score,
            high_score=s.high_score,
            highlighted_tile=s.highlighted_tile,
            message=_message(s),
            start_label=_start_label(s),
            can_start=not s.is_playing,
            offer_save=self._offer_save,
            score_saved=self._score_saved,
        )

    # ---------------- Event handlers ----------------

    def _on_started(self, e: Event) -> None:
        self._offer_save = False
        self._score_saved = False
        self._leaderboard.invalidate()

    def _on_stopped(self, e: Event) -> None:
        self._offer_save = False

    def _on_flash_finished(self, e: Event) -> None:
        if not isinstance(e, GameOverFlashFinished):
            return
        if self._score_saved:
            return
        self._offer_save = self._leaderboard.should_offer_save(e.final_score)
