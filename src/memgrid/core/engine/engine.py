from __future__ import annotations

import random
from typing import Iterable, Protocol

import structlog

from memgrid.core.engine import transitions
from memgrid.core.engine.lifecycle import SessionLifecycle
from memgrid.core.engine.playback import (
    EngineTiming,
    TimedHighlight,
    flash_duration_ms,
    flash_events,
    playback_duration_ms,
    playback_events,
)
from memgrid.core.engine.scheduler import Scheduler
from memgrid.core.engine.state import GameState
from memgrid.core.engine.transitions import TapOutcome
from memgrid.core.events.bus import EventBus
from memgrid.core.events.game import (
    GameOver,
    GameOverFlashFinished,
    GameStarted,
    GameStopped,
    HighlightChanged,
    HighlightSource,
    PlaybackFinished,
    PlaybackStarted,
    RoundCompleted,
    TapAccepted,
    TileAppended,
)

log = structlog.get_logger()


class TileSource(Protocol):
    def randrange(self, stop: int) -> int:
        ...


class SequenceEngine:
    """
    Deterministic event-driven sequence ("Simon") engine.

    State lives in one immutable GameState that is swapped by the pure
    functions in `transitions`. Delayed effects (playback, tap feedback,
    round advance, game-over flash) go through the session lifecycle so a
    stopped or superseded session can never touch the current one.

    Event flow:
      start_game -> game.started -> add_tile -> game.tile_appended
        -> game.playback_started -> game.highlight_changed* -> game.playback_finished
      submit_tap -> game.tap_accepted [-> game.round_completed -> add_tile ...]
                 -> game.over -> game.highlight_changed* -> game.over_flash_finished
    """

    def __init__(
        self,
        *,
        bus: EventBus,
        scheduler: Scheduler,
        timing: EngineTiming | None = None,
        rng: TileSource | None = None,
        tiles: int = 9,
    ) -> None:
        if tiles <= 0:
            raise ValueError("tiles must be > 0")
        self._bus = bus
        self._timing = timing or EngineTiming()
        self._rng: TileSource = rng or random.Random()
        self._tiles = tiles
        self._lifecycle = SessionLifecycle(scheduler=scheduler)
        self._state = GameState()
        self._playback_in_flight = False

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def lifecycle(self) -> SessionLifecycle:
        return self._lifecycle

    @property
    def tiles(self) -> int:
        return self._tiles

    # ---------------- Operations ----------------

    def start_game(self) -> None:
        session_id = self._lifecycle.begin()
        self._playback_in_flight = False
        self._state = transitions.start_game(self._state, session_id=session_id)

        self._bus.publish(GameStarted.create(session_id=session_id, sequence=self._seq()))
        log.info("engine.game_started", session_id=session_id, high_score=self._state.high_score)

        self.add_tile()

    def add_tile(self) -> None:
        if not self._lifecycle.is_active:
            raise RuntimeError("add_tile requires an active session")
        s = self._state
        # only a fresh game or a finished round may grow the sequence
        if not (s.round_state == "round_complete" or (s.round_state == "displaying" and not s.sequence)):
            log.debug("engine.add_tile_ignored", round_state=s.round_state, length=len(s.sequence))
            return

        # independent uniform draws, repeats allowed
        tile = self._rng.randrange(self._tiles)
        self._state = transitions.append_tile(self._state, tile, tiles=self._tiles)

        self._bus.publish(
            TileAppended.create(
                session_id=self._state.session_id,
                tile=tile,
                level=self._state.level,
                tiles=self._state.sequence,
                sequence=self._seq(),
            )
        )
        self.begin_playback()

    def begin_playback(self) -> None:
        if self._state.round_state != "displaying" or self._playback_in_flight:
            log.debug(
                "engine.playback_ignored",
                round_state=self._state.round_state,
                in_flight=self._playback_in_flight,
            )
            return

        self._playback_in_flight = True
        self._bus.publish(
            PlaybackStarted.create(
                session_id=self._state.session_id,
                level=self._state.level,
                sequence=self._seq(),
            )
        )

        self._schedule_highlights(playback_events(self._state.sequence, self._timing), source="playback")
        self._lifecycle.schedule(
            playback_duration_ms(len(self._state.sequence), self._timing),
            self._finish_playback,
        )

    def submit_tap(self, index: int) -> TapOutcome:
        result = transitions.apply_tap(self._state, index, tiles=self._tiles)
        if result.outcome == "ignored":
            log.debug("engine.tap_ignored", index=index, round_state=self._state.round_state)
            return result.outcome

        self._state = result.state

        if result.outcome == "mismatch":
            self._end_game()
            return result.outcome

        session_id = self._state.session_id
        position = len(self._state.player_input) - 1
        self._bus.publish(
            TapAccepted.create(
                session_id=session_id,
                tile=index,
                position=position,
                sequence=self._seq(),
            )
        )
        self._publish_highlight(index, "tap")
        self._lifecycle.schedule(self._timing.tap_feedback_ms, lambda: self._clear_tap_feedback(position))

        if result.outcome == "round_complete":
            self._bus.publish(
                RoundCompleted.create(
                    session_id=session_id,
                    level=self._state.level,
                    points=result.points,
                    score=self._state.score,
                    sequence=self._seq(),
                )
            )
            log.info("engine.round_completed", level=self._state.level, score=self._state.score)
            self._lifecycle.schedule(self._timing.round_advance_ms, self.add_tile)

        return result.outcome

    def stop(self) -> None:
        """
        Stop the session from outside. Pending callbacks are cancelled.
        """
        if not self._lifecycle.is_active:
            return
        self._lifecycle.stop()
        self._playback_in_flight = False
        self._state = transitions.stop_game(self._state)

        self._bus.publish(GameStopped.create(session_id=self._state.session_id, sequence=self._seq()))

    # ---------------- Internals ----------------

    def _end_game(self) -> None:
        s = self._state
        assert s.wrong_index is not None and s.expected_tile is not None and s.tapped_tile is not None

        self._bus.publish(
            GameOver.create(
                session_id=s.session_id,
                final_score=s.score,
                high_score=s.high_score,
                wrong_index=s.wrong_index,
                expected_tile=s.expected_tile,
                tapped_tile=s.tapped_tile,
                sequence=self._seq(),
            )
        )
        log.info(
            "engine.game_over",
            final_score=s.score,
            high_score=s.high_score,
            wrong_index=s.wrong_index,
            expected_tile=s.expected_tile,
            tapped_tile=s.tapped_tile,
        )

        self._schedule_highlights(flash_events(s.expected_tile, self._timing), source="flash")
        self._lifecycle.schedule(flash_duration_ms(self._timing), self._finish_flash)

    def _schedule_highlights(self, events: Iterable[TimedHighlight], *, source: HighlightSource) -> None:
        for ev in events:
            if ev.at_ms <= 0:
                self._apply_highlight(ev.tile, source)
            else:
                self._lifecycle.schedule(ev.at_ms, lambda tile=ev.tile: self._apply_highlight(tile, source))

    def _apply_highlight(self, tile: int | None, source: HighlightSource) -> None:
        if source == "playback" and self._state.round_state != "displaying":
            return
        if source == "flash" and not self._state.is_game_over:
            return
        self._publish_highlight(tile, source)

    def _publish_highlight(self, tile: int | None, source: HighlightSource) -> None:
        self._state = transitions.highlight(self._state, tile)
        self._bus.publish(
            HighlightChanged.create(
                session_id=self._state.session_id,
                tile=tile,
                source=source,
                sequence=self._seq(),
            )
        )

    def _clear_tap_feedback(self, position: int) -> None:
        if self._state.round_state not in ("awaiting_input", "round_complete"):
            return
        # a later tap owns the highlight, even when it lit the same tile
        if len(self._state.player_input) - 1 != position:
            return
        self._publish_highlight(None, "tap")

    def _finish_playback(self) -> None:
        self._playback_in_flight = False
        self._state = transitions.finish_playback(self._state)
        self._bus.publish(
            PlaybackFinished.create(
                session_id=self._state.session_id,
                level=self._state.level,
                sequence=self._seq(),
            )
        )

    def _finish_flash(self) -> None:
        self._bus.publish(
            GameOverFlashFinished.create(
                session_id=self._state.session_id,
                final_score=self._state.score,
                sequence=self._seq(),
            )
        )

    def _seq(self) -> int:
        return self._lifecycle.next_sequence()
