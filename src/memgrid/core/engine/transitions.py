"""Pure state transitions for the sequence game.

Every function takes the current GameState plus the input of one event and
returns the next GameState. Nothing here schedules, logs or publishes; the
engine does that around these calls.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from memgrid.core.engine.state import GameState

POINTS_PER_TILE = 10

TapOutcome = Literal["ignored", "accepted", "round_complete", "mismatch"]


@dataclass(frozen=True, slots=True)
class TapResult:
    state: GameState
    outcome: TapOutcome
    points: int = 0


def round_points(sequence_length: int) -> int:
    return POINTS_PER_TILE * sequence_length


def start_game(state: GameState, *, session_id: int) -> GameState:
    # high_score is the only field carried over
    return GameState(
        round_state="displaying",
        high_score=state.high_score,
        session_id=session_id,
    )


def append_tile(state: GameState, tile: int, *, tiles: int = 9) -> GameState:
    if not 0 <= tile < tiles:
        raise ValueError(f"tile out of range: {tile}")
    return replace(
        state,
        sequence=state.sequence + (tile,),
        player_input=(),
        round_state="displaying",
        highlighted_tile=None,
    )


def highlight(state: GameState, tile: int | None) -> GameState:
    return replace(state, highlighted_tile=tile)


def finish_playback(state: GameState) -> GameState:
    if state.round_state != "displaying":
        return state
    return replace(state, round_state="awaiting_input", highlighted_tile=None)


def apply_tap(state: GameState, index: int, *, tiles: int = 9) -> TapResult:
    """
    Compare one tap against the same position of the sequence.

    Out-of-range indices and taps outside awaiting_input are ignored and the
    state is returned unchanged.
    """
    if state.round_state != "awaiting_input":
        return TapResult(state=state, outcome="ignored")
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < tiles:
        return TapResult(state=state, outcome="ignored")

    player_input = state.player_input + (index,)
    position = len(player_input) - 1

    if state.sequence[position] != index:
        return TapResult(state=_game_over(state, player_input, tapped=index), outcome="mismatch")

    if len(player_input) < len(state.sequence):
        return TapResult(
            state=replace(state, player_input=player_input, highlighted_tile=index),
            outcome="accepted",
        )

    points = round_points(len(state.sequence))
    return TapResult(
        state=replace(
            state,
            player_input=player_input,
            score=state.score + points,
            level=state.level + 1,
            round_state="round_complete",
            highlighted_tile=index,
        ),
        outcome="round_complete",
        points=points,
    )


def _game_over(state: GameState, player_input: tuple[int, ...], *, tapped: int) -> GameState:
    # clamp so a failure on the very first tap points at sequence[0]
    wrong_index = max(0, len(player_input) - 1)
    expected = state.sequence[wrong_index]
    return replace(
        state,
        player_input=player_input,
        round_state="game_over",
        high_score=max(state.high_score, state.score),
        highlighted_tile=expected,
        wrong_index=wrong_index,
        expected_tile=expected,
        tapped_tile=tapped,
    )


def stop_game(state: GameState) -> GameState:
    return replace(
        state,
        round_state="idle",
        highlighted_tile=None,
    )
