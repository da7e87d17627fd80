from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

RoundState = Literal["idle", "displaying", "awaiting_input", "round_complete", "game_over"]

PLAYING_STATES: frozenset[str] = frozenset({"displaying", "awaiting_input", "round_complete"})


@dataclass(frozen=True, slots=True)
class GameState:
    """
    Single immutable record of everything the board shows.

    Replaced wholesale by the transition functions, never mutated.

    Invariants (while a round is live):
      - player_input is a prefix of sequence
      - len(sequence) == level at the start of every displaying phase
      - score only grows within a session
    """

    sequence: tuple[int, ...] = ()
    player_input: tuple[int, ...] = ()
    level: int = 1
    score: int = 0
    round_state: RoundState = "idle"

    # survives across sessions of the same engine
    high_score: int = 0

    highlighted_tile: int | None = None
    session_id: int = 0

    # set on game over only
    wrong_index: int | None = None
    expected_tile: int | None = None
    tapped_tile: int | None = None

    @property
    def is_playing(self) -> bool:
        return self.round_state in PLAYING_STATES

    @property
    def is_game_over(self) -> bool:
        return self.round_state == "game_over"
