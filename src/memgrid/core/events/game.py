from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal

from memgrid.core.events.base import Event

HighlightSource = Literal["playback", "tap", "flash"]


@dataclass(frozen=True, slots=True)
class GameStarted(Event):
    """
    A new session began; sequence, input and score are reset.
    """
    event_type: ClassVar[str] = "game.started"

    session_id: int


@dataclass(frozen=True, slots=True)
class TileAppended(Event):
    """
    One random tile was appended to the sequence.
    """
    event_type: ClassVar[str] = "game.tile_appended"

    session_id: int
    tile: int
    level: int
    tiles: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class PlaybackStarted(Event):
    event_type: ClassVar[str] = "game.playback_started"

    session_id: int
    level: int


@dataclass(frozen=True, slots=True)
class HighlightChanged(Event):
    """
    The lit tile changed. tile=None means nothing is lit.
    """
    event_type: ClassVar[str] = "game.highlight_changed"

    session_id: int
    tile: int | None
    source: HighlightSource


@dataclass(frozen=True, slots=True)
class PlaybackFinished(Event):
    """
    Playback done; the player may now tap.
    """
    event_type: ClassVar[str] = "game.playback_finished"

    session_id: int
    level: int


@dataclass(frozen=True, slots=True)
class TapAccepted(Event):
    """
    A tap matched the sequence at `position`.
    """
    event_type: ClassVar[str] = "game.tap_accepted"

    session_id: int
    tile: int
    position: int


@dataclass(frozen=True, slots=True)
class RoundCompleted(Event):
    event_type: ClassVar[str] = "game.round_completed"

    session_id: int
    level: int          # level AFTER the increment
    points: int         # 10 x sequence length
    score: int


@dataclass(frozen=True, slots=True)
class GameOver(Event):
    """
    Read-only game-over notification.

    wrong_index is the position of the first wrong tap; expected_tile is
    the tile the player should have tapped there.
    """
    event_type: ClassVar[str] = "game.over"

    session_id: int
    final_score: int
    high_score: int
    wrong_index: int
    expected_tile: int
    tapped_tile: int


@dataclass(frozen=True, slots=True)
class GameOverFlashFinished(Event):
    event_type: ClassVar[str] = "game.over_flash_finished"

    session_id: int
    final_score: int


@dataclass(frozen=True, slots=True)
class GameStopped(Event):
    """
    Session stopped from outside (screen closed, user navigated away).
    """
    event_type: ClassVar[str] = "game.stopped"

    session_id: int
