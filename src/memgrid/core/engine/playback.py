from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from memgrid.core.config.settings import AppSettings


@dataclass(frozen=True, slots=True)
class EngineTiming:
    """
    Fixed durations (milliseconds) used by the engine's delayed effects.
    """
    initial_delay_ms: int = 500
    highlight_ms: int = 600
    gap_ms: int = 200
    round_advance_ms: int = 1000
    tap_feedback_ms: int = 300
    flash_step_ms: int = 300
    flash_count: int = 2

    @classmethod
    def from_settings(cls, s: AppSettings) -> "EngineTiming":
        return cls(
            initial_delay_ms=s.initial_delay_ms,
            highlight_ms=s.highlight_ms,
            gap_ms=s.gap_ms,
            round_advance_ms=s.round_advance_ms,
            tap_feedback_ms=s.tap_feedback_ms,
            flash_step_ms=s.flash_step_ms,
            flash_count=s.flash_count,
        )


@dataclass(frozen=True, slots=True)
class TimedHighlight:
    """
    "Light tile at offset" (tile=None clears the board).
    Offsets are relative to when the schedule starts.
    """
    at_ms: int
    tile: int | None


def playback_events(tiles: Iterable[int], timing: EngineTiming) -> Iterator[TimedHighlight]:
    """
    Lazily yield the highlight/clear pairs for a sequence playback.

        delay | on tile0 (highlight) off (gap) | on tile1 ...
    """
    t = timing.initial_delay_ms
    for tile in tiles:
        yield TimedHighlight(at_ms=t, tile=tile)
        t += timing.highlight_ms
        yield TimedHighlight(at_ms=t, tile=None)
        t += timing.gap_ms


def playback_duration_ms(length: int, timing: EngineTiming) -> int:
    return timing.initial_delay_ms + length * (timing.highlight_ms + timing.gap_ms)


def flash_events(tile: int, timing: EngineTiming) -> Iterator[TimedHighlight]:
    """
    Game-over flash: on/off `flash_count` times, starting immediately.
    """
    step = timing.flash_step_ms
    for i in range(timing.flash_count):
        yield TimedHighlight(at_ms=2 * i * step, tile=tile)
        yield TimedHighlight(at_ms=(2 * i + 1) * step, tile=None)


def flash_duration_ms(timing: EngineTiming) -> int:
    return (2 * timing.flash_count - 1) * timing.flash_step_ms
