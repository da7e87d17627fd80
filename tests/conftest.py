from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

import pytest

from memgrid.core.engine.engine import SequenceEngine
from memgrid.core.engine.playback import EngineTiming
from memgrid.core.engine.router import EngineRouter
from memgrid.core.engine.scheduler import ManualScheduler
from memgrid.core.events.base import Event
from memgrid.core.events.bus import EventBus
from memgrid.core.events import game as game_events

GAME_EVENT_TYPES = tuple(
    cls.event_type
    for cls in (
        game_events.GameStarted,
        game_events.TileAppended,
        game_events.PlaybackStarted,
        game_events.HighlightChanged,
        game_events.PlaybackFinished,
        game_events.TapAccepted,
        game_events.RoundCompleted,
        game_events.GameOver,
        game_events.GameOverFlashFinished,
        game_events.GameStopped,
    )
)


class ScriptedTiles:
    """
    Deterministic tile source: hands out a fixed script, then repeats its last tile.
    """

    def __init__(self, tiles: Iterable[int]) -> None:
        self._tiles = list(tiles)
        self._i = 0

    def randrange(self, stop: int) -> int:
        tile = self._tiles[min(self._i, len(self._tiles) - 1)]
        self._i += 1
        return tile


@dataclass
class Recorder:
    events: list[Event] = field(default_factory=list)

    def subscriptions(self):
        return [(et, self._on_event) for et in GAME_EVENT_TYPES]

    def _on_event(self, e: Event) -> None:
        self.events.append(e)

    def of_type(self, cls: type) -> list:
        return [e for e in self.events if isinstance(e, cls)]


@dataclass
class EngineRig:
    engine: SequenceEngine
    scheduler: ManualScheduler
    recorder: Recorder
    timing: EngineTiming

    def play_sequence(self) -> None:
        """Advance the clock until the current playback has finished."""
        n = len(self.engine.state.sequence)
        self.scheduler.advance(self.timing.initial_delay_ms + n * (self.timing.highlight_ms + self.timing.gap_ms))

    def tap_all(self, tiles: Iterable[int]) -> None:
        for t in tiles:
            self.engine.submit_tap(t)


@pytest.fixture()
def make_rig() -> Callable[..., EngineRig]:
    def _make(tiles: Iterable[int] = (0,), timing: EngineTiming | None = None) -> EngineRig:
        timing = timing or EngineTiming()
        bus = EventBus()
        scheduler = ManualScheduler()
        engine = SequenceEngine(bus=bus, scheduler=scheduler, timing=timing, rng=ScriptedTiles(tiles))
        recorder = Recorder()
        EngineRouter(bus=bus).register([recorder])
        return EngineRig(engine=engine, scheduler=scheduler, recorder=recorder, timing=timing)

    return _make


@pytest.fixture()
def scripted_tiles() -> type[ScriptedTiles]:
    return ScriptedTiles
