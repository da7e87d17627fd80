from __future__ import annotations

import random
from dataclasses import dataclass

import structlog

from memgrid.app.session import GameHost
from memgrid.core.config.settings import AppSettings
from memgrid.core.engine.engine import SequenceEngine, TileSource
from memgrid.core.engine.playback import EngineTiming
from memgrid.core.engine.router import EngineRouter, RouterWiring
from memgrid.core.engine.scheduler import Scheduler
from memgrid.core.events.bus import EventBus
from memgrid.leaderboard.auth import AnonymousAuth
from memgrid.leaderboard.client import LeaderboardClient
from memgrid.leaderboard.gateway import StoreLeaderboardGateway
from memgrid.leaderboard.store import InMemoryLeaderboardStore, JsonlLeaderboardStore, LeaderboardStore

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class GameHandle:
    """
    Canonical handle for one wired board in this process.
    """
    game_id: str
    bus: EventBus
    engine: SequenceEngine
    host: GameHost
    wiring: RouterWiring


def build_leaderboard_store(s: AppSettings) -> LeaderboardStore:
    if s.leaderboard_backend == "memory":
        return InMemoryLeaderboardStore()
    if s.leaderboard_backend == "jsonl":
        return JsonlLeaderboardStore(root=s.leaderboard_dir)
    raise ValueError(f"unknown leaderboard_backend: {s.leaderboard_backend!r}")


def build_game(
    *,
    game_id: str,
    settings: AppSettings,
    scheduler: Scheduler,
    store: LeaderboardStore,
    rng: TileSource | None = None,
) -> GameHandle:
    """
    Wire bus -> engine -> host for a single board.

    Each board gets its own anonymous identity on the shared store.
    """
    if rng is None:
        rng = random.Random(settings.default_seed) if settings.default_seed is not None else random.Random()

    bus = EventBus()
    engine = SequenceEngine(
        bus=bus,
        scheduler=scheduler,
        timing=EngineTiming.from_settings(settings),
        rng=rng,
        tiles=settings.grid_tiles,
    )

    gateway = StoreLeaderboardGateway(store=store, auth=AnonymousAuth())
    client = LeaderboardClient(gateway=gateway, save_threshold=settings.save_threshold)
    host = GameHost(engine=engine, leaderboard=client)

    wiring = EngineRouter(bus=bus).register([host])

    log.info("game.assembled", game_id=game_id, tiles=settings.grid_tiles)

    return GameHandle(game_id=game_id, bus=bus, engine=engine, host=host, wiring=wiring)


def release_game(handle: GameHandle) -> None:
    """
    Tear a board down: stop its session and unwire the host from its bus.
    """
    handle.host.close()
    EngineRouter(bus=handle.bus).unregister(handle.wiring)
    log.info("game.released", game_id=handle.game_id)
