from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from memgrid.app.assembly import GameHandle, build_game, build_leaderboard_store
from memgrid.app.registry import GameRecord, GameRegistry
from memgrid.core.config.settings import AppSettings
from memgrid.core.engine.engine import TileSource
from memgrid.core.engine.scheduler import AsyncioScheduler, Scheduler
from memgrid.leaderboard.auth import AnonymousAuth
from memgrid.leaderboard.gateway import StoreLeaderboardGateway
from memgrid.leaderboard.store import LeaderboardStore


@dataclass(slots=True)
class AppRuntime:
    """
    Process-wide objects shared by the API routes.
    """
    settings: AppSettings
    scheduler: Scheduler
    store: LeaderboardStore
    registry: GameRegistry = field(default_factory=GameRegistry)
    rng_factory: Callable[[], TileSource] | None = None

    def new_game(self) -> GameRecord:
        def _build(game_id: str) -> GameHandle:
            return build_game(
                game_id=game_id,
                settings=self.settings,
                scheduler=self.scheduler,
                store=self.store,
                rng=self.rng_factory() if self.rng_factory is not None else None,
            )

        return self.registry.create(_build)

    def gateway_for(self, client_id: str | None = None) -> StoreLeaderboardGateway:
        return StoreLeaderboardGateway(store=self.store, auth=AnonymousAuth(uid=client_id))


def build_runtime(
    s: AppSettings,
    *,
    scheduler: Scheduler | None = None,
    store: LeaderboardStore | None = None,
    rng_factory: Callable[[], TileSource] | None = None,
) -> AppRuntime:
    return AppRuntime(
        settings=s,
        scheduler=scheduler or AsyncioScheduler(),
        store=store or build_leaderboard_store(s),
        rng_factory=rng_factory,
    )
