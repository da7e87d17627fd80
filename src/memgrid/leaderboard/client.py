from __future__ import annotations

import structlog

from memgrid.leaderboard.gateway import DEFAULT_TOP_LIMIT, LeaderboardGateway
from memgrid.leaderboard.models import LeaderboardEntry, PersonalBest

log = structlog.get_logger()


class LeaderboardClient:
    """
    Host-side wrapper around a LeaderboardGateway.

    Owns two pieces of UI policy:
      - the save threshold (scores strictly above it are offered)
      - stale-response guarding: every request takes a new token, and a
        response whose token is no longer current is dropped (None)

    invalidate() is called when a new game starts or the user leaves the
    screen, so in-flight responses from before can't land afterwards.
    """

    def __init__(self, *, gateway: LeaderboardGateway, save_threshold: int = 50) -> None:
        self._gateway = gateway
        self._save_threshold = save_threshold
        self._submit_token = 0
        self._fetch_token = 0

    @property
    def save_threshold(self) -> int:
        return self._save_threshold

    def should_offer_save(self, score: int) -> bool:
        return score > self._save_threshold

    def invalidate(self) -> None:
        self._submit_token += 1
        self._fetch_token += 1

    async def save_score(self, score: int, name: str) -> bool | None:
        self._submit_token += 1
        token = self._submit_token

        ok = await self._gateway.submit_score(score, name)

        if token != self._submit_token:
            log.info("leaderboard.stale_submit_dropped", token=token, current=self._submit_token)
            return None
        return ok

    async def load_top_scores(self, limit: int = DEFAULT_TOP_LIMIT) -> list[LeaderboardEntry] | None:
        self._fetch_token += 1
        token = self._fetch_token

        entries = await self._gateway.fetch_top_scores(limit)

        if token != self._fetch_token:
            log.info("leaderboard.stale_fetch_dropped", token=token, current=self._fetch_token)
            return None
        return entries

    async def load_personal_best(self) -> PersonalBest | None:
        return await self._gateway.personal_best()
