from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol
from uuid import uuid4

import structlog

from memgrid.leaderboard.auth import AnonymousAuth
from memgrid.leaderboard.models import DEFAULT_PLAYER_NAME, LeaderboardEntry, PersonalBest
from memgrid.leaderboard.store import LeaderboardStore

log = structlog.get_logger()

DEFAULT_TOP_LIMIT = 10


class LeaderboardGateway(Protocol):
    """
    Remote leaderboard as seen by the game host.

    Implementations never raise: failures come back as False / [].
    """

    async def submit_score(self, score: int, name: str) -> bool:
        ...

    async def fetch_top_scores(self, limit: int = DEFAULT_TOP_LIMIT) -> list[LeaderboardEntry]:
        ...

    async def personal_best(self) -> PersonalBest | None:
        ...


class StoreLeaderboardGateway:
    """
    Leaderboard gateway over a LeaderboardStore + anonymous identity.

    - submit_score() adds a leaderboard row and raises the caller's personal
      best only when the new score is strictly greater (or none exists)
    - the save threshold is NOT checked here; that is host policy
    - store calls run in a worker thread so the event loop never blocks
    """

    def __init__(self, *, store: LeaderboardStore, auth: AnonymousAuth | None = None) -> None:
        self._store = store
        self._auth = auth or AnonymousAuth()

    @property
    def auth(self) -> AnonymousAuth:
        return self._auth

    async def submit_score(self, score: int, name: str) -> bool:
        try:
            user = self._auth.current_user() or await self._auth.sign_in_anonymously()
            player_name = (name or "").strip() or DEFAULT_PLAYER_NAME
            now = datetime.now(timezone.utc)

            entry = LeaderboardEntry(
                entry_id=uuid4().hex,
                user_id=user.uid,
                player_name=player_name,
                score=score,
                timestamp=now,
            )
            await asyncio.to_thread(self._store.add_entry, entry)

            # one store call: concurrent submits for the same user can't regress the best
            raised = await asyncio.to_thread(
                self._store.raise_personal_best,
                PersonalBest(user_id=user.uid, player_name=player_name, score=score, timestamp=now),
            )

            log.info(
                "leaderboard.score_submitted",
                user_id=user.uid,
                score=score,
                player_name=player_name,
                personal_best=raised,
            )
            return True

        except Exception:
            log.exception("leaderboard.submit_failed", score=score)
            return False

    async def fetch_top_scores(self, limit: int = DEFAULT_TOP_LIMIT) -> list[LeaderboardEntry]:
        try:
            return await asyncio.to_thread(self._store.top_entries, limit)
        except Exception:
            log.exception("leaderboard.fetch_failed", limit=limit)
            return []

    async def personal_best(self) -> PersonalBest | None:
        user = self._auth.current_user()
        if user is None:
            return None
        try:
            return await asyncio.to_thread(self._store.get_personal_best, user.uid)
        except Exception:
            log.exception("leaderboard.personal_best_failed", user_id=user.uid)
            return None
