from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Callable

from memgrid.app.assembly import GameHandle


@dataclass(frozen=True, slots=True)
class GameRecord:
    game_id: str
    handle: GameHandle
    created_at_utc: datetime


class GameRegistry:
    """
    Thread-safe registry of live boards in this process.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._games: dict[str, GameRecord] = {}

    @staticmethod
    def new_game_id() -> str:
        created_at = datetime.now(timezone.utc)
        return f"{created_at.strftime('%Y%m%dT%H%M%SZ')}_{secrets.token_hex(4)}"

    def create(self, build: Callable[[str], GameHandle]) -> GameRecord:
        game_id = self.new_game_id()
        rec = GameRecord(game_id=game_id, handle=build(game_id), created_at_utc=datetime.now(timezone.utc))
        with self._lock:
            self._games[game_id] = rec
        return rec

    def get(self, *, game_id: str) -> GameRecord | None:
        with self._lock:
            return self._games.get(game_id)

    def remove(self, *, game_id: str) -> GameRecord | None:
        with self._lock:
            return self._games.pop(game_id, None)

    def list(self) -> list[GameRecord]:
        with self._lock:
            items = list(self._games.values())
        items.sort(key=lambda r: r.created_at_utc, reverse=True)
        return items
