from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Protocol

import structlog

from memgrid.leaderboard.models import LeaderboardEntry, PersonalBest
from memgrid.storage.jsonl import JsonlFile

log = structlog.get_logger()


class LeaderboardStore(Protocol):
    """
    Document store behind the leaderboard gateway.

    top_entries() must order by score descending; ties keep insertion order.
    """

    def add_entry(self, entry: LeaderboardEntry) -> None:
        ...

    def top_entries(self, limit: int) -> list[LeaderboardEntry]:
        ...

    def get_personal_best(self, user_id: str) -> PersonalBest | None:
        ...

    def raise_personal_best(self, record: PersonalBest) -> bool:
        """
        Store `record` if it beats the current best (or none exists).

        Compare and write happen atomically; returns True when written.
        """
        ...


def _top(entries: list[LeaderboardEntry], limit: int) -> list[LeaderboardEntry]:
    if limit <= 0:
        return []
    # sorted() is stable -> ties stay in insertion order
    return sorted(entries, key=lambda e: e.score, reverse=True)[:limit]


class InMemoryLeaderboardStore:
    """
    Thread-safe in-memory store for tests and local dev.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: list[LeaderboardEntry] = []
        self._bests: dict[str, PersonalBest] = {}

    def add_entry(self, entry: LeaderboardEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def top_entries(self, limit: int) -> list[LeaderboardEntry]:
        with self._lock:
            items = list(self._entries)
        return _top(items, limit)

    def get_personal_best(self, user_id: str) -> PersonalBest | None:
        with self._lock:
            return self._bests.get(user_id)

    def raise_personal_best(self, record: PersonalBest) -> bool:
        with self._lock:
            current = self._bests.get(record.user_id)
            if current is not None and current.score >= record.score:
                return False
            self._bests[record.user_id] = record
            return True


class JsonlLeaderboardStore:
    """
    Durable store on two append-only JSONL files:

      <root>/leaderboard.jsonl       one line per submitted score
      <root>/personal_bests.jsonl    one line per personal-best write;
                                     the last line for a user wins
    """

    def __init__(self, *, root: Path, fsync: bool = True) -> None:
        self._lock = Lock()
        self._entries = JsonlFile(path=root / "leaderboard.jsonl", fsync=fsync)
        self._bests = JsonlFile(path=root / "personal_bests.jsonl", fsync=fsync)

    @property
    def entries_path(self) -> Path:
        return self._entries.path

    def add_entry(self, entry: LeaderboardEntry) -> None:
        with self._lock:
            self._entries.append(entry.to_record())

    def top_entries(self, limit: int) -> list[LeaderboardEntry]:
        with self._lock:
            items = [LeaderboardEntry.from_record(r) for r in self._entries.iter_records()]
        return _top(items, limit)

    def get_personal_best(self, user_id: str) -> PersonalBest | None:
        with self._lock:
            return self._read_best(user_id)

    def raise_personal_best(self, record: PersonalBest) -> bool:
        with self._lock:
            current = self._read_best(record.user_id)
            if current is not None and current.score >= record.score:
                return False
            self._bests.append(record.to_record())
        log.debug("leaderboard.personal_best_written", user_id=record.user_id, score=record.score)
        return True

    def _read_best(self, user_id: str) -> PersonalBest | None:
        # caller holds the lock
        found: PersonalBest | None = None
        for r in self._bests.iter_records():
            if r.get("user_id") == user_id:
                found = PersonalBest.from_record(r)
        return found
