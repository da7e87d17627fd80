from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

DEFAULT_PLAYER_NAME = "Anonymous Player"


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """
    One row of the global leaderboard. Owned by the store.
    """
    entry_id: str
    user_id: str
    player_name: str
    score: int
    timestamp: datetime

    def to_record(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "user_id": self.user_id,
            "player_name": self.player_name,
            "score": self.score,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_record(cls, d: Mapping[str, Any]) -> "LeaderboardEntry":
        return cls(
            entry_id=str(d["entry_id"]),
            user_id=str(d["user_id"]),
            player_name=str(d.get("player_name") or DEFAULT_PLAYER_NAME),
            score=int(d.get("score") or 0),
            timestamp=datetime.fromisoformat(d["timestamp"]),
        )


@dataclass(frozen=True, slots=True)
class PersonalBest:
    """
    Best score per anonymous identity.
    """
    user_id: str
    player_name: str
    score: int
    timestamp: datetime

    def to_record(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "player_name": self.player_name,
            "score": self.score,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_record(cls, d: Mapping[str, Any]) -> "PersonalBest":
        return cls(
            user_id=str(d["user_id"]),
            player_name=str(d.get("player_name") or DEFAULT_PLAYER_NAME),
            score=int(d.get("score") or 0),
            timestamp=datetime.fromisoformat(d["timestamp"]),
        )
