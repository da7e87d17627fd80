from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar
from uuid import UUID, uuid4

E = TypeVar("E", bound="Event")


@dataclass(frozen=True, slots=True, kw_only=True)
class Event:
    """
    Base class for every event published on the bus.

    - event_type: stable routing key (ClassVar, set by subclasses)
    - sequence: monotonic ordering number allocated by the publisher
    - event_id / timestamp_utc: identity + wall clock, for logs only
    """

    event_type: ClassVar[str] = "event"

    sequence: int
    event_id: UUID = field(default_factory=uuid4)
    timestamp_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls: type[E], *, sequence: int, **fields: Any) -> E:
        if sequence <= 0:
            raise ValueError("sequence must be > 0")
        return cls(sequence=sequence, **fields)
