"""In-memory, time-boxed cache for the most recent post listing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from app.schemas import Post


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A full listing together with the moment it was fetched."""

    payload: List[Post]
    fetched_at: datetime


class PostCache:
    """Hold a single listing and answer whether it is still fresh."""

    TTL = timedelta(minutes=10)

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    def is_fresh(self) -> bool:
        if self._entry is None:
            return False
        return self._clock() - self._entry.fetched_at < self.TTL

    def get(self) -> Optional[CacheEntry]:
        return self._entry

    def put(self, payload: List[Post]) -> CacheEntry:
        """Replace the cached listing wholesale."""
        entry = CacheEntry(payload=list(payload), fetched_at=self._clock())
        self._entry = entry
        return entry

    def clear(self) -> None:
        self._entry = None


__all__ = ["CacheEntry", "PostCache"]
