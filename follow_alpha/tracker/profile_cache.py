"""Bounded, time-expiring cache of fetched profiles."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from follow_alpha.ingestion.models import Profile

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    profile: Profile
    fetched_at: float


class ProfileCache:
    """Profiles keyed by handle.

    Entries older than ``ttl`` seconds are misses. Capacity is enforced on
    ``put`` by evicting in insertion order (oldest first), not LRU.
    """

    def __init__(
        self,
        ttl: float = 600.0,
        capacity: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl = ttl
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: str) -> bool:
        return self.get(handle) is not None

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.fetched_at >= self.ttl

    def get(self, handle: str) -> Profile | None:
        entry = self._entries.get(handle)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[handle]
            return None
        return entry.profile

    def put(self, handle: str, profile: Profile) -> None:
        # A refresh supersedes the old entry and counts as a new insertion
        self._entries.pop(handle, None)
        self._entries[handle] = CacheEntry(profile=profile, fetched_at=self._clock())

        evicted = 0
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)
            evicted += 1
        if evicted:
            logger.info("Profile cache pruned to %d entries", self.capacity)

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        stale = [h for h, e in self._entries.items() if self._expired(e, now)]
        for handle in stale:
            del self._entries[handle]
        if stale:
            logger.info("Cleared %d expired profiles from cache", len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
