"""
Process-local cache of recently active users.

Entries expire a fixed TTL after their last touch. Expirations sit in a
min-heap and are purged lazily on reads and writes; a touched entry leaves
its old heap node behind, which is skipped when it surfaces.
"""

import heapq
import time
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple

from quizhub.infra.config.settings import get_settings

settings = get_settings()


class ActiveUserCache:

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._heap: List[Tuple[float, str]] = []

    def _purge(self) -> None:
        now = self._clock()
        while self._heap and self._heap[0][0] <= now:
            expires_at, user_id = heapq.heappop(self._heap)
            entry = self._entries.get(user_id)
            # Stale node: the entry was touched again after this expiry was queued
            if entry is not None and entry[0] == expires_at:
                del self._entries[user_id]

    def touch(self, user_id: str, info: Optional[Dict[str, Any]] = None) -> None:
        self._purge()
        expires_at = self._clock() + self.ttl_seconds
        previous = self._entries.get(user_id)
        merged = dict(previous[1]) if previous else {}
        merged.update(info or {})
        self._entries[user_id] = (expires_at, merged)
        heapq.heappush(self._heap, (expires_at, user_id))

    def is_active(self, user_id: str) -> bool:
        self._purge()
        return user_id in self._entries

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        self._purge()
        entry = self._entries.get(user_id)
        return dict(entry[1]) if entry else None

    def active_ids(self) -> List[str]:
        self._purge()
        return list(self._entries)

    def __len__(self) -> int:
        self._purge()
        return len(self._entries)


@lru_cache()
def get_active_user_cache() -> ActiveUserCache:
    """Process-wide presence cache (cached)"""
    return ActiveUserCache(ttl_seconds=settings.ACTIVE_USER_TTL_MINUTES * 60)
