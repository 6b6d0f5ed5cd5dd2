"""
Persistence collaborators.

The resolver and pipeline only ever talk to these protocols; production
deployments plug in their own document store. The in-memory versions are
thread-safe and back the default factory and the tests.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

from .errors import StatsApplicationConflict
from .models import UserStats


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class QuotaStore(Protocol):
    def get(self, key: str) -> int: ...

    def increment_if_below(self, key: str, limit: int) -> Optional[int]:
        """Atomically bump the counter when it is below limit; new value, or None when full."""
        ...


class UserStatsStore(Protocol):
    def get(self, user_id: str) -> Optional[UserStats]: ...

    def save(self, stats: UserStats, expected_version: int) -> UserStats:
        """Compare-and-set on version; raises StatsApplicationConflict when stale."""
        ...


class InMemoryCacheStore:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class InMemoryQuotaStore:
    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def increment_if_below(self, key: str, limit: int) -> Optional[int]:
        with self._lock:
            current = self._counts.get(key, 0)
            if current >= limit:
                return None
            self._counts[key] = current + 1
            return current + 1

    def prune(self, prefix: str, keep: str) -> None:
        """Drop counters under prefix other than keep (old days)."""
        with self._lock:
            for k in [k for k in self._counts if k.startswith(prefix) and k != keep]:
                del self._counts[k]


class InMemoryUserStatsStore:
    def __init__(self) -> None:
        self._data: Dict[str, UserStats] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[UserStats]:
        with self._lock:
            stats = self._data.get(user_id)
            return stats.model_copy(deep=True) if stats else None

    def save(self, stats: UserStats, expected_version: int) -> UserStats:
        with self._lock:
            current = self._data.get(stats.user_id)
            actual = current.version if current else 0
            if actual != expected_version:
                raise StatsApplicationConflict(stats.user_id, expected_version, actual)
            stored = stats.model_copy(update={"version": actual + 1}, deep=True)
            self._data[stats.user_id] = stored
            return stored.model_copy(deep=True)
