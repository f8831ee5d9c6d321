"""TTL caches for snapshots read from backing stores."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class Cache(Protocol):
    """Key-value cache whose entries expire."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: float) -> None:
        """Store a value that expires after ``ttl_seconds``."""

    def invalidate(self, key: str) -> None:
        """Drop one cached value."""

    def clear(self) -> None:
        """Drop every cached value."""


@dataclass(frozen=True)
class _Snapshot:
    value: object
    expires_at: float


@dataclass
class InMemoryCache(Cache):
    """Process-local TTL cache driven by a monotonic clock."""

    clock: Callable[[], float] = time.monotonic
    _snapshots: dict[str, _Snapshot] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            return None
        if self.clock() >= snapshot.expires_at:
            del self._snapshots[key]
            return None
        return snapshot.value

    def set(self, key: str, value: object, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            self._snapshots.pop(key, None)
            return
        self._snapshots[key] = _Snapshot(
            value=value, expires_at=self.clock() + ttl_seconds
        )

    def invalidate(self, key: str) -> None:
        self._snapshots.pop(key, None)

    def clear(self) -> None:
        self._snapshots.clear()
