"""TTL cache for probe results, keyed by path and invalidated when the file changes."""
import os
import time
from typing import Any, Callable, Optional


class MetadataCache:
    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.time):
        self._ttl = max(1.0, float(ttl_seconds))
        self._clock = clock
        self._store: dict[str, tuple[float, Optional[float], dict[str, Any]]] = {}

    @staticmethod
    def _mtime(path: str) -> Optional[float]:
        try:
            return os.stat(path).st_mtime
        except OSError:
            return None

    def get(self, path: str) -> dict[str, Any] | None:
        item = self._store.get(path)
        if not item:
            return None
        ts, mtime, data = item
        if (self._clock() - ts) > self._ttl or mtime != self._mtime(path):
            self._store.pop(path, None)
            return None
        return dict(data)

    def put(self, path: str, data: dict[str, Any]) -> None:
        self._store[path] = (self._clock(), self._mtime(path), dict(data or {}))

    def invalidate(self, path: str) -> None:
        self._store.pop(path, None)

    def prune_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (ts, _, _) in self._store.items() if (now - ts) > self._ttl]
        for k in expired:
            self._store.pop(k, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)
