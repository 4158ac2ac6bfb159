"""An in-memory, expiring byte cache."""

from __future__ import annotations

import threading

from cachetools import TTLCache


class EntryNotFoundError(KeyError):
    """Raised when a key is not in the cache."""


class Memory:
    """A thread-safe key/value store whose entries expire after a life window."""

    def __init__(self, life_window: float = 300.0, max_entries: int = 1_000_000) -> None:
        self._cache: TTLCache[str, bytes] = TTLCache(maxsize=max_entries, ttl=life_window)
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._cache[key]
            except KeyError:
                raise EntryNotFoundError(key) from None

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._cache[key] = bytes(value)

    def append(self, key: str, value: bytes) -> None:
        with self._lock:
            self._cache[key] = self._cache.get(key, b"") + bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                del self._cache[key]
            except KeyError:
                raise EntryNotFoundError(key) from None

    def reset(self) -> None:
        with self._lock:
            self._cache.clear()