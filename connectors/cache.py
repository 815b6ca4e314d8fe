"""
Cache handle shared between connectors.

Connectors only hold a reference to a ``CacheStore``; the store is owned
by whoever builds the connector.  ``MemoryCache`` is the in-process
implementation used when no external store is wired in.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional, Protocol, Tuple


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryCache:
    """Thread-safe dict with per-key expiry."""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
