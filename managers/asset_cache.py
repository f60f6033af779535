"""TTL key/value cache used for raw image bytes and remote registrations"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

logger = logging.getLogger("MCP_Server")

BYTES_KEY_PREFIX = "bytes:"
REGISTRATION_KEY_PREFIX = "registration:"


def bytes_key(source_uri: str) -> str:
    return BYTES_KEY_PREFIX + source_uri


def registration_key(source_uri: str) -> str:
    return REGISTRATION_KEY_PREFIX + source_uri


class AssetCache(Protocol):
    """Cache backend contract. A miss is normal, never an error."""

    def get(self, key: str) -> Tuple[Any, bool]:
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class TTLCache:
    """In-memory cache with per-entry expiry.

    Expired entries are dropped lazily on read and by cleanup_expired().
    Concurrent writers to the same key simply overwrite each other.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry {key} has expired")
                return None, False
            return value, True

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            self.delete(key)
            return
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def cleanup_expired(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
