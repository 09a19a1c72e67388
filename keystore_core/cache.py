"""
keystore_core.cache
-------------------
Process-local, time-expiring cache of encrypted data keys.

Thin wrapper over :class:`cachetools.TTLCache` adding:
- a lock, so one instance can be shared by concurrent request handlers
- an optional background sweeper (``cleanup_interval``) that drops expired
  entries; lookups never return an expired entry regardless
- a disabled mode (``ttl <= 0``) where nothing is ever stored

Expiry counts from insertion only. A hit does not extend an entry's life.
"""

from __future__ import annotations
import math
import threading
import time
from typing import Callable, Mapping, Optional

from cachetools import TTLCache

from keystore_core.logger import get_logger

log = get_logger("keystore.cache")


class KeyCache:
    def __init__(
        self,
        ttl: float,
        cleanup_interval: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
        maxsize: float = math.inf,
    ):
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self._lock = threading.Lock()
        self._cache: Optional[TTLCache] = None
        if ttl > 0:
            self._cache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        if self._cache is not None and cleanup_interval and cleanup_interval > 0:
            self._sweeper = threading.Thread(target=self._sweep, name="keycache-sweeper", daemon=True)
            self._sweeper.start()

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, id: str) -> Optional[Mapping[str, bytes]]:
        if self._cache is None:
            return None
        with self._lock:
            return self._cache.get(id)

    def set(self, id: str, keys: Mapping[str, bytes]) -> None:
        """Insert ``id`` with a fresh default TTL."""
        if self._cache is None:
            return
        with self._lock:
            self._cache[id] = keys

    def expire(self) -> None:
        if self._cache is None:
            return
        with self._lock:
            self._cache.expire()

    def clear(self) -> None:
        if self._cache is None:
            return
        with self._lock:
            self._cache.clear()

    def __contains__(self, id: str) -> bool:
        if self._cache is None:
            return False
        with self._lock:
            return id in self._cache

    def __len__(self) -> int:
        if self._cache is None:
            return 0
        with self._lock:
            # expire first so len() counts live entries only
            self._cache.expire()
            return len(self._cache)

    # ------------------------------------------------------------------
    # Background sweeper
    # ------------------------------------------------------------------
    def _sweep(self):
        log.debug(f"[CACHE] sweeper started interval={self.cleanup_interval}s")
        while not self._stop.wait(self.cleanup_interval):
            self.expire()
        log.debug("[CACHE] sweeper stopped")

    def close(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None

    def __enter__(self) -> "KeyCache":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
