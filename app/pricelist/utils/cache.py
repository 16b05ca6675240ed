"""
In-memory TTL cache.

Holds snapshots fetched from slower collaborators (e.g. the live catalog)
behind an explicit object that callers receive by injection, so that no
pipeline code depends on module-level cache state.  Expired entries are still
returned by :meth:`TTLCache.get` and reported by :meth:`TTLCache.is_stale`, so
a caller can serve stale data while it refreshes.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from pricelist.utils.config import CACHE_TTL

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache with per-entry expiry."""

    def __init__(
        self,
        ttl: float = CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._values: dict[str, Any] = {}
        self._stored_at: dict[str, float] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value (fresh or stale), or None if absent."""
        if key not in self._values:
            return None
        logger.debug("Cache hit for %s (stale=%s)", key, self.is_stale(key))
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._stored_at[key] = self._clock()

    def is_stale(self, key: str) -> bool:
        """True when *key* is absent or older than the TTL."""
        if key not in self._stored_at:
            return True
        return (self._clock() - self._stored_at[key]) >= self.ttl

    def invalidate(self, prefix: str | None = None) -> None:
        """Clear all cached entries, or only those whose key starts with *prefix*."""
        if prefix is None:
            self._values.clear()
            self._stored_at.clear()
        else:
            keys = [k for k in self._values if k.startswith(prefix)]
            for k in keys:
                self._values.pop(k, None)
                self._stored_at.pop(k, None)
