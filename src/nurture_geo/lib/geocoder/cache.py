"""In-memory TTL cache for accepted geocoding results.

Entries are keyed by normalized address and expire lazily: an entry older than
the TTL is evicted the next time it is looked up. There is no background sweep
and nothing is persisted across restarts. Not thread-safe; callers sharing a
cache across threads must add their own locking.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from nurture_geo.lib.geocoder.base import GeocodingResult

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry:
    """A cached result and the epoch time it was stored."""

    result: GeocodingResult
    cached_at: float


@dataclass
class CacheStats:
    """Cache size and the age of its oldest entry."""

    size: int
    oldest_entry_age_ms: float | None = None


class GeocodeCache:
    """Address-keyed cache with lazy expiry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def lookup(self, normalized_address: str) -> GeocodingResult | None:
        """Look up a live cached result.

        Args:
            normalized_address: Normalized address string (cache key).

        Returns:
            GeocodingResult if a live entry exists, None on miss or expiry.
        """
        entry = self._entries.get(normalized_address)
        if entry is None:
            return None
        if self._clock() - entry.cached_at > self._ttl:
            del self._entries[normalized_address]
            logger.debug("Evicted expired geocode cache entry")
            return None
        return entry.result

    def store(self, normalized_address: str, result: GeocodingResult) -> None:
        """Store a result, replacing any existing entry for the key."""
        self._entries[normalized_address] = CacheEntry(result=result, cached_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        """Return the entry count and the oldest entry's age in milliseconds."""
        if not self._entries:
            return CacheStats(size=0)
        oldest = min(entry.cached_at for entry in self._entries.values())
        return CacheStats(
            size=len(self._entries),
            oldest_entry_age_ms=(self._clock() - oldest) * 1000,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, normalized_address: object) -> bool:
        return normalized_address in self._entries
