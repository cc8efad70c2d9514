"""Prioritized geocoding provider chain with caching and offline fallback.

Providers are tried strictly in order, one at a time, so lower-priority
(billed) providers are only called when every earlier one fails or returns a
result below its confidence threshold. When all providers are exhausted the
deterministic generator supplies a coordinate, so ``geocode()`` always
returns a result.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from nurture_geo.core.logging import address_fingerprint
from nurture_geo.lib.geocoder.address import normalize_address
from nurture_geo.lib.geocoder.base import BaseGeocoder, GeocodingProviderError, GeocodingResult
from nurture_geo.lib.geocoder.cache import CacheStats, GeocodeCache
from nurture_geo.lib.geocoder.mock import DeterministicGeocoder

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 1.0


@dataclass(frozen=True)
class ProviderStrategy:
    """A provider and the minimum confidence its results must exceed.

    A threshold of None accepts any non-null result.
    """

    geocoder: BaseGeocoder
    confidence_threshold: float | None = None

    @property
    def name(self) -> str:
        return self.geocoder.provider_name

    def accepts(self, result: GeocodingResult | None) -> bool:
        if result is None:
            return False
        if self.confidence_threshold is None:
            return True
        return result.confidence is not None and result.confidence > self.confidence_threshold


class GeocodingProviderChain:
    """Geocode addresses through an ordered list of provider strategies."""

    def __init__(
        self,
        strategies: Sequence[ProviderStrategy],
        cache: GeocodeCache | None = None,
        fallback: DeterministicGeocoder | None = None,
    ) -> None:
        self._strategies = list(strategies)
        self._cache = cache if cache is not None else GeocodeCache()
        self._fallback = fallback if fallback is not None else DeterministicGeocoder()
        self._in_flight: dict[str, asyncio.Task[GeocodingResult]] = {}

    @property
    def strategies(self) -> list[ProviderStrategy]:
        return list(self._strategies)

    @property
    def cache(self) -> GeocodeCache:
        return self._cache

    async def geocode(self, address: str) -> GeocodingResult:
        """Geocode an address, falling back to the offline generator.

        Concurrent calls for the same normalized address share one in-flight
        lookup instead of each calling the providers.

        Args:
            address: Freeform address string.

        Returns:
            The first accepted provider result, a cached result, or a MOCK result.
        """
        key = normalize_address(address)
        if not key:
            return await self._fallback.geocode(address)

        cached = self._cache.lookup(key)
        if cached is not None:
            with logger.contextualize(lookup=address_fingerprint(key)):
                logger.debug(f"Geocode cache hit ({cached.provider})")
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._resolve(address, key))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t: self._in_flight.pop(key, None))
        return await asyncio.shield(task)

    async def batch_geocode(
        self,
        addresses: Sequence[str],
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay: float = DEFAULT_BATCH_DELAY,
    ) -> dict[str, GeocodingResult]:
        """Geocode many addresses in concurrent chunks with a pause between chunks.

        Args:
            addresses: Addresses to geocode.
            batch_size: Addresses geocoded concurrently per chunk.
            delay: Seconds to sleep between chunks.

        Returns:
            Mapping of each input address to its result.

        Raises:
            ValueError: If batch_size is less than 1.
        """
        if batch_size < 1:
            msg = f"batch_size must be at least 1, got {batch_size}"
            raise ValueError(msg)

        results: dict[str, GeocodingResult] = {}
        for i in range(0, len(addresses), batch_size):
            chunk = list(addresses[i : i + batch_size])
            chunk_results = await asyncio.gather(*(self.geocode(addr) for addr in chunk))
            results.update(zip(chunk, chunk_results, strict=True))

            if delay > 0 and i + batch_size < len(addresses):
                await asyncio.sleep(delay)

        return results

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def _resolve(self, address: str, key: str) -> GeocodingResult:
        """Walk the strategies in order; cache and return the first accepted result."""
        with logger.contextualize(lookup=address_fingerprint(key)):
            for strategy in self._strategies:
                with logger.contextualize(provider=strategy.name):
                    result = await self._attempt(strategy, address)
                if result is not None:
                    self._cache.store(key, result)
                    return result

            # Fallback results are never cached
            logger.info("All geocoding providers exhausted, using deterministic fallback")
            return await self._fallback.geocode(address)

    async def _attempt(self, strategy: ProviderStrategy, address: str) -> GeocodingResult | None:
        """Run one strategy, returning its result only if it is accepted."""
        try:
            result = await strategy.geocoder.geocode(address)
        except GeocodingProviderError as e:
            logger.warning(f"Geocoding provider {strategy.name} failed: {e.message}")
            return None
        except Exception:
            logger.exception(f"Geocoding provider {strategy.name} raised unexpectedly")
            return None

        if result is None:
            logger.debug(f"Geocoding provider {strategy.name} returned no match")
            return None

        if not strategy.accepts(result):
            logger.info(
                f"Geocoding provider {strategy.name} confidence {result.confidence} "
                f"below threshold {strategy.confidence_threshold}"
            )
            return None

        return result
