"""Geocoder library: NZ address parsing and a cached, prioritized provider chain.

Public API:
    - normalize_address: Canonicalize a freeform address string
    - parse_address_components: Parse freeform string into components
    - format_address: Build a display address from components
    - AddressComponents: Parsed address component dataclass
    - validate_address_components: Validate parsed components for completeness
    - BaseGeocoder: Abstract provider interface
    - Coordinate / GeocodingResult: Result dataclasses
    - GeocodeProvider / GeocodeQuality: Provider and precision enums
    - LinzGeocoder: LINZ address search provider
    - GoogleMapsGeocoder: Google Maps provider
    - MapTilerGeocoder: MapTiler provider (also reverse geocoding and autocomplete)
    - DeterministicGeocoder: Offline fallback generator
    - GeocodeCache: In-memory TTL cache
    - GeocodingProviderChain / ProviderStrategy: Ordered fallback chain
    - get_geocoder: Provider factory/registry
    - get_configured_providers: Get providers that are enabled and configured
    - build_provider_chain: Assemble a chain from settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nurture_geo.lib.geocoder.address import (
    AddressComponents,
    format_address,
    normalize_address,
    parse_address_components,
)
from nurture_geo.lib.geocoder.base import (
    BaseGeocoder,
    Coordinate,
    GeocodeProvider,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)
from nurture_geo.lib.geocoder.cache import CacheStats, GeocodeCache
from nurture_geo.lib.geocoder.chain import GeocodingProviderChain, ProviderStrategy
from nurture_geo.lib.geocoder.google_maps import GoogleMapsGeocoder
from nurture_geo.lib.geocoder.linz import LinzGeocoder
from nurture_geo.lib.geocoder.maptiler import AutocompleteSuggestion, MapTilerGeocoder
from nurture_geo.lib.geocoder.mock import DeterministicGeocoder
from nurture_geo.lib.geocoder.verify import validate_address_components

if TYPE_CHECKING:
    from nurture_geo.core.config import Settings

# Registry of all known network providers
_PROVIDERS: dict[str, type[BaseGeocoder]] = {
    "linz": LinzGeocoder,
    "google": GoogleMapsGeocoder,
    "maptiler": MapTilerGeocoder,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered geocoder providers.

    Returns:
        Sorted list of provider name strings.
    """
    return sorted(_PROVIDERS.keys())


def get_geocoder(provider: str, **kwargs: Any) -> BaseGeocoder:
    """Get a geocoder instance by provider name.

    Args:
        provider: Provider name (e.g., "linz").
        **kwargs: Arguments forwarded to the provider constructor
            (e.g., ``api_key="..."``, ``timeout=2.0``).

    Returns:
        An instance of the requested geocoder provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown geocoder provider: {provider!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def _provider_configs(settings: Settings) -> dict[str, dict[str, Any]]:
    return {
        "linz": {
            "enabled": settings.linz_enabled and bool(settings.linz_api_key),
            "threshold": settings.linz_confidence_threshold,
            "kwargs": {
                "api_key": settings.linz_api_key or "",
                "timeout": settings.linz_timeout,
            },
        },
        "google": {
            "enabled": settings.google_maps_enabled and bool(settings.google_maps_api_key),
            "threshold": settings.google_maps_confidence_threshold,
            "kwargs": {
                "api_key": settings.google_maps_api_key or "",
                "timeout": settings.google_maps_timeout,
                "region": settings.geocoder_country,
            },
        },
        "maptiler": {
            "enabled": settings.maptiler_enabled and bool(settings.maptiler_api_key),
            "threshold": None,  # best effort, any result is accepted
            "kwargs": {
                "api_key": settings.maptiler_api_key or "",
                "timeout": settings.maptiler_timeout,
                "country": settings.geocoder_country,
            },
        },
    }


def get_configured_providers(settings: Settings) -> list[BaseGeocoder]:
    """Get geocoder instances for all providers that are enabled and properly configured.

    Args:
        settings: Application settings.

    Returns:
        List of configured BaseGeocoder instances, in fallback order.
    """
    return [strategy.geocoder for strategy in _configured_strategies(settings)]


def _configured_strategies(settings: Settings) -> list[ProviderStrategy]:
    configs = _provider_configs(settings)
    strategies: list[ProviderStrategy] = []
    seen: set[str] = set()

    for name in settings.geocoder_fallback_order_list:
        if name in seen:
            continue
        seen.add(name)
        config = configs.get(name)
        if config is None or not config["enabled"]:
            continue

        geocoder = get_geocoder(name, **config["kwargs"])
        if geocoder.is_configured:
            strategies.append(ProviderStrategy(geocoder, config["threshold"]))

    return strategies


def build_provider_chain(settings: Settings, cache: GeocodeCache | None = None) -> GeocodingProviderChain:
    """Assemble a geocoding chain from settings.

    Args:
        settings: Application settings.
        cache: Optional cache to share; a new one using the configured TTL is
            created otherwise.

    Returns:
        A GeocodingProviderChain over the configured providers.
    """
    if cache is None:
        cache = GeocodeCache(ttl_seconds=settings.geocoder_cache_ttl_seconds)
    return GeocodingProviderChain(_configured_strategies(settings), cache=cache)


__all__ = [
    "AddressComponents",
    "AutocompleteSuggestion",
    "BaseGeocoder",
    "CacheStats",
    "Coordinate",
    "DeterministicGeocoder",
    "GeocodeCache",
    "GeocodeProvider",
    "GeocodeQuality",
    "GeocodingProviderChain",
    "GeocodingProviderError",
    "GeocodingResult",
    "GoogleMapsGeocoder",
    "LinzGeocoder",
    "MapTilerGeocoder",
    "ProviderStrategy",
    "build_provider_chain",
    "format_address",
    "get_available_providers",
    "get_configured_providers",
    "get_geocoder",
    "normalize_address",
    "parse_address_components",
    "validate_address_components",
]
