"""Geocoding service: process-wide chain, single and batch geocoding, reverse lookup, and cache admin."""

from collections.abc import Sequence

from loguru import logger

from nurture_geo.core.config import get_settings
from nurture_geo.lib.geocoder import (
    AddressComponents,
    Coordinate,
    GeocodingProviderChain,
    GeocodingProviderError,
    MapTilerGeocoder,
    build_provider_chain,
    format_address,
    normalize_address,
    parse_address_components,
    validate_address_components,
)
from nurture_geo.schemas.geocoding import (
    AddressParseResponse,
    AutocompleteSuggestionResponse,
    CacheStatsResponse,
    GeocodeResponse,
    MalformedComponent,
    ValidationDetail,
)

__all__ = [
    "autocomplete_address",
    "batch_geocode",
    "clear_geocode_cache",
    "describe_address",
    "geocode",
    "get_default_chain",
    "get_default_maptiler",
    "get_geocode_cache_stats",
    "normalize_address",
    "parse_address_components",
    "reset_default_chain",
    "reverse_geocode",
]

_default_chain: GeocodingProviderChain | None = None
_default_maptiler: MapTilerGeocoder | None = None
_maptiler_resolved = False


def get_default_chain() -> GeocodingProviderChain:
    """Return the process-wide geocoding chain, building it on first use."""
    global _default_chain  # noqa: PLW0603
    if _default_chain is None:
        settings = get_settings()
        _default_chain = build_provider_chain(settings)
        names = [s.name for s in _default_chain.strategies]
        logger.info(f"Geocoding chain initialised with providers {names or ['mock only']}")
    return _default_chain


def get_default_maptiler() -> MapTilerGeocoder | None:
    """Return the MapTiler client used for reverse geocoding and autocomplete.

    Returns:
        A configured MapTilerGeocoder, or None when MapTiler is disabled or
        has no API key.
    """
    global _default_maptiler, _maptiler_resolved  # noqa: PLW0603
    if not _maptiler_resolved:
        settings = get_settings()
        if settings.maptiler_enabled and settings.maptiler_api_key:
            _default_maptiler = MapTilerGeocoder(
                api_key=settings.maptiler_api_key,
                timeout=settings.maptiler_timeout,
                country=settings.geocoder_country,
            )
        _maptiler_resolved = True
    return _default_maptiler


def reset_default_chain() -> None:
    """Drop the process-wide chain and MapTiler client so the next call rebuilds them from settings."""
    global _default_chain, _default_maptiler, _maptiler_resolved  # noqa: PLW0603
    _default_chain = None
    _default_maptiler = None
    _maptiler_resolved = False


async def geocode(address: str, *, chain: GeocodingProviderChain | None = None) -> GeocodeResponse:
    """Geocode a freeform address.

    Never fails: when every provider is unavailable the deterministic
    generator supplies an approximate coordinate tagged ``mock``.

    Args:
        address: Freeform address string.
        chain: Chain to use; defaults to the process-wide chain.

    Returns:
        GeocodeResponse for the address.
    """
    chain = chain or get_default_chain()
    result = await chain.geocode(address)
    return GeocodeResponse.from_result(result)


async def batch_geocode(
    addresses: Sequence[str],
    *,
    chain: GeocodingProviderChain | None = None,
    batch_size: int | None = None,
    delay: float | None = None,
) -> dict[str, GeocodeResponse]:
    """Geocode many addresses, chunked to respect provider rate limits.

    Args:
        addresses: Addresses to geocode.
        chain: Chain to use; defaults to the process-wide chain.
        batch_size: Concurrent lookups per chunk (defaults to settings).
        delay: Seconds between chunks (defaults to settings).

    Returns:
        Mapping of each input address to its GeocodeResponse.
    """
    settings = get_settings()
    chain = chain or get_default_chain()
    results = await chain.batch_geocode(
        addresses,
        batch_size=batch_size if batch_size is not None else settings.geocoder_batch_size,
        delay=delay if delay is not None else settings.geocoder_batch_delay,
    )
    return {address: GeocodeResponse.from_result(result) for address, result in results.items()}


async def reverse_geocode(
    lat: float,
    lng: float,
    *,
    geocoder: MapTilerGeocoder | None = None,
    raise_errors: bool = False,
) -> str | None:
    """Resolve a point to a place name.

    Args:
        lat: WGS84 latitude.
        lng: WGS84 longitude.
        geocoder: MapTiler client; defaults to the process-wide client.
        raise_errors: Re-raise provider failures instead of returning None.

    Returns:
        Place name, or None when MapTiler is unconfigured, fails, or finds nothing.

    Raises:
        ValueError: If the coordinate is out of range.
        GeocodingProviderError: If MapTiler fails and raise_errors is set.
    """
    coordinate = Coordinate(lat, lng)
    geocoder = geocoder or get_default_maptiler()
    if geocoder is None:
        logger.debug("Reverse geocoding skipped: MapTiler not configured")
        return None
    try:
        return await geocoder.reverse_geocode(coordinate)
    except GeocodingProviderError as e:
        logger.warning(f"Reverse geocoding failed: {e.message}")
        if raise_errors:
            raise
        return None


async def autocomplete_address(
    query: str,
    *,
    geocoder: MapTilerGeocoder | None = None,
    limit: int = 5,
    raise_errors: bool = False,
) -> list[AutocompleteSuggestionResponse]:
    """Suggest addresses for a partial query.

    Returns an empty list when MapTiler is unconfigured or fails, or when the
    query is shorter than three characters. Provider failures propagate
    instead when *raise_errors* is set.
    """
    geocoder = geocoder or get_default_maptiler()
    if geocoder is None:
        return []
    try:
        suggestions = await geocoder.autocomplete(query, limit=limit)
    except GeocodingProviderError as e:
        logger.warning(f"Address autocomplete failed: {e.message}")
        if raise_errors:
            raise
        return []
    return [AutocompleteSuggestionResponse.from_suggestion(s) for s in suggestions]


def describe_address(address: str) -> AddressParseResponse:
    """Parse, format, and validate a freeform address without geocoding it."""
    components: AddressComponents = parse_address_components(address)
    feedback = validate_address_components(components)
    return AddressParseResponse(
        input_address=address,
        normalized_address=normalize_address(address),
        components=components.to_dict(),
        formatted_address=format_address(components),
        is_well_formed=feedback.is_well_formed,
        validation=ValidationDetail(
            present_components=feedback.present_components,
            missing_components=feedback.missing_components,
            malformed_components=[
                MalformedComponent(component=m.component, issue=m.issue) for m in feedback.malformed_components
            ],
        ),
    )


def clear_geocode_cache(*, chain: GeocodingProviderChain | None = None) -> int:
    """Empty the geocode cache.

    Returns:
        Number of entries removed.
    """
    chain = chain or get_default_chain()
    removed = len(chain.cache)
    chain.clear_cache()
    logger.info(f"Geocode cache cleared ({removed} entries)")
    return removed


def get_geocode_cache_stats(*, chain: GeocodingProviderChain | None = None) -> CacheStatsResponse:
    """Return the geocode cache size and the age of its oldest entry."""
    chain = chain or get_default_chain()
    stats = chain.cache_stats()
    return CacheStatsResponse(size=stats.size, oldest_entry_age_ms=stats.oldest_entry_age_ms)
