"""Geocoding API endpoints: geocode, parse, reverse, autocomplete, distance, nearby, and cache."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from nurture_geo.core.dependencies import get_geocoding_chain, get_maptiler_geocoder
from nurture_geo.lib.geocoder import GeocodingProviderChain, GeocodingProviderError, MapTilerGeocoder
from nurture_geo.schemas.geocoding import (
    AddressParseResponse,
    AutocompleteSuggestionResponse,
    CacheClearResponse,
    CacheStatsResponse,
    DistanceResponse,
    GeocodeResponse,
    NearbyRequest,
    NearbyResponse,
    ReverseGeocodeResponse,
)
from nurture_geo.services.geocoding_service import (
    autocomplete_address,
    clear_geocode_cache,
    describe_address,
    geocode,
    get_geocode_cache_stats,
    reverse_geocode,
)
from nurture_geo.services.proximity_service import calculate_distance, find_within_radius

geocoding_router = APIRouter(prefix="/geocoding", tags=["geocoding"])

_MAPTILER_UNAVAILABLE = "MapTiler is not configured on this server."


def _require_text(value: str, field: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{field} must not be empty or whitespace-only.",
        )
    return stripped


@geocoding_router.get(
    "/geocode",
    response_model=GeocodeResponse,
)
async def geocode_address(
    address: str = Query(  # noqa: B008
        ...,
        min_length=1,
        max_length=500,
        description="Freeform NZ street address to geocode (1-500 characters)",
    ),
    chain: GeocodingProviderChain = Depends(get_geocoding_chain),  # noqa: B008
) -> GeocodeResponse:
    """Geocode a single freeform address to geographic coordinates.

    Falls back to an approximate ``mock`` coordinate when no provider
    produces an acceptable result.
    """
    return await geocode(_require_text(address, "Address"), chain=chain)


@geocoding_router.get(
    "/parse",
    response_model=AddressParseResponse,
)
async def parse_address(
    address: str = Query(  # noqa: B008
        ...,
        min_length=1,
        max_length=500,
        description="Freeform NZ street address to parse (1-500 characters)",
    ),
) -> AddressParseResponse:
    """Split an address into components and report what is missing or malformed."""
    return describe_address(_require_text(address, "Address"))


@geocoding_router.get(
    "/reverse",
    response_model=ReverseGeocodeResponse,
)
async def reverse_geocode_point(
    lat: float = Query(..., description="WGS84 latitude"),  # noqa: B008
    lng: float = Query(..., description="WGS84 longitude"),  # noqa: B008
    geocoder: MapTilerGeocoder | None = Depends(get_maptiler_geocoder),  # noqa: B008
) -> ReverseGeocodeResponse:
    """Resolve a point to the nearest place name."""
    if geocoder is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_MAPTILER_UNAVAILABLE)

    try:
        place_name = await reverse_geocode(lat, lng, geocoder=geocoder, raise_errors=True)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except GeocodingProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Reverse geocoding provider is temporarily unavailable. Please retry later.",
        ) from e

    if place_name is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No place found at the submitted coordinates.",
        )

    return ReverseGeocodeResponse(lat=lat, lng=lng, place_name=place_name)


@geocoding_router.get(
    "/autocomplete",
    response_model=list[AutocompleteSuggestionResponse],
)
async def autocomplete(
    q: str = Query(..., min_length=1, max_length=200, description="Partial address"),  # noqa: B008
    limit: int = Query(5, ge=1, le=10, description="Maximum suggestions"),  # noqa: B008
    geocoder: MapTilerGeocoder | None = Depends(get_maptiler_geocoder),  # noqa: B008
) -> list[AutocompleteSuggestionResponse]:
    """Suggest addresses for a partial query (three characters minimum)."""
    if geocoder is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_MAPTILER_UNAVAILABLE)

    try:
        return await autocomplete_address(q, geocoder=geocoder, limit=limit, raise_errors=True)
    except GeocodingProviderError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Autocomplete provider is temporarily unavailable. Please retry later.",
        ) from e


@geocoding_router.get(
    "/distance",
    response_model=DistanceResponse,
)
async def distance(
    lat1: float = Query(..., ge=-90, le=90),  # noqa: B008
    lng1: float = Query(..., ge=-180, le=180),  # noqa: B008
    lat2: float = Query(..., ge=-90, le=90),  # noqa: B008
    lng2: float = Query(..., ge=-180, le=180),  # noqa: B008
) -> DistanceResponse:
    """Great-circle distance in kilometers between two points."""
    return DistanceResponse(distance_km=calculate_distance(lat1, lng1, lat2, lng2))


@geocoding_router.post(
    "/nearby",
    response_model=NearbyResponse,
)
async def nearby(request: NearbyRequest) -> NearbyResponse:
    """Return the candidates within a radius of the origin, nearest first."""
    matches = find_within_radius(
        request.origin.lat,
        request.origin.lng,
        request.candidates,
        request.radius_km,
        priority_statuses=request.priority_statuses,
    )
    logger.debug(f"Nearby search matched {len(matches)} of {len(request.candidates)} candidates")
    return NearbyResponse(matches=matches, total=len(matches))


@geocoding_router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
)
async def cache_stats(
    chain: GeocodingProviderChain = Depends(get_geocoding_chain),  # noqa: B008
) -> CacheStatsResponse:
    """Get geocode cache size and the age of its oldest entry."""
    return get_geocode_cache_stats(chain=chain)


@geocoding_router.delete(
    "/cache",
    response_model=CacheClearResponse,
)
async def clear_cache(
    chain: GeocodingProviderChain = Depends(get_geocoding_chain),  # noqa: B008
) -> CacheClearResponse:
    """Remove every cached geocoding result."""
    return CacheClearResponse(cleared=clear_geocode_cache(chain=chain))
