"""Pydantic v2 schemas for geocoding and proximity operations."""

from typing import Any

from pydantic import BaseModel, Field

from nurture_geo.lib.geocoder.base import GeocodingResult
from nurture_geo.lib.geocoder.maptiler import AutocompleteSuggestion


class GeocodeResponse(BaseModel):
    """Response for GET /geocoding/geocode."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    formatted_address: str
    confidence: float | None = None
    provider: str
    quality: str | None = None
    address_components: dict[str, str] | None = None

    @classmethod
    def from_result(cls, result: GeocodingResult) -> "GeocodeResponse":
        return cls(**result.to_dict())


class MalformedComponent(BaseModel):
    """A component detected but improperly formatted."""

    component: str
    issue: str


class ValidationDetail(BaseModel):
    """Address component validation feedback."""

    present_components: list[str]
    missing_components: list[str]
    malformed_components: list[MalformedComponent] = Field(default_factory=list)


class AddressParseResponse(BaseModel):
    """Response for GET /geocoding/parse."""

    input_address: str
    normalized_address: str
    components: dict[str, str]
    formatted_address: str
    is_well_formed: bool
    validation: ValidationDetail


class ReverseGeocodeResponse(BaseModel):
    """Response for GET /geocoding/reverse."""

    lat: float
    lng: float
    place_name: str


class AutocompleteSuggestionResponse(BaseModel):
    """A single suggestion returned by GET /geocoding/autocomplete."""

    place_name: str
    lat: float
    lng: float
    place_type: list[str] = Field(default_factory=list)
    relevance: float

    @classmethod
    def from_suggestion(cls, suggestion: AutocompleteSuggestion) -> "AutocompleteSuggestionResponse":
        return cls(
            place_name=suggestion.place_name,
            lat=suggestion.coordinate.lat,
            lng=suggestion.coordinate.lng,
            place_type=suggestion.place_type,
            relevance=suggestion.relevance,
        )


class DistanceResponse(BaseModel):
    """Response for GET /geocoding/distance."""

    distance_km: float


class NearbyOrigin(BaseModel):
    """Reference point for a proximity search."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class NearbyRequest(BaseModel):
    """Request body for POST /geocoding/nearby.

    Candidates are free-form records; ``lat``/``lng`` keys are read and any
    other keys are echoed back on matches.
    """

    origin: NearbyOrigin
    radius_km: float = Field(..., ge=0)
    candidates: list[dict[str, Any]] = Field(default_factory=list)
    priority_statuses: list[str] | None = None


class NearbyResponse(BaseModel):
    """Response for POST /geocoding/nearby."""

    matches: list[dict[str, Any]]
    total: int


class CacheStatsResponse(BaseModel):
    """Response for geocoding cache statistics."""

    size: int
    oldest_entry_age_ms: float | None = None


class CacheClearResponse(BaseModel):
    """Response for DELETE /geocoding/cache."""

    cleared: int
