"""MapTiler Geocoding API provider.

Uses the MapTiler Geocoding API
(https://docs.maptiler.com/cloud/api/geocoding/)
for forward geocoding, reverse geocoding, and address autocomplete,
restricted to New Zealand. Requires an API key.
"""

from dataclasses import dataclass
from urllib.parse import quote

import httpx
from loguru import logger

from nurture_geo.lib.geocoder.address import AddressComponents
from nurture_geo.lib.geocoder.base import (
    BaseGeocoder,
    Coordinate,
    GeocodeProvider,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)

MAPTILER_API_URL = "https://api.maptiler.com/geocoding"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONFIDENCE = 0.8
MIN_AUTOCOMPLETE_LENGTH = 3

# MapTiler context id prefix → AddressComponents field
_CONTEXT_PREFIX_MAP: dict[str, str] = {
    "neighbourhood": "suburb",
    "municipal_district": "suburb",
    "municipality": "city",
    "place": "city",
    "region": "region",
    "postal_code": "postal_code",
    "postcode": "postal_code",
}


@dataclass
class AutocompleteSuggestion:
    """A single address suggestion from MapTiler autocomplete."""

    place_name: str
    coordinate: Coordinate
    place_type: list[str]
    relevance: float


class MapTilerGeocoder(BaseGeocoder):
    """MapTiler geocoder provider."""

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        country: str = "nz",
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._country = country

    @property
    def provider(self) -> GeocodeProvider:
        return GeocodeProvider.MAPTILER

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a single address using the MapTiler API.

        Args:
            address: Freeform address string.

        Returns:
            GeocodingResult or None if no match found.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        data = await self._get(quote(address, safe=""), {"country": self._country, "limit": "1"})
        return self._parse_response(data, address)

    async def reverse_geocode(self, coordinate: Coordinate) -> str | None:
        """Resolve a coordinate to the nearest place name.

        Args:
            coordinate: Point to look up.

        Returns:
            Place name of the closest feature, or None.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        data = await self._get(f"{coordinate.lng},{coordinate.lat}", {})
        features = data.get("features") or []
        if not features:
            return None
        return features[0].get("place_name") or None

    async def autocomplete(self, query: str, limit: int = 5) -> list[AutocompleteSuggestion]:
        """Suggest NZ addresses matching a partial query.

        Args:
            query: Partial address typed by the user.
            limit: Maximum suggestions to return.

        Returns:
            Suggestions in provider order; empty for queries under 3 characters.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        if not query or len(query.strip()) < MIN_AUTOCOMPLETE_LENGTH:
            return []

        data = await self._get(
            quote(query.strip(), safe=""),
            {"country": self._country, "limit": str(limit), "autocomplete": "true"},
        )

        suggestions: list[AutocompleteSuggestion] = []
        for feature in data.get("features") or []:
            try:
                lng, lat = feature["center"][:2]
                coordinate = Coordinate(float(lat), float(lng))
            except (KeyError, ValueError, TypeError) as e:
                logger.debug(f"Skipping malformed MapTiler suggestion: {e}")
                continue
            suggestions.append(
                AutocompleteSuggestion(
                    place_name=feature.get("place_name", ""),
                    coordinate=coordinate,
                    place_type=feature.get("place_type") or [],
                    relevance=float(feature.get("relevance", 1.0)),
                )
            )
        return suggestions

    async def _get(self, path: str, params: dict[str, str]) -> dict:
        """Issue a GET against the geocoding endpoint and return the JSON body."""
        url = f"{MAPTILER_API_URL}/{path}.json"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params={"key": self._api_key, **params})
                response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            logger.warning("MapTiler geocoder timeout for address (redacted)")
            raise GeocodingProviderError("maptiler", "Geocoding request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"MapTiler geocoder HTTP error {e.response.status_code}")
            raise GeocodingProviderError(
                "maptiler",
                f"Provider returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.ConnectError as e:
            logger.warning("MapTiler geocoder connection error")
            raise GeocodingProviderError("maptiler", "Connection to geocoding provider failed") from e
        except Exception as e:
            logger.exception("MapTiler geocoder unexpected error")
            raise GeocodingProviderError("maptiler", f"Unexpected error: {e}") from e

    def _parse_response(self, data: dict, original_address: str) -> GeocodingResult | None:
        """Parse a MapTiler feature collection into a GeocodingResult."""
        features = data.get("features") or []
        if not features:
            return None

        best = features[0]
        try:
            coords = best.get("center") or best["geometry"]["coordinates"]
            coordinate = Coordinate(float(coords[1]), float(coords[0]))
        except (KeyError, IndexError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse MapTiler response: {e}")
            raise GeocodingProviderError("maptiler", f"Failed to parse response: {e}") from e

        relevance = best.get("relevance")
        confidence = min(float(relevance), 1.0) if relevance is not None else DEFAULT_CONFIDENCE

        if self._is_suburb_level(best) and original_address.strip()[:1].isdigit():
            # Keep the caller's street address rather than a bare suburb name
            formatted = original_address
        else:
            formatted = best.get("place_name") or original_address

        return GeocodingResult(
            coordinate=coordinate,
            formatted_address=formatted,
            provider=GeocodeProvider.MAPTILER,
            confidence=confidence,
            components=self._parse_context(best),
            quality=self._map_quality(best),
        )

    @staticmethod
    def _is_suburb_level(feature: dict) -> bool:
        properties = feature.get("properties") or {}
        return (
            "place" in (feature.get("place_type") or [])
            or properties.get("kind") == "place"
            or properties.get("osm:place_type") == "suburb"
        )

    @staticmethod
    def _map_quality(feature: dict) -> GeocodeQuality:
        """Map MapTiler place_type to GeocodeQuality."""
        place_types = feature.get("place_type") or []
        if "address" in place_types:
            return GeocodeQuality.EXACT
        if "street" in place_types or "road" in place_types:
            return GeocodeQuality.INTERPOLATED
        return GeocodeQuality.APPROXIMATE

    @staticmethod
    def _parse_context(feature: dict) -> AddressComponents:
        """Extract address components from the feature and its context list."""
        components = AddressComponents()
        if feature.get("address"):
            components.street_number = str(feature["address"])
        if "address" in (feature.get("place_type") or []) and feature.get("text"):
            components.street_name = feature["text"]

        for item in feature.get("context") or []:
            prefix = str(item.get("id", "")).split(".", 1)[0]
            field_name = _CONTEXT_PREFIX_MAP.get(prefix)
            if field_name and getattr(components, field_name) is None:
                setattr(components, field_name, item.get("text"))
        return components
