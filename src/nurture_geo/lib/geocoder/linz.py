"""LINZ (Land Information New Zealand) address search provider.

Uses the LINZ address search service for authoritative NZ address
resolution. Highest precision for NZ addresses; requires an API key.
Responses are GeoJSON feature collections with ``[lng, lat]`` coordinates.
"""

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

LINZ_API_URL = "https://api.linz.govt.nz/v1/services/address/search"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONFIDENCE = 0.9
USER_AGENT = "nurture-geo/0.1.0"


class LinzGeocoder(BaseGeocoder):
    """LINZ geocoder provider."""

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._api_key = api_key
        self._timeout = timeout

    @property
    def provider(self) -> GeocodeProvider:
        return GeocodeProvider.LINZ

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode an address using the LINZ address search service.

        Args:
            address: Freeform address string.

        Returns:
            GeocodingResult or None if no match found.

        Raises:
            GeocodingProviderError: On transport, service, or parse errors.
        """
        params = {"q": address, "key": self._api_key}
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, headers=headers) as client:
                response = await client.get(LINZ_API_URL, params=params)
                response.raise_for_status()

            data = response.json()
            return self._parse_response(data, address)

        except httpx.TimeoutException as e:
            logger.warning("LINZ geocoder timeout for address (redacted)")
            raise GeocodingProviderError("linz", "Geocoding request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"LINZ geocoder HTTP error {e.response.status_code}")
            raise GeocodingProviderError(
                "linz",
                f"Provider returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.ConnectError as e:
            logger.warning("LINZ geocoder connection error")
            raise GeocodingProviderError("linz", "Connection to geocoding provider failed") from e
        except GeocodingProviderError:
            raise
        except Exception as e:
            logger.exception("LINZ geocoder unexpected error")
            raise GeocodingProviderError("linz", f"Unexpected error: {e}") from e

    def _parse_response(self, data: dict, original_address: str) -> GeocodingResult | None:
        """Parse a LINZ GeoJSON response into a GeocodingResult."""
        features = data.get("features") or []
        if not features:
            return None

        best = features[0]
        try:
            coords = best["geometry"]["coordinates"]
            coordinate = Coordinate(float(coords[1]), float(coords[0]))
        except (KeyError, IndexError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse LINZ response: {e}")
            raise GeocodingProviderError("linz", f"Failed to parse response: {e}") from e

        properties = best.get("properties") or {}
        components = AddressComponents(
            street_number=_as_text(properties.get("house_number")),
            street_name=properties.get("road_name"),
            suburb=properties.get("suburb") or properties.get("locality"),
            city=properties.get("town"),
            region=properties.get("region"),
            postal_code=_as_text(properties.get("postcode")),
        )

        return GeocodingResult(
            coordinate=coordinate,
            formatted_address=self._format_address(properties, original_address),
            provider=GeocodeProvider.LINZ,
            confidence=self._score_to_confidence(properties.get("score")),
            components=components,
            quality=GeocodeQuality.EXACT,
        )

    @staticmethod
    def _score_to_confidence(score: object) -> float:
        """Convert a LINZ match score (0-1 or 0-100) into a confidence."""
        if score is None:
            return DEFAULT_CONFIDENCE
        try:
            value = float(score)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if value > 1:
            value /= 100
        return min(max(value, 0.0), 1.0)

    @staticmethod
    def _format_address(properties: dict, original_address: str) -> str:
        if properties.get("full_address"):
            return properties["full_address"]
        if properties.get("label"):
            return properties["label"]
        street = " ".join(
            str(p) for p in (properties.get("house_number"), properties.get("road_name")) if p
        )
        parts = [
            p
            for p in (
                street,
                properties.get("locality") or properties.get("town"),
                _as_text(properties.get("postcode")),
            )
            if p
        ]
        return f"{', '.join(parts)}, New Zealand" if parts else original_address


def _as_text(value: object) -> str | None:
    return str(value) if value not in (None, "") else None
