"""Abstract base geocoder interface and shared result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from nurture_geo.lib.geocoder.address import AddressComponents


class GeocodeProvider(StrEnum):
    """Source that produced a geocoding result."""

    LINZ = "linz"
    GOOGLE = "google"
    MAPTILER = "maptiler"
    MOCK = "mock"


class GeocodeQuality(StrEnum):
    """Precision class of a geocoding result, from most to least precise."""

    EXACT = "exact"
    INTERPOLATED = "interpolated"
    APPROXIMATE = "approximate"


@dataclass(frozen=True)
class Coordinate:
    """WGS84 latitude/longitude pair."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (-90 <= self.lat <= 90):
            msg = f"latitude must be between -90 and 90, got {self.lat}"
            raise ValueError(msg)
        if not (-180 <= self.lng <= 180):
            msg = f"longitude must be between -180 and 180, got {self.lng}"
            raise ValueError(msg)


@dataclass(frozen=True)
class GeocodingResult:
    """Result from a geocoding operation.

    ``confidence`` is None only for results from the offline generator.
    """

    coordinate: Coordinate
    formatted_address: str
    provider: GeocodeProvider
    confidence: float | None = None
    components: AddressComponents | None = None
    quality: GeocodeQuality | None = None

    def __post_init__(self) -> None:
        if self.confidence is not None and not (0 <= self.confidence <= 1):
            msg = f"confidence must be between 0 and 1, got {self.confidence}"
            raise ValueError(msg)

    @property
    def latitude(self) -> float:
        return self.coordinate.lat

    @property
    def longitude(self) -> float:
        return self.coordinate.lng

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (useful for JSON serialisation)."""
        return {
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "formatted_address": self.formatted_address,
            "confidence": self.confidence,
            "provider": self.provider.value,
            "quality": self.quality.value if self.quality else None,
            "address_components": self.components.to_dict() if self.components else None,
        }


class GeocodingProviderError(Exception):
    """Raised when a geocoding provider experiences a transport or service error.

    Distinguishes provider failures (timeout, HTTP error, connection error,
    malformed payload) from a successful response with no match (which
    returns None).

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseGeocoder(ABC):
    """Abstract geocoder interface. All providers must implement this."""

    @property
    @abstractmethod
    def provider(self) -> GeocodeProvider:
        """Provider tag attached to results from this geocoder."""

    @property
    def provider_name(self) -> str:
        """Unique name identifying this geocoder provider."""
        return self.provider.value

    @property
    def requires_api_key(self) -> bool:
        """Whether this provider requires an API key to function."""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @abstractmethod
    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a single address.

        Args:
            address: Freeform address string.

        Returns:
            GeocodingResult or None if the address could not be geocoded.

        Raises:
            GeocodingProviderError: On transport, service, or parse errors.
        """
