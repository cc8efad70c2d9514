"""Shared test fixtures for settings, geocoding chains, and the HTTP client."""

from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from nurture_geo.core.config import Settings
from nurture_geo.lib.geocoder import (
    BaseGeocoder,
    Coordinate,
    GeocodeCache,
    GeocodeProvider,
    GeocodeQuality,
    GeocodingProviderChain,
    GeocodingResult,
    ProviderStrategy,
)
from nurture_geo.services.geocoding_service import reset_default_chain


@pytest.fixture
def settings() -> Settings:
    """Test application settings with every network provider unconfigured."""
    return Settings(
        _env_file=None,
        linz_api_key=None,
        google_maps_api_key=None,
        maptiler_api_key=None,
        geocoder_batch_delay=0,
    )


@pytest.fixture(autouse=True)
def _reset_default_chain() -> Iterator[None]:
    """Isolate the process-wide geocoding chain between tests."""
    reset_default_chain()
    yield
    reset_default_chain()


def make_result(
    provider: GeocodeProvider = GeocodeProvider.LINZ,
    confidence: float | None = 0.9,
    lat: float = -36.8485,
    lng: float = 174.7633,
    formatted_address: str = "1 Queen Street, Auckland Central, Auckland 1010",
) -> GeocodingResult:
    """Build a GeocodingResult for tests."""
    return GeocodingResult(
        coordinate=Coordinate(lat, lng),
        formatted_address=formatted_address,
        provider=provider,
        confidence=confidence,
        quality=GeocodeQuality.EXACT if confidence is not None else None,
    )


def make_provider(
    provider: GeocodeProvider,
    result: GeocodingResult | None = None,
    side_effect: object = None,
) -> BaseGeocoder:
    """Build a stand-in provider whose geocode() is an AsyncMock."""

    class _StubGeocoder(BaseGeocoder):
        @property
        def provider(self) -> GeocodeProvider:
            return provider

        async def geocode(self, address: str) -> GeocodingResult | None:  # pragma: no cover - replaced below
            return None

    geocoder = _StubGeocoder()
    geocoder.geocode = AsyncMock(return_value=result, side_effect=side_effect)  # type: ignore[method-assign]
    return geocoder


@pytest.fixture
def make_geocoding_result():
    """Factory fixture for GeocodingResult instances."""
    return make_result


@pytest.fixture
def make_stub_provider():
    """Factory fixture for stand-in providers."""
    return make_provider


@pytest.fixture
def linz_chain() -> GeocodingProviderChain:
    """A chain with a single LINZ stand-in returning a confident match."""
    linz = make_provider(GeocodeProvider.LINZ, make_result())
    return GeocodingProviderChain([ProviderStrategy(linz, 0.6)], cache=GeocodeCache())


@pytest.fixture
async def client(linz_chain: GeocodingProviderChain) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client against the app with the LINZ stand-in chain injected."""
    from nurture_geo.core.dependencies import get_geocoding_chain, get_maptiler_geocoder
    from nurture_geo.main import create_app

    app = create_app()
    app.dependency_overrides[get_geocoding_chain] = lambda: linz_chain
    app.dependency_overrides[get_maptiler_geocoder] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
