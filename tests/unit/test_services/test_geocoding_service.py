"""Unit tests for the geocoding service facade."""

from unittest.mock import AsyncMock, patch

import pytest

from nurture_geo.core.config import Settings
from nurture_geo.lib.geocoder import (
    AutocompleteSuggestion,
    Coordinate,
    GeocodeProvider,
    GeocodingProviderChain,
    GeocodingProviderError,
    MapTilerGeocoder,
    ProviderStrategy,
)
from nurture_geo.services import geocoding_service
from nurture_geo.services.geocoding_service import (
    autocomplete_address,
    batch_geocode,
    clear_geocode_cache,
    describe_address,
    geocode,
    get_default_chain,
    get_geocode_cache_stats,
    reset_default_chain,
    reverse_geocode,
)


@pytest.fixture
def unconfigured(settings: Settings):
    """Patch the service to build its default chain from keyless settings."""
    with patch.object(geocoding_service, "get_settings", return_value=settings):
        yield settings


class TestDefaultChain:
    """Tests for the process-wide chain lifecycle."""

    def test_lazily_built_and_reused(self, unconfigured: Settings) -> None:
        chain = get_default_chain()
        assert chain is get_default_chain()
        assert chain.strategies == []

    def test_reset_rebuilds(self, unconfigured: Settings) -> None:
        first = get_default_chain()
        reset_default_chain()
        assert get_default_chain() is not first


class TestGeocode:
    """Tests for geocode() and batch_geocode()."""

    async def test_unconfigured_falls_back_to_mock(self, unconfigured: Settings) -> None:
        """With no API keys the mock generator still answers."""
        response = await geocode("123 Queen Street, Auckland")
        assert response.provider == "mock"
        assert response.confidence is None
        assert response.formatted_address == "123 Queen Street, Auckland"
        assert -37.0 < response.lat < -36.7
        assert 174.6 < response.lng < 174.9

    async def test_uses_given_chain(self, linz_chain: GeocodingProviderChain) -> None:
        response = await geocode("1 Queen Street, Auckland", chain=linz_chain)
        assert response.provider == "linz"
        assert response.confidence == pytest.approx(0.9)

    async def test_batch_geocode(self, unconfigured: Settings) -> None:
        addresses = ["1 Queen Street, Auckland", "42 Lambton Quay, Wellington"]
        results = await batch_geocode(addresses)
        assert set(results) == set(addresses)
        assert results["42 Lambton Quay, Wellington"].lat < -41

    async def test_batch_uses_settings_defaults(self, unconfigured: Settings) -> None:
        chain = GeocodingProviderChain([])
        with patch.object(chain, "batch_geocode", new_callable=AsyncMock, return_value={}) as mock_batch:
            await batch_geocode(["a"], chain=chain)
        assert mock_batch.call_args.kwargs == {
            "batch_size": unconfigured.geocoder_batch_size,
            "delay": unconfigured.geocoder_batch_delay,
        }


class TestReverseAndAutocomplete:
    """Tests for reverse_geocode() and autocomplete_address()."""

    async def test_reverse_unconfigured(self, unconfigured: Settings) -> None:
        assert await reverse_geocode(-36.8485, 174.7633) is None

    async def test_reverse_invalid_coordinate(self) -> None:
        with pytest.raises(ValueError):
            await reverse_geocode(-95, 174.7)

    async def test_reverse_success(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        with patch.object(geocoder, "reverse_geocode", new_callable=AsyncMock, return_value="Queen Street"):
            assert await reverse_geocode(-36.8485, 174.7633, geocoder=geocoder) == "Queen Street"

    async def test_reverse_provider_error(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        with patch.object(
            geocoder, "reverse_geocode", new_callable=AsyncMock, side_effect=GeocodingProviderError("maptiler", "down")
        ):
            assert await reverse_geocode(-36.8485, 174.7633, geocoder=geocoder) is None

    async def test_autocomplete_unconfigured(self, unconfigured: Settings) -> None:
        assert await autocomplete_address("12 Fraser") == []

    async def test_autocomplete_success(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        suggestion = AutocompleteSuggestion(
            place_name="12 Fraser Road, Papatoetoe",
            coordinate=Coordinate(-36.97, 174.85),
            place_type=["address"],
            relevance=0.9,
        )
        with patch.object(geocoder, "autocomplete", new_callable=AsyncMock, return_value=[suggestion]):
            results = await autocomplete_address("12 Fraser", geocoder=geocoder)
        assert len(results) == 1
        assert results[0].place_name == "12 Fraser Road, Papatoetoe"
        assert results[0].lat == pytest.approx(-36.97)

    async def test_autocomplete_provider_error(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        with patch.object(
            geocoder, "autocomplete", new_callable=AsyncMock, side_effect=GeocodingProviderError("maptiler", "down")
        ):
            assert await autocomplete_address("12 Fraser", geocoder=geocoder) == []


class TestDescribeAddress:
    """Tests for describe_address()."""

    def test_full_address(self) -> None:
        parsed = describe_address("12 Fraser Rd, Papatoetoe, Manukau, Auckland 2025")
        assert parsed.normalized_address == "12 fraser road papatoetoe manukau auckland 2025"
        assert parsed.components["street_name"] == "fraser road"
        assert parsed.formatted_address == "12 fraser road, papatoetoe, manukau, auckland, 2025"
        assert parsed.is_well_formed is True

    def test_missing_components(self) -> None:
        parsed = describe_address("Ponsonby")
        assert parsed.is_well_formed is False
        assert "street_number" in parsed.validation.missing_components


class TestCacheAdmin:
    """Tests for cache statistics and clearing."""

    async def test_stats_and_clear(self, make_stub_provider, make_geocoding_result) -> None:
        linz = make_stub_provider(GeocodeProvider.LINZ, make_geocoding_result())
        chain = GeocodingProviderChain([ProviderStrategy(linz, 0.6)])
        await geocode("1 Queen Street, Auckland", chain=chain)
        await geocode("2 Queen Street, Auckland", chain=chain)

        stats = get_geocode_cache_stats(chain=chain)
        assert stats.size == 2
        assert stats.oldest_entry_age_ms is not None
        assert stats.oldest_entry_age_ms >= 0

        assert clear_geocode_cache(chain=chain) == 2
        assert get_geocode_cache_stats(chain=chain).size == 0

    async def test_reverse_provider_error_raised_on_request(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        with (
            patch.object(
                geocoder,
                "reverse_geocode",
                new_callable=AsyncMock,
                side_effect=GeocodingProviderError("maptiler", "down"),
            ),
            pytest.raises(GeocodingProviderError),
        ):
            await reverse_geocode(-36.8485, 174.7633, geocoder=geocoder, raise_errors=True)

    async def test_autocomplete_provider_error_raised_on_request(self) -> None:
        geocoder = MapTilerGeocoder(api_key="k")
        with (
            patch.object(
                geocoder, "autocomplete", new_callable=AsyncMock, side_effect=GeocodingProviderError("maptiler", "down")
            ),
            pytest.raises(GeocodingProviderError),
        ):
            await autocomplete_address("12 Fraser", geocoder=geocoder, raise_errors=True)
