"""Unit tests for geocoding API endpoints."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from nurture_geo.core.dependencies import get_geocoding_chain, get_maptiler_geocoder
from nurture_geo.lib.geocoder import (
    AutocompleteSuggestion,
    Coordinate,
    GeocodingProviderChain,
    GeocodingProviderError,
    MapTilerGeocoder,
    ProviderStrategy,
)
from nurture_geo.main import create_app

PREFIX = "/api/v1/geocoding"


@pytest.fixture
def maptiler() -> MapTilerGeocoder:
    return MapTilerGeocoder(api_key="test-key")


@pytest.fixture
async def maptiler_client(
    linz_chain: GeocodingProviderChain, maptiler: MapTilerGeocoder
) -> AsyncGenerator[AsyncClient]:
    """Client with a configured MapTiler client injected."""
    app = create_app()
    app.dependency_overrides[get_geocoding_chain] = lambda: linz_chain
    app.dependency_overrides[get_maptiler_geocoder] = lambda: maptiler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestGeocodeEndpoint:
    """Tests for GET /geocoding/geocode."""

    async def test_geocode(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/geocode", params={"address": "1 Queen Street, Auckland"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "linz"
        assert body["lat"] == pytest.approx(-36.8485)
        assert body["lng"] == pytest.approx(174.7633)
        assert body["confidence"] == pytest.approx(0.9)
        assert body["quality"] == "exact"

    async def test_whitespace_address_rejected(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/geocode", params={"address": "   "})
        assert resp.status_code == 422

    async def test_missing_address_rejected(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/geocode")
        assert resp.status_code == 422

    async def test_all_providers_down_returns_mock(
        self, client: AsyncClient, linz_chain: GeocodingProviderChain
    ) -> None:
        linz = linz_chain.strategies[0].geocoder
        linz.geocode.side_effect = GeocodingProviderError("linz", "timed out")  # type: ignore[attr-defined]

        resp = await client.get(f"{PREFIX}/geocode", params={"address": "5 Cuba Street, Wellington"})

        assert resp.status_code == 200
        assert resp.json()["provider"] == "mock"
        assert resp.json()["confidence"] is None


class TestParseEndpoint:
    """Tests for GET /geocoding/parse."""

    async def test_parse(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/parse", params={"address": "12 Fraser Rd, Papatoetoe, Auckland 2025"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["components"] == {
            "street_number": "12",
            "street_name": "fraser road",
            "suburb": "papatoetoe",
            "region": "auckland",
            "postal_code": "2025",
        }
        assert body["is_well_formed"] is True
        assert body["validation"]["missing_components"] == []

    async def test_malformed_postal_code(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/parse", params={"address": "1 Queen St, Auckland Central, 10100"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["is_well_formed"] is False


class TestReverseEndpoint:
    """Tests for GET /geocoding/reverse."""

    async def test_not_configured(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/reverse", params={"lat": -36.8485, "lng": 174.7633})
        assert resp.status_code == 503

    async def test_invalid_coordinate(self, maptiler_client: AsyncClient) -> None:
        resp = await maptiler_client.get(f"{PREFIX}/reverse", params={"lat": -91, "lng": 174.7633})
        assert resp.status_code == 422

    async def test_success(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        with patch.object(maptiler, "reverse_geocode", new_callable=AsyncMock, return_value="Queen Street, Auckland"):
            resp = await maptiler_client.get(f"{PREFIX}/reverse", params={"lat": -36.8485, "lng": 174.7633})
        assert resp.status_code == 200
        assert resp.json()["place_name"] == "Queen Street, Auckland"

    async def test_no_place(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        with patch.object(maptiler, "reverse_geocode", new_callable=AsyncMock, return_value=None):
            resp = await maptiler_client.get(f"{PREFIX}/reverse", params={"lat": -36.8485, "lng": 174.7633})
        assert resp.status_code == 404

    async def test_provider_error(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        with patch.object(
            maptiler,
            "reverse_geocode",
            new_callable=AsyncMock,
            side_effect=GeocodingProviderError("maptiler", "timed out"),
        ):
            resp = await maptiler_client.get(f"{PREFIX}/reverse", params={"lat": -36.8485, "lng": 174.7633})
        assert resp.status_code == 502

    async def test_routes_through_service(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        with patch(
            "nurture_geo.api.v1.geocoding.reverse_geocode", new_callable=AsyncMock, return_value="Queen Street"
        ) as mock_reverse:
            resp = await maptiler_client.get(f"{PREFIX}/reverse", params={"lat": -36.8485, "lng": 174.7633})
        assert resp.status_code == 200
        mock_reverse.assert_awaited_once_with(-36.8485, 174.7633, geocoder=maptiler, raise_errors=True)


class TestAutocompleteEndpoint:
    """Tests for GET /geocoding/autocomplete."""

    async def test_not_configured(self, client: AsyncClient) -> None:
        resp = await client.get(f"{PREFIX}/autocomplete", params={"q": "12 Fraser"})
        assert resp.status_code == 503

    async def test_suggestions(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        suggestion = AutocompleteSuggestion(
            place_name="12 Fraser Road, Papatoetoe, Auckland",
            coordinate=Coordinate(-36.97, 174.85),
            place_type=["address"],
            relevance=0.93,
        )
        with patch.object(maptiler, "autocomplete", new_callable=AsyncMock, return_value=[suggestion]):
            resp = await maptiler_client.get(f"{PREFIX}/autocomplete", params={"q": "12 Fraser"})
        assert resp.status_code == 200
        assert resp.json() == [
            {
                "place_name": "12 Fraser Road, Papatoetoe, Auckland",
                "lat": -36.97,
                "lng": 174.85,
                "place_type": ["address"],
                "relevance": 0.93,
            }
        ]

    async def test_provider_error(self, maptiler_client: AsyncClient, maptiler: MapTilerGeocoder) -> None:
        with patch.object(
            maptiler, "autocomplete", new_callable=AsyncMock, side_effect=GeocodingProviderError("maptiler", "down")
        ):
            resp = await maptiler_client.get(f"{PREFIX}/autocomplete", params={"q": "12 Fraser"})
        assert resp.status_code == 502


class TestDistanceEndpoint:
    """Tests for GET /geocoding/distance."""

    async def test_distance(self, client: AsyncClient) -> None:
        params = {"lat1": -36.8485, "lng1": 174.7633, "lat2": -41.2924, "lng2": 174.7787}
        resp = await client.get(f"{PREFIX}/distance", params=params)
        assert resp.status_code == 200
        assert resp.json()["distance_km"] == pytest.approx(494, abs=5)

    async def test_out_of_range(self, client: AsyncClient) -> None:
        params = {"lat1": -136.8, "lng1": 174.7, "lat2": -41.2, "lng2": 174.7}
        resp = await client.get(f"{PREFIX}/distance", params=params)
        assert resp.status_code == 422


class TestNearbyEndpoint:
    """Tests for POST /geocoding/nearby."""

    async def test_nearby(self, client: AsyncClient) -> None:
        payload = {
            "origin": {"lat": -36.8485, "lng": 174.7633},
            "radius_km": 5,
            "candidates": [
                {"id": "c1", "lat": -36.85, "lng": 174.77, "status": "listed"},
                {"id": "c2", "lat": -36.87, "lng": 174.78, "status": "sold"},
                {"id": "c3", "lat": -41.29, "lng": 174.78},
                {"id": "c4"},
            ],
            "priority_statuses": ["sold"],
        }
        resp = await client.post(f"{PREFIX}/nearby", json=payload)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert [m["id"] for m in body["matches"]] == ["c2", "c1"]
        assert all(m["distance"] < 5 for m in body["matches"])

    async def test_unhashable_status_is_not_priority(self, client: AsyncClient) -> None:
        payload = {
            "origin": {"lat": -36.8485, "lng": 174.7633},
            "radius_km": 5,
            "candidates": [
                {"id": "c1", "lat": -36.85, "lng": 174.77, "status": {"k": 1}},
                {"id": "c2", "lat": -36.87, "lng": 174.78, "status": ["sold"]},
            ],
            "priority_statuses": ["sold"],
        }
        resp = await client.post(f"{PREFIX}/nearby", json=payload)
        assert resp.status_code == 200
        assert [m["id"] for m in resp.json()["matches"]] == ["c1", "c2"]

    async def test_negative_radius_rejected(self, client: AsyncClient) -> None:
        payload = {"origin": {"lat": -36.8485, "lng": 174.7633}, "radius_km": -1, "candidates": []}
        resp = await client.post(f"{PREFIX}/nearby", json=payload)
        assert resp.status_code == 422


class TestCacheEndpoints:
    """Tests for cache stats and clearing."""

    async def test_stats_then_clear(self, client: AsyncClient, linz_chain: GeocodingProviderChain) -> None:
        resp = await client.get(f"{PREFIX}/cache/stats")
        assert resp.json() == {"size": 0, "oldest_entry_age_ms": None}

        await client.get(f"{PREFIX}/geocode", params={"address": "1 Queen Street, Auckland"})
        resp = await client.get(f"{PREFIX}/cache/stats")
        assert resp.json()["size"] == 1

        resp = await client.delete(f"{PREFIX}/cache")
        assert resp.status_code == 200
        assert resp.json() == {"cleared": 1}
        assert linz_chain.cache_stats().size == 0

    async def test_repeat_geocode_served_from_cache(
        self, client: AsyncClient, linz_chain: GeocodingProviderChain
    ) -> None:
        for _ in range(3):
            await client.get(f"{PREFIX}/geocode", params={"address": "1 Queen Street, Auckland"})

        linz = linz_chain.strategies[0].geocoder
        assert linz.geocode.await_count == 1  # type: ignore[attr-defined]


class TestProviderErrorHandler:
    """Tests for the app-level exception handlers."""

    async def test_unhandled_provider_error_maps_to_502(self) -> None:
        chain = GeocodingProviderChain([ProviderStrategy(MapTilerGeocoder(api_key="k"))])
        app = create_app()
        app.dependency_overrides[get_geocoding_chain] = lambda: chain

        with patch.object(
            chain, "geocode", new_callable=AsyncMock, side_effect=GeocodingProviderError("maptiler", "down")
        ):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                resp = await ac.get(f"{PREFIX}/geocode", params={"address": "1 Queen Street"})

        assert resp.status_code == 502

    async def test_value_error_maps_to_422(self) -> None:
        app = create_app()
        with patch(
            "nurture_geo.api.v1.geocoding.find_within_radius",
            side_effect=ValueError("latitude must be between -90 and 90"),
        ):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                resp = await ac.post(
                    f"{PREFIX}/nearby",
                    json={"origin": {"lat": 0, "lng": 0}, "radius_km": 1, "candidates": []},
                )

        assert resp.status_code == 422
        assert "latitude" in resp.json()["detail"]
