"""FastAPI dependency injection for the geocoding chain and MapTiler client."""

from nurture_geo.lib.geocoder import GeocodingProviderChain, MapTilerGeocoder
from nurture_geo.services.geocoding_service import get_default_chain, get_default_maptiler


def get_geocoding_chain() -> GeocodingProviderChain:
    """Return the process-wide geocoding chain."""
    return get_default_chain()


def get_maptiler_geocoder() -> MapTilerGeocoder | None:
    """Return the MapTiler client, or None when it is not configured."""
    return get_default_maptiler()
