"""Proximity library: great-circle distance and radius matching.

Public API:
    - calculate_distance: Haversine distance in km between two lat/lng pairs
    - haversine_km: Haversine distance in km between two Coordinates
    - ProximityCandidate: An entity with an optional coordinate
    - MatchResult: A matched candidate with its distance
    - match_within_radius: Filter and sort candidates within a radius
"""

from nurture_geo.lib.proximity.distance import EARTH_RADIUS_KM, calculate_distance, haversine_km
from nurture_geo.lib.proximity.matcher import MatchResult, ProximityCandidate, match_within_radius

__all__ = [
    "EARTH_RADIUS_KM",
    "MatchResult",
    "ProximityCandidate",
    "calculate_distance",
    "haversine_km",
    "match_within_radius",
]
