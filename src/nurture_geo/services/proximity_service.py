"""Proximity service: distance and radius matching over plain records."""

from collections.abc import Collection, Iterable, Mapping
from typing import Any

from nurture_geo.lib.geocoder.base import Coordinate
from nurture_geo.lib.proximity import ProximityCandidate, calculate_distance, match_within_radius

__all__ = ["calculate_distance", "find_within_radius"]


def find_within_radius(
    origin_lat: float,
    origin_lng: float,
    candidates: Iterable[Mapping[str, Any]],
    radius_km: float,
    *,
    priority_statuses: Collection[str] | None = None,
) -> list[dict[str, Any]]:
    """Find records within *radius_km* of an origin point.

    Records are read through their ``lat``/``lng`` keys; records without a
    usable coordinate are skipped.

    Args:
        origin_lat: Origin latitude.
        origin_lng: Origin longitude.
        candidates: Records such as contacts or properties.
        radius_km: Inclusive search radius in kilometers.
        priority_statuses: Records whose ``status`` is in this set sort
            ahead of all others (e.g. ``{"sold"}``).

    Returns:
        Copies of the matching records with a ``distance`` key (km), nearest
        first within each priority group.

    Raises:
        ValueError: If the origin coordinate is out of range.
    """
    origin = Coordinate(origin_lat, origin_lng)
    pool = [ProximityCandidate.from_record(record) for record in candidates]

    priority = None
    if priority_statuses:
        statuses = set(priority_statuses)

        def priority(candidate: ProximityCandidate) -> bool:
            status = candidate.attributes.get("status")
            return isinstance(status, str) and status in statuses

    matches = match_within_radius(origin, radius_km, pool, priority=priority)
    return [{**match.candidate.attributes, "distance": match.distance_km} for match in matches]
