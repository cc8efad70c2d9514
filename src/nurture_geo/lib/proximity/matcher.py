"""Radius-based proximity matching between a reference point and candidates.

Used to pick the contacts near a listing (or the sold properties near a
contact) for SMS campaigns. Operates only on already-geocoded candidates;
nothing here touches the network.
"""

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from nurture_geo.lib.geocoder.base import Coordinate
from nurture_geo.lib.proximity.distance import haversine_km


@dataclass(frozen=True)
class ProximityCandidate:
    """An entity that may be matched by location.

    Candidates without a coordinate never match.
    """

    id: Any
    coordinate: Coordinate | None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        id_key: str = "id",
        lat_key: str = "lat",
        lng_key: str = "lng",
    ) -> "ProximityCandidate":
        """Build a candidate from a loosely-typed record.

        Missing, non-numeric, non-finite, or out-of-range coordinates produce
        a candidate with ``coordinate=None``.

        Args:
            record: Mapping with id and optional lat/lng entries.
            id_key: Key holding the entity id.
            lat_key: Key holding the latitude.
            lng_key: Key holding the longitude.

        Returns:
            A ProximityCandidate carrying the full record as attributes.
        """
        return cls(
            id=record.get(id_key),
            coordinate=_coerce_coordinate(record.get(lat_key), record.get(lng_key)),
            attributes=record,
        )


@dataclass(frozen=True)
class MatchResult:
    """A matched candidate and its distance from the origin."""

    candidate: ProximityCandidate
    distance_km: float


def match_within_radius(
    origin: Coordinate,
    radius_km: float,
    candidates: Iterable[ProximityCandidate],
    *,
    priority: Callable[[ProximityCandidate], bool] | None = None,
) -> list[MatchResult]:
    """Return candidates within *radius_km* of *origin*, nearest first.

    The radius is inclusive. When *priority* is given, candidates satisfying
    it sort ahead of all others; each group is ordered by distance.

    Args:
        origin: Reference point.
        radius_km: Maximum distance in kilometers.
        candidates: Entities to test.
        priority: Optional predicate selecting candidates to surface first.

    Returns:
        Matches sorted by the priority policy, then distance.
    """
    matches = [
        MatchResult(candidate=candidate, distance_km=distance)
        for candidate in candidates
        if candidate.coordinate is not None
        and (distance := haversine_km(origin, candidate.coordinate)) <= radius_km
    ]

    if priority is None:
        matches.sort(key=lambda m: m.distance_km)
    else:
        matches.sort(key=lambda m: (not priority(m.candidate), m.distance_km))
    return matches


def _coerce_coordinate(lat: object, lng: object) -> Coordinate | None:
    if lat is None or lng is None or isinstance(lat, bool) or isinstance(lng, bool):
        return None
    try:
        lat_f = float(lat)  # type: ignore[arg-type]
        lng_f = float(lng)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return None
    try:
        return Coordinate(lat_f, lng_f)
    except ValueError:
        return None
