"""Deterministic offline geocoder.

Produces stable, repeatable coordinates for any address without network
access. A base city centre is chosen by pattern, then two seeded offsets are
added: an area offset (up to ~2 km) keyed on the suburb-like part of the
address, and a street offset (up to ~100 m) keyed on the street name. Addresses
on the same street in the same area therefore land close together, which keeps
proximity matching meaningful in demos and tests.
"""

import math
import re

from nurture_geo.lib.geocoder.address import STREET_TYPE_KEYWORDS, normalize_address
from nurture_geo.lib.geocoder.base import BaseGeocoder, Coordinate, GeocodeProvider, GeocodingResult

# Base coordinates for major New Zealand cities
NZ_CITY_CENTERS: dict[str, Coordinate] = {
    "auckland": Coordinate(-36.8485, 174.7633),
    "wellington": Coordinate(-41.2924, 174.7787),
    "christchurch": Coordinate(-43.5321, 172.6362),
    "hamilton": Coordinate(-37.7870, 175.2793),
    "tauranga": Coordinate(-37.6878, 176.1651),
    "napier": Coordinate(-39.4928, 176.9120),
    "palmerston north": Coordinate(-40.3523, 175.6082),
    "rotorua": Coordinate(-38.1368, 176.2497),
    "new plymouth": Coordinate(-39.0579, 174.0806),
    "whangarei": Coordinate(-35.7275, 174.3166),
}

DEFAULT_CITY = "auckland"

# Checked in order; first match wins
_CITY_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b(auckland|north shore|manukau|waitakere)\b"), "auckland"),
    (re.compile(r"\b(wellington|lower hutt|upper hutt|porirua)\b"), "wellington"),
    (re.compile(r"\b(christchurch|canterbury)\b"), "christchurch"),
    (re.compile(r"\b(hamilton|waikato)\b"), "hamilton"),
    (re.compile(r"\b(tauranga|mount maunganui|bay of plenty)\b"), "tauranga"),
    (re.compile(r"\b(napier|hastings|hawkes bay|hawke's bay)\b"), "napier"),
    (re.compile(r"\b(palmerston north|manawatu)\b"), "palmerston north"),
    (re.compile(r"\brotorua\b"), "rotorua"),
    (re.compile(r"\b(new plymouth|taranaki)\b"), "new plymouth"),
    (re.compile(r"\b(whangarei|northland)\b"), "whangarei"),
]

_COUNTRY_PATTERN = re.compile(r"\b(new zealand|nz)\b")
_NUMERIC_TOKEN = re.compile(r"^\d+[a-z]?(?:/\d+[a-z]?)?$")

AREA_MAX_OFFSET = 0.018  # ~2 km
STREET_MAX_OFFSET = 0.001  # ~100 m
_LNG_SEED_SHIFT_AREA = 1000
_LNG_SEED_SHIFT_STREET = 2000


def rolling_hash(text: str) -> int:
    """Hash a string with ``h = h*31 + ord(c)`` wrapped to signed 32 bits.

    Returns:
        Absolute value of the signed 32-bit hash.
    """
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: int, low: float, high: float) -> float:
    """Map a seed to a pseudo-random value in ``[low, high)`` via ``frac(sin(seed) * 10000)``."""
    x = math.sin(seed) * 10000
    return low + (x - math.floor(x)) * (high - low)


def match_city(normalized: str) -> str:
    """Return the key of the city centre whose pattern matches the text."""
    for pattern, city in _CITY_PATTERNS:
        if pattern.search(normalized):
            return city
    return DEFAULT_CITY


def extract_tokens(normalized: str, city: str) -> tuple[str, str]:
    """Split normalized text into a (street, area) token pair.

    The street token runs up to and including the first street-type keyword
    (or the first two words when there is none). The area token is whatever
    remains once city names are removed, falling back to the city key.
    """
    text = _COUNTRY_PATTERN.sub(" ", normalized)
    words = [w for w in text.split() if not _NUMERIC_TOKEN.match(w)]

    keyword_idx = next((i for i, w in enumerate(words) if w in STREET_TYPE_KEYWORDS), None)
    split_at = keyword_idx + 1 if keyword_idx is not None else min(2, len(words))
    street = " ".join(words[:split_at])

    rest = " ".join(words[split_at:])
    for pattern, _ in _CITY_PATTERNS:
        rest = pattern.sub(" ", rest)
    area = " ".join(rest.split()) or city

    return street, area


class DeterministicGeocoder(BaseGeocoder):
    """Offline geocoder whose output depends only on the address text."""

    @property
    def provider(self) -> GeocodeProvider:
        return GeocodeProvider.MOCK

    def generate(self, address: str) -> Coordinate:
        """Generate a stable coordinate for *address*.

        Args:
            address: Freeform address string.

        Returns:
            Coordinate near the matched NZ city centre.
        """
        normalized = normalize_address(address)
        city = match_city(normalized)
        base = NZ_CITY_CENTERS[city]
        street, area = extract_tokens(normalized, city)

        area_hash = rolling_hash(area)
        street_hash = rolling_hash(street)

        lat = (
            base.lat
            + seeded_random(area_hash, -AREA_MAX_OFFSET, AREA_MAX_OFFSET)
            + seeded_random(street_hash, -STREET_MAX_OFFSET, STREET_MAX_OFFSET)
        )
        lng = (
            base.lng
            + seeded_random(area_hash + _LNG_SEED_SHIFT_AREA, -AREA_MAX_OFFSET, AREA_MAX_OFFSET)
            + seeded_random(street_hash + _LNG_SEED_SHIFT_STREET, -STREET_MAX_OFFSET, STREET_MAX_OFFSET)
        )
        return Coordinate(round(lat, 6), round(lng, 6))

    async def geocode(self, address: str) -> GeocodingResult:
        return GeocodingResult(
            coordinate=self.generate(address),
            formatted_address=address,
            provider=GeocodeProvider.MOCK,
        )
