"""Address normalization, component parsing, and formatting for NZ addresses.

Normalizes freeform address strings so that cache keys and hashes are stable,
and splits comma-delimited NZ addresses ("12 Fraser Road, Papatoetoe, Manukau,
Auckland 2025") into street number, street name, suburb, city, region, and
postal code using an ordered table of heuristic rules.
"""

import re
from collections.abc import Callable
from dataclasses import asdict, dataclass

# Common street-type abbreviations expanded during normalization
STREET_TYPE_ABBREVIATIONS: dict[str, str] = {
    "st": "street",
    "rd": "road",
    "ave": "avenue",
    "dr": "drive",
    "ln": "lane",
    "pl": "place",
    "cres": "crescent",
    "ter": "terrace",
}

# Words that mark a segment as a street line
STREET_TYPE_KEYWORDS: frozenset[str] = frozenset(
    {
        "road",
        "street",
        "avenue",
        "drive",
        "lane",
        "place",
        "way",
        "crescent",
        "terrace",
        "court",
        "parade",
        "quay",
        "close",
        "grove",
        "highway",
        "boulevard",
    }
)

# Known NZ localities and the slot they prefer
KNOWN_LOCALITIES: dict[str, str] = {
    # Regions
    "auckland": "region",
    "wellington": "region",
    "canterbury": "region",
    "waikato": "region",
    "bay of plenty": "region",
    "northland": "region",
    "otago": "region",
    "southland": "region",
    "taranaki": "region",
    "tasman": "region",
    "marlborough": "region",
    "gisborne": "region",
    "hawke's bay": "region",
    "hawkes bay": "region",
    "manawatu-wanganui": "region",
    "west coast": "region",
    # Cities and territorial authorities
    "christchurch": "city",
    "hamilton": "city",
    "tauranga": "city",
    "napier": "city",
    "hastings": "city",
    "palmerston north": "city",
    "rotorua": "city",
    "queenstown": "city",
    "invercargill": "city",
    "nelson": "city",
    "whangarei": "city",
    "new plymouth": "city",
    "dunedin": "city",
    "manukau": "city",
    "waitakere": "city",
    "north shore": "city",
    "lower hutt": "city",
    "upper hutt": "city",
    "porirua": "city",
}

_ABBREVIATION_PATTERN = re.compile(rf"\b({'|'.join(STREET_TYPE_ABBREVIATIONS)})\b")

# House number, optionally with a unit prefix ("2/15a")
_STREET_NUMBER_PATTERN = re.compile(r"^(\d+[a-z]?(?:/\d+[a-z]?)?)(?:\s+(.*))?$")

# NZ postal codes are exactly 4 digits
_POSTAL_CODE_PATTERN = re.compile(r"^(.*?)\s*\b(\d{4})$")


def normalize_segment(segment: str) -> str:
    """Normalize one comma-delimited address segment.

    Lower-cases, strips periods and commas, collapses whitespace, and expands
    street-type abbreviations with whole-word matching.

    Args:
        segment: Raw address text.

    Returns:
        Normalized text, or an empty string.
    """
    if not segment:
        return ""
    result = segment.lower().replace(",", " ").replace(".", "")
    result = " ".join(result.split())
    return _ABBREVIATION_PATTERN.sub(lambda m: STREET_TYPE_ABBREVIATIONS[m.group(1)], result)


def normalize_address(raw: str) -> str:
    """Canonicalize a freeform address string.

    Args:
        raw: Raw freeform address.

    Returns:
        Normalized address suitable for cache keying and hashing.
    """
    return normalize_segment(raw)


def has_street_keyword(text: str) -> bool:
    """Return True if *text* contains a street-type keyword as a whole word."""
    return any(word in STREET_TYPE_KEYWORDS for word in text.split())


@dataclass
class AddressComponents:
    """Parsed NZ address components. Any field may be absent."""

    street_number: str | None = None
    street_name: str | None = None
    suburb: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to a dict containing only the populated components."""
        return {key: value for key, value in asdict(self).items() if value}


# A segment rule either consumes the segment (returns None) or passes the
# remaining text on to the next rule.
SegmentRule = Callable[[str, AddressComponents], str | None]


def parse_street_segment(segment: str, components: AddressComponents) -> None:
    """Classify the first segment as street number + name, street name, or suburb."""
    num_match = _STREET_NUMBER_PATTERN.match(segment)
    if num_match:
        components.street_number = num_match.group(1)
        if num_match.group(2):
            components.street_name = num_match.group(2)
    elif has_street_keyword(segment):
        components.street_name = segment
    else:
        components.suburb = segment


def take_postal_code(segment: str, components: AddressComponents) -> str | None:
    """Extract a trailing 4-digit postal code, passing on any leading text."""
    match = _POSTAL_CODE_PATTERN.match(segment)
    if not match:
        return segment
    components.postal_code = match.group(2)
    remainder = match.group(1).strip()
    return remainder or None


def take_known_locality(segment: str, components: AddressComponents) -> str | None:
    """Assign a segment naming a known region or city to its preferred slot."""
    preferred = KNOWN_LOCALITIES.get(segment)
    if preferred is None:
        return segment
    other = "city" if preferred == "region" else "region"
    for slot in (preferred, other):
        if getattr(components, slot) is None:
            setattr(components, slot, segment)
            return None
    return segment


def take_trailing_locality(segment: str, components: AddressComponents) -> str:
    """Split a known region or city off the end of a segment, returning the leading text."""
    for locality in sorted(KNOWN_LOCALITIES, key=len, reverse=True):
        if segment != locality and not segment.endswith(f" {locality}"):
            continue
        if take_known_locality(locality, components) is None:
            return segment[: -len(locality)].strip()
        break
    return segment


def take_suburb(segment: str, components: AddressComponents) -> str | None:
    if components.suburb is None:
        components.suburb = segment
        return None
    return segment


def take_city(segment: str, components: AddressComponents) -> str | None:
    if components.city is None:
        components.city = segment
        return None
    return segment


# Applied in order to every segment after the street line
SEGMENT_RULES: list[SegmentRule] = [
    take_postal_code,
    take_known_locality,
    take_suburb,
    take_city,
]


def reclassify_street_suburb(components: AddressComponents) -> None:
    """Move a street-like suburb into street_name when no street was found."""
    if components.street_name is None and components.suburb and has_street_keyword(components.suburb):
        components.street_name = components.suburb
        components.suburb = None


def parse_address_components(address: str) -> AddressComponents:
    """Parse a freeform NZ address string into structured components.

    Best-effort parsing. Never raises; components that cannot be extracted
    are left unset.

    Args:
        address: Freeform address string.

    Returns:
        AddressComponents with extracted fields.
    """
    components = AddressComponents()
    if not address or not address.strip():
        return components

    segments = [s for s in (normalize_segment(part) for part in address.split(",")) if s]
    if not segments:
        return components

    street_line = segments[0]
    if len(segments) == 1:
        # No commas: postcode and locality can only be recognised at the end
        street_line = take_postal_code(street_line, components) or ""
        if street_line:
            street_line = take_trailing_locality(street_line, components)
    if street_line:
        parse_street_segment(street_line, components)

    for segment in segments[1:]:
        remaining: str | None = segment
        for rule in SEGMENT_RULES:
            if remaining is None:
                break
            remaining = rule(remaining, components)

    reclassify_street_suburb(components)
    return components


def format_address(components: AddressComponents) -> str:
    """Build a display address from components.

    Region is only included when it differs from the city.

    Args:
        components: Address components.

    Returns:
        Comma-separated address string.
    """
    parts: list[str] = []

    if components.street_number and components.street_name:
        parts.append(f"{components.street_number} {components.street_name}")
    elif components.street_name:
        parts.append(components.street_name)

    if components.suburb:
        parts.append(components.suburb)
    if components.city:
        parts.append(components.city)
    if components.region and components.region != components.city:
        parts.append(components.region)
    if components.postal_code:
        parts.append(components.postal_code)

    return ", ".join(parts)
