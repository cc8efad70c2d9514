"""Address verification: component validation for NZ addresses.

Validates parsed address components for completeness and correctness so
import and auto-correct flows can tell users what is missing.
"""

import re
from dataclasses import dataclass, field

from nurture_geo.lib.geocoder.address import AddressComponents

# A locality is required, but either suburb or city satisfies it
_REQUIRED_COMPONENTS = ["street_number", "street_name", "locality", "postal_code"]

_POSTAL_CODE_PATTERN = re.compile(r"^\d{4}$")


@dataclass
class MalformedInfo:
    """A component that is present but improperly formatted."""

    component: str
    issue: str


@dataclass
class ValidationFeedback:
    """Result of address component validation."""

    present_components: list[str] = field(default_factory=list)
    missing_components: list[str] = field(default_factory=list)
    malformed_components: list[MalformedInfo] = field(default_factory=list)
    is_well_formed: bool = False


def validate_address_components(components: AddressComponents) -> ValidationFeedback:
    """Validate parsed address components for completeness and format.

    Checks required fields (street_number, street_name, suburb or city,
    postal_code) and validates the postal code is exactly 4 digits.

    Args:
        components: Parsed address components.

    Returns:
        ValidationFeedback with present, missing, and malformed component lists.
    """
    feedback = ValidationFeedback()
    feedback.present_components = list(components.to_dict())

    present = set(feedback.present_components)
    if present & {"suburb", "city"}:
        present.add("locality")

    for required in _REQUIRED_COMPONENTS:
        if required not in present:
            feedback.missing_components.append(required)

    if components.postal_code and not _POSTAL_CODE_PATTERN.match(components.postal_code):
        feedback.malformed_components.append(
            MalformedInfo(component="postal_code", issue="NZ postal code must be exactly 4 digits")
        )

    feedback.is_well_formed = not feedback.missing_components and not feedback.malformed_components

    return feedback
