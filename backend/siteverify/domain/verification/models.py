"""Verification domain models (actors, findings)"""

from dataclasses import dataclass, asdict
from typing import Any, Optional

from .errors import ValidationError


def normalize_region(value: Optional[str]) -> Optional[str]:
    """Canonical form used to compare jurisdictions and document regions."""
    if value is None:
        return None
    normalized = " ".join(str(value).split()).lower()
    return normalized or None


@dataclass(frozen=True)
class Actor:
    """Caller identity as supplied by the identity/claims provider.

    The claim is trusted as given; no lookup happens in the core.
    """
    user_id: str
    role: str
    jurisdiction: Optional[str] = None

    @property
    def region(self) -> Optional[str]:
        return normalize_region(self.jurisdiction)


@dataclass
class ModeratorFindings:
    """Structured result of an on-site visit.

    building_type, occupant_met and relationship are only meaningful when the
    address exists; they are dropped otherwise.
    """
    address_exists: bool
    building_type: Optional[str] = None
    occupant_met: Optional[bool] = None
    relationship: Optional[str] = None
    comments: Optional[str] = None
    photo_reference: Optional[str] = None

    def validate(self) -> None:
        """Raise ValidationError if the findings payload is inconsistent."""
        if not isinstance(self.address_exists, bool):
            raise ValidationError("address_exists must be a boolean")
        if self.address_exists and not (self.building_type and self.building_type.strip()):
            raise ValidationError("building_type is required when the address exists")
        if self.relationship and not self.occupant_met:
            raise ValidationError("relationship can only be recorded when an occupant was met")

    def to_fields(self) -> dict[str, Any]:
        """Column values written on the document."""
        fields = asdict(self)
        if not self.address_exists:
            fields["building_type"] = None
            fields["occupant_met"] = None
            fields["relationship"] = None
        return fields
