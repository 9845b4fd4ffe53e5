from __future__ import annotations

from enum import Enum
from typing import Optional


class AssociationType(str, Enum):
    """Known kinds of related record; anything else falls back to OTHER."""

    PET = "pet"
    OWNER = "owner"
    BOOKING = "booking"
    INVOICE = "invoice"
    SEGMENT = "segment"
    KENNEL = "kennel"
    SERVICE = "service"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "AssociationType":
        """Case-insensitive, singular or plural ("Pets" -> PET); unknown or empty -> OTHER."""
        if not value:
            return cls.OTHER
        token = value.strip().lower()
        singular = token[:-1] if token.endswith("s") else token
        for candidate in (token, singular):
            try:
                return cls(_ALIASES.get(candidate, candidate))
            except ValueError:
                continue
        return cls.OTHER

    @property
    def icon(self) -> str:
        return _ICONS[self]


_ALIASES = {"customer": "owner"}

_ICONS = {
    AssociationType.PET: "paw-print",
    AssociationType.OWNER: "user",
    AssociationType.BOOKING: "calendar",
    AssociationType.INVOICE: "file-text",
    AssociationType.SEGMENT: "tag",
    AssociationType.KENNEL: "home",
    AssociationType.SERVICE: "credit-card",
    AssociationType.OTHER: "tag",
}
