"""
BloodType domain model.

Defines the eight ABO/Rh blood types and the static table of donor types each
recipient type can safely receive a transfusion from.
"""

from enum import Enum
from typing import FrozenSet


class BloodType(Enum):
    """
    Enumeration of ABO/Rh blood types.
    Values are the conventional labels ("A+", "AB-", ...).
    """
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"

    @classmethod
    def from_label(cls, label: str) -> "BloodType":
        """
        Convert a label such as 'ab+' or ' O- ' into the corresponding enum.
        Also accepts spelled-out Rh suffixes ('A pos', 'O negative').
        """
        key = str(label).strip().upper().replace(" ", "")
        for suffix, sign in (("POSITIVE", "+"), ("NEGATIVE", "-"), ("POS", "+"), ("NEG", "-")):
            if key.endswith(suffix):
                key = key[: -len(suffix)] + sign
                break
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown blood type label: {label!r}")

    def compatible_donors(self) -> FrozenSet["BloodType"]:
        """Blood types this recipient type can receive from."""
        return compatible_donors(self)

    def compatible_recipients(self) -> FrozenSet["BloodType"]:
        """Blood types that can receive from this donor type."""
        return compatible_recipients(self)

    def __str__(self) -> str:
        return self.value


# Recipient -> donor types it can safely receive from.
# Encodes transfusion practice; do not derive from ABO/Rh symbolically.
_COMPATIBLE_DONORS = {
    BloodType.AB_POSITIVE: frozenset(BloodType),
    BloodType.AB_NEGATIVE: frozenset(
        {BloodType.AB_NEGATIVE, BloodType.A_NEGATIVE, BloodType.B_NEGATIVE, BloodType.O_NEGATIVE}
    ),
    BloodType.A_POSITIVE: frozenset(
        {BloodType.A_POSITIVE, BloodType.A_NEGATIVE, BloodType.O_POSITIVE, BloodType.O_NEGATIVE}
    ),
    BloodType.A_NEGATIVE: frozenset({BloodType.A_NEGATIVE, BloodType.O_NEGATIVE}),
    BloodType.B_POSITIVE: frozenset(
        {BloodType.B_POSITIVE, BloodType.B_NEGATIVE, BloodType.O_POSITIVE, BloodType.O_NEGATIVE}
    ),
    BloodType.B_NEGATIVE: frozenset({BloodType.B_NEGATIVE, BloodType.O_NEGATIVE}),
    BloodType.O_POSITIVE: frozenset({BloodType.O_POSITIVE, BloodType.O_NEGATIVE}),
    BloodType.O_NEGATIVE: frozenset({BloodType.O_NEGATIVE}),
}


def compatible_donors(recipient: BloodType) -> FrozenSet[BloodType]:
    """
    Return the set of donor blood types a recipient of type `recipient`
    can safely receive from.
    """
    return _COMPATIBLE_DONORS[recipient]


def compatible_recipients(donor: BloodType) -> FrozenSet[BloodType]:
    """Inverse lookup: recipient types that can receive from `donor`."""
    return frozenset(
        recipient for recipient, donors in _COMPATIBLE_DONORS.items() if donor in donors
    )
