"""
Dosage domain model.

Defines the DosageUnit enumeration and the Dosage value object used by
Medication.
"""

from dataclasses import dataclass
from enum import Enum
from numbers import Real


class DosageUnit(Enum):
    """Units of measurement for medication dosages."""
    GRAMS = "g"
    MILLIGRAMS = "mg"
    MICROGRAMS = "mcg"

    @classmethod
    def from_label(cls, label: str) -> "DosageUnit":
        """
        Convert a unit symbol ('mg') or spelled-out name ('milligrams') into the enum.
        """
        key = str(label).strip().lower()
        mapping = {
            "g": cls.GRAMS,
            "gram": cls.GRAMS,
            "grams": cls.GRAMS,
            "mg": cls.MILLIGRAMS,
            "milligram": cls.MILLIGRAMS,
            "milligrams": cls.MILLIGRAMS,
            "mcg": cls.MICROGRAMS,
            "µg": cls.MICROGRAMS,
            "microgram": cls.MICROGRAMS,
            "micrograms": cls.MICROGRAMS,
        }
        try:
            return mapping[key]
        except KeyError:
            raise ValueError(f"Unknown dosage unit label: {label!r}")


@dataclass(frozen=True)
class Dosage:
    """
    Amount of a medication per administration.

    Attributes:
        amount: Positive quantity (e.g. 81 or 12.5).
        unit: DosageUnit of the amount.
    """

    amount: float
    unit: DosageUnit

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, Real):
            raise ValueError(f"amount must be a number, got {self.amount!r}")
        if not self.amount > 0:
            raise ValueError(f"amount must be positive, got {self.amount!r}")
        if not isinstance(self.unit, DosageUnit):
            raise ValueError(f"unit must be a DosageUnit, got {self.unit!r}")

    def __str__(self) -> str:
        # 81 -> "81mg", 81.0 -> "81mg", 12.5 -> "12.5mg"
        amount = self.amount
        if isinstance(amount, float) and amount.is_integer():
            amount = int(amount)
        return f"{amount}{self.unit.value}"
