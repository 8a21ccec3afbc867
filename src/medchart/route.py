"""
MedicationRoute domain model.

Each route carries the phrase used when a prescription is read out,
e.g. "Aspirin 81mg by mouth once daily".
"""

from enum import Enum


class MedicationRoute(Enum):
    """Routes of administration."""
    ORAL = "by mouth"
    SUBCUTANEOUS = "subcutaneously"
    INTRAMUSCULAR = "intramuscularly"
    INTRAVENOUS = "intravenously"
    INHALED = "inhaled"
    TOPICAL = "topically"

    @property
    def tag(self) -> str:
        """Short lowercase tag used in records and workbooks ('oral', 'inhaled', ...)."""
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "MedicationRoute":
        """
        Convert a tag ('oral', 'IV') or a display phrase ('by mouth') into the enum.
        """
        key = str(label).strip().lower()
        aliases = {
            "po": cls.ORAL,
            "sc": cls.SUBCUTANEOUS,
            "subq": cls.SUBCUTANEOUS,
            "im": cls.INTRAMUSCULAR,
            "iv": cls.INTRAVENOUS,
        }
        if key in aliases:
            return aliases[key]
        for route in cls:
            if key in (route.tag, route.value):
                return route
        raise ValueError(f"Unknown medication route label: {label!r}")

    def __str__(self) -> str:
        return self.value
