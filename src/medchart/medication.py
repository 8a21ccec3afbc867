"""
Medication domain model.

Defines the Medication class, a prescription record whose active/expiry state
is derived from its prescription date, its duration and the current time.

Every time-dependent method takes an optional `now`; when omitted the current
local time is used.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .dosage import Dosage
from .route import MedicationRoute


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return `now` if given, else the current local time."""
    return datetime.now() if now is None else now


def to_naive_local(moment: datetime) -> datetime:
    """
    Convert an offset-aware datetime to naive local time; naive values pass through.
    All comparisons in medchart are between naive local datetimes.
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def frequency_phrase(frequency_per_day: int) -> str:
    """'once daily', 'twice daily' or '<n> times daily'."""
    if frequency_per_day == 1:
        return "once daily"
    if frequency_per_day == 2:
        return "twice daily"
    return f"{frequency_per_day} times daily"


@dataclass(frozen=True)
class Medication:
    """
    Represents a single medication prescribed to a patient.

    Attributes:
        name: Medication name (e.g. "Aspirin").
        dosage: Amount per administration.
        route: Route of administration.
        frequency_per_day: Administrations per day (positive integer).
        duration_days: Length of the course in days (positive integer).
        date_prescribed: When the medication was prescribed.
        id: Unique identifier generated at creation.
    """

    name: str
    dosage: Dosage
    route: MedicationRoute
    frequency_per_day: int
    duration_days: int
    date_prescribed: datetime = field(default_factory=datetime.now)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("name must be a nonempty string")
        if not isinstance(self.dosage, Dosage):
            raise ValueError(f"dosage must be a Dosage, got {self.dosage!r}")
        if not isinstance(self.route, MedicationRoute):
            raise ValueError(f"route must be a MedicationRoute, got {self.route!r}")
        for attr in ("frequency_per_day", "duration_days"):
            val = getattr(self, attr)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ValueError(f"{attr} must be a positive integer, got {val!r}")
        if not isinstance(self.date_prescribed, datetime):
            raise ValueError(
                f"date_prescribed must be a datetime, got {type(self.date_prescribed).__name__}"
            )

    # ------------------
    # Derived properties
    # ------------------

    @property
    def end_date(self) -> datetime:
        """
        The moment the course ends: `duration_days` calendar days after prescription.
        Falls back to `date_prescribed` if the addition overflows.
        """
        try:
            return self.date_prescribed + timedelta(days=self.duration_days)
        except OverflowError:
            return self.date_prescribed

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """True while `now` falls before the end of the course."""
        try:
            end = self.date_prescribed + timedelta(days=self.duration_days)
        except OverflowError:
            return False
        return resolve_now(now) < end

    def days_remaining(self, now: Optional[datetime] = None) -> int:
        """Whole days left in the course, 0 once it has ended."""
        now = resolve_now(now)
        if not self.is_active(now):
            return 0
        return (self.end_date - now).days

    @property
    def dosage_description(self) -> str:
        return frequency_phrase(self.frequency_per_day)

    def matches_name(self, name: str) -> bool:
        """Case-insensitive name comparison used for duplicate detection."""
        return self.name.strip().casefold() == str(name).strip().casefold()

    def describe(self) -> str:
        """
        Human-readable prescription line, e.g.
        'Aspirin 81mg by mouth once daily for 90 days'.
        """
        return (
            f"{self.name} {self.dosage} {self.route.value} "
            f"{self.dosage_description} for {self.duration_days} days"
        )

    def __str__(self) -> str:
        return self.describe()
