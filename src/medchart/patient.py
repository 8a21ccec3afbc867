"""
Patient domain model.

Defines the Patient class: demographic fields, an optional blood type and the
patient's medication history, with the derived views a patient list or a
patient detail screen needs.

High-level role in medchart:
- Callers (CLI, workbook mapper) build Patient objects from parsed input.
- Patient.prescribe() is the only write path into the medication history,
  guarding against a second active prescription of the same medication.
- PatientStore keeps patients keyed by medical record number.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import InitVar, dataclass, field
from datetime import date, datetime
from typing import FrozenSet, List, Optional, Union

from .blood_type import BloodType, compatible_donors
from .errors import DuplicateMedication, FutureDateOfBirth, InvalidBloodTypeForTransfusion
from .medication import Medication, resolve_now

logger = logging.getLogger(__name__)


# -------------
# Date helpers
# -------------


def _is_after(moment: date, now: datetime) -> bool:
    """Compare a date or datetime against `now` at the granularity of `moment`."""
    if isinstance(moment, datetime):
        return moment > now
    return moment > now.date()


def _age_in_years(date_of_birth: date, now: datetime) -> int:
    """Whole calendar years between `date_of_birth` and `now`."""
    years = now.year - date_of_birth.year
    if isinstance(date_of_birth, datetime):
        birthday_pending = (now.month, now.day, now.time()) < (
            date_of_birth.month,
            date_of_birth.day,
            date_of_birth.time(),
        )
    else:
        birthday_pending = (now.month, now.day) < (date_of_birth.month, date_of_birth.day)
    if birthday_pending:
        years -= 1
    return max(years, 0)


# ----------------------
# Core domain data class
# ----------------------


@dataclass(eq=False)
class Patient:
    """
    Represents a single patient record.

    Attributes:
        first_name: Given name (nonempty).
        last_name: Family name (nonempty).
        date_of_birth: Date (or datetime) of birth; may not lie after creation time.
        height_mm: Height in millimeters (positive integer).
        weight_g: Weight in grams (positive integer).
        blood_type: BloodType, or None while unknown.
        medical_record_number: Unique identifier generated at creation; used for equality.
        medications: Every medication ever prescribed, in prescription order.
            Mutate it through prescribe() and remove_medication() only.

    Raises:
        FutureDateOfBirth: if `date_of_birth` is after `now` (defaults to the current time).
        ValueError: on empty names or non-positive measurements.
    """

    first_name: str
    last_name: str
    date_of_birth: date
    height_mm: int
    weight_g: int
    blood_type: Optional[BloodType] = None
    medical_record_number: uuid.UUID = field(default_factory=uuid.uuid4)
    medications: List[Medication] = field(default_factory=list)
    now: InitVar[Optional[datetime]] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self, now: Optional[datetime]) -> None:
        for attr in ("first_name", "last_name"):
            val = getattr(self, attr)
            if not isinstance(val, str) or not val.strip():
                raise ValueError(f"{attr} must be a nonempty string")

        for attr in ("height_mm", "weight_g"):
            val = getattr(self, attr)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ValueError(f"{attr} must be a positive integer, got {val!r}")

        if not isinstance(self.date_of_birth, date):
            raise ValueError(
                f"date_of_birth must be a date, got {type(self.date_of_birth).__name__}"
            )
        if _is_after(self.date_of_birth, resolve_now(now)):
            raise FutureDateOfBirth(self.date_of_birth)

        if self.blood_type is not None and not isinstance(self.blood_type, BloodType):
            raise ValueError(f"blood_type must be a BloodType or None, got {self.blood_type!r}")

        if not isinstance(self.medical_record_number, uuid.UUID):
            raise ValueError(
                f"medical_record_number must be a UUID, got {self.medical_record_number!r}"
            )

        # The patient owns its history exclusively
        self.medications = list(self.medications)
        for medication in self.medications:
            if not isinstance(medication, Medication):
                raise ValueError(f"medications must hold Medication objects, got {medication!r}")

    # --------
    # Identity
    # --------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Patient):
            return NotImplemented
        return self.medical_record_number == other.medical_record_number

    def __hash__(self) -> int:
        return hash(self.medical_record_number)

    # ----------------------
    # Convenience properties
    # ----------------------

    @property
    def date_of_birth_string(self) -> str:
        """Date of birth formatted as YYYY-MM-DD."""
        return self.date_of_birth.strftime("%Y-%m-%d")

    @property
    def height_cm(self) -> float:
        return self.height_mm / 10

    @property
    def weight_kg(self) -> float:
        return self.weight_g / 1000

    def age(self, now: Optional[datetime] = None) -> int:
        """Age in whole calendar years."""
        return _age_in_years(self.date_of_birth, resolve_now(now))

    def full_name_and_age(self, now: Optional[datetime] = None) -> str:
        """Name and age as shown in a patient list: 'Last, First (Age)'."""
        return f"{self.last_name}, {self.first_name} ({self.age(now)})"

    def current_medications(
        self, now: Optional[datetime] = None, newest_first: bool = False
    ) -> List[Medication]:
        """
        Medications still within their prescribed duration, ordered by
        date_prescribed (oldest first unless `newest_first`).
        """
        now = resolve_now(now)
        active = [m for m in self.medications if m.is_active(now)]
        return sorted(active, key=lambda m: m.date_prescribed, reverse=newest_first)

    def compatible_donor_types(self) -> FrozenSet[BloodType]:
        """Donor blood types this patient can receive; empty while the blood type is unknown."""
        if self.blood_type is None:
            return frozenset()
        return compatible_donors(self.blood_type)

    # --------------------
    # Medication history
    # --------------------

    def prescribe(self, medication: Medication, now: Optional[datetime] = None) -> None:
        """
        Append `medication` to the history.

        Raises:
            DuplicateMedication: if a medication with the same name (case-insensitive)
                is still active; the history is left unchanged.
        """
        now = resolve_now(now)
        with self._lock:
            for existing in self.medications:
                if existing.matches_name(medication.name) and existing.is_active(now):
                    raise DuplicateMedication(medication.name)
            self.medications.append(medication)
        logger.debug(
            "Prescribed %s to patient %s", medication.describe(), self.medical_record_number
        )

    def remove_medication(self, medication: Union[Medication, uuid.UUID]) -> None:
        """Delete a medication (or the medication with this id) from the history; no-op if absent."""
        medication_id = medication.id if isinstance(medication, Medication) else medication
        with self._lock:
            self.medications[:] = [m for m in self.medications if m.id != medication_id]

    # -------------
    # Transfusion
    # -------------

    def can_receive_blood(self, donor: "Patient") -> bool:
        """
        Whether this patient can receive a transfusion from `donor`.

        Raises:
            InvalidBloodTypeForTransfusion: if either blood type is unknown.
        """
        if self.blood_type is None or donor.blood_type is None:
            raise InvalidBloodTypeForTransfusion()
        return donor.blood_type in self.compatible_donor_types()

    # -----------
    # Presentation
    # -----------

    def describe(self, now: Optional[datetime] = None) -> str:
        """Multi-line summary as shown on a patient detail screen."""
        now = resolve_now(now)
        lines = [
            f"Patient: {self.full_name_and_age(now)}",
            f"MRN: {self.medical_record_number}",
            f"Date of Birth: {self.date_of_birth_string}",
            f"Blood Type: {self.blood_type.value if self.blood_type else 'Unknown'}",
            f"Height: {self.height_cm} cm",
            f"Weight: {self.weight_kg} kg",
            "Active Medications:",
        ]
        lines.extend(
            f"{m.describe()} ({m.days_remaining(now)} days remaining)"
            for m in self.current_medications(now)
        )
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()

    @classmethod
    def samples(cls) -> List["Patient"]:
        """A few ready-made patients for demos and tests."""
        return [
            cls(
                first_name="John",
                last_name="Doe",
                date_of_birth=datetime.fromtimestamp(548_186_691),
                height_mm=1800,
                weight_g=70000,
                blood_type=BloodType.AB_POSITIVE,
            ),
            cls(
                first_name="Jane",
                last_name="Smith",
                date_of_birth=datetime.fromtimestamp(748_186_691),
                height_mm=1650,
                weight_g=65000,
                blood_type=BloodType.B_NEGATIVE,
            ),
            cls(
                first_name="Robert",
                last_name="Anderson",
                date_of_birth=datetime.fromtimestamp(948_186_691),
                height_mm=1750,
                weight_g=80000,
                blood_type=BloodType.O_POSITIVE,
            ),
        ]
