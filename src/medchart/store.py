"""
PatientStore aggregate.

An in-memory collection of patients keyed by medical record number.
Adding a patient whose MRN is already stored replaces the stored one.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, FrozenSet, Iterable, Iterator, Optional

from .patient import Patient

logger = logging.getLogger(__name__)


class PatientStore:
    """
    Set-like container of Patient objects.

    Filtering and sorting are left to callers; `all()` makes no ordering promise.
    """

    def __init__(self, patients: Optional[Iterable[Patient]] = None):
        self._patients: Dict[uuid.UUID, Patient] = {}
        self._lock = threading.Lock()
        for patient in patients or ():
            self.add(patient)

    def add(self, patient: Patient) -> None:
        """Insert `patient`, replacing any stored patient with the same MRN."""
        with self._lock:
            replaced = patient.medical_record_number in self._patients
            self._patients[patient.medical_record_number] = patient
        logger.debug(
            "%s patient %s", "Replaced" if replaced else "Added", patient.medical_record_number
        )

    def remove(self, patient: Patient) -> None:
        """Delete `patient` by MRN; no-op if it is not stored."""
        with self._lock:
            removed = self._patients.pop(patient.medical_record_number, None)
        if removed is not None:
            logger.debug("Removed patient %s", patient.medical_record_number)

    def all(self) -> FrozenSet[Patient]:
        """Every stored patient."""
        with self._lock:
            return frozenset(self._patients.values())

    def __len__(self) -> int:
        return len(self._patients)

    def __contains__(self, patient: object) -> bool:
        if not isinstance(patient, Patient):
            return False
        return patient.medical_record_number in self._patients

    def __iter__(self) -> Iterator[Patient]:
        return iter(self.all())

    @classmethod
    def sample(cls) -> "PatientStore":
        """A store pre-filled with Patient.samples()."""
        return cls(Patient.samples())
