"""
Record (de)serialization for Patient and Medication.

Records are plain dicts of JSON-compatible values:
- dates and datetimes as ISO-8601 strings,
- enums as their tags ("AB+", "mg", "oral"),
- UUIDs as strings,
- an unknown blood type as null (a missing key reads back the same way).
"""

from __future__ import annotations

import json
import pathlib
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Union

from .blood_type import BloodType
from .dosage import Dosage, DosageUnit
from .medication import Medication, to_naive_local
from .patient import Patient
from .route import MedicationRoute

Record = Dict[str, Any]
PathLike = Union[str, pathlib.Path]


def _date_from_iso(value: str) -> date:
    """'2000-01-18' -> date, '2000-01-18T10:00:00' -> datetime (naive local)."""
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 date string, got {value!r}")
    value = value.strip()
    if "T" in value or " " in value:
        return to_naive_local(datetime.fromisoformat(value))
    return date.fromisoformat(value)


def _require_mapping(record: Any, kind: str) -> Record:
    if not isinstance(record, dict):
        raise ValueError(f"Malformed {kind} record: expected an object, got {type(record).__name__}")
    return record


# ----------
# Medication
# ----------


def medication_to_record(medication: Medication) -> Record:
    return {
        "id": str(medication.id),
        "name": medication.name,
        "dosage": {
            "amount": medication.dosage.amount,
            "unit": medication.dosage.unit.value,
        },
        "route": medication.route.tag,
        "frequency_per_day": medication.frequency_per_day,
        "duration_days": medication.duration_days,
        "date_prescribed": medication.date_prescribed.isoformat(),
    }


def medication_from_record(record: Record) -> Medication:
    """Inverse of medication_to_record. Raises KeyError/ValueError on malformed input."""
    record = _require_mapping(record, "medication")
    dosage = _require_mapping(record["dosage"], "dosage")
    try:
        return Medication(
            name=record["name"],
            dosage=Dosage(amount=dosage["amount"], unit=DosageUnit.from_label(dosage["unit"])),
            route=MedicationRoute.from_label(record["route"]),
            frequency_per_day=int(record["frequency_per_day"]),
            duration_days=int(record["duration_days"]),
            date_prescribed=to_naive_local(datetime.fromisoformat(record["date_prescribed"])),
            id=uuid.UUID(str(record["id"])),
        )
    except (TypeError, AttributeError) as e:
        raise ValueError(f"Malformed medication record: {e}") from e


# -------
# Patient
# -------


def patient_to_record(patient: Patient) -> Record:
    return {
        "medical_record_number": str(patient.medical_record_number),
        "first_name": patient.first_name,
        "last_name": patient.last_name,
        "date_of_birth": patient.date_of_birth.isoformat(),
        "height_mm": patient.height_mm,
        "weight_g": patient.weight_g,
        "blood_type": patient.blood_type.value if patient.blood_type is not None else None,
        "medications": [medication_to_record(m) for m in patient.medications],
    }


def patient_from_record(record: Record) -> Patient:
    """
    Inverse of patient_to_record.

    The medical record number and every medication id are restored as stored,
    so the rebuilt patient compares equal to the original.
    """
    record = _require_mapping(record, "patient")
    raw_blood_type = record.get("blood_type")
    blood_type = None if raw_blood_type is None else BloodType.from_label(raw_blood_type)
    medications = record.get("medications", [])
    if not isinstance(medications, list):
        raise ValueError(f"Malformed patient record: medications must be a list, got {medications!r}")
    try:
        return Patient(
            first_name=record["first_name"],
            last_name=record["last_name"],
            date_of_birth=_date_from_iso(record["date_of_birth"]),
            height_mm=int(record["height_mm"]),
            weight_g=int(record["weight_g"]),
            blood_type=blood_type,
            medical_record_number=uuid.UUID(str(record["medical_record_number"])),
            medications=[medication_from_record(m) for m in medications],
        )
    except (TypeError, AttributeError) as e:
        raise ValueError(f"Malformed patient record: {e}") from e


# -----
# Files
# -----


def dump_patients(patients: Iterable[Patient], path: PathLike) -> pathlib.Path:
    """Write patients as a JSON list of records; returns the written path."""
    out = pathlib.Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    payload = [patient_to_record(p) for p in patients]
    with open(out, "w", encoding="utf-8") as out_f:
        json.dump(payload, out_f, indent=2)
    return out


def load_patients(path: PathLike) -> List[Patient]:
    """Read a JSON list of patient records written by dump_patients."""
    with open(path, "r", encoding="utf-8") as in_f:
        payload = json.load(in_f)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON list of patient records in {path}")
    return [patient_from_record(record) for record in payload]
