import abc
import logging
import typing

from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd
from stairval.notepad import Notepad

from .blood_type import BloodType
from .dosage import Dosage, DosageUnit
from .errors import MedChartError
from .medication import Medication, to_naive_local
from .patient import Patient
from .route import MedicationRoute

logger = logging.getLogger(__name__)

# Minimal required columns (after renaming) to build each record type
PATIENT_KEY_COLUMNS = {
    "first_name",
    "last_name",
    "date_of_birth",
    "height_mm",
    "weight_g",
}

MEDICATION_KEY_COLUMNS = {
    "name",
    "dosage",
    "unit",
    "route",
    "frequency_per_day",
    "duration_days",
    "date_prescribed",
}

# Both sheet kinds carry the workbook's own patient identifier in their first column
PATIENT_ID_COLUMN = "patient_ID"

# Friendly aliases → reduces friction while keeping behavior explicit
KNOWN_SHEET_ALIASES: dict[str, set[str]] = {"patients": {"patients", "patient", "demographics"},
                                            "medications": {"medications", "medication", "prescriptions", "meds"}}


@dataclass
class TypedTables:
    """
    Explicit, typed access to workbook sheets.
    Any field can be `None`, meaning that the sheet was not provided.
    """
    patients: pd.DataFrame | None
    medications: pd.DataFrame | None


class TableMapper(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_mapping(
            self, tables: dict[str, pd.DataFrame], notepad: Notepad
    ) -> dict[str, Patient]:
        # return fully-assembled patients keyed by the workbook's patient ID
        raise NotImplementedError


class DefaultMapper(TableMapper):
    def __init__(self, now: datetime | None = None):
        """
        `now` pins the clock used for date-of-birth checks and duplicate detection;
        None means the current time at mapping.
        """
        self.now = now

    def apply_mapping(
            self, tables: dict[str, pd.DataFrame], notepad: Notepad
    ) -> dict[str, Patient]:
        """
        Process:
        1) choose/validate input tables
        2) map patient rows to Patient records
        3) map medication rows and prescribe them, oldest first
        4) return the patients keyed by workbook patient ID
        """
        now = self.now or datetime.now()
        typed_tables = self._choose_named_tables(tables, notepad)
        patients = self._map_patients_table(typed_tables.patients, notepad, now)
        self._map_medications_table(typed_tables.medications, patients, notepad, now)
        return patients

    # Value helpers
    @staticmethod
    def _is_missing(value: typing.Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    @staticmethod
    def _to_int(value: typing.Any, field_name: str) -> int:
        """
        Whole-number cells: Excel hands back floats (1800.0), so accept those
        when integral and reject anything fractional or empty.
        """
        if DefaultMapper._is_missing(value):
            raise ValueError(f"{field_name} is missing")
        number = float(value)
        if not number.is_integer():
            raise ValueError(f"{field_name} must be a whole number, got {value!r}")
        return int(number)

    @staticmethod
    def _to_number(value: typing.Any, field_name: str) -> float | int:
        if DefaultMapper._is_missing(value):
            raise ValueError(f"{field_name} is missing")
        number = float(value)
        return int(number) if number.is_integer() else number

    @staticmethod
    def _to_datetime(value: typing.Any, field_name: str) -> datetime:
        """
        Accept Excel dates, pandas Timestamps and ISO-like strings.
        Values carrying a UTC offset are converted to naive local time.
        """
        if DefaultMapper._is_missing(value):
            raise ValueError(f"{field_name} is missing")
        timestamp = pd.to_datetime(value)
        if pd.isna(timestamp):
            raise ValueError(f"{field_name} is missing")
        return to_naive_local(timestamp.to_pydatetime())

    @staticmethod
    def _to_date(value: typing.Any, field_name: str) -> date:
        return DefaultMapper._to_datetime(value, field_name).date()

    def _prepare_sheet(self, df: pd.DataFrame) -> pd.DataFrame:
        """Bring the index into a column named 'patient_ID'."""
        working = df.reset_index()
        original = working.columns[0]
        return working.rename(columns={original: PATIENT_ID_COLUMN})

    @staticmethod
    def parse_patient_row(row: pd.Series, sheet_name: str, notepad: Notepad,
                          now: datetime | None = None) -> Patient | None:
        """
        Parse a single patient row into a Patient.
        Returns None (after recording an error) if validation fails for this row.
        """
        try:
            raw_blood_type = row.get("blood_type")
            blood_type = (None if DefaultMapper._is_missing(raw_blood_type)
                          else BloodType.from_label(str(raw_blood_type)))
            return Patient(
                first_name=str(row["first_name"]).strip(),
                last_name=str(row["last_name"]).strip(),
                date_of_birth=DefaultMapper._to_date(row["date_of_birth"], "date_of_birth"),
                height_mm=DefaultMapper._to_int(row["height_mm"], "height_mm"),
                weight_g=DefaultMapper._to_int(row["weight_g"], "weight_g"),
                blood_type=blood_type,
                now=now,
            )
        except (MedChartError, ValueError, TypeError) as e:
            notepad.add_error(f"Sheet {sheet_name!r}, patient {row.get(PATIENT_ID_COLUMN)!r}: {e}")
            return None

    @staticmethod
    def parse_medication_row(row: pd.Series, sheet_name: str, notepad: Notepad) -> Medication | None:
        """
        Parse a single medication row into a Medication.
        Returns None (after recording an error) if validation fails for this row.
        """
        try:
            return Medication(
                name=str(row["name"]).strip(),
                dosage=Dosage(
                    amount=DefaultMapper._to_number(row["dosage"], "dosage"),
                    unit=DosageUnit.from_label(str(row["unit"])),
                ),
                route=MedicationRoute.from_label(str(row["route"])),
                frequency_per_day=DefaultMapper._to_int(row["frequency_per_day"], "frequency_per_day"),
                duration_days=DefaultMapper._to_int(row["duration_days"], "duration_days"),
                date_prescribed=DefaultMapper._to_datetime(row["date_prescribed"], "date_prescribed"),
            )
        except (ValueError, TypeError) as e:
            notepad.add_error(f"Sheet {sheet_name!r}, patient {row.get(PATIENT_ID_COLUMN)!r}: {e}")
            return None

    def _choose_named_tables(self, tables: dict[str, pd.DataFrame], notepad: Notepad) -> TypedTables:
        """
        Prefer explicit sheet names (plus common aliases).
        """

        def by_alias(kind: str) -> pd.DataFrame | None:
            aliases = KNOWN_SHEET_ALIASES[kind]
            for sheet_name, df in tables.items():
                if sheet_name.strip().casefold() in aliases:
                    return df
            return None

        selected = TypedTables(
            patients=by_alias("patients"),
            medications=by_alias("medications"),
        )

        # Hard-minimum: patients must exist
        if selected.patients is None:
            notepad.add_error("Missing required sheet: 'patients'.")

        return selected

    # Table-level wrapper mappers
    def _map_patients_table(self, df: pd.DataFrame | None, notepad: Notepad,
                            now: datetime) -> dict[str, Patient]:
        """
        Sheet-level wrapper for Patient rows:
          - normalize index to 'patient_ID'
          - require all key patient columns
          - reject repeated patient IDs
          - delegate row conversion to parse_patient_row
        """
        patients: dict[str, Patient] = {}
        if df is None:
            return patients
        working = self._prepare_sheet(df)

        missing = sorted(PATIENT_KEY_COLUMNS - set(working.columns))
        if missing:
            notepad.add_error(f"Sheet 'patients': missing required columns: {missing}")
            return patients

        for _, row in working.iterrows():
            patient_id = str(row[PATIENT_ID_COLUMN]).strip()
            if patient_id in patients:
                notepad.add_error(f"Sheet 'patients': duplicate patient ID {patient_id!r}")
                continue
            patient = self.parse_patient_row(row, "patients", notepad, now)
            if patient is not None:
                patients[patient_id] = patient
                logger.debug("Mapped patient %r → %s", patient_id, patient.medical_record_number)
        return patients

    def _map_medications_table(self, df: pd.DataFrame | None, patients: dict[str, Patient],
                               notepad: Notepad, now: datetime) -> int:
        """
        Sheet-level wrapper for Medication rows:
          - normalize index to 'patient_ID'
          - require all key medication columns
          - parse every row, then prescribe in date_prescribed order so each
            patient's history stays chronological
        Returns the number of medications prescribed.
        """
        if df is None:
            return 0
        working = self._prepare_sheet(df)

        missing = sorted(MEDICATION_KEY_COLUMNS - set(working.columns))
        if missing:
            notepad.add_error(f"Sheet 'medications': missing required columns: {missing}")
            return 0

        parsed: list[tuple[str, Medication]] = []
        for _, row in working.iterrows():
            patient_id = str(row[PATIENT_ID_COLUMN]).strip()
            if patient_id not in patients:
                notepad.add_error(f"Sheet 'medications': unknown patient ID {patient_id!r}")
                continue
            medication = self.parse_medication_row(row, "medications", notepad)
            if medication is not None:
                parsed.append((patient_id, medication))

        prescribed = 0
        for patient_id, medication in sorted(parsed, key=lambda item: item[1].date_prescribed):
            try:
                patients[patient_id].prescribe(medication, now=now)
                prescribed += 1
            except MedChartError as e:
                notepad.add_error(f"Sheet 'medications', patient {patient_id!r}: {e}")
        return prescribed
