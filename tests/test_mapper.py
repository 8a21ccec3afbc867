"""
Tests for DefaultMapper: sheet selection, required columns, and mapping of
patient and medication rows into Patient objects.
"""

import pandas as pd
from datetime import datetime, timedelta, timezone
from stairval.notepad import create_notepad

from medchart.blood_type import BloodType
from medchart.mapper import DefaultMapper
from medchart.route import MedicationRoute


def patients_df(**overrides):
    data = {
        "first_name": ["John", "Jane"],
        "last_name": ["Doe", "Smith"],
        "date_of_birth": ["2000-01-18", "1993-09-16"],
        "height_mm": [1800, 1650],
        "weight_g": [70000, 65000],
        "blood_type": ["AB+", None],
    }
    data.update(overrides)
    return pd.DataFrame(data, index=["P1", "P2"])


def medications_df(now, rows):
    """rows: (patient_id, name, days_ago, duration_days)"""
    return pd.DataFrame(
        {
            "name": [r[1] for r in rows],
            "dosage": [81] * len(rows),
            "unit": ["mg"] * len(rows),
            "route": ["oral"] * len(rows),
            "frequency_per_day": [1] * len(rows),
            "duration_days": [r[3] for r in rows],
            "date_prescribed": [now - timedelta(days=r[2]) for r in rows],
        },
        index=[r[0] for r in rows],
    )


def test_apply_mapping_builds_patients_and_prescribes(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    tables = {
        "patients": patients_df(),
        "medications": medications_df(now, [
            ("P1", "Aspirin", 5, 90),
            ("P1", "Metoprolol", 40, 30),
            ("P2", "Losartan", 1, 90),
        ]),
    }
    patients = m.apply_mapping(tables, note)

    assert not note.has_errors(include_subsections=True)
    assert set(patients) == {"P1", "P2"}
    doe = patients["P1"]
    assert doe.full_name_and_age(now) == "Doe, John (24)"
    assert doe.blood_type == BloodType.AB_POSITIVE
    assert patients["P2"].blood_type is None
    # history is chronological, expired entries kept
    assert [med.name for med in doe.medications] == ["Metoprolol", "Aspirin"]
    assert [med.name for med in doe.current_medications(now)] == ["Aspirin"]
    assert doe.medications[0].route == MedicationRoute.ORAL


def test_duplicate_active_medication_is_reported(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    tables = {
        "patients": patients_df(),
        "medications": medications_df(now, [
            ("P1", "Aspirin", 5, 90),
            ("P1", "ASPIRIN", 2, 90),
        ]),
    }
    patients = m.apply_mapping(tables, note)
    assert note.has_errors(include_subsections=True)
    assert len(patients["P1"].medications) == 1


def test_missing_patients_sheet_errors(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    patients = m.apply_mapping({"labs": pd.DataFrame()}, note)
    assert patients == {}
    assert note.has_errors(include_subsections=True)


def test_choose_named_tables_aliases():
    m = DefaultMapper()
    note = create_notepad("alias-test")
    tables = {"Demographics": pd.DataFrame(), "meds": pd.DataFrame()}
    selected = m._choose_named_tables(tables, note)
    assert selected.patients is not None
    assert selected.medications is not None
    assert not note.has_errors(include_subsections=True)


def test_map_patients_table_missing_required_columns_errors(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    df = pd.DataFrame({"first_name": ["John"]}, index=["P1"])
    assert m._map_patients_table(df, note, now) == {}
    assert note.has_errors(include_subsections=True)


def test_map_medications_table_missing_required_columns_errors(now):
    m = DefaultMapper(now=now)
    note = create_notepad("medications")
    df = pd.DataFrame({"name": ["Aspirin"]}, index=["P1"])
    assert m._map_medications_table(df, {}, note, now) == 0
    assert note.has_errors(include_subsections=True)


def test_bad_rows_are_skipped_not_fatal(now):
    """A future birth date and an unparseable height drop only their own rows."""
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    df = pd.DataFrame(
        {
            "first_name": ["John", "Baby", "Tall"],
            "last_name": ["Doe", "Future", "Person"],
            "date_of_birth": ["2000-01-18", "2030-01-01", "1990-05-05"],
            "height_mm": [1800, 500, "very"],
            "weight_g": [70000, 3000, 80000],
        },
        index=["P1", "P2", "P3"],
    )
    patients = m.apply_mapping({"patients": df}, note)
    assert set(patients) == {"P1"}
    errors = [str(e) for e in note.errors()]
    assert len(errors) == 2


def test_duplicate_patient_id_errors(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    df = patients_df()
    df.index = ["P1", "P1"]
    patients = m.apply_mapping({"patients": df}, note)
    assert list(patients) == ["P1"]
    assert patients["P1"].first_name == "John"
    assert note.has_errors(include_subsections=True)


def test_medication_for_unknown_patient_errors(now):
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    tables = {
        "patients": patients_df(),
        "medications": medications_df(now, [("P9", "Aspirin", 1, 90)]),
    }
    patients = m.apply_mapping(tables, note)
    assert note.has_errors(include_subsections=True)
    assert all(p.medications == [] for p in patients.values())


def test_parse_medication_row_normalizes_values():
    note = create_notepad("medications")
    row = pd.Series(
        {
            "patient_ID": "P1",
            "name": " Losartan ",
            "dosage": 12.5,
            "unit": "milligrams",
            "route": "by mouth",
            "frequency_per_day": 2.0,  # Excel hands back floats
            "duration_days": 90.0,
            "date_prescribed": "2025-01-10 08:00",
        }
    )
    med = DefaultMapper.parse_medication_row(row, "medications", note)
    assert med is not None
    assert med.describe() == "Losartan 12.5mg by mouth twice daily for 90 days"
    assert med.date_prescribed == datetime(2025, 1, 10, 8, 0)
    assert not note.has_errors(include_subsections=True)


def test_parse_medication_row_fractional_frequency_errors():
    note = create_notepad("medications")
    row = pd.Series(
        {
            "patient_ID": "P1",
            "name": "Aspirin",
            "dosage": 81,
            "unit": "mg",
            "route": "oral",
            "frequency_per_day": 1.5,
            "duration_days": 90,
            "date_prescribed": "2025-01-10",
        }
    )
    assert DefaultMapper.parse_medication_row(row, "medications", note) is None
    assert note.has_errors(include_subsections=True)


def test_offset_bearing_dates_are_converted_to_naive_local(now):
    """Mixed UTC-offset and plain dates map without errors and compare cleanly."""
    m = DefaultMapper(now=now)
    note = create_notepad("patients")
    medications = pd.DataFrame(
        {
            "name": ["Aspirin", "Metoprolol"],
            "dosage": [81, 25],
            "unit": ["mg", "mg"],
            "route": ["oral", "oral"],
            "frequency_per_day": [1, 1],
            "duration_days": [90, 90],
            "date_prescribed": ["2025-01-01T00:00:00+00:00", "2025-01-02"],
        },
        index=["P1", "P1"],
    )
    patients = m.apply_mapping({"patients": patients_df(), "medications": medications}, note)

    assert not note.has_errors(include_subsections=True)
    doe = patients["P1"]
    assert all(med.date_prescribed.tzinfo is None for med in doe.medications)
    expected = datetime(2025, 1, 1, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert doe.medications[0].date_prescribed == expected
    assert len(doe.current_medications(now)) == 2
