import pytest
import pandas as pd

from datetime import datetime, timedelta

from medchart.dosage import Dosage, DosageUnit
from medchart.medication import Medication
from medchart.route import MedicationRoute


@pytest.fixture
def now() -> datetime:
    """
    A fixed clock so age and expiry assertions do not drift.
    """
    return datetime(2025, 1, 15, 9, 30)


@pytest.fixture
def make_medication(now):
    """
    Factory for Medication objects prescribed relative to `now`.
    """
    def _make(name="Aspirin", days_ago=0, duration_days=90, frequency_per_day=1,
              amount=81, unit=DosageUnit.MILLIGRAMS, route=MedicationRoute.ORAL):
        return Medication(
            name=name,
            dosage=Dosage(amount, unit),
            route=route,
            frequency_per_day=frequency_per_day,
            duration_days=duration_days,
            date_prescribed=now - timedelta(days=days_ago),
        )

    return _make


@pytest.fixture
def write_workbook(tmp_path):
    """
    Write {sheet_name: DataFrame} to an .xlsx file and return its path.
    The DataFrame index becomes the first (patient ID) column.
    """
    def _write(sheets: dict[str, pd.DataFrame], name: str = "wb.xlsx") -> str:
        path = tmp_path / name
        with pd.ExcelWriter(path, engine="openpyxl") as w:
            for sheet_name, df in sheets.items():
                df.to_excel(w, sheet_name=sheet_name)
        return str(path)

    return _write
