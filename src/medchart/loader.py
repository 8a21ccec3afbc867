import pandas as pd

# Columns that need renaming → target dataclass fields
RENAME_MAP = {
    # patient columns
    "first": "first_name",
    "given_name": "first_name",
    "last": "last_name",
    "surname": "last_name",
    "family_name": "last_name",
    "dob": "date_of_birth",
    "birth_date": "date_of_birth",
    "height": "height_mm",
    "weight": "weight_g",
    "blood_group": "blood_type",
    # medication columns
    "medication": "name",
    "drug": "name",
    "dose": "dosage",
    "amount": "dosage",
    "dosage_unit": "unit",
    "frequency": "frequency_per_day",
    "times_per_day": "frequency_per_day",
    "duration": "duration_days",
    "days": "duration_days",
    "prescribed": "date_prescribed",
    "date": "date_prescribed",
}


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize headers to snake_case lowercase and apply RENAME_MAP.
    Unit hints in parentheses are dropped: 'Height (mm)' -> 'height' -> 'height_mm'.
    """
    df = df.copy()
    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.replace(":", "", regex=False)  # drop colons
        .str.lower()
    )
    return df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns and target not in df.columns
        }
    )


def load_sheets_as_tables(workbook_path: str) -> dict[str, pd.DataFrame]:
    """
    Read each worksheet into a DataFrame:
      - first row = header
      - first column = index (the workbook's patient ID)
      - normalize all headers to snake_case lowercase
      - apply renames from RENAME_MAP
    """

    excel = pd.ExcelFile(workbook_path, engine="openpyxl")
    tables: dict[str, pd.DataFrame] = {}

    for sheet_name in excel.sheet_names:
        df = pd.read_excel(
            excel, sheet_name=sheet_name, header=0, index_col=0, engine="openpyxl"
        )
        tables[sheet_name] = normalize_headers(df)

    return tables
