"""
Command-line interface for the medchart toolkit.
Imports patient workbooks into JSON patient records, prints patient summaries,
and looks up blood-type donor compatibility.
"""

import click
import logging
import pathlib
import sys
import typing

from datetime import datetime
from stairval.notepad import create_notepad

from .blood_type import BloodType
from .loader import load_sheets_as_tables
from .mapper import DefaultMapper
from .patient import Patient
from .serialize import dump_patients, load_patients


@click.group()
def main():
    """medchart: patients, prescriptions and blood-type compatibility."""
    pass


@main.command(name="import-excel")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the Excel workbook",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="where to write the JSON patient records (default: timestamped folder under ./medchart_from_excel)",
)
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def import_excel(excel_file: str, output_path: typing.Optional[str] = None,
                 verbose_logging: bool = False, log_file_path: typing.Optional[str] = None):
    """
    Read the 'patients' sheet (and optional 'medications' sheet), build patient
    records, prescribe their medications, and write them as JSON.
    """
    _configure_logging(verbose_logging, log_file_path)
    logging.info(f"Beginning import of '{excel_file}'")

    # 1) Read all sheets into DataFrames
    try:
        tables = load_sheets_as_tables(excel_file)
    except (OSError, ValueError) as e:
        logging.error(f"Failed to read '{excel_file}': {e}")
        click.echo(f"Error: could not read workbook {excel_file}: {e}", err=True)
        sys.exit(1)
    logging.debug(f"Loaded sheets: {list(tables.keys())}")

    # 2) Apply mapping to get patients and collect issues
    notepad = create_notepad("patients")
    patients = DefaultMapper().apply_mapping(tables, notepad)

    # 3) Report any errors or warnings
    _report_issues(notepad)

    # 4) Serialize
    out = pathlib.Path(output_path) if output_path else _prepare_output_dir() / "patients.json"
    dump_patients(patients.values(), out)

    # 5) Final summary
    medication_count = sum(len(p.medications) for p in patients.values())
    click.echo(f"Wrote {len(patients)} patient records to {out}")
    click.echo(f"Created {len(patients)} Patient objects")
    click.echo(f"Prescribed {medication_count} Medication objects")

    if notepad.has_errors(include_subsections=True):
        sys.exit(1)


@main.command(name="show")
@click.option(
    "-i",
    "--input-path",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON patient records written by import-excel",
)
@click.option(
    "-s",
    "--search",
    "search_text",
    default=None,
    type=str,
    help="only patients whose 'Last, First (Age)' contains this text (case-insensitive)",
)
@click.option(
    "-b",
    "--blood-type",
    "blood_type_label",
    default=None,
    type=str,
    help="only patients with this blood type (e.g. 'O-')",
)
def show(input_path: str, search_text: typing.Optional[str] = None,
         blood_type_label: typing.Optional[str] = None):
    """
    Print patient summaries, ordered as a patient list would show them,
    optionally filtered by blood type and by name search.
    """
    blood_type = None
    if blood_type_label:
        try:
            blood_type = BloodType.from_label(blood_type_label)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    try:
        patients = load_patients(input_path)
    except (OSError, KeyError, ValueError) as e:
        click.echo(f"Error: could not read patient records from {input_path}: {e}", err=True)
        sys.exit(1)

    now = datetime.now()
    patients = _filter_patients(patients, search_text, blood_type, now)
    for patient in sorted(patients, key=lambda p: p.full_name_and_age(now)):
        click.echo(patient.describe(now))
        click.echo("")
    click.echo(f"{len(patients)} patients")


@main.command(name="donors")
@click.argument("blood_type")
@click.option("--recipients", is_flag=True, help="List recipient types for a donor type instead")
def donors(blood_type: str, recipients: bool = False):
    """
    List the blood types a BLOOD_TYPE recipient can receive from.
    """
    try:
        parsed = BloodType.from_label(blood_type)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    related = parsed.compatible_recipients() if recipients else parsed.compatible_donors()
    label = "recipients" if recipients else "donors"
    ordered = [t.value for t in BloodType if t in related]
    click.echo(f"{parsed.value} compatible {label}: {', '.join(ordered)}")


def _filter_patients(patients: list[Patient], search_text: typing.Optional[str],
                     blood_type: typing.Optional[BloodType], now: datetime) -> list[Patient]:
    # blood type first, then case-insensitive substring of the list label
    if blood_type is not None:
        patients = [p for p in patients if p.blood_type == blood_type]
    if search_text:
        needle = search_text.casefold()
        patients = [p for p in patients if needle in p.full_name_and_age(now).casefold()]
    return patients


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in mapping:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in mapping:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


def _prepare_output_dir() -> pathlib.Path:
    # use YYYY-MM-DD_HH-MM-SS for human-readable timestamps
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_dir = pathlib.Path.cwd() / "medchart_from_excel" / timestamp / "records"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


if __name__ == "__main__":
    main()
