"""
Unit tests for small helpers in __main__.py:
- _configure_logging: file and verbose stderr handlers
- _filter_patients: blood type and name search
- _report_issues: prints mapping errors to stdout
"""

import logging
import os
from datetime import datetime

import pytest
from stairval.notepad import create_notepad

from medchart.__main__ import _configure_logging, _filter_patients, _report_issues
from medchart.blood_type import BloodType
from medchart.patient import Patient


@pytest.fixture
def basic_config(monkeypatch):
    """
    Capture logging.basicConfig calls instead of reconfiguring the root logger.
    """
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    yield calls
    for kwargs in calls:
        for handler in kwargs.get("handlers", []):
            handler.close()


def test_configure_logging_appends_to_log_file(tmp_path, basic_config):
    log_path = tmp_path / "import.log"
    _configure_logging(verbose_logging=False, log_file_path=str(log_path))

    (kwargs,) = basic_config
    assert kwargs["level"] == logging.INFO
    assert kwargs["format"] == "%(asctime)s %(levelname)s %(message)s"
    (handler,) = kwargs["handlers"]
    assert isinstance(handler, logging.FileHandler)
    assert handler.baseFilename == os.path.abspath(log_path)
    assert handler.mode == "a"


def test_configure_logging_verbose_adds_debug_stderr_handler(tmp_path, basic_config):
    _configure_logging(verbose_logging=True, log_file_path=str(tmp_path / "import.log"))

    (kwargs,) = basic_config
    assert kwargs["level"] == logging.DEBUG
    kinds = [type(h) for h in kwargs["handlers"]]
    assert kinds == [logging.FileHandler, logging.StreamHandler]


def test_configure_logging_without_options_leaves_root_alone(basic_config):
    _configure_logging(verbose_logging=False, log_file_path=None)
    assert basic_config == []


def test_filter_patients_by_blood_type_and_search():
    now = datetime(2025, 1, 15)
    doe, smith, anderson = Patient.samples()
    everyone = [doe, smith, anderson]

    assert _filter_patients(everyone, None, None, now) == everyone
    assert _filter_patients(everyone, None, BloodType.O_POSITIVE, now) == [anderson]
    assert _filter_patients(everyone, "doe, j", None, now) == [doe]
    assert _filter_patients(everyone, "smith", BloodType.AB_POSITIVE, now) == []


def test_report_issues_lists_mapping_errors(capsys):
    n = create_notepad("patients")
    n.add_error("Sheet 'medications', patient 'P1': Medication Aspirin already prescribed and active")

    _report_issues(n)
    out = capsys.readouterr().out
    assert "Errors found in mapping" in out
    assert "Medication Aspirin already prescribed and active" in out
    assert "Warnings found in mapping" not in out
