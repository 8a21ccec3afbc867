"""
Error taxonomy.

Every error here is a deterministic rejection of invalid input. None of them
leave a Patient or PatientStore in a partially updated state.
"""


class MedChartError(Exception):
    """Base class for all business-rule failures raised by medchart."""


class PatientError(MedChartError):
    """Errors raised while creating or comparing patients."""


class FutureDateOfBirth(PatientError):
    """Raised when a patient is created with a birth date after 'now'."""

    def __init__(self, date_of_birth=None):
        self.date_of_birth = date_of_birth
        if date_of_birth is None:
            super().__init__("Date of birth cannot be in the future")
        else:
            super().__init__(f"Date of birth {date_of_birth!s} is in the future")


class InvalidBloodTypeForTransfusion(PatientError):
    """Raised when either party of a transfusion check has an unknown blood type."""

    def __init__(self):
        super().__init__("Blood type of recipient and donor must both be known")


class MedicationError(MedChartError):
    """Errors raised while prescribing medications."""


class DuplicateMedication(MedicationError):
    """Raised when prescribing a medication the patient is already actively taking."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Medication {name} already prescribed and active")
