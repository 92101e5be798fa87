# Package initialization
# Import all models to ensure relationships are properly established
from .patient import Patient
from .patient_note import PatientNote
from .schedule_setting import ScheduleSetting
from .attendance import Attendance
from .treatment_record import TreatmentRecord
from .treatment_session import TreatmentSession
from .treatment_session_record import TreatmentSessionRecord

__all__ = [
    "Patient",
    "PatientNote",
    "ScheduleSetting",
    "Attendance",
    "TreatmentRecord",
    "TreatmentSession",
    "TreatmentSessionRecord",
]
