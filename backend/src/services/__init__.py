"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across the API routers.
"""

from .patient_service import PatientService
from .patient_note_service import PatientNoteService
from .schedule_setting_service import ScheduleSettingService
from .schedule_validation_service import ScheduleValidationService
from .attendance_service import AttendanceService
from .treatment_session_record_service import TreatmentSessionRecordService
from .treatment_session_service import TreatmentSessionService
from .treatment_record_service import TreatmentRecordService

__all__ = [
    "PatientService",
    "PatientNoteService",
    "ScheduleSettingService",
    "ScheduleValidationService",
    "AttendanceService",
    "TreatmentSessionRecordService",
    "TreatmentSessionService",
    "TreatmentRecordService",
]
