"""
Status and type enumerations shared by models, services and API schemas.

Values are stored as plain strings in the database.
"""

from enum import Enum


class PatientPriority(str, Enum):
    """Triage priority of a patient. Lower value is more urgent."""

    EMERGENCY = "1"
    INTERMEDIATE = "2"
    NORMAL = "3"


class PatientTreatmentStatus(str, Enum):
    """Where a patient is in the overall treatment course."""

    NEW = "new"
    IN_TREATMENT = "in_treatment"
    DISCHARGED = "discharged"
    ABSENT = "absent"


class AttendanceType(str, Enum):
    SPIRITUAL = "spiritual"
    LIGHT_BATH = "light_bath"
    ROD = "rod"


class AttendanceStatus(str, Enum):
    SCHEDULED = "scheduled"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TreatmentType(str, Enum):
    """Multi-session treatment modalities."""

    LIGHT_BATH = "light_bath"
    ROD = "rod"


class SessionStatus(str, Enum):
    """Lifecycle of a treatment session plan."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionRecordStatus(str, Enum):
    """Lifecycle of one dated occurrence within a treatment session plan."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"
    CANCELLED = "cancelled"


class NoteCategory(str, Enum):
    """Category of a free-text patient note."""

    GENERAL = "general"
    TREATMENT = "treatment"
    OBSERVATION = "observation"
    BEHAVIOR = "behavior"
    MEDICATION = "medication"
    PROGRESS = "progress"
    FAMILY = "family"
    EMERGENCY = "emergency"


# Attendance type generated for each treatment modality
TREATMENT_TYPE_TO_ATTENDANCE_TYPE = {
    TreatmentType.LIGHT_BATH: AttendanceType.LIGHT_BATH,
    TreatmentType.ROD: AttendanceType.ROD,
}
