"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
the routers. Dates and times stay plain strings (YYYY-MM-DD, HH:MM[:SS]).
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class OrmResponse(BaseModel):
    """Base for responses built from ORM entities."""
    model_config = ConfigDict(from_attributes=True)


class PatientResponse(OrmResponse):
    """Response model for patient information."""
    id: int
    name: str
    phone: Optional[str] = None
    priority: str
    treatment_status: str
    birth_date: Optional[str] = None
    main_complaint: Optional[str] = None
    start_date: Optional[str] = None
    discharge_date: Optional[str] = None
    missing_appointments_streak: int = 0
    created_date: str
    created_time: str
    updated_date: str
    updated_time: str


class ScheduleSettingResponse(OrmResponse):
    """Response model for a day's schedule setting."""
    id: int
    day_of_week: int
    start_time: str
    end_time: str
    max_concurrent_spiritual: int
    max_concurrent_light_bath: int
    is_active: bool
    created_date: str
    updated_date: str


class AttendanceResponse(OrmResponse):
    """Response model for an attendance."""
    id: int
    patient_id: int
    type: str
    status: str
    scheduled_date: str
    scheduled_time: str
    checked_in_time: Optional[str] = None
    started_time: Optional[str] = None
    completed_time: Optional[str] = None
    cancelled_date: Optional[str] = None
    absence_justified: Optional[bool] = None
    absence_notes: Optional[str] = None
    notes: Optional[str] = None
    created_date: str
    created_time: str
    updated_date: str
    updated_time: str


class AgendaAttendanceResponse(BaseModel):
    """One agenda row: attendance essentials plus the patient's name and priority."""
    id: int
    patient_id: int
    type: str
    status: str
    scheduled_date: str
    scheduled_time: str
    notes: Optional[str] = None
    patient_name: Optional[str] = None
    patient_priority: Optional[str] = None


class PatientNoteResponse(OrmResponse):
    """Response model for a patient note."""
    id: int
    patient_id: int
    note_content: str
    category: str
    created_date: str
    created_time: str
    updated_date: str
    updated_time: str


class AttendanceStatsResponse(BaseModel):
    """Attendance counts by status and by type."""
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]


class BulkUpdateResponse(BaseModel):
    updated: int


class NextScheduledDateResponse(BaseModel):
    next_date: Optional[str] = None


class TreatmentSessionRecordResponse(OrmResponse):
    """Response model for one session of a treatment plan."""
    id: int
    treatment_session_id: int
    attendance_id: Optional[int] = None
    session_number: int
    scheduled_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: str
    notes: Optional[str] = None
    missed_reason: Optional[str] = None
    performed_by: Optional[str] = None


class TreatmentSessionResponse(OrmResponse):
    """Response model for a treatment plan with its session records."""
    id: int
    treatment_record_id: int
    attendance_id: int
    patient_id: int
    treatment_type: str
    body_location: str
    start_date: str
    planned_sessions: int
    completed_sessions: int
    end_date: Optional[str] = None
    status: str
    duration_minutes: Optional[int] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    session_records: List[TreatmentSessionRecordResponse] = []
    created_date: str
    updated_date: str


class TreatmentSessionCreateResponse(BaseModel):
    """Created plan plus the outcome of booking its attendances."""
    session: TreatmentSessionResponse
    success: int
    errors: List[str]


class BatchAttendanceResponse(BaseModel):
    success: int
    errors: List[str]


class TreatmentStatsResponse(BaseModel):
    total_sessions: int
    completed_sessions: int
    missed_sessions: int
    scheduled_sessions: int
    completion_rate: float


class TreatmentRecordResponse(OrmResponse):
    """Response model for a treatment record."""
    id: int
    attendance_id: int
    food: Optional[str] = None
    water: Optional[str] = None
    ointments: Optional[str] = None
    light_bath: bool
    light_bath_color: Optional[str] = None
    light_bath_duration: Optional[int] = None
    rod: bool
    spiritual_treatment: bool
    body_location: Optional[str] = None
    quantity: int
    return_in_weeks: Optional[int] = None
    notes: Optional[str] = None
    created_date: str
    updated_date: str


class TreatmentRecordCreateResponse(BaseModel):
    """Created record plus the plans it started."""
    record: TreatmentRecordResponse
    sessions: List[TreatmentSessionResponse]
    errors: List[str]
