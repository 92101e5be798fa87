# pyright: reportMissingTypeStubs=false
"""
Treatment Session Record API endpoints.

Completing, missing and rescheduling individual sessions of a plan.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from core.constants import DEFAULT_UPCOMING_SESSION_DAYS
from core.database import get_db
from core.enums import SessionRecordStatus
from services import TreatmentSessionRecordService
from api.shared import validate_date_string, validate_date_string_optional, validate_notes
from api.responses import TreatmentSessionRecordResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionRecordCreateRequest(BaseModel):
    treatment_session_id: int
    session_number: int = Field(ge=1)
    scheduled_date: str
    attendance_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator('scheduled_date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_string(v)


class SessionRecordUpdateRequest(BaseModel):
    status: Optional[SessionRecordStatus] = None
    scheduled_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    missed_reason: Optional[str] = None
    performed_by: Optional[str] = None
    attendance_id: Optional[int] = None

    @field_validator('scheduled_date')
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string_optional(v)

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('At least one field must be provided for update')
        return self


class CompleteSessionRequest(BaseModel):
    attendance_id: Optional[int] = None
    notes: Optional[str] = None
    performed_by: Optional[str] = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class MissSessionRequest(BaseModel):
    missed_reason: Optional[str] = None


class RescheduleSessionRequest(BaseModel):
    new_date: str

    @field_validator('new_date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_string(v)


@router.post(
    "/treatment-session-records",
    summary="Add a session record to a plan",
    response_model=TreatmentSessionRecordResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_session_record(
    request: SessionRecordCreateRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionRecordResponse:
    record = TreatmentSessionRecordService.create_session_record(db, **request.model_dump())
    return TreatmentSessionRecordResponse.model_validate(record)


@router.get(
    "/treatment-session-records/session/{treatment_session_id}",
    summary="List records of a plan",
    response_model=List[TreatmentSessionRecordResponse]
)
async def list_records_for_session(
    treatment_session_id: int,
    db: Session = Depends(get_db)
) -> List[TreatmentSessionRecordResponse]:
    records = TreatmentSessionRecordService.list_records_for_session(db, treatment_session_id)
    return [TreatmentSessionRecordResponse.model_validate(r) for r in records]


@router.get(
    "/treatment-session-records/patient/{patient_id}/upcoming",
    summary="Upcoming scheduled sessions of a patient",
    response_model=List[TreatmentSessionRecordResponse]
)
async def get_upcoming_sessions(
    patient_id: int,
    days: int = Query(DEFAULT_UPCOMING_SESSION_DAYS, ge=0),
    db: Session = Depends(get_db)
) -> List[TreatmentSessionRecordResponse]:
    records = TreatmentSessionRecordService.get_upcoming_sessions_for_patient(db, patient_id, days)
    return [TreatmentSessionRecordResponse.model_validate(r) for r in records]


@router.get(
    "/treatment-session-records/{record_id}",
    summary="Get session record",
    response_model=TreatmentSessionRecordResponse
)
async def get_session_record(record_id: int, db: Session = Depends(get_db)) -> TreatmentSessionRecordResponse:
    return TreatmentSessionRecordResponse.model_validate(TreatmentSessionRecordService.get_session_record(db, record_id))


@router.put(
    "/treatment-session-records/{record_id}",
    summary="Update session record",
    response_model=TreatmentSessionRecordResponse
)
async def update_session_record(
    record_id: int,
    request: SessionRecordUpdateRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionRecordResponse:
    changes = request.model_dump(exclude_unset=True)
    if changes.get('status') is not None:
        changes['status'] = changes['status'].value
    record = TreatmentSessionRecordService.update_session_record(db, record_id, **changes)
    return TreatmentSessionRecordResponse.model_validate(record)


@router.post(
    "/treatment-session-records/{record_id}/complete",
    summary="Complete a session",
    response_model=TreatmentSessionRecordResponse
)
async def complete_session(
    record_id: int,
    request: CompleteSessionRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionRecordResponse:
    record = TreatmentSessionRecordService.complete_session(
        db, record_id, attendance_id=request.attendance_id, notes=request.notes, performed_by=request.performed_by
    )
    return TreatmentSessionRecordResponse.model_validate(record)


@router.post(
    "/treatment-session-records/{record_id}/miss",
    summary="Mark a session as missed",
    response_model=TreatmentSessionRecordResponse
)
async def mark_session_missed(
    record_id: int,
    request: MissSessionRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionRecordResponse:
    record = TreatmentSessionRecordService.mark_session_missed(db, record_id, request.missed_reason)
    return TreatmentSessionRecordResponse.model_validate(record)


@router.post(
    "/treatment-session-records/{record_id}/reschedule",
    summary="Reschedule a session",
    response_model=TreatmentSessionRecordResponse
)
async def reschedule_session(
    record_id: int,
    request: RescheduleSessionRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionRecordResponse:
    """Move a session to a new date. Completed sessions answer 409."""
    record = TreatmentSessionRecordService.reschedule_session(db, record_id, request.new_date)
    return TreatmentSessionRecordResponse.model_validate(record)


@router.delete(
    "/treatment-session-records/{record_id}",
    summary="Delete session record",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_session_record(record_id: int, db: Session = Depends(get_db)) -> None:
    TreatmentSessionRecordService.delete_session_record(db, record_id)
