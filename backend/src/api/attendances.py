# pyright: reportMissingTypeStubs=false
"""
Attendance API endpoints.

Creation runs the operating-hours and capacity checks; status updates go
through the attendance state machine.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from core.constants import MAX_PLANNED_SESSIONS, MIN_PLANNED_SESSIONS
from core.database import get_db
from core.enums import AttendanceStatus, AttendanceType
from services import AttendanceService, TreatmentSessionService
from services.attendance_service import AbsenceJustification
from api.shared import validate_date_string, validate_notes, validate_time_string
from api.responses import (
    AgendaAttendanceResponse,
    AttendanceResponse,
    AttendanceStatsResponse,
    BatchAttendanceResponse,
    BulkUpdateResponse,
    NextScheduledDateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class AttendanceCreateRequest(BaseModel):
    patient_id: int
    type: AttendanceType
    scheduled_date: str
    scheduled_time: str
    notes: Optional[str] = None

    @field_validator('scheduled_date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_string(v)

    @field_validator('scheduled_time')
    @classmethod
    def validate_time(cls, v: str) -> str:
        return validate_time_string(v)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class AttendanceUpdateRequest(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('At least one field must be provided for update')
        return self


class BulkStatusUpdateRequest(BaseModel):
    ids: List[int] = Field(min_length=1)
    status: AttendanceStatus


class AbsenceJustificationItem(BaseModel):
    attendance_id: int
    justified: bool
    justification: Optional[str] = None

    @field_validator('justification')
    @classmethod
    def validate_justification(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class AbsenceJustificationRequest(BaseModel):
    absences: List[AbsenceJustificationItem] = Field(min_length=1)


class TreatmentAttendanceBatchRequest(BaseModel):
    """Book weekly attendances starting on the first Tuesday from start_date."""
    patient_id: int
    attendance_type: AttendanceType
    start_date: str
    session_count: int = Field(ge=MIN_PLANNED_SESSIONS, le=MAX_PLANNED_SESSIONS)
    notes: Optional[str] = None

    @field_validator('start_date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_date_string(v)


@router.get("/attendances", summary="List attendances", response_model=List[AttendanceResponse])
async def list_attendances(
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    type_filter: Optional[AttendanceType] = Query(None, alias="type"),
    db: Session = Depends(get_db)
) -> List[AttendanceResponse]:
    attendances = AttendanceService.list_attendances(
        db,
        status=status_filter.value if status_filter else None,
        attendance_type=type_filter.value if type_filter else None
    )
    return [AttendanceResponse.model_validate(a) for a in attendances]


@router.post(
    "/attendances",
    summary="Schedule an attendance",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_attendance(request: AttendanceCreateRequest, db: Session = Depends(get_db)) -> AttendanceResponse:
    """
    Schedule a new attendance.

    Rejected with 404 when the day has no active schedule setting and with
    409 when the time is outside operating hours or the slot is full.
    """
    try:
        attendance = AttendanceService.create_attendance(
            db=db,
            patient_id=request.patient_id,
            attendance_type=request.type.value,
            scheduled_date=request.scheduled_date,
            scheduled_time=request.scheduled_time,
            notes=request.notes
        )
        return AttendanceResponse.model_validate(attendance)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Attendance creation error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create attendance"
        )


@router.get(
    "/attendances/by-date/{scheduled_date}",
    summary="List attendances for a date",
    response_model=List[AttendanceResponse]
)
async def list_attendances_by_date(scheduled_date: str, db: Session = Depends(get_db)) -> List[AttendanceResponse]:
    attendances = AttendanceService.list_attendances_by_date(db, scheduled_date)
    return [AttendanceResponse.model_validate(a) for a in attendances]


@router.get(
    "/attendances/next-date",
    summary="Next date with scheduled attendances",
    response_model=NextScheduledDateResponse
)
async def get_next_scheduled_date(
    from_date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    db: Session = Depends(get_db)
) -> NextScheduledDateResponse:
    return NextScheduledDateResponse(next_date=AttendanceService.get_next_scheduled_date(db, from_date))


@router.get("/attendances/stats", summary="Attendance statistics", response_model=AttendanceStatsResponse)
async def get_attendance_stats(
    scheduled_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db)
) -> AttendanceStatsResponse:
    return AttendanceStatsResponse(**AttendanceService.get_attendance_stats(db, scheduled_date))


@router.post("/attendances/bulk-status", summary="Update status of several attendances", response_model=BulkUpdateResponse)
async def bulk_update_status(request: BulkStatusUpdateRequest, db: Session = Depends(get_db)) -> BulkUpdateResponse:
    updated = AttendanceService.bulk_update_status(db, request.ids, request.status.value)
    return BulkUpdateResponse(updated=updated)


@router.get("/attendances/agenda", summary="Agenda view of attendances", response_model=List[AgendaAttendanceResponse])
async def list_agenda(
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    type_filter: Optional[AttendanceType] = Query(None, alias="type"),
    limit: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db)
) -> List[AgendaAttendanceResponse]:
    rows = AttendanceService.list_attendances_for_agenda(
        db,
        status=status_filter.value if status_filter else None,
        attendance_type=type_filter.value if type_filter else None,
        limit=limit
    )
    return [AgendaAttendanceResponse(**row) for row in rows]


@router.post(
    "/attendances/absence-justifications",
    summary="Record absences and their justification",
    response_model=BulkUpdateResponse
)
async def update_absence_justifications(
    request: AbsenceJustificationRequest,
    db: Session = Depends(get_db)
) -> BulkUpdateResponse:
    absences = [
        AbsenceJustification(
            attendance_id=item.attendance_id,
            justified=item.justified,
            justification=item.justification
        )
        for item in request.absences
    ]
    return BulkUpdateResponse(updated=AttendanceService.update_absence_justifications(db, absences))


@router.post(
    "/attendances/treatment-batch",
    summary="Book weekly treatment attendances",
    response_model=BatchAttendanceResponse
)
async def create_treatment_attendances(
    request: TreatmentAttendanceBatchRequest,
    db: Session = Depends(get_db)
) -> BatchAttendanceResponse:
    result = TreatmentSessionService.create_attendances_for_treatment_sessions(
        db,
        patient_id=request.patient_id,
        attendance_type=request.attendance_type.value,
        start_date=request.start_date,
        session_count=request.session_count,
        notes=request.notes
    )
    return BatchAttendanceResponse(success=result.success, errors=result.errors)


@router.get("/attendances/{attendance_id}", summary="Get attendance", response_model=AttendanceResponse)
async def get_attendance(attendance_id: int, db: Session = Depends(get_db)) -> AttendanceResponse:
    return AttendanceResponse.model_validate(AttendanceService.get_attendance(db, attendance_id))


@router.put("/attendances/{attendance_id}", summary="Update attendance", response_model=AttendanceResponse)
async def update_attendance(
    attendance_id: int,
    request: AttendanceUpdateRequest,
    db: Session = Depends(get_db)
) -> AttendanceResponse:
    changes = request.model_dump(exclude_unset=True)
    if changes.get('status') is not None:
        changes['status'] = changes['status'].value
    attendance = AttendanceService.update_attendance(db, attendance_id, **changes)
    return AttendanceResponse.model_validate(attendance)


@router.delete(
    "/attendances/{attendance_id}",
    summary="Delete attendance",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_attendance(attendance_id: int, db: Session = Depends(get_db)) -> None:
    AttendanceService.delete_attendance(db, attendance_id)
