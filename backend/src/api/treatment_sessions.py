# pyright: reportMissingTypeStubs=false
"""
Treatment Session API endpoints.

A treatment session is a weekly light bath or rod plan. Creating one also
creates its session records and books an attendance for each of them.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from core.constants import (
    MAX_LIGHT_BATH_DURATION,
    MAX_PLANNED_SESSIONS,
    MIN_LIGHT_BATH_DURATION,
    MIN_PLANNED_SESSIONS,
)
from core.database import get_db
from core.enums import SessionStatus, TreatmentType
from services import TreatmentSessionService
from services.treatment_session_service import TreatmentSessionPlanData
from api.shared import (
    validate_body_location,
    validate_color_optional,
    validate_date_string,
    validate_date_string_optional,
    validate_notes,
)
from api.responses import TreatmentSessionCreateResponse, TreatmentSessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class TreatmentSessionCreateRequest(BaseModel):
    treatment_record_id: int
    attendance_id: int
    patient_id: int
    treatment_type: TreatmentType
    body_location: str
    start_date: str
    planned_sessions: int = Field(ge=MIN_PLANNED_SESSIONS, le=MAX_PLANNED_SESSIONS)
    duration_minutes: Optional[int] = Field(default=None, ge=MIN_LIGHT_BATH_DURATION, le=MAX_LIGHT_BATH_DURATION)
    color: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('body_location')
    @classmethod
    def validate_body_location(cls, v: str) -> str:
        return validate_body_location(v)

    @field_validator('start_date')
    @classmethod
    def validate_start_date(cls, v: str) -> str:
        return validate_date_string(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return validate_color_optional(v)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class TreatmentSessionUpdateRequest(BaseModel):
    end_date: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[SessionStatus] = None

    @field_validator('end_date')
    @classmethod
    def validate_end_date(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string_optional(v)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)

    @model_validator(mode='after')
    def validate_status(self):
        if self.status is not None and self.status != SessionStatus.CANCELLED:
            raise ValueError("Only 'cancelled' can be set explicitly")
        return self


@router.get("/treatment-sessions", summary="List treatment sessions", response_model=List[TreatmentSessionResponse])
async def list_treatment_sessions(db: Session = Depends(get_db)) -> List[TreatmentSessionResponse]:
    sessions = TreatmentSessionService.list_treatment_sessions(db)
    return [TreatmentSessionResponse.model_validate(s) for s in sessions]


@router.post(
    "/treatment-sessions",
    summary="Create treatment session plan",
    response_model=TreatmentSessionCreateResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_treatment_session(
    request: TreatmentSessionCreateRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionCreateResponse:
    """
    Create a plan with one weekly session record per planned session.

    Each record gets an attendance at 19:30 on its date. Attendances that
    cannot be booked (closed day, full slot) are reported in ``errors``; the
    plan and its records are kept.
    """
    try:
        data = TreatmentSessionPlanData(
            treatment_record_id=request.treatment_record_id,
            attendance_id=request.attendance_id,
            patient_id=request.patient_id,
            treatment_type=request.treatment_type.value,
            body_location=request.body_location,
            start_date=request.start_date,
            planned_sessions=request.planned_sessions,
            duration_minutes=request.duration_minutes,
            color=request.color,
            notes=request.notes
        )
        result = TreatmentSessionService.create_treatment_session(db, data)
        return TreatmentSessionCreateResponse(
            session=TreatmentSessionResponse.model_validate(result.session),
            success=result.success,
            errors=result.errors
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Treatment session creation error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create treatment session"
        )


@router.get(
    "/treatment-sessions/treatment-record/{treatment_record_id}",
    summary="List plans of a treatment record",
    response_model=List[TreatmentSessionResponse]
)
async def list_sessions_for_treatment_record(
    treatment_record_id: int,
    db: Session = Depends(get_db)
) -> List[TreatmentSessionResponse]:
    sessions = TreatmentSessionService.list_sessions_for_treatment_record(db, treatment_record_id)
    return [TreatmentSessionResponse.model_validate(s) for s in sessions]


@router.get(
    "/treatment-sessions/{session_id}",
    summary="Get treatment session",
    response_model=TreatmentSessionResponse
)
async def get_treatment_session(session_id: int, db: Session = Depends(get_db)) -> TreatmentSessionResponse:
    return TreatmentSessionResponse.model_validate(TreatmentSessionService.get_treatment_session(db, session_id))


@router.put(
    "/treatment-sessions/{session_id}",
    summary="Update treatment session",
    response_model=TreatmentSessionResponse
)
async def update_treatment_session(
    session_id: int,
    request: TreatmentSessionUpdateRequest,
    db: Session = Depends(get_db)
) -> TreatmentSessionResponse:
    """
    Update end date, notes or cancel a plan.

    Progress is re-derived from the session records on every update; the
    plan completes once all planned sessions are completed.
    """
    changes = request.model_dump(exclude_unset=True)
    if changes.get('status') is not None:
        changes['status'] = changes['status'].value
    session = TreatmentSessionService.update_treatment_session(db, session_id, **changes)
    return TreatmentSessionResponse.model_validate(session)


@router.delete(
    "/treatment-sessions/{session_id}",
    summary="Delete treatment session",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_treatment_session(session_id: int, db: Session = Depends(get_db)) -> None:
    """Delete a plan, its session records and the attendances booked for them."""
    TreatmentSessionService.delete_treatment_session(db, session_id)
