# pyright: reportMissingTypeStubs=false
"""
Treatment Record API endpoints.
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
from services import TreatmentRecordService
from api.shared import validate_color_optional, validate_notes
from api.responses import TreatmentRecordCreateResponse, TreatmentRecordResponse, TreatmentSessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class TreatmentRecordCreateRequest(BaseModel):
    attendance_id: int
    food: Optional[str] = None
    water: Optional[str] = None
    ointments: Optional[str] = None
    light_bath: bool = False
    light_bath_color: Optional[str] = None
    light_bath_duration: Optional[int] = Field(default=None, ge=MIN_LIGHT_BATH_DURATION, le=MAX_LIGHT_BATH_DURATION)
    rod: bool = False
    spiritual_treatment: bool = False
    body_location: Optional[str] = None
    quantity: int = Field(default=1, ge=MIN_PLANNED_SESSIONS, le=MAX_PLANNED_SESSIONS)
    # Range is checked by the service so the error carries its own message
    return_in_weeks: Optional[int] = None
    notes: Optional[str] = None

    @field_validator('light_bath_color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return validate_color_optional(v)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class TreatmentRecordUpdateRequest(BaseModel):
    food: Optional[str] = None
    water: Optional[str] = None
    ointments: Optional[str] = None
    light_bath: Optional[bool] = None
    light_bath_color: Optional[str] = None
    light_bath_duration: Optional[int] = Field(default=None, ge=MIN_LIGHT_BATH_DURATION, le=MAX_LIGHT_BATH_DURATION)
    rod: Optional[bool] = None
    spiritual_treatment: Optional[bool] = None
    body_location: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=MIN_PLANNED_SESSIONS, le=MAX_PLANNED_SESSIONS)
    return_in_weeks: Optional[int] = None
    notes: Optional[str] = None

    @field_validator('light_bath_color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return validate_color_optional(v)

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


@router.get("/treatment-records", summary="List treatment records", response_model=List[TreatmentRecordResponse])
async def list_treatment_records(db: Session = Depends(get_db)) -> List[TreatmentRecordResponse]:
    records = TreatmentRecordService.list_treatment_records(db)
    return [TreatmentRecordResponse.model_validate(r) for r in records]


@router.post(
    "/treatment-records",
    summary="Create treatment record",
    response_model=TreatmentRecordCreateResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_treatment_record(
    request: TreatmentRecordCreateRequest,
    db: Session = Depends(get_db)
) -> TreatmentRecordCreateResponse:
    """
    Record the treatment given in a completed attendance.

    Ordering light bath or rod also creates a weekly treatment plan per
    modality; attendances that could not be booked are listed in ``errors``.
    """
    try:
        result = TreatmentRecordService.create_treatment_record(db, **request.model_dump())
        return TreatmentRecordCreateResponse(
            record=TreatmentRecordResponse.model_validate(result.record),
            sessions=[TreatmentSessionResponse.model_validate(s) for s in result.sessions],
            errors=result.errors
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Treatment record creation error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create treatment record"
        )


@router.get(
    "/treatment-records/attendance/{attendance_id}",
    summary="Get treatment record of an attendance",
    response_model=TreatmentRecordResponse
)
async def get_treatment_record_by_attendance(
    attendance_id: int,
    db: Session = Depends(get_db)
) -> TreatmentRecordResponse:
    return TreatmentRecordResponse.model_validate(TreatmentRecordService.get_by_attendance(db, attendance_id))


@router.get(
    "/treatment-records/{record_id}",
    summary="Get treatment record",
    response_model=TreatmentRecordResponse
)
async def get_treatment_record(record_id: int, db: Session = Depends(get_db)) -> TreatmentRecordResponse:
    return TreatmentRecordResponse.model_validate(TreatmentRecordService.get_treatment_record(db, record_id))


@router.put(
    "/treatment-records/{record_id}",
    summary="Update treatment record",
    response_model=TreatmentRecordResponse
)
async def update_treatment_record(
    record_id: int,
    request: TreatmentRecordUpdateRequest,
    db: Session = Depends(get_db)
) -> TreatmentRecordResponse:
    record = TreatmentRecordService.update_treatment_record(db, record_id, **request.model_dump(exclude_unset=True))
    return TreatmentRecordResponse.model_validate(record)


@router.delete(
    "/treatment-records/{record_id}",
    summary="Delete treatment record",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_treatment_record(record_id: int, db: Session = Depends(get_db)) -> None:
    TreatmentRecordService.delete_treatment_record(db, record_id)
