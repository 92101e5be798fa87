# pyright: reportMissingTypeStubs=false
"""
Patient Management API endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from core.database import get_db
from core.enums import PatientPriority, PatientTreatmentStatus
from services import AttendanceService, PatientService, TreatmentSessionService
from api.shared import validate_date_string_optional, validate_name, validate_name_optional, validate_notes
from api.responses import AttendanceResponse, PatientResponse, TreatmentSessionResponse, TreatmentStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class PatientCreateRequest(BaseModel):
    """Request model for creating a patient."""
    name: str
    phone: Optional[str] = None
    priority: PatientPriority = PatientPriority.NORMAL
    treatment_status: PatientTreatmentStatus = PatientTreatmentStatus.NEW
    birth_date: Optional[str] = None
    main_complaint: Optional[str] = None
    start_date: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return validate_name(v)

    @field_validator('birth_date', 'start_date')
    @classmethod
    def validate_dates(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string_optional(v)

    @field_validator('main_complaint')
    @classmethod
    def validate_main_complaint(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes(v)


class PatientUpdateRequest(BaseModel):
    """Request model for updating a patient. Only sent fields are changed."""
    name: Optional[str] = None
    phone: Optional[str] = None
    priority: Optional[PatientPriority] = None
    treatment_status: Optional[PatientTreatmentStatus] = None
    birth_date: Optional[str] = None
    main_complaint: Optional[str] = None
    discharge_date: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_name_optional(v)

    @field_validator('birth_date', 'discharge_date')
    @classmethod
    def validate_dates(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_string_optional(v)

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('At least one field must be provided for update')
        return self


@router.get("/patients", summary="List all patients", response_model=List[PatientResponse])
async def list_patients(db: Session = Depends(get_db)) -> List[PatientResponse]:
    """List patients, most urgent priority first, then by name."""
    patients = PatientService.list_patients(db)
    return [PatientResponse.model_validate(p) for p in patients]


@router.post(
    "/patients",
    summary="Create patient",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_patient(request: PatientCreateRequest, db: Session = Depends(get_db)) -> PatientResponse:
    try:
        patient = PatientService.create_patient(
            db=db,
            name=request.name,
            phone=request.phone,
            priority=request.priority.value,
            treatment_status=request.treatment_status.value,
            birth_date=request.birth_date,
            main_complaint=request.main_complaint,
            start_date=request.start_date
        )
        return PatientResponse.model_validate(patient)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Patient creation error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create patient"
        )


@router.get("/patients/{patient_id}", summary="Get patient details", response_model=PatientResponse)
async def get_patient(patient_id: int, db: Session = Depends(get_db)) -> PatientResponse:
    return PatientResponse.model_validate(PatientService.get_patient(db, patient_id))


@router.put("/patients/{patient_id}", summary="Update patient information", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    request: PatientUpdateRequest,
    db: Session = Depends(get_db)
) -> PatientResponse:
    try:
        changes = request.model_dump(exclude_unset=True)
        for key in ('priority', 'treatment_status'):
            if changes.get(key) is not None:
                changes[key] = changes[key].value
        patient = PatientService.update_patient(db, patient_id, **changes)
        return PatientResponse.model_validate(patient)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error updating patient {patient_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update patient"
        )


@router.delete("/patients/{patient_id}", summary="Delete patient", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(patient_id: int, db: Session = Depends(get_db)) -> None:
    PatientService.delete_patient(db, patient_id)


@router.get(
    "/patients/{patient_id}/attendances",
    summary="List patient attendances",
    response_model=List[AttendanceResponse]
)
async def list_patient_attendances(patient_id: int, db: Session = Depends(get_db)) -> List[AttendanceResponse]:
    PatientService.get_patient(db, patient_id)
    attendances = AttendanceService.list_attendances_for_patient(db, patient_id)
    return [AttendanceResponse.model_validate(a) for a in attendances]


@router.get(
    "/patients/{patient_id}/treatment-sessions",
    summary="List patient treatment sessions",
    response_model=List[TreatmentSessionResponse]
)
async def list_patient_treatment_sessions(
    patient_id: int,
    db: Session = Depends(get_db)
) -> List[TreatmentSessionResponse]:
    PatientService.get_patient(db, patient_id)
    sessions = TreatmentSessionService.list_sessions_for_patient(db, patient_id)
    return [TreatmentSessionResponse.model_validate(s) for s in sessions]


@router.get(
    "/patients/{patient_id}/treatment-stats",
    summary="Treatment progress statistics for a patient",
    response_model=TreatmentStatsResponse
)
async def get_patient_treatment_stats(patient_id: int, db: Session = Depends(get_db)) -> TreatmentStatsResponse:
    PatientService.get_patient(db, patient_id)
    return TreatmentStatsResponse(**TreatmentSessionService.get_treatment_stats(db, patient_id))
