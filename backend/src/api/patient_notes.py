# pyright: reportMissingTypeStubs=false
"""
Patient note API endpoints.

Notes are nested under their patient: /patients/{patient_id}/notes.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from core.database import get_db
from core.enums import NoteCategory
from services import PatientNoteService
from api.shared import validate_note_content, validate_note_content_optional
from api.responses import PatientNoteResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class PatientNoteCreateRequest(BaseModel):
    note_content: str
    category: NoteCategory = NoteCategory.GENERAL

    @field_validator('note_content')
    @classmethod
    def validate_content(cls, v: str) -> str:
        return validate_note_content(v)


class PatientNoteUpdateRequest(BaseModel):
    note_content: Optional[str] = None
    category: Optional[NoteCategory] = None

    @field_validator('note_content')
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        return validate_note_content_optional(v)

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('At least one field must be provided for update')
        return self


@router.get(
    "/patients/{patient_id}/notes",
    summary="List patient notes",
    response_model=List[PatientNoteResponse]
)
async def list_patient_notes(patient_id: int, db: Session = Depends(get_db)) -> List[PatientNoteResponse]:
    """List a patient's notes, newest first."""
    notes = PatientNoteService.list_notes_for_patient(db, patient_id)
    return [PatientNoteResponse.model_validate(n) for n in notes]


@router.post(
    "/patients/{patient_id}/notes",
    summary="Add a patient note",
    response_model=PatientNoteResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_patient_note(
    patient_id: int,
    request: PatientNoteCreateRequest,
    db: Session = Depends(get_db)
) -> PatientNoteResponse:
    note = PatientNoteService.create_note(db, patient_id, request.note_content, request.category.value)
    return PatientNoteResponse.model_validate(note)


@router.get(
    "/patients/{patient_id}/notes/{note_id}",
    summary="Get a patient note",
    response_model=PatientNoteResponse
)
async def get_patient_note(patient_id: int, note_id: int, db: Session = Depends(get_db)) -> PatientNoteResponse:
    return PatientNoteResponse.model_validate(PatientNoteService.get_note(db, patient_id, note_id))


@router.put(
    "/patients/{patient_id}/notes/{note_id}",
    summary="Update a patient note",
    response_model=PatientNoteResponse
)
async def update_patient_note(
    patient_id: int,
    note_id: int,
    request: PatientNoteUpdateRequest,
    db: Session = Depends(get_db)
) -> PatientNoteResponse:
    changes = request.model_dump(exclude_unset=True)
    if changes.get('category') is not None:
        changes['category'] = changes['category'].value
    note = PatientNoteService.update_note(db, patient_id, note_id, **changes)
    return PatientNoteResponse.model_validate(note)


@router.delete(
    "/patients/{patient_id}/notes/{note_id}",
    summary="Delete a patient note",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_patient_note(patient_id: int, note_id: int, db: Session = Depends(get_db)) -> None:
    PatientNoteService.delete_note(db, patient_id, note_id)
