"""
Patient note service: free-text notes kept on a patient's file.

Notes are always addressed through their patient; a note id that belongs to
another patient is reported as not found.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import MAX_PATIENT_NOTE_LENGTH
from core.enums import NoteCategory
from core.exceptions import BadRequestError, NotFoundError, ValidationError
from core.sentinels import MISSING, is_provided
from models import Patient, PatientNote

logger = logging.getLogger(__name__)


def _clean_content(note_content: Optional[str]) -> str:
    if not note_content or not note_content.strip():
        raise ValidationError("Note content is required")
    content = note_content.strip()
    if len(content) > MAX_PATIENT_NOTE_LENGTH:
        raise ValidationError(
            f"Note content cannot exceed {MAX_PATIENT_NOTE_LENGTH} characters",
            {"length": len(content)}
        )
    return content


def _clean_category(category: str) -> str:
    try:
        return NoteCategory(category).value
    except ValueError:
        raise ValidationError(
            f"Category must be one of: {', '.join(c.value for c in NoteCategory)}",
            {"category": category}
        )


class PatientNoteService:
    """Service class for patient notes."""

    @staticmethod
    def _ensure_patient(db: Session, patient_id: int) -> None:
        if not db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient", patient_id)

    @staticmethod
    def create_note(
        db: Session,
        patient_id: int,
        note_content: str,
        category: str = NoteCategory.GENERAL.value
    ) -> PatientNote:
        """
        Add a note to a patient.

        Raises:
            NotFoundError: If the patient does not exist
            ValidationError: If the content is blank or too long, or the category is unknown
        """
        PatientNoteService._ensure_patient(db, patient_id)

        note = PatientNote(
            patient_id=patient_id,
            note_content=_clean_content(note_content),
            category=_clean_category(category)
        )
        db.add(note)
        db.commit()
        db.refresh(note)

        logger.info(f"Created note {note.id} ({note.category}) for patient {patient_id}")
        return note

    @staticmethod
    def list_notes_for_patient(db: Session, patient_id: int) -> List[PatientNote]:
        """Notes of a patient, newest first."""
        PatientNoteService._ensure_patient(db, patient_id)
        return db.query(PatientNote).filter(
            PatientNote.patient_id == patient_id
        ).order_by(PatientNote.created_date.desc(), PatientNote.created_time.desc(), PatientNote.id.desc()).all()

    @staticmethod
    def get_note(db: Session, patient_id: int, note_id: int) -> PatientNote:
        note = db.query(PatientNote).filter(
            PatientNote.id == note_id,
            PatientNote.patient_id == patient_id
        ).first()
        if not note:
            raise NotFoundError(f"Note for patient {patient_id}", note_id)
        return note

    @staticmethod
    def update_note(
        db: Session,
        patient_id: int,
        note_id: int,
        note_content: Optional[str] = MISSING,  # type: ignore[assignment]
        category: Optional[str] = MISSING  # type: ignore[assignment]
    ) -> PatientNote:
        """
        Change a note's content and/or category.

        Raises:
            BadRequestError: If neither field is provided
            NotFoundError: If the note does not exist for this patient
            ValidationError: If a value is invalid
        """
        if not is_provided(note_content) and not is_provided(category):
            raise BadRequestError("At least one field must be provided for update")

        note = PatientNoteService.get_note(db, patient_id, note_id)

        if is_provided(note_content):
            note.note_content = _clean_content(note_content)
        if is_provided(category) and category is not None:
            note.category = _clean_category(category)

        db.commit()
        db.refresh(note)

        logger.info(f"Updated note {note.id} of patient {patient_id}")
        return note

    @staticmethod
    def delete_note(db: Session, patient_id: int, note_id: int) -> None:
        note = PatientNoteService.get_note(db, patient_id, note_id)
        db.delete(note)
        db.commit()
        logger.info(f"Deleted note {note_id} of patient {patient_id}")
