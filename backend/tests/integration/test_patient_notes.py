"""
Integration tests for patient notes.
"""

import pytest

from core.exceptions import BadRequestError, NotFoundError, ValidationError
from models import PatientNote
from services.patient_note_service import PatientNoteService
from services.patient_service import PatientService


class TestPatientNoteService:
    """Test note CRUD scoped to a patient."""

    def test_create_defaults_to_general(self, db_session, patient):
        note = PatientNoteService.create_note(db_session, patient.id, "  Relatou melhora no sono.  ")

        assert note.id is not None
        assert note.note_content == "Relatou melhora no sono."
        assert note.category == "general"
        assert note.created_date is not None
        assert note.created_time is not None

    def test_create_for_unknown_patient(self, db_session):
        with pytest.raises(NotFoundError):
            PatientNoteService.create_note(db_session, 999, "Nota")

    @pytest.mark.parametrize("content,category", [
        ("   ", "general"),
        ("x" * 2001, "general"),
        ("Nota", "diet"),
    ])
    def test_create_invalid_values(self, db_session, patient, content, category):
        with pytest.raises(ValidationError):
            PatientNoteService.create_note(db_session, patient.id, content, category)

    def test_list_newest_first(self, db_session, patient, make_patient):
        first = PatientNoteService.create_note(db_session, patient.id, "Primeira")
        second = PatientNoteService.create_note(db_session, patient.id, "Segunda", "progress")
        other = make_patient(name="Outro Paciente")
        PatientNoteService.create_note(db_session, other.id, "De outro paciente")

        notes = PatientNoteService.list_notes_for_patient(db_session, patient.id)

        assert [n.id for n in notes] == [second.id, first.id]

    def test_list_for_unknown_patient(self, db_session):
        with pytest.raises(NotFoundError):
            PatientNoteService.list_notes_for_patient(db_session, 999)

    def test_note_is_scoped_to_its_patient(self, db_session, patient, make_patient):
        note = PatientNoteService.create_note(db_session, patient.id, "Nota")
        other = make_patient(name="Outro Paciente")

        assert PatientNoteService.get_note(db_session, patient.id, note.id).id == note.id
        with pytest.raises(NotFoundError):
            PatientNoteService.get_note(db_session, other.id, note.id)
        with pytest.raises(NotFoundError):
            PatientNoteService.delete_note(db_session, other.id, note.id)

    def test_update(self, db_session, patient):
        note = PatientNoteService.create_note(db_session, patient.id, "Nota")

        updated = PatientNoteService.update_note(db_session, patient.id, note.id, category="medication")
        assert updated.category == "medication"
        assert updated.note_content == "Nota"

        updated = PatientNoteService.update_note(db_session, patient.id, note.id, note_content="Nota revisada")
        assert updated.note_content == "Nota revisada"

    def test_update_requires_a_valid_field(self, db_session, patient):
        note = PatientNoteService.create_note(db_session, patient.id, "Nota")

        with pytest.raises(BadRequestError):
            PatientNoteService.update_note(db_session, patient.id, note.id)
        with pytest.raises(ValidationError):
            PatientNoteService.update_note(db_session, patient.id, note.id, note_content="")

    def test_delete(self, db_session, patient):
        note = PatientNoteService.create_note(db_session, patient.id, "Nota")

        PatientNoteService.delete_note(db_session, patient.id, note.id)

        assert PatientNoteService.list_notes_for_patient(db_session, patient.id) == []

    def test_deleting_patient_removes_notes(self, db_session, patient):
        PatientNoteService.create_note(db_session, patient.id, "Nota")

        PatientService.delete_patient(db_session, patient.id)

        assert db_session.query(PatientNote).count() == 0
