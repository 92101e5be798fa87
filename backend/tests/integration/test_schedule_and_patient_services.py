"""
Integration tests for schedule setting and patient services.
"""

import pytest

from core.exceptions import BadRequestError, NotFoundError, ScheduleConflictError, ValidationError
from models import Attendance
from services.patient_service import PatientService
from services.schedule_setting_service import ScheduleSettingService
from utils.date_string_utils import MONDAY, TUESDAY, get_today_string


class TestScheduleSettingService:
    """Test schedule setting CRUD and the one-active-per-day rule."""

    def test_create_normalizes_times(self, db_session):
        setting = ScheduleSettingService.create_setting(
            db_session, TUESDAY, "09:00:00", "12:00", max_concurrent_spiritual=3
        )

        assert setting.start_time == "09:00"
        assert setting.end_time == "12:00"
        assert setting.max_concurrent_spiritual == 3
        assert setting.max_concurrent_light_bath == 1
        assert setting.is_active is True

    def test_duplicate_active_day(self, db_session):
        first = ScheduleSettingService.create_setting(db_session, TUESDAY, "09:00", "12:00")

        with pytest.raises(ScheduleConflictError) as exc_info:
            ScheduleSettingService.create_setting(db_session, TUESDAY, "18:00", "21:00")

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["existing_setting_id"] == first.id

    def test_inactive_duplicate_is_allowed(self, db_session):
        ScheduleSettingService.create_setting(db_session, TUESDAY, "09:00", "12:00")
        inactive = ScheduleSettingService.create_setting(db_session, TUESDAY, "18:00", "21:00", is_active=False)

        assert inactive.is_active is False
        assert len(ScheduleSettingService.list_settings(db_session, active_only=True)) == 1
        assert len(ScheduleSettingService.list_settings(db_session)) == 2

    def test_activating_second_setting_conflicts(self, db_session):
        ScheduleSettingService.create_setting(db_session, TUESDAY, "09:00", "12:00")
        inactive = ScheduleSettingService.create_setting(db_session, TUESDAY, "18:00", "21:00", is_active=False)

        with pytest.raises(ScheduleConflictError):
            ScheduleSettingService.update_setting(db_session, inactive.id, is_active=True)

    @pytest.mark.parametrize("day,start,end", [
        (7, "09:00", "12:00"),
        (-1, "09:00", "12:00"),
        (TUESDAY, "12:00", "09:00"),
        (TUESDAY, "09:00", "09:00"),
        (TUESDAY, "9am", "12:00"),
    ])
    def test_invalid_values(self, db_session, day, start, end):
        with pytest.raises(ValidationError):
            ScheduleSettingService.create_setting(db_session, day, start, end)

    def test_update(self, db_session):
        setting = ScheduleSettingService.create_setting(db_session, TUESDAY, "09:00", "12:00")

        updated = ScheduleSettingService.update_setting(db_session, setting.id, end_time="13:00", max_concurrent_light_bath=4)

        assert updated.end_time == "13:00"
        assert updated.max_concurrent_light_bath == 4
        assert updated.start_time == "09:00"

    def test_update_requires_a_field(self, db_session):
        setting = ScheduleSettingService.create_setting(db_session, TUESDAY, "09:00", "12:00")

        with pytest.raises(BadRequestError):
            ScheduleSettingService.update_setting(db_session, setting.id)

    def test_get_by_day_and_delete(self, db_session):
        setting = ScheduleSettingService.create_setting(db_session, MONDAY, "18:00", "22:00")

        assert ScheduleSettingService.get_by_day(db_session, MONDAY).id == setting.id

        ScheduleSettingService.delete_setting(db_session, setting.id)

        with pytest.raises(NotFoundError):
            ScheduleSettingService.get_by_day(db_session, MONDAY)
        with pytest.raises(NotFoundError):
            ScheduleSettingService.get_setting(db_session, setting.id)


class TestPatientService:
    """Test patient CRUD."""

    def test_create_defaults(self, db_session):
        patient = PatientService.create_patient(db_session, "  João Souza ")

        assert patient.name == "João Souza"
        assert patient.priority == "3"
        assert patient.treatment_status == "new"
        assert patient.start_date == get_today_string()

    def test_list_orders_by_priority_then_name(self, db_session):
        PatientService.create_patient(db_session, "Carla", priority="3")
        PatientService.create_patient(db_session, "Bruno", priority="1")
        PatientService.create_patient(db_session, "Ana", priority="3")

        assert [p.name for p in PatientService.list_patients(db_session)] == ["Bruno", "Ana", "Carla"]

    def test_invalid_values(self, db_session):
        with pytest.raises(ValidationError):
            PatientService.create_patient(db_session, "   ")
        with pytest.raises(ValidationError):
            PatientService.create_patient(db_session, "Ana", birth_date="31/12/1980")
        with pytest.raises(ValueError):
            PatientService.create_patient(db_session, "Ana", priority="9")

    def test_update_discharge(self, db_session):
        patient = PatientService.create_patient(db_session, "Ana")

        updated = PatientService.update_patient(
            db_session, patient.id, treatment_status="discharged", discharge_date="2024-03-01", phone=None
        )

        assert updated.treatment_status == "discharged"
        assert updated.discharge_date == "2024-03-01"
        assert updated.phone is None

    def test_update_requires_a_field(self, db_session):
        patient = PatientService.create_patient(db_session, "Ana")

        with pytest.raises(BadRequestError):
            PatientService.update_patient(db_session, patient.id)

    def test_delete_removes_attendances(self, db_session, completed_attendance):
        PatientService.delete_patient(db_session, completed_attendance.patient_id)

        assert db_session.query(Attendance).count() == 0
        with pytest.raises(NotFoundError):
            PatientService.get_patient(db_session, completed_attendance.patient_id)
