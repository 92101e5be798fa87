"""
Integration tests for session progress tracking.

completed_sessions must always equal the number of COMPLETED records of
the plan after any record status change.
"""

import pytest

from core.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidStateForRescheduleError,
    NotFoundError,
    ValidationError,
)
from models import TreatmentSession, TreatmentSessionRecord
from services.attendance_service import AttendanceService
from services.treatment_session_record_service import TreatmentSessionRecordService
from services.treatment_session_service import TreatmentSessionPlanData, TreatmentSessionService
from utils.date_string_utils import add_days_to_date_string, get_day_of_week, get_today_string


def create_plan(db, treatment_record, start_date="2024-01-03", planned_sessions=4, treatment_type="rod"):
    data = TreatmentSessionPlanData(
        treatment_record_id=treatment_record.id,
        attendance_id=treatment_record.attendance_id,
        patient_id=treatment_record.attendance.patient_id,
        treatment_type=treatment_type,
        body_location="Joelho direito",
        start_date=start_date,
        planned_sessions=planned_sessions,
    )
    return TreatmentSessionService.create_treatment_session(db, data).session


def completed_count(db, session_id):
    return db.query(TreatmentSessionRecord).filter(
        TreatmentSessionRecord.treatment_session_id == session_id,
        TreatmentSessionRecord.status == "completed"
    ).count()


@pytest.fixture
def plan(db_session, treatment_record):
    """Four-session rod plan from 2024-01-03; no schedule, so no attendances."""
    return create_plan(db_session, treatment_record)


class TestCompleteSession:
    """Test completion and the recomputed counter."""

    def test_counter_matches_completed_records(self, db_session, plan):
        records = list(plan.session_records)

        for expected, record in enumerate(records[:3], start=1):
            TreatmentSessionRecordService.complete_session(db_session, record.id)
            session = db_session.get(TreatmentSession, plan.id)
            assert session.completed_sessions == expected
            assert session.completed_sessions == completed_count(db_session, plan.id)

    def test_completing_twice_does_not_double_count(self, db_session, plan):
        record = plan.session_records[0]

        TreatmentSessionRecordService.complete_session(db_session, record.id)
        TreatmentSessionRecordService.complete_session(db_session, record.id)

        assert db_session.get(TreatmentSession, plan.id).completed_sessions == 1

    def test_sets_times_notes_and_moves_plan_in_progress(self, db_session, plan):
        record = TreatmentSessionRecordService.complete_session(
            db_session, plan.session_records[0].id, notes="Sem intercorrências", performed_by="Ana"
        )

        assert record.status == "completed"
        assert record.start_time is not None
        assert record.end_time is not None
        assert len(record.end_time) == 8
        assert record.notes == "Sem intercorrências"
        assert record.performed_by == "Ana"
        assert db_session.get(TreatmentSession, plan.id).status == "in_progress"

    def test_completion_alone_does_not_complete_plan(self, db_session, treatment_record):
        session = create_plan(db_session, treatment_record, planned_sessions=1)

        TreatmentSessionRecordService.complete_session(db_session, session.session_records[0].id)

        refreshed = db_session.get(TreatmentSession, session.id)
        assert refreshed.completed_sessions == 1
        assert refreshed.status == "in_progress"

    def test_links_attendance(self, db_session, plan, completed_attendance):
        record = TreatmentSessionRecordService.complete_session(
            db_session, plan.session_records[0].id, attendance_id=completed_attendance.id
        )

        assert record.attendance_id == completed_attendance.id

    def test_unknown_attendance(self, db_session, plan):
        with pytest.raises(NotFoundError):
            TreatmentSessionRecordService.complete_session(db_session, plan.session_records[0].id, attendance_id=999)

    def test_unknown_record(self, db_session):
        with pytest.raises(NotFoundError):
            TreatmentSessionRecordService.complete_session(db_session, 999)


class TestMissAndReschedule:
    """Test missed sessions and rescheduling."""

    def test_missing_a_scheduled_session_keeps_counter(self, db_session, plan):
        records = list(plan.session_records)
        TreatmentSessionRecordService.complete_session(db_session, records[0].id)

        missed = TreatmentSessionRecordService.mark_session_missed(db_session, records[1].id, "Chuva forte")

        assert missed.status == "missed"
        assert missed.missed_reason == "Chuva forte"
        assert db_session.get(TreatmentSession, plan.id).completed_sessions == 1

    def test_missing_a_completed_session_recounts(self, db_session, plan):
        record = plan.session_records[0]
        TreatmentSessionRecordService.complete_session(db_session, record.id)

        TreatmentSessionRecordService.mark_session_missed(db_session, record.id)

        assert db_session.get(TreatmentSession, plan.id).completed_sessions == 0

    def test_reschedule_missed_session(self, db_session, plan):
        record = plan.session_records[1]
        TreatmentSessionRecordService.mark_session_missed(db_session, record.id, "Doente")

        rescheduled = TreatmentSessionRecordService.reschedule_session(db_session, record.id, "2024-01-12")

        assert rescheduled.status == "scheduled"
        assert rescheduled.scheduled_date == "2024-01-12"
        assert rescheduled.missed_reason is None

    def test_completed_session_cannot_be_rescheduled(self, db_session, plan):
        record = plan.session_records[0]
        TreatmentSessionRecordService.complete_session(db_session, record.id)

        with pytest.raises(InvalidStateForRescheduleError) as exc_info:
            TreatmentSessionRecordService.reschedule_session(db_session, record.id, "2024-02-01")

        assert exc_info.value.status_code == 409
        assert TreatmentSessionRecordService.get_session_record(db_session, record.id).scheduled_date == "2024-01-03"

    def test_reschedule_invalid_date(self, db_session, plan):
        with pytest.raises(ValidationError):
            TreatmentSessionRecordService.reschedule_session(db_session, plan.session_records[0].id, "2024-13-01")


class TestUpdateAndDeleteRecord:
    """Test generic record updates, creation and deletion."""

    def test_status_update_recounts(self, db_session, plan):
        record = plan.session_records[2]

        TreatmentSessionRecordService.update_session_record(db_session, record.id, status="completed")

        assert db_session.get(TreatmentSession, plan.id).completed_sessions == 1

    def test_update_without_fields(self, db_session, plan):
        with pytest.raises(BadRequestError):
            TreatmentSessionRecordService.update_session_record(db_session, plan.session_records[0].id)

    def test_update_invalid_time(self, db_session, plan):
        with pytest.raises(ValidationError):
            TreatmentSessionRecordService.update_session_record(db_session, plan.session_records[0].id, start_time="7h")

    def test_delete_completed_record_recounts(self, db_session, plan):
        records = list(plan.session_records)
        TreatmentSessionRecordService.complete_session(db_session, records[0].id)
        TreatmentSessionRecordService.complete_session(db_session, records[1].id)

        TreatmentSessionRecordService.delete_session_record(db_session, records[0].id)

        assert db_session.get(TreatmentSession, plan.id).completed_sessions == 1
        assert len(TreatmentSessionRecordService.list_records_for_session(db_session, plan.id)) == 3

    def test_create_duplicate_number(self, db_session, plan):
        with pytest.raises(ConflictError):
            TreatmentSessionRecordService.create_session_record(db_session, plan.id, 2, "2024-01-10")

    def test_create_after_delete(self, db_session, plan):
        TreatmentSessionRecordService.delete_session_record(db_session, plan.session_records[3].id)

        record = TreatmentSessionRecordService.create_session_record(db_session, plan.id, 4, "2024-01-31", notes="Extra")

        assert record.status == "scheduled"
        assert [r.session_number for r in TreatmentSessionRecordService.list_records_for_session(db_session, plan.id)] == [
            1, 2, 3, 4
        ]

    def test_create_number_beyond_plan(self, db_session, plan):
        with pytest.raises(ValidationError):
            TreatmentSessionRecordService.create_session_record(db_session, plan.id, 5, "2024-01-31")


class TestUpcomingSessions:
    """Test the upcoming-sessions window."""

    def test_window_is_inclusive(self, db_session, treatment_record):
        today = get_today_string()
        session = create_plan(db_session, treatment_record, start_date=today, planned_sessions=3)
        patient_id = session.patient_id

        upcoming = TreatmentSessionRecordService.get_upcoming_sessions_for_patient(db_session, patient_id, 7)

        assert [r.scheduled_date for r in upcoming] == [today, add_days_to_date_string(today, 7)]
        assert len(TreatmentSessionRecordService.get_upcoming_sessions_for_patient(db_session, patient_id, 0)) == 1

    def test_only_scheduled_records(self, db_session, treatment_record):
        today = get_today_string()
        session = create_plan(db_session, treatment_record, start_date=today, planned_sessions=2)
        TreatmentSessionRecordService.complete_session(db_session, session.session_records[0].id)

        upcoming = TreatmentSessionRecordService.get_upcoming_sessions_for_patient(db_session, session.patient_id, 7)

        assert [r.session_number for r in upcoming] == [2]

    def test_negative_days(self, db_session, patient):
        with pytest.raises(ValidationError):
            TreatmentSessionRecordService.get_upcoming_sessions_for_patient(db_session, patient.id, -1)


class TestAttendanceCompletion:
    """Test that completing a plan attendance progresses the plan."""

    def test_completing_linked_attendance_completes_record_and_plan(
        self, db_session, treatment_record, make_schedule_setting
    ):
        make_schedule_setting(get_day_of_week("2024-01-03"))
        session = create_plan(db_session, treatment_record, planned_sessions=1)
        attendance_id = session.session_records[0].attendance_id
        assert attendance_id is not None

        for status in ("checked_in", "in_progress", "completed"):
            AttendanceService.update_attendance(db_session, attendance_id, status=status)

        record = TreatmentSessionRecordService.list_records_for_session(db_session, session.id)[0]
        refreshed = db_session.get(TreatmentSession, session.id)
        assert record.status == "completed"
        assert refreshed.completed_sessions == 1
        assert refreshed.status == "completed"
        assert refreshed.end_date == get_today_string()

    def test_unlinked_attendance_completes_first_scheduled_record(
        self, db_session, treatment_record, make_schedule_setting
    ):
        session = create_plan(db_session, treatment_record, planned_sessions=2)
        make_schedule_setting(get_day_of_week("2024-01-04"))
        attendance = AttendanceService.create_attendance(db_session, session.patient_id, "rod", "2024-01-04", "19:00")

        for status in ("checked_in", "in_progress", "completed"):
            AttendanceService.update_attendance(db_session, attendance.id, status=status)

        records = TreatmentSessionRecordService.list_records_for_session(db_session, session.id)
        assert [r.status for r in records] == ["completed", "scheduled"]
        assert records[0].attendance_id == attendance.id
        assert db_session.get(TreatmentSession, session.id).completed_sessions == 1

    def test_deleting_attendance_unlinks_record(self, db_session, treatment_record, make_schedule_setting):
        make_schedule_setting(get_day_of_week("2024-01-03"))
        session = create_plan(db_session, treatment_record, planned_sessions=1)
        record = session.session_records[0]

        AttendanceService.delete_attendance(db_session, record.attendance_id)

        assert TreatmentSessionRecordService.get_session_record(db_session, record.id).attendance_id is None
