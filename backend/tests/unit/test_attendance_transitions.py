"""
Unit tests for the attendance status transition table.
"""

import pytest
from unittest.mock import Mock

from core.enums import AttendanceStatus
from core.exceptions import InvalidStatusTransitionError
from models import Attendance
from services.attendance_service import ALLOWED_STATUS_TRANSITIONS, AttendanceService, is_valid_transition


class TestTransitionTable:
    """Test the allowed status changes."""

    @pytest.mark.parametrize("current,target", [
        ("scheduled", "checked_in"),
        ("scheduled", "cancelled"),
        ("checked_in", "in_progress"),
        ("in_progress", "completed"),
    ])
    def test_allowed_transitions(self, current, target):
        assert is_valid_transition(current, target) is True

    @pytest.mark.parametrize("current,target", [
        ("scheduled", "completed"),
        ("scheduled", "in_progress"),
        ("checked_in", "scheduled"),
        ("checked_in", "cancelled"),
        ("in_progress", "checked_in"),
        ("completed", "scheduled"),
        ("cancelled", "scheduled"),
    ])
    def test_rejected_transitions(self, current, target):
        assert is_valid_transition(current, target) is False

    def test_terminal_states_have_no_exits(self):
        assert ALLOWED_STATUS_TRANSITIONS[AttendanceStatus.COMPLETED] == frozenset()
        assert ALLOWED_STATUS_TRANSITIONS[AttendanceStatus.CANCELLED] == frozenset()

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_STATUS_TRANSITIONS) == set(AttendanceStatus)


class TestApplyStatus:
    """Test status application on an in-memory attendance."""

    def make_attendance(self, status):
        return Attendance(
            id=7,
            patient_id=1,
            type="spiritual",
            status=status,
            scheduled_date="2024-01-02",
            scheduled_time="19:30",
        )

    def test_skipping_to_completed_raises(self):
        attendance = self.make_attendance("scheduled")

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            AttendanceService._apply_status(attendance, AttendanceStatus.COMPLETED)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {
            "attendance_id": 7,
            "current_status": "scheduled",
            "target_status": "completed",
        }
        assert attendance.status == "scheduled"
        assert attendance.completed_time is None

    def test_check_in_stamps_time(self):
        attendance = self.make_attendance("scheduled")

        AttendanceService._apply_status(attendance, AttendanceStatus.CHECKED_IN)

        assert attendance.status == "checked_in"
        assert attendance.checked_in_time is not None

    def test_cancel_stamps_date(self):
        attendance = self.make_attendance("scheduled")

        AttendanceService._apply_status(attendance, AttendanceStatus.CANCELLED)

        assert attendance.status == "cancelled"
        assert len(attendance.cancelled_date) == 10

    def test_update_rejects_invalid_transition_without_commit(self):
        attendance = self.make_attendance("scheduled")
        db = Mock()
        db.query.return_value.filter.return_value.first.return_value = attendance

        with pytest.raises(InvalidStatusTransitionError):
            AttendanceService.update_attendance(db, 7, status="completed")

        db.commit.assert_not_called()
