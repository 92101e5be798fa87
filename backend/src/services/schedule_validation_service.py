"""
Schedule validation service for attendance admission.

Decides whether a new attendance fits into the clinic's configured
operating hours and per-slot capacity for its day of week. The decision
itself is a pure function over a ScheduleSetting and an existing-count so
it can be exercised without a database.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.enums import AttendanceStatus, AttendanceType
from core.exceptions import (
    CapacityExceededError,
    NoScheduleConfiguredError,
    OutsideOperatingHoursError,
)
from models import Attendance, ScheduleSetting
from utils.date_string_utils import get_day_of_week, normalize_time_string

logger = logging.getLogger(__name__)


class ScheduleValidationService:
    """Operating-hours and capacity checks run before an attendance is persisted."""

    @staticmethod
    def get_capacity_for_type(setting: ScheduleSetting, attendance_type: str) -> int:
        """
        Ceiling for one attendance type at a single date+time.

        Light bath and rod share ``max_concurrent_light_bath``; there is no
        separate ceiling for rod.
        """
        if AttendanceType(attendance_type) == AttendanceType.SPIRITUAL:
            return setting.max_concurrent_spiritual
        return setting.max_concurrent_light_bath

    @staticmethod
    def evaluate_admission(
        setting: ScheduleSetting,
        scheduled_date: str,
        scheduled_time: str,
        attendance_type: str,
        existing_count: int
    ) -> None:
        """
        Admit or reject a candidate attendance against a schedule setting.

        Args:
            setting: Active schedule setting for the candidate's day of week
            scheduled_date: Candidate date (YYYY-MM-DD), used in error details
            scheduled_time: Candidate time (HH:MM)
            attendance_type: Candidate attendance type
            existing_count: Scheduled attendances already at the same date+time+type

        Raises:
            OutsideOperatingHoursError: If the time is outside [start_time, end_time]
            CapacityExceededError: If the slot is already full
        """
        time_str = normalize_time_string(scheduled_time)
        start_time = normalize_time_string(setting.start_time)
        end_time = normalize_time_string(setting.end_time)

        # Both bounds inclusive
        if time_str < start_time or time_str > end_time:
            raise OutsideOperatingHoursError(scheduled_date, time_str, start_time, end_time)

        capacity = ScheduleValidationService.get_capacity_for_type(setting, attendance_type)
        if existing_count >= capacity:
            raise CapacityExceededError(scheduled_date, time_str, attendance_type, capacity)

    @staticmethod
    def get_active_setting_for_day(
        db: Session,
        day_of_week: int,
        lock: bool = False
    ) -> Optional[ScheduleSetting]:
        """
        Get the active schedule setting for a day of week.

        Args:
            db: Database session
            day_of_week: 0=Sunday .. 6=Saturday
            lock: Take a row lock (SELECT ... FOR UPDATE) so concurrent admissions
                for the same day serialize until the caller's transaction ends

        Returns:
            The active ScheduleSetting, or None if the day is not configured
        """
        query = db.query(ScheduleSetting).filter(
            ScheduleSetting.day_of_week == day_of_week,
            ScheduleSetting.is_active == True  # noqa: E712
        ).order_by(ScheduleSetting.id)
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def count_scheduled_attendances(
        db: Session,
        scheduled_date: str,
        scheduled_time: str,
        attendance_type: str
    ) -> int:
        """Count SCHEDULED attendances at exactly this date, time and type."""
        count = db.query(func.count(Attendance.id)).filter(
            Attendance.scheduled_date == scheduled_date,
            Attendance.scheduled_time == scheduled_time,
            Attendance.type == attendance_type,
            Attendance.status == AttendanceStatus.SCHEDULED.value
        ).scalar()
        return count or 0

    @staticmethod
    def validate_attendance_scheduling(
        db: Session,
        scheduled_date: str,
        scheduled_time: str,
        attendance_type: str
    ) -> ScheduleSetting:
        """
        Validate a candidate attendance against the stored schedule settings.

        Locks the day's active setting row for the rest of the caller's
        transaction, so the count and the subsequent insert are not
        interleaved with another admission for the same day.

        Returns:
            The ScheduleSetting the candidate was admitted under

        Raises:
            ValueError: If the date or time string is malformed
            NoScheduleConfiguredError: If no active setting exists for the day
            OutsideOperatingHoursError: If the time is outside operating hours
            CapacityExceededError: If the slot is already full
        """
        day_of_week = get_day_of_week(scheduled_date)
        time_str = normalize_time_string(scheduled_time)

        setting = ScheduleValidationService.get_active_setting_for_day(db, day_of_week, lock=True)
        if not setting:
            logger.warning(f"Rejected attendance on {scheduled_date}: no schedule for day {day_of_week}")
            raise NoScheduleConfiguredError(day_of_week)

        existing_count = ScheduleValidationService.count_scheduled_attendances(
            db, scheduled_date, time_str, attendance_type
        )

        try:
            ScheduleValidationService.evaluate_admission(
                setting, scheduled_date, time_str, attendance_type, existing_count
            )
        except (OutsideOperatingHoursError, CapacityExceededError) as e:
            logger.warning(f"Rejected {attendance_type} attendance on {scheduled_date} {time_str}: {e}")
            raise

        return setting
