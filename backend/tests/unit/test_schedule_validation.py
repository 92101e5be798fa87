"""
Unit tests for the admission decision of ScheduleValidationService.

evaluate_admission works on an unsaved ScheduleSetting and an existing
count, so no database is needed.
"""

import pytest

from core.exceptions import CapacityExceededError, ConflictError, OutsideOperatingHoursError
from models import ScheduleSetting
from services.schedule_validation_service import ScheduleValidationService
from utils.date_string_utils import TUESDAY


TUESDAY_DATE = "2024-01-02"


def make_setting(start_time="09:00", end_time="12:00", spiritual=2, light_bath=1):
    return ScheduleSetting(
        day_of_week=TUESDAY,
        start_time=start_time,
        end_time=end_time,
        max_concurrent_spiritual=spiritual,
        max_concurrent_light_bath=light_bath,
        is_active=True,
    )


class TestOperatingHours:
    """Test operating-hours bounds."""

    def test_time_after_closing_is_rejected(self):
        setting = make_setting()

        with pytest.raises(OutsideOperatingHoursError) as exc_info:
            ScheduleValidationService.evaluate_admission(setting, TUESDAY_DATE, "14:30", "spiritual", 0)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["start_time"] == "09:00"
        assert exc_info.value.details["end_time"] == "12:00"

    def test_time_before_opening_is_rejected(self):
        with pytest.raises(OutsideOperatingHoursError):
            ScheduleValidationService.evaluate_admission(make_setting(), TUESDAY_DATE, "08:59", "spiritual", 0)

    @pytest.mark.parametrize("time_str", ["09:00", "10:30", "12:00", "12:00:00"])
    def test_bounds_are_inclusive(self, time_str):
        ScheduleValidationService.evaluate_admission(make_setting(), TUESDAY_DATE, time_str, "spiritual", 0)

    def test_setting_times_with_seconds_are_compared_as_hh_mm(self):
        setting = make_setting(start_time="09:00:00", end_time="12:00:00")

        ScheduleValidationService.evaluate_admission(setting, TUESDAY_DATE, "12:00", "rod", 0)


class TestCapacity:
    """Test per-type capacity ceilings."""

    def test_third_spiritual_attendance_exceeds_ceiling_of_two(self):
        setting = make_setting(spiritual=2)

        with pytest.raises(CapacityExceededError) as exc_info:
            ScheduleValidationService.evaluate_admission(setting, TUESDAY_DATE, "10:00", "spiritual", 2)

        assert exc_info.value.details["capacity"] == 2
        assert exc_info.value.details["type"] == "spiritual"
        assert isinstance(exc_info.value, ConflictError)

    def test_below_ceiling_is_admitted(self):
        ScheduleValidationService.evaluate_admission(make_setting(spiritual=2), TUESDAY_DATE, "10:00", "spiritual", 1)

    def test_rod_shares_light_bath_ceiling(self):
        setting = make_setting(spiritual=5, light_bath=1)

        assert ScheduleValidationService.get_capacity_for_type(setting, "rod") == 1
        assert ScheduleValidationService.get_capacity_for_type(setting, "light_bath") == 1
        assert ScheduleValidationService.get_capacity_for_type(setting, "spiritual") == 5
        with pytest.raises(CapacityExceededError):
            ScheduleValidationService.evaluate_admission(setting, TUESDAY_DATE, "10:00", "rod", 1)

    def test_hours_are_checked_before_capacity(self):
        setting = make_setting(spiritual=1)

        with pytest.raises(OutsideOperatingHoursError):
            ScheduleValidationService.evaluate_admission(setting, TUESDAY_DATE, "13:00", "spiritual", 5)

    def test_unknown_type_raises_value_error(self):
        with pytest.raises(ValueError):
            ScheduleValidationService.get_capacity_for_type(make_setting(), "massage")
