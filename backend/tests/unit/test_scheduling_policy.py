"""
Unit tests for treatment plan scheduling policies and plan field rules.
"""

import pytest

from core.exceptions import BadRequestError, ValidationError
from services.treatment_session_service import (
    WEEKLY_FROM_START_DATE,
    WEEKLY_ON_NEXT_TUESDAY,
    TreatmentSessionService,
    format_batch_error,
    format_session_label,
)
from utils.date_string_utils import TUESDAY, get_day_of_week


class TestWeeklyFromStartDate:
    """Test the policy used for plans created directly."""

    def test_sessions_are_exactly_one_week_apart(self):
        dates = WEEKLY_FROM_START_DATE.session_dates("2024-01-03", 4)

        assert dates == ["2024-01-03", "2024-01-10", "2024-01-17", "2024-01-24"]
        assert dates == sorted(dates)

    def test_first_session_is_start_date_whatever_the_weekday(self):
        assert WEEKLY_FROM_START_DATE.first_date("2024-01-06") == "2024-01-06"

    def test_crosses_month_boundary(self):
        assert WEEKLY_FROM_START_DATE.session_dates("2024-01-29", 2) == ["2024-01-29", "2024-02-05"]

    def test_default_time(self):
        assert WEEKLY_FROM_START_DATE.default_time == "19:30"
        assert WEEKLY_FROM_START_DATE.name == "weekly-from-start-date"


class TestWeeklyOnNextTuesday:
    """Test the policy used by treatment records and attendance batches."""

    def test_start_moves_to_next_tuesday(self):
        dates = WEEKLY_ON_NEXT_TUESDAY.session_dates("2024-01-03", 3)

        assert dates == ["2024-01-09", "2024-01-16", "2024-01-23"]
        assert all(get_day_of_week(d) == TUESDAY for d in dates)

    def test_tuesday_start_is_kept(self):
        assert WEEKLY_ON_NEXT_TUESDAY.first_date("2024-01-02") == "2024-01-02"

    def test_default_time(self):
        assert WEEKLY_ON_NEXT_TUESDAY.default_time == "21:00"
        assert WEEKLY_ON_NEXT_TUESDAY.name == "weekly-on-next-tuesday"

    def test_policies_are_distinct(self):
        assert WEEKLY_ON_NEXT_TUESDAY != WEEKLY_FROM_START_DATE


class TestLabels:
    """Test attendance note labels and batch error messages."""

    def test_session_label(self):
        assert format_session_label(2, 4) == "Sessão 2 de 4"

    def test_session_label_with_notes(self):
        assert format_session_label(1, 3, "Banho de luz") == "Banho de luz - Sessão 1 de 3"

    def test_batch_error_mentions_position_and_cause(self):
        message = format_batch_error(2, 3, ValueError("slot full"))

        assert message == "Erro ao criar agendamento 2/3: slot full"


class TestValidatePlanFields:
    """Test the light bath/rod field rule and value ranges."""

    def test_light_bath_with_duration_and_color(self):
        result = TreatmentSessionService.validate_plan_fields("light_bath", 4, 3, "azul")

        assert result.value == "light_bath"

    @pytest.mark.parametrize("duration,color", [(None, "azul"), (3, None), (None, None)])
    def test_light_bath_missing_fields_is_bad_request(self, duration, color):
        with pytest.raises(BadRequestError) as exc_info:
            TreatmentSessionService.validate_plan_fields("light_bath", 4, duration, color)

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("duration,color", [(3, None), (None, "azul")])
    def test_rod_with_light_bath_fields_is_bad_request(self, duration, color):
        with pytest.raises(BadRequestError):
            TreatmentSessionService.validate_plan_fields("rod", 4, duration, color)

    def test_rod_without_fields(self):
        assert TreatmentSessionService.validate_plan_fields("rod", 1, None, None).value == "rod"

    @pytest.mark.parametrize("planned", [0, 51])
    def test_planned_sessions_out_of_range(self, planned):
        with pytest.raises(ValidationError):
            TreatmentSessionService.validate_plan_fields("rod", planned, None, None)

    @pytest.mark.parametrize("duration", [0, 11])
    def test_duration_out_of_range(self, duration):
        with pytest.raises(ValidationError):
            TreatmentSessionService.validate_plan_fields("light_bath", 2, duration, "azul")

    def test_unknown_color(self):
        with pytest.raises(ValidationError):
            TreatmentSessionService.validate_plan_fields("light_bath", 2, 2, "rosa")

    def test_unknown_treatment_type(self):
        with pytest.raises(ValidationError):
            TreatmentSessionService.validate_plan_fields("spiritual", 2, None, None)
