"""
Unit tests for shared API request validators.
"""

import pytest

from api.shared import (
    validate_body_location,
    validate_color_optional,
    validate_date_string,
    validate_date_string_optional,
    validate_day_of_week,
    validate_name,
    validate_notes,
    validate_time_string,
)


class TestNameValidation:
    def test_trims_name(self):
        assert validate_name("  Maria Silva ") == "Maria Silva"

    @pytest.mark.parametrize("value", ["", "   ", "x" * 101, "<script>"])
    def test_rejects_invalid_names(self, value):
        with pytest.raises(ValueError):
            validate_name(value)


class TestDateTimeValidation:
    def test_date(self):
        assert validate_date_string(" 2024-01-02 ") == "2024-01-02"
        assert validate_date_string_optional(None) is None

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            validate_date_string("02/01/2024")

    def test_time_is_normalized(self):
        assert validate_time_string("19:30:00") == "19:30"

    def test_invalid_time(self):
        with pytest.raises(ValueError):
            validate_time_string("25:00")

    @pytest.mark.parametrize("day", [-1, 7])
    def test_day_of_week_out_of_range(self, day):
        with pytest.raises(ValueError):
            validate_day_of_week(day)

    def test_day_of_week_bounds(self):
        assert validate_day_of_week(0) == 0
        assert validate_day_of_week(6) == 6


class TestTreatmentFieldValidation:
    def test_color_is_lowercased(self):
        assert validate_color_optional(" Azul ") == "azul"
        assert validate_color_optional(None) is None

    def test_unknown_color(self):
        with pytest.raises(ValueError):
            validate_color_optional("rosa")

    def test_body_location(self):
        assert validate_body_location(" Coluna ") == "Coluna"
        with pytest.raises(ValueError):
            validate_body_location("  ")

    def test_notes(self):
        assert validate_notes("  ok ") == "ok"
        assert validate_notes("") == ""
        with pytest.raises(ValueError):
            validate_notes("x" * 5001)
