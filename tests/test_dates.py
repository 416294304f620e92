"""Tests for natural-language date and time parsing."""

from datetime import date, datetime

import pytest

from resolver.dates import add_months, parse_natural_date, parse_time
from utils.errors import DateParseError

# A Monday
TODAY = date(2026, 10, 19)


class TestParseNaturalDate:
    """Test date expressions relative to a fixed today."""

    @pytest.mark.parametrize("text,expected", [
        ("today", date(2026, 10, 19)),
        ("tomorrow", date(2026, 10, 20)),
        ("yesterday", date(2026, 10, 18)),
        ("next Saturday", date(2026, 10, 24)),
        ("saturday", date(2026, 10, 24)),
        ("Monday", date(2026, 10, 19)),
        ("next Monday", date(2026, 10, 26)),
        ("in 2 weeks", date(2026, 11, 2)),
        ("in three days", date(2026, 10, 22)),
        ("2 months from now", date(2026, 12, 19)),
        ("next month", date(2026, 11, 19)),
        ("next year", date(2027, 10, 19)),
        ("December 12", date(2026, 12, 12)),
        ("June 15", date(2027, 6, 15)),
        ("Sept 5th, 2027", date(2027, 9, 5)),
        ("12th December 2026", date(2026, 12, 12)),
        ("the 3rd of March", date(2027, 3, 3)),
        ("2026-12-12", date(2026, 12, 12)),
        ("12/25", date(2026, 12, 25)),
        ("1/31/27", date(2027, 1, 31)),
    ])
    def test_supported_expressions(self, text, expected):
        """Test each supported form resolves to the expected date."""
        assert parse_natural_date(text, TODAY) == expected

    def test_accepts_datetime_reference(self):
        """Test a datetime "now" is reduced to its date."""
        assert parse_natural_date("tomorrow", datetime(2026, 10, 19, 23, 59)) == date(2026, 10, 20)

    @pytest.mark.parametrize("text", ["", "   ", "someday", "February 30", "2026-13-01", "the day after the party"])
    def test_unparseable_raises(self, text):
        """Test unsupported or impossible dates raise DateParseError."""
        with pytest.raises(DateParseError):
            parse_natural_date(text, TODAY)

    def test_error_keeps_original_text(self):
        """Test the error carries the text the user wrote."""
        with pytest.raises(DateParseError) as exc:
            parse_natural_date("Someday Soon", TODAY)
        assert exc.value.text == "Someday Soon"


class TestAddMonths:
    """Test calendar month arithmetic."""

    def test_clamps_to_month_end(self):
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)

    def test_rolls_over_year(self):
        assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)


class TestParseTime:
    """Test clock time parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("3pm", "15:00"),
        ("3:30 pm", "15:30"),
        ("11 a.m.", "11:00"),
        ("12am", "00:00"),
        ("12pm", "12:00"),
        ("noon", "12:00"),
        ("Midnight", "00:00"),
        ("18:45", "18:45"),
        ("7:05", "07:05"),
    ])
    def test_supported_times(self, text, expected):
        assert parse_time(text) == expected

    @pytest.mark.parametrize("text", ["", "25:00", "13pm", "later", "10:75"])
    def test_invalid_times_raise(self, text):
        with pytest.raises(DateParseError):
            parse_time(text)
