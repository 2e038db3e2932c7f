"""
Tests for taskboard_bulk.domain.due_dates -- pure due-date resolution.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from taskboard_kernel.exceptions import (
    InvalidDateFormatError,
    UnknownOperationKindError,
)

from taskboard_bulk.domain.due_dates import (
    add_months,
    parse_calendar_date,
    parse_operation,
    resolve_due_date,
)
from taskboard_bulk.domain.types import DueDateOperation

NOW = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


class TestResolveDueDate:
    @pytest.mark.parametrize("kind,expected", [
        ("add_7_days", TODAY + timedelta(days=7)),
        ("add_14_days", TODAY + timedelta(days=14)),
        ("add_30_days", TODAY + timedelta(days=30)),
        ("tomorrow", TODAY + timedelta(days=1)),
        ("next_week", TODAY + timedelta(days=7)),
        ("next_month", date(2024, 7, 15)),
    ])
    def test_relative_kinds(self, kind, expected):
        assert resolve_due_date(kind, None, NOW) == expected

    def test_clear_ignores_literal(self):
        assert resolve_due_date(DueDateOperation.CLEAR, "2030-01-01", NOW) is None

    def test_set_specific(self):
        assert resolve_due_date("set_specific", "2024-12-24", NOW) == date(2024, 12, 24)

    def test_set_specific_accepts_datetime_text(self):
        assert resolve_due_date(
            "set_specific", "2024-12-24T18:00:00", NOW,
        ) == date(2024, 12, 24)

    def test_relative_kinds_ignore_literal(self):
        assert resolve_due_date("tomorrow", "garbage", NOW) == TODAY + timedelta(days=1)

    def test_accepts_plain_date_reference(self):
        assert resolve_due_date("add_7_days", None, TODAY) == TODAY + timedelta(days=7)

    @pytest.mark.parametrize("literal", [None, "", "  ", "24/12/2024", "2024-02-30"])
    def test_set_specific_bad_literal(self, literal):
        with pytest.raises(InvalidDateFormatError):
            resolve_due_date("set_specific", literal, NOW)

    def test_unknown_kind(self):
        with pytest.raises(UnknownOperationKindError) as exc_info:
            resolve_due_date("add_3_days", None, NOW)
        assert exc_info.value.value == "add_3_days"

    @given(
        kind=st.sampled_from(list(DueDateOperation)),
        day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)),
    )
    def test_deterministic(self, kind, day):
        now = datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)
        literal = "2025-05-05"
        assert resolve_due_date(kind, literal, now) == resolve_due_date(kind, literal, now)

    @given(day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)))
    def test_add_7_days_is_a_week_later(self, day):
        assert resolve_due_date("add_7_days", None, day) == day + timedelta(days=7)


class TestAddMonths:
    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 12, 15), 1, date(2025, 1, 15)),
        (date(2024, 3, 31), 1, date(2024, 4, 30)),
        (date(2024, 5, 10), 12, date(2025, 5, 10)),
    ])
    def test_clamps_and_rolls_over(self, start, months, expected):
        assert add_months(start, months) == expected


class TestParsing:
    def test_parse_operation_passthrough(self):
        assert parse_operation(DueDateOperation.TOMORROW) is DueDateOperation.TOMORROW

    def test_parse_operation_from_text(self):
        assert parse_operation("next_month") is DueDateOperation.NEXT_MONTH

    def test_parse_calendar_date_from_date(self):
        assert parse_calendar_date(date(2024, 1, 2)) == date(2024, 1, 2)

    def test_parse_calendar_date_from_datetime(self):
        assert parse_calendar_date(datetime(2024, 1, 2, 5, 0)) == date(2024, 1, 2)

    def test_parse_calendar_date_rejects_non_text(self):
        with pytest.raises(InvalidDateFormatError):
            parse_calendar_date(20240102)  # type: ignore[arg-type]
