"""
taskboard_bulk.domain.due_dates -- Pure due-date resolution.

ZERO I/O.  The reference time is always passed in; nothing here reads a
clock.

    resolve_due_date(kind, literal, now) -> date | None

``None`` means "clear the due date".
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from taskboard_kernel.exceptions import (
    InvalidDateFormatError,
    UnknownOperationKindError,
)

from taskboard_bulk.domain.types import DueDateOperation

_DAY_OFFSETS: dict[DueDateOperation, int] = {
    DueDateOperation.ADD_7_DAYS: 7,
    DueDateOperation.ADD_14_DAYS: 14,
    DueDateOperation.ADD_30_DAYS: 30,
    DueDateOperation.TOMORROW: 1,
    DueDateOperation.NEXT_WEEK: 7,
}


def parse_operation(kind: DueDateOperation | str) -> DueDateOperation:
    """Coerce a kind tag to ``DueDateOperation``.

    Raises:
        UnknownOperationKindError: If the tag is not one of the eight kinds.
    """
    if isinstance(kind, DueDateOperation):
        return kind
    try:
        return DueDateOperation(kind)
    except ValueError:
        raise UnknownOperationKindError(kind) from None


def parse_calendar_date(literal: date | str | None) -> date:
    """Parse a ``set_specific`` literal.

    Accepts a ``date``, an ISO date string (``2026-03-01``) or an ISO
    datetime string, whose date part is used.

    Raises:
        InvalidDateFormatError: If the literal is missing or unparseable.
    """
    if isinstance(literal, datetime):
        return literal.date()
    if isinstance(literal, date):
        return literal
    if not isinstance(literal, str) or not literal.strip():
        raise InvalidDateFormatError(literal)

    text = literal.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDateFormatError(literal) from None


def add_months(start: date, months: int) -> date:
    """Calendar-month arithmetic; the day is clamped to the target month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def resolve_due_date(
    kind: DueDateOperation | str,
    literal: date | str | None,
    now: datetime | date,
) -> date | None:
    """Map an operation kind (+ optional literal) to a target due date.

    Args:
        kind: One of the ``DueDateOperation`` values.
        literal: Date literal, read only for ``set_specific``.
        now: Reference time.  Only its date component is used.

    Returns:
        The target date, or None for ``clear``.

    Raises:
        UnknownOperationKindError: Unsupported kind.
        InvalidDateFormatError: ``set_specific`` with an unparseable literal.
    """
    operation = parse_operation(kind)
    today = now.date() if isinstance(now, datetime) else now

    if operation == DueDateOperation.CLEAR:
        return None
    if operation == DueDateOperation.SET_SPECIFIC:
        return parse_calendar_date(literal)
    if operation == DueDateOperation.NEXT_MONTH:
        return add_months(today, 1)
    return today + timedelta(days=_DAY_OFFSETS[operation])
