"""
taskboard_bulk.domain.validation -- The one place raw request values are checked.

ZERO I/O.

Raw values arrive from HTTP forms, JSON bodies or the CLI, so numbers may be
strings and blanks may be ``""``.  Everything here either returns a typed
value or raises a ``ValidationError`` subclass naming the offending field.
Past this boundary the engine only ever sees ``TaskStatus``, ints in
[1, 5] and ``DueDateOperation``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from taskboard_kernel.domain.dtos import TaskStatus, is_valid_priority
from taskboard_kernel.exceptions import (
    InvalidPriorityError,
    InvalidStatusError,
    ValidationError,
)

from taskboard_bulk.domain.due_dates import parse_calendar_date, parse_operation
from taskboard_bulk.domain.types import (
    DueDateMutation,
    DueDateOperation,
    PriorityMutation,
    StatusMutation,
)


def is_blank(value: Any) -> bool:
    """None, empty/whitespace strings and empty collections carry no value."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def parse_status(value: Any, field: str = "status") -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        try:
            return TaskStatus(value.strip())
        except ValueError:
            pass
    raise InvalidStatusError(value, field=field)


def parse_priority(value: Any, field: str = "priority") -> int:
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            value = int(text)
    if not is_valid_priority(value):
        raise InvalidPriorityError(value, field=field)
    return value


def parse_priorities(value: Any, field: str = "priority") -> frozenset[int]:
    """Single value or collection of priorities -> non-empty frozenset."""
    if isinstance(value, (str, int)):
        return frozenset({parse_priority(value, field)})
    if isinstance(value, Iterable):
        return frozenset(parse_priority(v, field) for v in value)
    raise InvalidPriorityError(value, field=field)


def _require(parameters: Mapping[str, Any], key: str) -> Any:
    value = parameters.get(key)
    if is_blank(value):
        raise ValidationError(key, value, "is required")
    return value


def parse_status_mutation(parameters: Mapping[str, Any]) -> StatusMutation:
    """``{"new_status": "done"}`` -> StatusMutation."""
    return StatusMutation(
        new_status=parse_status(_require(parameters, "new_status"), "new_status"),
    )


def parse_priority_mutation(parameters: Mapping[str, Any]) -> PriorityMutation:
    """``{"new_priority": 2}`` -> PriorityMutation."""
    return PriorityMutation(
        new_priority=parse_priority(
            _require(parameters, "new_priority"), "new_priority",
        ),
    )


def parse_due_date_mutation(parameters: Mapping[str, Any]) -> DueDateMutation:
    """``{"operation": "set_specific", "date": "2026-03-01"}`` -> DueDateMutation.

    The literal of a ``set_specific`` request is parsed here so a bad date
    is rejected before any job exists; it is carried on as ISO text.
    """
    operation = parse_operation(_require(parameters, "operation"))
    date_value = None
    if operation == DueDateOperation.SET_SPECIFIC:
        date_value = parse_calendar_date(parameters.get("date")).isoformat()
    return DueDateMutation(operation=operation, date_value=date_value)
