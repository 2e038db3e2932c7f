"""
taskboard_bulk.domain.mutations -- From a Mutation variant to column values.

ZERO I/O.  ``plan_mutation`` is the single exhaustive dispatch over the
mutation union: it yields the column values one batch UPDATE writes and the
success message that closes the operation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from taskboard_kernel.domain.dtos import TaskStatus, is_valid_priority
from taskboard_kernel.exceptions import InvalidParameterError

from taskboard_bulk.domain.due_dates import resolve_due_date
from taskboard_bulk.domain.types import (
    DueDateMutation,
    DueDateOperation,
    Mutation,
    PriorityMutation,
    StatusMutation,
)


@dataclass(frozen=True)
class MutationPlan:
    """Resolved target of a bulk operation."""

    mutation: Mutation
    values: Mapping[str, Any] = field(default_factory=dict)
    due_date: date | None = None

    def completion_message(self, total: int) -> str:
        return completion_message(self.mutation, total, self.due_date)


def validate_mutation(mutation: Any) -> None:
    """Reject values that boundary validation should never have let through.

    Raises:
        InvalidParameterError: Unknown variant, status outside the enum or
            priority outside [1, 5].
    """
    match mutation:
        case StatusMutation(new_status=status):
            if not isinstance(status, TaskStatus):
                raise InvalidParameterError("new_status", status)
        case PriorityMutation(new_priority=priority):
            if not is_valid_priority(priority):
                raise InvalidParameterError("new_priority", priority)
        case DueDateMutation():
            # Kind and literal are checked during resolution.
            pass
        case _:
            raise InvalidParameterError("mutation", mutation)


def plan_mutation(mutation: Mutation, now: datetime) -> MutationPlan:
    """Resolve column values for ``mutation`` against the reference time.

    Raises:
        UnknownOperationKindError / InvalidDateFormatError: From due-date
            resolution.
    """
    match mutation:
        case StatusMutation(new_status=status):
            return MutationPlan(
                mutation, MappingProxyType({"status": status.value}),
            )
        case PriorityMutation(new_priority=priority):
            return MutationPlan(
                mutation, MappingProxyType({"priority": priority}),
            )
        case DueDateMutation(operation=operation, date_value=literal):
            target = resolve_due_date(operation, literal, now)
            return MutationPlan(
                mutation, MappingProxyType({"due_date": target}), due_date=target,
            )
        case _:
            raise InvalidParameterError("mutation", mutation)


def completion_message(mutation: Mutation, total: int, due_date: date | None = None) -> str:
    match mutation:
        case StatusMutation(new_status=status):
            return f"Successfully updated {total} tasks to '{status.value}'"
        case PriorityMutation(new_priority=priority):
            return f"Successfully updated {total} tasks to priority {priority}"
        case DueDateMutation(operation=DueDateOperation.CLEAR):
            return f"Successfully cleared due dates for {total} tasks"
        case DueDateMutation(operation=DueDateOperation.SET_SPECIFIC):
            return f"Successfully set due date to {_fmt(due_date)} for {total} tasks"
        case DueDateMutation():
            return f"Successfully updated due dates for {total} tasks to {_fmt(due_date)}"
        case _:
            raise InvalidParameterError("mutation", mutation)


def _fmt(value: date | None) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else "none"
