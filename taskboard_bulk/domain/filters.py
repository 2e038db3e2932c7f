"""
taskboard_bulk.domain.filters -- FilterSpec: which tasks a bulk operation targets.

A FilterSpec is an optional conjunction of

    status == X          (single status)
    overdue              (due_date < as_of AND status != done)
    priority IN {...}    (one or more priorities)

An absent dimension imposes no constraint.  A FilterSpec itself holds no date:
the overdue reference date is supplied every time the predicate is
evaluated, so a long-running operation always filters against the current
day rather than the day the request was built.

``clause()`` renders the predicate as a SQLAlchemy expression (pure query
construction, no session).  ``matches()`` evaluates the same predicate in
memory against a Task model.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, and_

from taskboard_kernel.domain.dtos import TaskStatus, is_overdue
from taskboard_kernel.exceptions import InvalidFilterError
from taskboard_kernel.models.task import Task

from taskboard_bulk.domain.validation import is_blank, parse_priorities, parse_status

OVERDUE_KEY = "overdue"


def _overdue_requested(value: Any) -> bool:
    # Only the literal "true" (or a real boolean True) switches the flag on.
    if isinstance(value, bool):
        return value
    return value == "true"


@dataclass(frozen=True)
class FilterSpec:
    """Typed, immutable task filter."""

    status: TaskStatus | None = None
    overdue: bool = False
    priorities: frozenset[int] | None = None

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any] | None,
        status_key: str = "status",
        priority_key: str = "priority",
    ) -> FilterSpec:
        """Build a spec from a raw request mapping.

        Keys other than ``status_key``, ``overdue`` and ``priority_key`` are
        ignored; blank values impose no constraint.

        Raises:
            InvalidFilterError: ``params`` is not a mapping.
            InvalidStatusError / InvalidPriorityError: For a present but
                out-of-domain value.
        """
        if params is None:
            params = {}
        elif not isinstance(params, Mapping):
            raise InvalidFilterError("filters", params, "must be a mapping of key to value")

        status_value = params.get(status_key)
        status = None if is_blank(status_value) else parse_status(status_value, status_key)

        priority_value = params.get(priority_key)
        priorities = (
            None
            if is_blank(priority_value)
            else parse_priorities(priority_value, priority_key)
        )

        return cls(
            status=status,
            overdue=_overdue_requested(params.get(OVERDUE_KEY)),
            priorities=priorities,
        )

    @property
    def is_empty(self) -> bool:
        return self.status is None and not self.overdue and not self.priorities

    def clause(self, project_id: UUID, as_of: date) -> ColumnElement[bool]:
        """SQL predicate over ``tasks`` scoped to one project."""
        conditions: list[ColumnElement[bool]] = [Task.project_id == project_id]

        if self.status is not None:
            conditions.append(Task.status == self.status.value)

        if self.overdue:
            conditions.append(Task.due_date.is_not(None))
            conditions.append(Task.due_date < as_of)
            conditions.append(Task.status != TaskStatus.DONE.value)

        if self.priorities:
            conditions.append(Task.priority.in_(sorted(self.priorities)))

        return and_(*conditions)

    def matches(self, task: Any, as_of: date) -> bool:
        """In-memory evaluation of the same predicate (project scope excluded)."""
        if self.status is not None and TaskStatus(task.status) != self.status:
            return False
        if self.overdue and not is_overdue(task.due_date, task.status, as_of):
            return False
        if self.priorities and task.priority not in self.priorities:
            return False
        return True

    def describe(self) -> dict[str, Any]:
        """Log-friendly view of the active constraints."""
        described: dict[str, Any] = {}
        if self.status is not None:
            described["status"] = self.status.value
        if self.overdue:
            described["overdue"] = True
        if self.priorities:
            described["priority"] = sorted(self.priorities)
        return described


def build_task_filter(
    params: Mapping[str, Any] | None,
    status_key: str = "status",
    priority_key: str = "priority",
) -> FilterSpec:
    """Functional alias for ``FilterSpec.from_params``."""
    return FilterSpec.from_params(params, status_key, priority_key)
