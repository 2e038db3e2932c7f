"""
DTOs -- Pure domain data transfer objects for projects and tasks.

Responsibility:
    Defines the task status enum, the priority domain, the overdue predicate
    and the immutable Project snapshot returned by selectors.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` is a boundary converter invoked from the selector
    layer only.

Invariants enforced:
    - Task status is one of todo, in_progress, done.
    - Priority is an integer in [1, 5]; 1 is the highest urgency.
    - overdue(task) := due_date present and before today and status != done.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from taskboard_kernel.models.project import Project as ProjectModel


class TaskStatus(str, Enum):
    """Workflow status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


MIN_PRIORITY = 1  # Highest urgency
MAX_PRIORITY = 5  # Lowest urgency


def is_valid_priority(value: object) -> bool:
    """True for an int (not bool) within [MIN_PRIORITY, MAX_PRIORITY]."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_PRIORITY <= value <= MAX_PRIORITY
    )


def is_overdue(due_date: date | None, status: str | TaskStatus, as_of: date) -> bool:
    """The overdue predicate, evaluated against the reference date ``as_of``."""
    return (
        due_date is not None
        and due_date < as_of
        and TaskStatus(status) != TaskStatus.DONE
    )


@dataclass(frozen=True)
class ProjectDTO:
    """Immutable snapshot of a project."""

    id: UUID
    name: str
    description: str | None = None

    @classmethod
    def from_model(cls, model: ProjectModel) -> ProjectDTO:
        return cls(id=model.id, name=model.name, description=model.description)

