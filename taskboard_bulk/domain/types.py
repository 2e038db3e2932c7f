"""
taskboard_bulk.domain.types -- Pure frozen dataclasses for the bulk system.

ZERO I/O.

Follows the pattern of the kernel DTOs: frozen dataclasses with enum status
fields and tuples for immutable collections.

Invariants enforced:
    - All DTOs are frozen dataclasses (immutable).
    - Mutations are a closed tagged union: StatusMutation | PriorityMutation
      | DueDateMutation.  Each variant knows its operation type.
    - ProgressEvent.to_payload() carries exactly the nine wire fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Union
from uuid import UUID

from taskboard_kernel.domain.dtos import TaskStatus

if TYPE_CHECKING:
    from taskboard_bulk.domain.filters import FilterSpec


# =============================================================================
# Enums
# =============================================================================


class OperationType(str, Enum):
    """Kind of bulk mutation; also the ``operation_type`` wire field."""

    STATUS_UPDATE = "status_update"
    PRIORITY_UPDATE = "priority_update"
    DUE_DATE_UPDATE = "due_date_update"

    @property
    def label(self) -> str:
        """Noun used in progress messages ("status", "priority", "due date")."""
        return self.value.removesuffix("_update").replace("_", " ")


class DueDateOperation(str, Enum):
    """How a due-date bulk update computes its target date."""

    CLEAR = "clear"
    SET_SPECIFIC = "set_specific"
    ADD_7_DAYS = "add_7_days"
    ADD_14_DAYS = "add_14_days"
    ADD_30_DAYS = "add_30_days"
    TOMORROW = "tomorrow"
    NEXT_WEEK = "next_week"
    NEXT_MONTH = "next_month"


class BulkOperationStatus(str, Enum):
    """Outcome of a finished run.  The in-flight lifecycle lives on the job record."""

    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Mutation variants
# =============================================================================


@dataclass(frozen=True)
class StatusMutation:
    """Set every matching task's status."""

    operation_type: ClassVar[OperationType] = OperationType.STATUS_UPDATE

    new_status: TaskStatus


@dataclass(frozen=True)
class PriorityMutation:
    """Set every matching task's priority (1 = highest)."""

    operation_type: ClassVar[OperationType] = OperationType.PRIORITY_UPDATE

    new_priority: int


@dataclass(frozen=True)
class DueDateMutation:
    """Set or clear every matching task's due date.

    ``date_value`` is only read for ``SET_SPECIFIC``.
    """

    operation_type: ClassVar[OperationType] = OperationType.DUE_DATE_UPDATE

    operation: DueDateOperation
    date_value: str | None = None


Mutation = Union[StatusMutation, PriorityMutation, DueDateMutation]


# =============================================================================
# Request / event / result DTOs
# =============================================================================


@dataclass(frozen=True)
class BulkRequest:
    """A validated bulk operation, ready to hand to the job runner."""

    project_id: UUID
    mutation: Mutation
    filters: FilterSpec

    @property
    def operation_type(self) -> OperationType:
        return self.mutation.operation_type


@dataclass(frozen=True)
class ProgressEvent:
    """Ephemeral progress message for one operation id.  Never persisted."""

    operation_id: str
    operation_type: OperationType
    processed: int
    total: int
    percentage: float
    message: str
    timestamp: str  # ISO-8601
    completed: bool = False
    error: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.completed or self.error

    def to_payload(self) -> dict[str, Any]:
        """JSON-shaped message as delivered to subscribers."""
        return {
            "operation_id": self.operation_id,
            "operation_type": self.operation_type.value,
            "processed": self.processed,
            "total": self.total,
            "percentage": self.percentage,
            "message": self.message,
            "completed": self.completed,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class BulkRunResult:
    """Immutable outcome of one BatchMutator run.

    Returned by ``BatchMutator.run()``.  A FAILED result carries the error;
    ``raise_for_failure()`` re-raises it so the job runner sees the failure.
    """

    operation_id: str
    operation_type: OperationType
    project_id: UUID
    status: BulkOperationStatus
    processed: int
    total: int
    batches: int
    terminal_event: ProgressEvent
    error: BaseException | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == BulkOperationStatus.COMPLETED

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error
