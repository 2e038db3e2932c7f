"""
taskboard_bulk.domain.progress -- Progress arithmetic and event construction.

ZERO I/O.  Every ProgressEvent the engine publishes is built here, so the
start, batch, success and failure events cannot drift apart in shape.

Invariants enforced:
    - 0 <= processed <= total on every event (processed is capped at total).
    - percentage = processed / total * 100, one decimal, half-up; 0.0 when
      total == 0.
    - A terminal event is either completed or error, never both.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union
from uuid import UUID

from taskboard_bulk.domain.types import OperationType, ProgressEvent

_ONE_DECIMAL = Decimal("0.1")


def compute_percentage(processed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    ratio = Decimal(processed) * 100 / Decimal(total)
    return float(ratio.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def make_operation_id(
    operation_type: OperationType, project_id: UUID | str, started_at: datetime,
) -> str:
    """Stable id shared by every event of one invocation."""
    return f"{operation_type.value}_{project_id}_{int(started_at.timestamp())}"


def start_message(operation_type: OperationType) -> str:
    return f"Starting bulk {operation_type.label} update..."


def batch_message(processed: int, total: int, percentage: float) -> str:
    return f"Updated {processed} of {total} tasks ({percentage}%)"


def error_message(error: BaseException) -> str:
    return f"Error: {error}"


def build_event(
    operation_id: str,
    operation_type: OperationType,
    processed: int,
    total: int,
    message: str,
    timestamp: datetime,
    completed: bool = False,
    error: bool = False,
) -> ProgressEvent:
    total = max(total, 0)
    processed = min(max(processed, 0), total)
    return ProgressEvent(
        operation_id=operation_id,
        operation_type=operation_type,
        processed=processed,
        total=total,
        percentage=compute_percentage(processed, total),
        message=message,
        timestamp=timestamp.isoformat(),
        completed=completed,
        error=error,
    )


def start_event(
    operation_id: str, operation_type: OperationType, total: int, timestamp: datetime,
) -> ProgressEvent:
    return build_event(
        operation_id, operation_type, 0, total,
        start_message(operation_type), timestamp,
    )


def batch_event(
    operation_id: str,
    operation_type: OperationType,
    processed: int,
    total: int,
    timestamp: datetime,
) -> ProgressEvent:
    shown = min(processed, total)
    return build_event(
        operation_id, operation_type, shown, total,
        batch_message(shown, total, compute_percentage(shown, total)),
        timestamp,
    )


# =============================================================================
# Terminal outcomes
# =============================================================================


@dataclass(frozen=True)
class Succeeded:
    total: int
    message: str


@dataclass(frozen=True)
class Failed:
    processed: int
    total: int
    error: BaseException


Outcome = Union[Succeeded, Failed]


def terminal_event(
    operation_id: str,
    operation_type: OperationType,
    outcome: Outcome,
    timestamp: datetime,
) -> ProgressEvent:
    """The single final event of an operation, derived only from its outcome."""
    match outcome:
        case Succeeded(total=total, message=message):
            return build_event(
                operation_id, operation_type, total, total, message, timestamp,
                completed=True,
            )
        case Failed(processed=processed, total=total, error=error):
            return build_event(
                operation_id, operation_type, processed, total,
                error_message(error), timestamp,
                error=True,
            )
        case _:
            raise TypeError(f"Unknown outcome: {outcome!r}")
