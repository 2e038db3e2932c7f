"""
taskboard_bulk.domain -- Pure types and value objects for bulk mutation.

ZERO I/O.  All types are frozen dataclasses.
"""

from taskboard_bulk.domain.filters import FilterSpec
from taskboard_bulk.domain.types import (
    BulkOperationStatus,
    BulkRequest,
    BulkRunResult,
    DueDateMutation,
    DueDateOperation,
    Mutation,
    OperationType,
    PriorityMutation,
    ProgressEvent,
    StatusMutation,
)

__all__ = [
    "BulkOperationStatus",
    "BulkRequest",
    "BulkRunResult",
    "DueDateMutation",
    "DueDateOperation",
    "FilterSpec",
    "Mutation",
    "OperationType",
    "PriorityMutation",
    "ProgressEvent",
    "StatusMutation",
]
