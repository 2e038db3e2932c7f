"""Bulk job: set task priority."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from taskboard_bulk.domain.types import OperationType, PriorityMutation
from taskboard_bulk.domain.validation import parse_priority_mutation
from taskboard_bulk.jobs.base import FieldMutationJob


class PriorityUpdateJob(FieldMutationJob):
    """Set the priority of every matching task.

    Filters on the task's current priority via ``current_priority``.
    """

    status_filter_key = "status"
    priority_filter_key = "current_priority"

    @property
    def operation_type(self) -> OperationType:
        return OperationType.PRIORITY_UPDATE

    @property
    def description(self) -> str:
        return "Bulk update task priority"

    def parse_parameters(self, parameters: Mapping[str, Any]) -> PriorityMutation:
        return parse_priority_mutation(parameters)
