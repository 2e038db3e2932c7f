"""Bulk job: set task status."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from taskboard_bulk.domain.types import OperationType, StatusMutation
from taskboard_bulk.domain.validation import parse_status_mutation
from taskboard_bulk.jobs.base import FieldMutationJob


class StatusUpdateJob(FieldMutationJob):
    """Set the status of every matching task.

    Filters on the task's current status via ``current_status`` so the
    request can say "move all todo tasks to in_progress".
    """

    status_filter_key = "current_status"
    priority_filter_key = "priority"

    @property
    def operation_type(self) -> OperationType:
        return OperationType.STATUS_UPDATE

    @property
    def description(self) -> str:
        return "Bulk update task status"

    def parse_parameters(self, parameters: Mapping[str, Any]) -> StatusMutation:
        return parse_status_mutation(parameters)
