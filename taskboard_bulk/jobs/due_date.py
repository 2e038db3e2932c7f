"""Bulk job: set, shift or clear task due dates."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from taskboard_bulk.domain.types import DueDateMutation, OperationType
from taskboard_bulk.domain.validation import parse_due_date_mutation
from taskboard_bulk.jobs.base import FieldMutationJob


class DueDateUpdateJob(FieldMutationJob):
    """Apply a due-date operation (clear, set_specific, add_N_days, ...)."""

    status_filter_key = "status"
    priority_filter_key = "priority"

    @property
    def operation_type(self) -> OperationType:
        return OperationType.DUE_DATE_UPDATE

    @property
    def description(self) -> str:
        return "Bulk update task due dates"

    def parse_parameters(self, parameters: Mapping[str, Any]) -> DueDateMutation:
        return parse_due_date_mutation(parameters)
