"""
MutationJob protocol, shared job plumbing, and JobRegistry.

Contract:
    ``MutationJob`` is the interface every bulk job variant implements.
    ``JobRegistry`` stores registered jobs keyed by operation type.
    ``default_job_registry()`` returns a registry holding the status,
    priority and due-date jobs.

Each variant is a thin binding: which mutation it builds from request
parameters, which filter keys it reads, and nothing else.  Field values,
completion messages and the batch loop live in the domain layer and the
BatchMutator.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from taskboard_kernel.exceptions import UnknownOperationTypeError

from taskboard_bulk.domain.filters import FilterSpec
from taskboard_bulk.domain.types import (
    BulkRequest,
    BulkRunResult,
    Mutation,
    OperationType,
)
from taskboard_bulk.services.mutator import BatchMutator


@runtime_checkable
class MutationJob(Protocol):
    """Interface for bulk mutation job variants.

    Contract:
        - ``operation_type``: unique key registered in JobRegistry.
        - ``build_request()``: validates raw parameters and filters, raising
          ``ValidationError``; runs synchronously before anything is queued.
        - ``perform()``: the job body; raises if the run failed so the job
          runner observes the failure.
    """

    @property
    def operation_type(self) -> OperationType: ...

    @property
    def description(self) -> str: ...

    def build_request(
        self,
        project_id: UUID,
        parameters: Mapping[str, Any],
        filters: Mapping[str, Any] | None,
    ) -> BulkRequest: ...

    def perform(self, mutator: BatchMutator, request: BulkRequest) -> BulkRunResult: ...


class FieldMutationJob:
    """Shared implementation; subclasses supply the parameter parser."""

    status_filter_key: str = "status"
    priority_filter_key: str = "priority"

    @property
    def operation_type(self) -> OperationType:
        raise NotImplementedError

    @property
    def description(self) -> str:
        raise NotImplementedError

    def parse_parameters(self, parameters: Mapping[str, Any]) -> Mutation:
        raise NotImplementedError

    def parse_filters(self, filters: Mapping[str, Any] | None) -> FilterSpec:
        return FilterSpec.from_params(
            filters,
            status_key=self.status_filter_key,
            priority_key=self.priority_filter_key,
        )

    def build_request(
        self,
        project_id: UUID,
        parameters: Mapping[str, Any],
        filters: Mapping[str, Any] | None,
    ) -> BulkRequest:
        return BulkRequest(
            project_id=project_id,
            mutation=self.parse_parameters(parameters or {}),
            filters=self.parse_filters(filters),
        )

    def perform(self, mutator: BatchMutator, request: BulkRequest) -> BulkRunResult:
        result = mutator.run(request.project_id, request.mutation, request.filters)
        result.raise_for_failure()
        return result


class JobRegistry:
    """Registry mapping operation types to MutationJob implementations.

    Contract:
        - ``register()`` adds a job; raises ValueError on duplicate.
        - ``get()`` retrieves by operation type; raises
          UnknownOperationTypeError if missing.
    """

    def __init__(self) -> None:
        self._jobs: dict[OperationType, MutationJob] = {}

    def register(self, job: MutationJob) -> None:
        if job.operation_type in self._jobs:
            raise ValueError(
                f"Operation type '{job.operation_type.value}' is already registered"
            )
        self._jobs[job.operation_type] = job

    def get(self, operation_type: OperationType | str) -> MutationJob:
        try:
            return self._jobs[OperationType(operation_type)]
        except (ValueError, KeyError):
            raise UnknownOperationTypeError(
                str(getattr(operation_type, "value", operation_type)),
                self.list_operation_types(),
            ) from None

    def list_operation_types(self) -> tuple[str, ...]:
        return tuple(sorted(op.value for op in self._jobs))

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, operation_type: object) -> bool:
        try:
            return OperationType(operation_type) in self._jobs
        except ValueError:
            return False
