"""
BulkOrchestrator -- DI container and enqueue boundary for bulk operations.

Contract:
    Wires the JobRegistry, broadcaster, clock, pacer and job runner, and is
    the single place callers go through to start a bulk operation:

        job_id = orchestrator.enqueue(project_id, "status_update",
                                      {"new_status": "done"},
                                      {"current_status": "in_progress"})

    ``enqueue()`` validates synchronously (ValidationError, no job created)
    and hands a typed ``BulkRequest`` to the runner.  The job body opens its
    own session, runs a BatchMutator and closes the session.

Invariants enforced:
    - Clock injection: mutator, runner and events share one Clock.
    - Validation happens once, here; job bodies receive typed requests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from taskboard_config.schema import BulkSettings, TaskboardConfig
from taskboard_kernel.domain.clock import Clock, SystemClock
from taskboard_kernel.exceptions import ValidationError
from taskboard_kernel.logging_config import get_logger

from taskboard_bulk.domain.types import BulkRequest, BulkRunResult, OperationType
from taskboard_bulk.jobs import JobRegistry, default_job_registry
from taskboard_bulk.services.broadcaster import InProcessBroadcaster, ProgressBroadcaster
from taskboard_bulk.services.mutator import BatchMutator
from taskboard_bulk.services.pacing import FixedIntervalPacer, Pacer
from taskboard_bulk.services.runner import InlineJobRunner, JobRunner

logger = get_logger("bulk.orchestrator")


def _coerce_project_id(project_id: UUID | str) -> UUID:
    if isinstance(project_id, UUID):
        return project_id
    try:
        return UUID(str(project_id))
    except ValueError:
        raise ValidationError("project_id", project_id, "must be a UUID") from None


class BulkOrchestrator:
    """DI container for the bulk mutation subsystem.

    Contract:
        - ``from_session_factory()`` creates a fully wired orchestrator.
        - ``enqueue()`` validates and submits; returns the runner's job id.
        - ``perform()`` is the job body (public for direct, synchronous use).
        - ``create_mutator()`` returns a BatchMutator bound to a session.

    Non-goals:
        - Does NOT start or stop threaded runners -- caller decides.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        task_registry: JobRegistry | None = None,
        broadcaster: ProgressBroadcaster | None = None,
        clock: Clock | None = None,
        pacer: Pacer | None = None,
        runner: JobRunner | None = None,
        settings: BulkSettings | None = None,
    ) -> None:
        self._settings = settings or BulkSettings()
        self._session_factory = session_factory
        self._registry = task_registry or default_job_registry()
        self._broadcaster = broadcaster or InProcessBroadcaster()
        self._clock = clock or SystemClock()
        self._pacer = pacer or FixedIntervalPacer(self._settings.pause_seconds)
        self._runner = runner or InlineJobRunner(
            max_attempts=self._settings.max_attempts, clock=self._clock,
        )

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_session_factory(
        cls,
        session_factory: Callable[[], Session],
        config: TaskboardConfig | None = None,
        clock: Clock | None = None,
        broadcaster: ProgressBroadcaster | None = None,
        pacer: Pacer | None = None,
        runner: JobRunner | None = None,
        task_registry: JobRegistry | None = None,
    ) -> BulkOrchestrator:
        """Create a fully wired orchestrator.

        Args:
            session_factory: Callable returning a new session per job.
            config: Runtime settings; defaults to ``BulkSettings()`` values.
            clock: Optional clock for deterministic testing.
            broadcaster: Progress sink; defaults to a new InProcessBroadcaster.
            pacer: Batch pacing; defaults to the configured fixed interval.
            runner: Job substrate; defaults to an InlineJobRunner.
            task_registry: Optional pre-configured registry.
        """
        settings = config.bulk if config is not None else BulkSettings()
        return cls(
            session_factory=session_factory,
            task_registry=task_registry,
            broadcaster=broadcaster,
            clock=clock,
            pacer=pacer,
            runner=runner,
            settings=settings,
        )

    # -------------------------------------------------------------------------
    # Enqueue boundary
    # -------------------------------------------------------------------------

    def build_request(
        self,
        project_id: UUID | str,
        operation_type: OperationType | str,
        parameters: Mapping[str, Any] | None,
        filters: Mapping[str, Any] | None = None,
    ) -> BulkRequest:
        """Validate raw request values into a typed BulkRequest.

        Raises:
            ValidationError: Any parameter or filter outside its domain,
                including an unknown operation type.
        """
        job = self._registry.get(operation_type)
        return job.build_request(
            _coerce_project_id(project_id), parameters or {}, filters,
        )

    def enqueue(
        self,
        project_id: UUID | str,
        operation_type: OperationType | str,
        parameters: Mapping[str, Any] | None,
        filters: Mapping[str, Any] | None = None,
    ) -> UUID:
        """Validate and submit a bulk operation; returns the job id.

        Raises:
            ValidationError: Invalid request; nothing is submitted.
        """
        try:
            request = self.build_request(project_id, operation_type, parameters, filters)
        except ValidationError as exc:
            logger.info(
                "bulk_request_rejected",
                extra={
                    "operation_type": str(getattr(operation_type, "value", operation_type)),
                    "error_code": exc.code,
                    "field": exc.field,
                },
            )
            raise

        job_name = f"{request.operation_type.value}:{request.project_id}"
        job_id = self._runner.submit(job_name, lambda: self.perform(request))
        logger.info(
            "bulk_request_enqueued",
            extra={
                "job_id": str(job_id),
                "operation_type": request.operation_type.value,
                "project_id": str(request.project_id),
                "filters": request.filters.describe(),
            },
        )
        return job_id

    # -------------------------------------------------------------------------
    # Job body
    # -------------------------------------------------------------------------

    def perform(self, request: BulkRequest) -> BulkRunResult:
        """Run one bulk operation on a dedicated session."""
        job = self._registry.get(request.operation_type)
        session = self._session_factory()
        try:
            return job.perform(self.create_mutator(session), request)
        finally:
            session.close()

    def create_mutator(self, session: Session) -> BatchMutator:
        return BatchMutator(
            session=session,
            broadcaster=self._broadcaster,
            clock=self._clock,
            pacer=self._pacer,
            batch_size=self._settings.batch_size,
            topic_prefix=self._settings.topic_prefix,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def broadcaster(self) -> ProgressBroadcaster:
        return self._broadcaster

    @property
    def runner(self) -> JobRunner:
        return self._runner

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def task_registry(self) -> JobRegistry:
        return self._registry

    @property
    def settings(self) -> BulkSettings:
        return self._settings
