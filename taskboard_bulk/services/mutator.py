"""
BatchMutator -- chunked bulk mutation engine with streamed progress.

Contract:
    ``run()`` applies one field mutation to every task of a project that
    matches a FilterSpec, 500 tasks per UPDATE statement, publishing a
    ProgressEvent at start, after every batch and once at the end.

Architecture: taskboard_bulk/services.  Imports from taskboard_bulk.domain,
    taskboard_bulk.services (broadcaster, pacing) and kernel models.

Invariants enforced:
    BK-1  -- ``total`` is counted once and fixed for the run.
    BK-2  -- Each batch is one UPDATE, committed on its own.  A failing batch
             is rolled back in full; earlier batches stay committed.
    BK-3  -- processed never decreases and never exceeds total on an event.
    BK-4  -- Exactly one terminal event per run (completed XOR error).
    BK-5  -- All timestamps and the overdue reference date come from the
             injected Clock.
    BK-6  -- Publication failures never fail the operation.

Non-goals:
    - Does NOT retry.  A FAILED result is surfaced; the job runner owns
      retry policy.
    - Does NOT lock against other bulk operations on the same project.
    - No cancellation once started.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard_kernel.domain.clock import Clock, SystemClock
from taskboard_kernel.exceptions import ProjectNotFoundError, StoreFailureError
from taskboard_kernel.logging_config import LogContext, get_logger
from taskboard_kernel.models.task import Task
from taskboard_kernel.selectors import ProjectSelector

from taskboard_bulk.domain.filters import FilterSpec
from taskboard_bulk.domain.mutations import MutationPlan, plan_mutation, validate_mutation
from taskboard_bulk.domain.progress import (
    Failed,
    Outcome,
    Succeeded,
    batch_event,
    make_operation_id,
    start_event,
    terminal_event,
)
from taskboard_bulk.domain.types import (
    BulkOperationStatus,
    BulkRunResult,
    Mutation,
    ProgressEvent,
)
from taskboard_bulk.services.broadcaster import (
    DEFAULT_TOPIC_PREFIX,
    ProgressBroadcaster,
    topic_for_project,
)
from taskboard_bulk.services.pacing import FixedIntervalPacer, Pacer

logger = get_logger("bulk.mutator")

BATCH_SIZE = 500


class BatchMutator:
    """Bulk mutation engine for one session.

    Contract:
        - ``run()`` returns a COMPLETED or FAILED ``BulkRunResult``.
        - Raises only for contract violations (``InvalidParameterError``)
          and a missing project (``ProjectNotFoundError``); neither emits
          an event.
        - Commits after every batch; the caller should hand it a session
          dedicated to this run.
    """

    def __init__(
        self,
        session: Session,
        broadcaster: ProgressBroadcaster,
        clock: Clock | None = None,
        pacer: Pacer | None = None,
        batch_size: int = BATCH_SIZE,
        topic_prefix: str = DEFAULT_TOPIC_PREFIX,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._session = session
        self._broadcaster = broadcaster
        self._clock = clock or SystemClock()
        self._pacer = pacer or FixedIntervalPacer()
        self._batch_size = batch_size
        self._topic_prefix = topic_prefix

    @property
    def batch_size(self) -> int:
        return self._batch_size

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(
        self,
        project_id: UUID,
        mutation: Mutation,
        filters: FilterSpec | None = None,
        operation_id: str | None = None,
    ) -> BulkRunResult:
        """Apply ``mutation`` to every task of ``project_id`` matching ``filters``.

        Raises:
            InvalidParameterError: Mutation carries an out-of-domain value.
            ProjectNotFoundError: Project does not exist.
        """
        validate_mutation(mutation)
        filters = filters or FilterSpec()
        operation_type = mutation.operation_type

        if ProjectSelector(self._session).get_project(project_id) is None:
            raise ProjectNotFoundError(str(project_id))

        start_time = time.monotonic()
        started_at = self._clock.now()
        operation_id = operation_id or make_operation_id(
            operation_type, project_id, started_at,
        )
        topic = topic_for_project(project_id, self._topic_prefix)

        processed = 0
        total = 0
        batches = 0

        with LogContext.bind(operation_id=operation_id, project_id=str(project_id)):
            logger.info(
                "bulk_operation_started",
                extra={
                    "operation_type": operation_type.value,
                    "filters": filters.describe(),
                    "batch_size": self._batch_size,
                },
            )

            try:
                total = self._count(project_id, filters, operation_id)
                plan = plan_mutation(mutation, self._clock.now())

                self._publish(topic, start_event(
                    operation_id, operation_type, total, self._clock.now(),
                ))

                for batch_ids in self._batches(project_id, filters, operation_id):
                    affected = self._apply_batch(
                        project_id, batch_ids, filters, plan, operation_id,
                    )
                    processed += affected
                    batches += 1

                    logger.debug(
                        "bulk_batch_applied",
                        extra={
                            "batch": batches,
                            "selected": len(batch_ids),
                            "affected": affected,
                            "processed": processed,
                            "total": total,
                        },
                    )
                    self._publish(topic, batch_event(
                        operation_id, operation_type, processed, total,
                        self._clock.now(),
                    ))
                    self._pacer.pause()

                outcome: Outcome = Succeeded(
                    total=total, message=plan.completion_message(total),
                )
            except Exception as exc:
                outcome = Failed(processed=processed, total=total, error=exc)
                self._rollback_quietly()

            return self._finish(
                project_id, operation_id, mutation, outcome, batches,
                started_at, start_time, topic,
            )

    # -------------------------------------------------------------------------
    # Store access
    # -------------------------------------------------------------------------

    def _count(self, project_id: UUID, filters: FilterSpec, operation_id: str) -> int:
        try:
            return self._session.execute(
                select(func.count())
                .select_from(Task)
                .where(filters.clause(project_id, self._clock.today()))
            ).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreFailureError(operation_id, "count", str(exc)) from exc

    def _batches(
        self, project_id: UUID, filters: FilterSpec, operation_id: str,
    ) -> Iterator[list[UUID]]:
        """Keyset-paginate matching ids in primary-key order.

        Each page is selected against the store as it is now, so tasks that
        stopped matching after an earlier batch are not picked up again.
        """
        last_id: UUID | None = None
        while True:
            query = (
                select(Task.id)
                .where(filters.clause(project_id, self._clock.today()))
                .order_by(Task.id)
                .limit(self._batch_size)
            )
            if last_id is not None:
                query = query.where(Task.id > last_id)

            try:
                ids = list(self._session.execute(query).scalars())
            except SQLAlchemyError as exc:
                raise StoreFailureError(operation_id, "select", str(exc)) from exc

            if not ids:
                return
            yield ids
            if len(ids) < self._batch_size:
                return
            last_id = ids[-1]

    def _apply_batch(
        self,
        project_id: UUID,
        batch_ids: list[UUID],
        filters: FilterSpec,
        plan: MutationPlan,
        operation_id: str,
    ) -> int:
        """One UPDATE for the batch, committed on success.

        On error the caller rolls the whole batch back.
        """
        stmt = (
            update(Task)
            .where(
                Task.id.in_(batch_ids),
                filters.clause(project_id, self._clock.today()),
            )
            .values(**plan.values, updated_at=self._clock.now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self._session.execute(stmt)
            self._session.commit()
        except SQLAlchemyError as exc:
            raise StoreFailureError(operation_id, "batch update", str(exc)) from exc
        return max(result.rowcount or 0, 0)

    def _rollback_quietly(self) -> None:
        """Roll back after a failure without masking it; a rollback error is logged."""
        try:
            self._session.rollback()
        except Exception:
            logger.warning("bulk_rollback_failed", exc_info=True)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _publish(self, topic: str, event: ProgressEvent) -> None:
        try:
            self._broadcaster.publish(topic, event)
        except Exception:
            logger.warning(
                "progress_publish_failed",
                exc_info=True,
                extra={"topic": topic, "processed": event.processed},
            )

    def _finish(
        self,
        project_id: UUID,
        operation_id: str,
        mutation: Mutation,
        outcome: Outcome,
        batches: int,
        started_at: datetime,
        start_time: float,
        topic: str,
    ) -> BulkRunResult:
        operation_type = mutation.operation_type
        completed_at = self._clock.now()
        event = terminal_event(operation_id, operation_type, outcome, completed_at)
        self._publish(topic, event)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        failed = isinstance(outcome, Failed)
        status = BulkOperationStatus.FAILED if failed else BulkOperationStatus.COMPLETED

        if failed:
            logger.error(
                "bulk_operation_failed",
                exc_info=outcome.error,
                extra={
                    "operation_type": operation_type.value,
                    "processed": event.processed,
                    "total": event.total,
                    "batches": batches,
                    "duration_ms": duration_ms,
                },
            )
        else:
            logger.info(
                "bulk_operation_completed",
                extra={
                    "operation_type": operation_type.value,
                    "total": event.total,
                    "batches": batches,
                    "duration_ms": duration_ms,
                },
            )

        return BulkRunResult(
            operation_id=operation_id,
            operation_type=operation_type,
            project_id=project_id,
            status=status,
            processed=event.processed,
            total=event.total,
            batches=batches,
            terminal_event=event,
            error=outcome.error if failed else None,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
        )
