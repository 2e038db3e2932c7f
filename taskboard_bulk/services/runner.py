"""
Job runners -- in-process execution substrate for bulk job bodies.

Contract:
    ``submit(name, body)`` records a QUEUED job and returns its id.  The
    runner later calls ``body()``; an exception marks the attempt failed and
    the job is retried until ``max_attempts`` is reached.  Retry re-runs the
    whole body.

    ``InlineJobRunner`` runs the body inside ``submit()``.
    ``ThreadedJobRunner`` runs bodies one at a time on a background thread.

Invariants enforced:
    - At most one worker executes a given job at a time.
    - Every attempt runs with ``job_id`` bound in LogContext.

Non-goals:
    - No persistence: job records live only as long as the runner.
    - No cancellation of a running body.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4

from taskboard_kernel.domain.clock import Clock, SystemClock
from taskboard_kernel.logging_config import LogContext, get_logger

logger = get_logger("bulk.runner")

JobBody = Callable[[], Any]


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class JobRecord:
    """Snapshot of one submitted job."""

    job_id: UUID
    name: str
    status: JobStatus
    attempts: int = 0
    max_attempts: int = 1
    submitted_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None
    error_type: str | None = None


@runtime_checkable
class JobRunner(Protocol):
    def submit(self, name: str, body: JobBody) -> UUID: ...

    def get(self, job_id: UUID) -> JobRecord: ...


class _RunnerBase:
    """Job bookkeeping and the retry loop shared by both runners."""

    def __init__(self, max_attempts: int = 1, clock: Clock | None = None):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._max_attempts = max_attempts
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._records: dict[UUID, JobRecord] = {}
        self._bodies: dict[UUID, JobBody] = {}

    def get(self, job_id: UUID) -> JobRecord:
        """Raises KeyError for an unknown job id."""
        with self._lock:
            return self._records[job_id]

    def jobs(self) -> tuple[JobRecord, ...]:
        with self._lock:
            return tuple(self._records.values())

    def _register(self, name: str, body: JobBody) -> UUID:
        job_id = uuid4()
        record = JobRecord(
            job_id=job_id,
            name=name,
            status=JobStatus.QUEUED,
            max_attempts=self._max_attempts,
            submitted_at=self._clock.now(),
        )
        with self._lock:
            self._records[job_id] = record
            self._bodies[job_id] = body
        logger.info("job_submitted", extra={"job_id": str(job_id), "job_name": name})
        return job_id

    def _update(self, job_id: UUID, **changes: Any) -> JobRecord:
        with self._lock:
            record = replace(self._records[job_id], **changes)
            self._records[job_id] = record
            return record

    def _execute(self, job_id: UUID) -> JobRecord:
        with self._lock:
            body = self._bodies.pop(job_id)

        with LogContext.bind(job_id=str(job_id)):
            record = self.get(job_id)
            for attempt in range(1, self._max_attempts + 1):
                self._update(job_id, status=JobStatus.RUNNING, attempts=attempt)
                try:
                    body()
                except Exception as exc:
                    will_retry = attempt < self._max_attempts
                    logger.warning(
                        "job_attempt_failed",
                        exc_info=True,
                        extra={
                            "job_name": record.name,
                            "attempt": attempt,
                            "will_retry": will_retry,
                        },
                    )
                    if will_retry:
                        continue
                    return self._update(
                        job_id,
                        status=JobStatus.FAILED,
                        finished_at=self._clock.now(),
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                else:
                    logger.info(
                        "job_succeeded",
                        extra={"job_name": record.name, "attempt": attempt},
                    )
                    return self._update(
                        job_id,
                        status=JobStatus.SUCCEEDED,
                        finished_at=self._clock.now(),
                        error=None,
                        error_type=None,
                    )
        raise AssertionError("unreachable")  # pragma: no cover


class InlineJobRunner(_RunnerBase):
    """Runs each job synchronously inside ``submit()``.

    Failures are recorded on the job, not raised to the submitter.
    """

    def submit(self, name: str, body: JobBody) -> UUID:
        job_id = self._register(name, body)
        self._execute(job_id)
        return job_id


class ThreadedJobRunner(_RunnerBase):
    """Runs jobs in submission order on one background daemon thread.

    Contract:
        - ``start()`` / ``stop()`` manage the worker thread.
        - ``join()`` blocks until every submitted job has finished.
        - ``submit()`` before ``start()`` queues the job.
    """

    _STOP = object()

    def __init__(
        self,
        max_attempts: int = 1,
        clock: Clock | None = None,
        name: str = "bulk-job-runner",
    ):
        super().__init__(max_attempts=max_attempts, clock=clock)
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._name = name

    def submit(self, name: str, body: JobBody) -> UUID:
        job_id = self._register(name, body)
        self._queue.put(job_id)
        return job_id

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run_loop, name=self._name, daemon=True,
        )
        self._thread.start()
        logger.info("runner_started", extra={"runner": self._name})

    def stop(self, timeout: float = 30.0) -> None:
        """Finish queued jobs, then stop the worker thread."""
        if self._thread is None:
            return
        self._queue.put(self._STOP)
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("runner_stopped", extra={"runner": self._name})

    def join(self) -> None:
        self._queue.join()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self._execute(item)
            except Exception:
                logger.exception("runner_loop_error")
            finally:
                self._queue.task_done()
