"""
Tests for taskboard_bulk.orchestrator -- BulkOrchestrator.

Validates the DI container (from_session_factory, create_mutator, property
accessors) and the enqueue boundary: synchronous validation, job
submission, per-job sessions and retry through the runner.
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select

from taskboard_config.schema import BulkSettings, TaskboardConfig
from taskboard_kernel.exceptions import (
    InvalidFilterError,
    InvalidStatusError,
    StoreFailureError,
    UnknownOperationTypeError,
    ValidationError,
)
from taskboard_kernel.models.task import Task

from taskboard_bulk.domain.types import BulkRequest, OperationType
from taskboard_bulk.jobs import JobRegistry, StatusUpdateJob
from taskboard_bulk.orchestrator import BulkOrchestrator
from taskboard_bulk.services.broadcaster import InProcessBroadcaster, topic_for_project
from taskboard_bulk.services.mutator import BatchMutator
from taskboard_bulk.services.pacing import NoPacer
from taskboard_bulk.services.runner import (
    InlineJobRunner,
    JobStatus,
    ThreadedJobRunner,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def orchestrator(session_factory, clock, hub):
    return BulkOrchestrator.from_session_factory(
        session_factory, clock=clock, broadcaster=hub, pacer=NoPacer(),
    )


@pytest.fixture
def received(hub, project):
    """Payloads delivered on the project's topic."""
    payloads = []
    hub.subscribe(topic_for_project(project.id), payloads.append)
    return payloads


@pytest.fixture
def seeded(project, create_task, clock):
    today = clock.today()
    create_task(project, "T1", "todo", 1, today - timedelta(days=1))
    create_task(project, "T2", "in_progress", 3, today + timedelta(days=1))
    create_task(project, "T3", "done", 5, today - timedelta(days=1))


def _statuses(db_session, project):
    db_session.expire_all()
    rows = db_session.execute(
        select(Task.title, Task.status).where(Task.project_id == project.id)
    ).all()
    return dict(rows)


# =============================================================================
# Wiring
# =============================================================================


class TestFromSessionFactory:
    def test_defaults(self, session_factory):
        orch = BulkOrchestrator.from_session_factory(session_factory)
        assert len(orch.task_registry) == 3
        assert isinstance(orch.broadcaster, InProcessBroadcaster)
        assert isinstance(orch.runner, InlineJobRunner)
        assert orch.settings == BulkSettings()

    def test_uses_provided_clock(self, orchestrator, clock):
        assert orchestrator.clock is clock

    def test_config_settings_applied(self, session_factory, db_session):
        config = TaskboardConfig(bulk=BulkSettings(batch_size=50, pause_seconds=0))
        orch = BulkOrchestrator.from_session_factory(session_factory, config=config)

        mutator = orch.create_mutator(db_session)
        assert isinstance(mutator, BatchMutator)
        assert mutator.batch_size == 50

    def test_custom_registry(self, session_factory):
        registry = JobRegistry()
        registry.register(StatusUpdateJob())
        orch = BulkOrchestrator.from_session_factory(session_factory, task_registry=registry)
        assert orch.task_registry is registry


# =============================================================================
# Enqueue boundary
# =============================================================================


class TestEnqueue:
    def test_status_update_end_to_end(self, orchestrator, db_session, project, seeded, received):
        job_id = orchestrator.enqueue(
            project.id, "status_update", {"new_status": "in_progress"},
            {"current_status": "todo"},
        )

        assert orchestrator.runner.get(job_id).status is JobStatus.SUCCEEDED
        assert _statuses(db_session, project) == {
            "T1": "in_progress", "T2": "in_progress", "T3": "done",
        }
        assert received[-1]["completed"] is True
        assert received[-1]["message"] == "Successfully updated 1 tasks to 'in_progress'"
        assert received[0]["message"] == "Starting bulk status update..."

    def test_accepts_string_project_id_and_enum_type(self, orchestrator, project, seeded, received):
        job_id = orchestrator.enqueue(
            str(project.id), OperationType.DUE_DATE_UPDATE, {"operation": "clear"}, None,
        )
        assert orchestrator.runner.get(job_id).status is JobStatus.SUCCEEDED
        assert received[-1]["message"] == "Successfully cleared due dates for 3 tasks"

    def test_invalid_parameter_creates_no_job(self, orchestrator, project, received, captured_logs):
        with pytest.raises(InvalidStatusError):
            orchestrator.enqueue(project.id, "status_update", {"new_status": "archived"}, None)

        assert orchestrator.runner.jobs() == ()
        assert received == []
        rejected = [r for r in captured_logs() if r["message"] == "bulk_request_rejected"]
        assert rejected[0]["error_code"] == "INVALID_STATUS"

    def test_invalid_filter_creates_no_job(self, orchestrator, project):
        with pytest.raises(ValidationError):
            orchestrator.enqueue(
                project.id, "priority_update", {"new_priority": 2}, {"current_priority": "9"},
            )
        assert orchestrator.runner.jobs() == ()

    def test_non_mapping_filters_create_no_job(self, orchestrator, project, captured_logs):
        with pytest.raises(InvalidFilterError):
            orchestrator.enqueue(
                project.id, "status_update", {"new_status": "done"}, ["status=todo"],
            )
        assert orchestrator.runner.jobs() == ()
        rejected = [r for r in captured_logs() if r["message"] == "bulk_request_rejected"]
        assert rejected[0]["error_code"] == "INVALID_FILTER"

    def test_unknown_operation_type(self, orchestrator, project):
        with pytest.raises(UnknownOperationTypeError):
            orchestrator.enqueue(project.id, "rename", {}, None)
        assert orchestrator.runner.jobs() == ()

    def test_malformed_project_id(self, orchestrator):
        with pytest.raises(ValidationError) as exc_info:
            orchestrator.enqueue("not-a-uuid", "status_update", {"new_status": "done"}, None)
        assert exc_info.value.field == "project_id"

    def test_missing_project_fails_job(self, orchestrator):
        job_id = orchestrator.enqueue(uuid4(), "status_update", {"new_status": "done"}, None)

        record = orchestrator.runner.get(job_id)
        assert record.status is JobStatus.FAILED
        assert record.error_type == "ProjectNotFoundError"

    def test_build_request(self, orchestrator, project):
        request = orchestrator.build_request(
            project.id, "priority_update", {"new_priority": "2"}, {"overdue": "true"},
        )
        assert isinstance(request, BulkRequest)
        assert request.filters.overdue is True


# =============================================================================
# Failure and retry
# =============================================================================


class TestFailureAndRetry:
    @pytest.fixture
    def fail_first_batch(self, monkeypatch):
        original = BatchMutator._apply_batch
        calls = {"n": 0}

        def apply_batch(self, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise StoreFailureError("op", "batch update", "deadlock detected")
            return original(self, *args, **kwargs)

        monkeypatch.setattr(BatchMutator, "_apply_batch", apply_batch)
        return calls

    def test_failed_job_recorded(
        self, orchestrator, db_session, project, seeded, received, fail_first_batch,
    ):
        job_id = orchestrator.enqueue(project.id, "status_update", {"new_status": "done"}, None)

        record = orchestrator.runner.get(job_id)
        assert record.status is JobStatus.FAILED
        assert record.error_type == "StoreFailureError"
        assert [p for p in received if p["error"]] == [received[-1]]
        assert received[-1]["message"] == "Error: Store failure during batch update: deadlock detected"
        assert _statuses(db_session, project)["T1"] == "todo"

    def test_retry_reruns_whole_job(
        self, session_factory, clock, hub, db_session, project, seeded, received, fail_first_batch,
    ):
        orch = BulkOrchestrator.from_session_factory(
            session_factory,
            clock=clock,
            broadcaster=hub,
            pacer=NoPacer(),
            runner=InlineJobRunner(max_attempts=2, clock=clock),
        )

        job_id = orch.enqueue(project.id, "status_update", {"new_status": "done"}, None)

        record = orch.runner.get(job_id)
        assert record.status is JobStatus.SUCCEEDED
        assert record.attempts == 2
        terminal = [p for p in received if p["completed"] or p["error"]]
        assert [(p["completed"], p["error"]) for p in terminal] == [(False, True), (True, False)]
        assert set(_statuses(db_session, project).values()) == {"done"}


# =============================================================================
# Background execution
# =============================================================================


class TestThreadedRunner:
    def test_enqueue_runs_in_background(self, session_factory, clock, hub, db_session, project, seeded, received):
        runner = ThreadedJobRunner(clock=clock)
        orch = BulkOrchestrator.from_session_factory(
            session_factory, clock=clock, broadcaster=hub, pacer=NoPacer(), runner=runner,
        )
        project_id = project.id
        db_session.close()

        runner.start()
        try:
            job_id = orch.enqueue(project_id, "priority_update", {"new_priority": 5}, None)
            runner.join()
        finally:
            runner.stop()

        assert runner.get(job_id).status is JobStatus.SUCCEEDED
        assert received[-1]["message"] == "Successfully updated 3 tasks to priority 5"
