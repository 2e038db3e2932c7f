"""
Pytest fixtures for the taskboard test suite.

Provides:
- In-memory SQLite database sessions (fresh schema per test)
- Deterministic clock and a recording broadcaster
- Project / task factories
- Structured log capture
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO
from typing import Any

import pytest
from sqlalchemy.orm import Session, sessionmaker

from taskboard_kernel.db.base import Base
from taskboard_kernel.db.engine import create_sqlite_engine
from taskboard_kernel.domain.clock import DeterministicClock
from taskboard_kernel.domain.dtos import TaskStatus
from taskboard_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from taskboard_kernel.models.project import Project
from taskboard_kernel.models.task import Task

from taskboard_bulk.services.broadcaster import InProcessBroadcaster

# Every test starts at this instant unless it moves the clock.
FIXED_NOW = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture taskboard logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, mutator):
            mutator.run(...)
            logs = captured_logs()
            assert any(r["message"] == "bulk_operation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("taskboard")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with all tables created."""
    import taskboard_kernel.models  # noqa: F401  (registers tables)

    eng = create_sqlite_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Time and progress fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_NOW)


class RecordingBroadcaster:
    """Broadcaster double that keeps every published event in order."""

    def __init__(self) -> None:
        self.published: list[tuple[str, Any]] = []

    def publish(self, topic, event):
        self.published.append((topic, event))

    @property
    def events(self):
        return [event for _, event in self.published]

    @property
    def topics(self) -> set[str]:
        return {topic for topic, _ in self.published}

    def terminal_events(self):
        return [e for e in self.events if e.is_terminal]


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def hub() -> InProcessBroadcaster:
    return InProcessBroadcaster()


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_project(db_session):
    """Factory: persist and return a Project."""
    counter = {"n": 0}

    def _create(name: str | None = None) -> Project:
        counter["n"] += 1
        project = Project(name=name or f"Project {counter['n']}")
        db_session.add(project)
        db_session.commit()
        return project

    return _create


@pytest.fixture
def project(create_project) -> Project:
    return create_project("Website relaunch")


@pytest.fixture
def create_task(db_session):
    """Factory: persist and return a Task."""

    def _create(
        project: Project,
        title: str = "Task",
        status: TaskStatus | str = TaskStatus.TODO,
        priority: int = 3,
        due_date: date | None = None,
    ) -> Task:
        task = Task(
            project_id=project.id,
            title=title,
            status=TaskStatus(status).value,
            priority=priority,
            due_date=due_date,
        )
        db_session.add(task)
        db_session.commit()
        return task

    return _create


@pytest.fixture
def create_many_tasks(db_session):
    """Factory: bulk-insert ``count`` identical tasks in one commit."""

    def _create(
        project: Project,
        count: int,
        status: TaskStatus | str = TaskStatus.TODO,
        priority: int = 3,
        due_date: date | None = None,
    ) -> None:
        db_session.add_all(
            Task(
                project_id=project.id,
                title=f"Task {i}",
                status=TaskStatus(status).value,
                priority=priority,
                due_date=due_date,
            )
            for i in range(count)
        )
        db_session.commit()

    return _create
