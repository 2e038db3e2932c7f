"""
taskboard_bulk.jobs -- MutationJob protocol, registry, and the three job variants.
"""

from taskboard_bulk.jobs.base import (
    FieldMutationJob,
    JobRegistry,
    MutationJob,
)
from taskboard_bulk.jobs.due_date import DueDateUpdateJob
from taskboard_bulk.jobs.priority import PriorityUpdateJob
from taskboard_bulk.jobs.status import StatusUpdateJob


def default_job_registry() -> JobRegistry:
    """Create a JobRegistry holding the status, priority and due-date jobs."""
    registry = JobRegistry()
    registry.register(StatusUpdateJob())
    registry.register(PriorityUpdateJob())
    registry.register(DueDateUpdateJob())
    return registry


__all__ = [
    "DueDateUpdateJob",
    "FieldMutationJob",
    "JobRegistry",
    "MutationJob",
    "PriorityUpdateJob",
    "StatusUpdateJob",
    "default_job_registry",
]
