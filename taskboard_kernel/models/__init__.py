"""ORM models for projects and tasks."""

from taskboard_kernel.models.project import Project
from taskboard_kernel.models.task import Task

__all__ = [
    "Project",
    "Task",
]
