"""
Module: taskboard_kernel.models.task
Responsibility: ORM persistence for tasks, the records mutated in bulk.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py.

Invariants enforced:
    - title is non-empty.
    - status in (todo, in_progress, done); priority in [1, 5].
    - Each task belongs to exactly one project and dies with it.

Indexes on status, due_date and priority back the bulk filter predicates.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard_kernel.db.base import TimestampedBase, UUIDString
from taskboard_kernel.domain.dtos import MAX_PRIORITY, MIN_PRIORITY, TaskStatus

if TYPE_CHECKING:
    from taskboard_kernel.models.project import Project


class Task(TimestampedBase):
    """A unit of work inside a project."""

    __tablename__ = "tasks"

    __table_args__ = (
        Index("ix_tasks_project_id", "project_id"),
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_priority", "priority"),
        CheckConstraint("length(title) > 0", name="ck_task_title_not_empty"),
        CheckConstraint(
            "status IN ('todo', 'in_progress', 'done')",
            name="ck_task_status",
        ),
        CheckConstraint(
            f"priority BETWEEN {MIN_PRIORITY} AND {MAX_PRIORITY}",
            name="ck_task_priority",
        ),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskStatus.TODO.value,
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    project: Mapped["Project"] = relationship("Project", back_populates="tasks")

    def __repr__(self) -> str:
        return f"<Task {self.title!r} {self.status} p{self.priority}>"
