"""
Module: taskboard_kernel.models.project
Responsibility: ORM persistence for projects, the parent entity that owns
    tasks and scopes every bulk operation.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - name is unique and non-empty.
    - Deleting a project deletes its tasks (ORM cascade and FK ON DELETE).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard_kernel.db.base import TimestampedBase

if TYPE_CHECKING:
    from taskboard_kernel.models.task import Task


class Project(TimestampedBase):
    """A named collection of tasks."""

    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("name", name="uq_project_name"),
        CheckConstraint("length(name) > 0", name="ck_project_name_not_empty"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    tasks: Mapped[list["Task"]] = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Project {self.name!r}>"
