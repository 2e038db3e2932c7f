"""
Module: taskboard_kernel.selectors.project_selector
Responsibility: Read-only project lookup as a DTO.
Architecture position: Kernel > Selectors.

Used by the bulk mutator to resolve the parent project before any task is
counted or touched.
"""

from uuid import UUID

from taskboard_kernel.domain.dtos import ProjectDTO
from taskboard_kernel.models.project import Project
from taskboard_kernel.selectors.base import BaseSelector


class ProjectSelector(BaseSelector[Project]):
    """Selector for project queries."""

    def get_project(self, project_id: UUID) -> ProjectDTO | None:
        project = self.session.get(Project, project_id)
        if project is None:
            return None
        return ProjectDTO.from_model(project)
