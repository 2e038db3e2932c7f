"""Read-only query selectors."""

from taskboard_kernel.selectors.base import BaseSelector
from taskboard_kernel.selectors.project_selector import ProjectSelector

__all__ = [
    "BaseSelector",
    "ProjectSelector",
]
