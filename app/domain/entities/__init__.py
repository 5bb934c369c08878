"""Domain entities: projects, task definitions and triggers."""

from app.domain.entities.project import ProjectEntity
from app.domain.entities.task import TaskDefinition
from app.domain.entities.trigger import Trigger

__all__ = [
    "ProjectEntity",
    "TaskDefinition",
    "Trigger",
]
