"""Application services: validation, query translation, projects, metadata, tasks, triggers."""

from app.application.services.collection_security_service import (
    DEFAULT_RULES,
    CollectionSecurityService,
)
from app.application.services.cron import CronExpression
from app.application.services.project_service import ProjectService
from app.application.services.query_translator import (
    build_query_plan,
    translate_structured_query,
)
from app.application.services.task_registry import TaskRegistry
from app.application.services.trigger_service import TriggerService
from app.application.services.trigger_validator import (
    TriggerValidationResult,
    validate_trigger_config,
)

__all__ = [
    "DEFAULT_RULES",
    "CollectionSecurityService",
    "CronExpression",
    "ProjectService",
    "TaskRegistry",
    "TriggerService",
    "TriggerValidationResult",
    "build_query_plan",
    "translate_structured_query",
    "validate_trigger_config",
]
