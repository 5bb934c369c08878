"""Background scheduler for cron triggers.

Wakes on a fixed interval, evaluates every enabled cron trigger of every
project in the trigger's timezone, and runs matching tasks as the trigger's
creator. A trigger fires at most once per minute. Failures are logged and
never stop the loop.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

from app.application.dtos.principal import Principal
from app.application.services.cron import CronExpression
from app.domain.entities.trigger import Trigger
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import to_timezone, utc_now

if TYPE_CHECKING:
    from app.application.services.project_service import ProjectService
    from app.application.services.task_registry import TaskRegistry
    from app.application.services.trigger_service import TriggerService
    from app.infrastructure.services.task_execution_engine import TaskExecutionEngine

logger = get_logger(__name__)

SYSTEM_USER = "system"


class TaskScheduler:
    """Runs cron-triggered tasks from an asyncio background task."""

    def __init__(
        self,
        projects: "ProjectService",
        triggers: "TriggerService",
        registry: "TaskRegistry",
        engine: "TaskExecutionEngine",
        interval_seconds: float = 60,
    ) -> None:
        self._projects = projects
        self._triggers = triggers
        self._registry = registry
        self._engine = engine
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._last_fired: dict[tuple[str, str], datetime] = {}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info("Starting task scheduler (interval %ss)", self._interval)
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stopped task scheduler")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            await asyncio.sleep(self._interval)

    async def tick(self, now: datetime | None = None) -> list[str]:
        """Evaluate all cron triggers once.

        Returns:
            Ids of triggers that fired.
        """
        now = (now or utc_now()).replace(second=0, microsecond=0)
        logger.debug("Checking scheduled triggers at %s", now.isoformat())
        due: list[tuple[str, Trigger]] = []
        for project in await self._projects.list_names():
            try:
                triggers = await self._triggers.list_enabled_cron(project)
            except Exception:
                logger.exception("Error checking triggers in project %s", project)
                continue
            for trigger in triggers:
                if self._due(project, trigger, now):
                    self._last_fired[(project, trigger.id)] = now
                    due.append((project, trigger))
        # Due triggers fire concurrently.
        await asyncio.gather(*(self._fire_guarded(project, trigger) for project, trigger in due))
        return [trigger.id for _, trigger in due]

    def _due(self, project: str, trigger: Trigger, now: datetime) -> bool:
        if self._last_fired.get((project, trigger.id)) == now:
            return False
        try:
            expression = CronExpression.parse(trigger.config.get("schedule", ""))
            local = to_timezone(now, trigger.config.get("timezone"))
        except Exception as e:
            logger.warning("Skipping trigger %s in %s: %s", trigger.id, project, e)
            return False
        return expression.matches(local)

    async def _fire_guarded(self, project: str, trigger: Trigger) -> None:
        try:
            await self._fire(project, trigger)
        except Exception:
            logger.exception("Error firing trigger %s in project %s", trigger.id, project)

    async def _fire(self, project: str, trigger: Trigger) -> None:
        if trigger.targets_global_task:
            task = self._registry.get_global(trigger.task_name)
        else:
            task = await self._registry.get_project_task(project, trigger.task_id)
        if task is None:
            logger.error("Task %s not found for trigger %s in %s", trigger.task_id, trigger.id, project)
            return
        if not task.enabled:
            logger.info("Task %s is disabled; trigger %s skipped", task.id, trigger.id)
            return
        principal = Principal(
            user_id=trigger.created_by or SYSTEM_USER,
            project_id=project,
            project_name=project,
        )
        logger.info("Executing cron trigger %s for task %s in project %s", trigger.id, task.id, project)
        result = await self._engine.execute(task, trigger.task_params, principal, project)
        if result.succeeded:
            logger.info("Triggered task %s via trigger %s succeeded", task.id, trigger.id)
        else:
            logger.error(
                "Triggered task %s via trigger %s failed (%s): %s",
                task.id,
                trigger.id,
                result.error_kind.value if result.error_kind else "unknown",
                result.error_message,
            )
