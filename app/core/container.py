"""Composition root: one instance of every service per application.

Built synchronously by create_app() and stored on ``app.state.container``;
startup()/shutdown() are awaited by the lifespan (and by tests, since
ASGITransport does not run lifespan events).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.application.services.collection_security_service import CollectionSecurityService
from app.application.services.project_service import ProjectService
from app.application.services.task_registry import TaskRegistry
from app.application.services.trigger_service import TriggerService
from app.application.use_cases.documents import DocumentService
from app.core.config import Settings
from app.infrastructure.external.messaging import (
    IEmailSender,
    ISmsSender,
    PostmarkEmailSender,
    TwilioSmsSender,
    UnconfiguredService,
)
from app.infrastructure.services.builtin_tasks import builtin_tasks
from app.infrastructure.services.task_execution_engine import TaskExecutionEngine
from app.infrastructure.services.task_scheduler import TaskScheduler
from app.infrastructure.services.task_services import TaskServiceProvider
from app.infrastructure.storage.factory import DocumentStoreFactory
from app.infrastructure.storage.protocol import DocumentStoreProtocol

logger = logging.getLogger(__name__)

PLATFORM_OWNER = "system"


def _build_sms_sender(settings: Settings, http_client: httpx.AsyncClient) -> ISmsSender:
    if settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_phone_number:
        return TwilioSmsSender(
            settings.twilio_account_sid,
            settings.twilio_auth_token.get_secret_value(),
            settings.twilio_phone_number,
            http_client=http_client,
        )
    return UnconfiguredService("sms")


def _build_email_sender(settings: Settings, http_client: httpx.AsyncClient) -> IEmailSender:
    if settings.postmark_server_token and settings.postmark_from_email:
        return PostmarkEmailSender(
            settings.postmark_server_token.get_secret_value(),
            settings.postmark_from_email,
            http_client=http_client,
        )
    return UnconfiguredService("email")


@dataclass
class ServiceContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    store: DocumentStoreProtocol
    projects: ProjectService
    security: CollectionSecurityService
    documents: DocumentService
    tasks: TaskRegistry
    triggers: TriggerService
    engine: TaskExecutionEngine
    scheduler: TaskScheduler

    @classmethod
    def build(
        cls,
        settings: Settings,
        store: DocumentStoreProtocol | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "ServiceContainer":
        """Wire every service from settings. Performs no I/O."""
        http = http_client or httpx.AsyncClient(timeout=settings.outbound_http_timeout_seconds)
        store = store or DocumentStoreFactory.create_document_store(settings, http_client=http)
        projects = ProjectService(store)
        security = CollectionSecurityService(store)
        documents = DocumentService(
            store,
            projects,
            security,
            public_project_name=settings.public_project_name,
            id_generation_max_attempts=settings.id_generation_max_attempts,
        )
        tasks = TaskRegistry(store, projects)
        triggers = TriggerService(
            store, projects, tasks, id_generation_max_attempts=settings.id_generation_max_attempts
        )
        services = TaskServiceProvider(
            http,
            _build_sms_sender(settings, http),
            _build_email_sender(settings, http),
        )
        engine = TaskExecutionEngine(
            tasks,
            documents,
            services,
            timeout_seconds=settings.task_timeout_seconds,
            max_call_depth=settings.task_max_call_depth,
        )
        scheduler = TaskScheduler(
            projects, triggers, tasks, engine, interval_seconds=settings.scheduler_interval_seconds
        )
        return cls(
            settings=settings,
            http_client=http,
            store=store,
            projects=projects,
            security=security,
            documents=documents,
            tasks=tasks,
            triggers=triggers,
            engine=engine,
            scheduler=scheduler,
        )

    async def startup(self) -> None:
        """Register built-in tasks, seed the public project, start the scheduler if enabled."""
        for task in builtin_tasks():
            self.tasks.register_global(task)
        logger.info("Registered %s global tasks", len(self.tasks.list_global()))
        await self.projects.ensure_project(
            self.settings.public_project_name,
            PLATFORM_OWNER,
            "Shared project writable by every authenticated user",
        )
        if self.settings.scheduler_enabled:
            self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        await self.store.aclose()
        await self.http_client.aclose()
        logger.info("Service container shut down")
