"""Capability context handed to task handlers as their second argument.

Exposes console, data, tasks, services, user and project. Every entry point
checks the invocation's lifetime: once the invocation finishes (or times
out) the context is closed and any further use raises RuntimeError.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from app.application.dtos.execution import ConsoleEntry
from app.application.dtos.principal import Principal
from app.application.services.identifier_validator import validate_collection_name
from app.application.services.query_translator import build_query_plan
from app.domain.exceptions import ResourceNotFoundException
from app.shared.telemetry.logging import TASK_CONSOLE_LOGGER
from app.shared.utils.typed_values import ID_FIELD

if TYPE_CHECKING:
    from app.application.use_cases.documents import DocumentService

console_logger = logging.getLogger(TASK_CONSOLE_LOGGER)

CONTEXT_CLOSED_MESSAGE = "Task context is no longer active"

_CONSOLE_LEVELS = {
    "log": logging.INFO,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class InvocationLifetime:
    """Open while the owning invocation runs."""

    def __init__(self) -> None:
        self.active = True

    def close(self) -> None:
        self.active = False

    def check(self) -> None:
        if not self.active:
            raise RuntimeError(CONTEXT_CLOSED_MESSAGE)


def _format_arg(arg: Any) -> str:
    if isinstance(arg, str):
        return arg
    try:
        return json.dumps(arg, default=str)
    except (TypeError, ValueError):
        return repr(arg)


class TaskConsole:
    """console.log/info/warn/error: forwarded to logging and collected per invocation."""

    def __init__(self, task_name: str, lifetime: InvocationLifetime) -> None:
        self._task_name = task_name
        self._lifetime = lifetime
        self.entries: list[ConsoleEntry] = []

    def _emit(self, level: str, args: tuple[Any, ...]) -> None:
        self._lifetime.check()
        message = " ".join(_format_arg(a) for a in args)
        self.entries.append(ConsoleEntry(level, message))
        console_logger.log(_CONSOLE_LEVELS[level], "[%s] %s", self._task_name, message)

    def log(self, *args: Any) -> None:
        self._emit("log", args)

    def info(self, *args: Any) -> None:
        self._emit("info", args)

    def warn(self, *args: Any) -> None:
        self._emit("warn", args)

    warning = warn

    def error(self, *args: Any) -> None:
        self._emit("error", args)


def _public(record: dict[str, Any]) -> dict[str, Any]:
    """Storage record as seen by task code: ``id`` instead of ``_id``."""
    data = {k: v for k, v in record.items() if k != ID_FIELD}
    return {"id": record[ID_FIELD], **data}


class ScopedCollection:
    """One collection of the invoking project, accessed as the invoking user.

    Goes through the document façade, so ownership rules apply to task code too.
    """

    def __init__(
        self,
        documents: "DocumentService",
        principal: Principal,
        project: str,
        name: str,
        lifetime: InvocationLifetime,
    ) -> None:
        self._documents = documents
        self._principal = principal
        self._project = project
        self.name = name
        self._lifetime = lifetime

    async def get(self, document_id: str) -> dict[str, Any] | None:
        """Return the document, or None if it does not exist."""
        self._lifetime.check()
        try:
            record = await self._documents.get(self._principal, self._project, self.name, document_id)
        except ResourceNotFoundException:
            return None
        return _public(record)

    async def list(self, order_by: Any = None, limit: int | None = None) -> list[dict[str, Any]]:
        self._lifetime.check()
        if order_by is None and limit is None:
            records = await self._documents.list(self._principal, self._project, self.name)
        else:
            plan = build_query_plan(self.name, order_by=order_by, limit=limit)
            records = await self._documents.query(self._principal, self._project, plan)
        return [_public(r) for r in records]

    async def query(
        self,
        where: list[tuple[str, str, Any]] | None = None,
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Filter with ``(field, op, value)`` tuples, e.g. ``[("status", "==", "open")]``."""
        self._lifetime.check()
        plan = build_query_plan(self.name, where=where, order_by=order_by, limit=limit)
        records = await self._documents.query(self._principal, self._project, plan)
        return [_public(r) for r in records]

    async def add(self, data: dict[str, Any]) -> dict[str, Any]:
        self._lifetime.check()
        record = await self._documents.create(self._principal, self._project, self.name, data)
        return _public(record)

    async def set(self, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        self._lifetime.check()
        record, _ = await self._documents.set(
            self._principal, self._project, self.name, document_id, data
        )
        return _public(record)

    async def update(self, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        self._lifetime.check()
        record = await self._documents.update(
            self._principal, self._project, self.name, document_id, data
        )
        return _public(record)

    async def delete(self, document_id: str) -> bool:
        """Delete the document; False if it did not exist."""
        self._lifetime.check()
        try:
            await self._documents.delete(self._principal, self._project, self.name, document_id)
        except ResourceNotFoundException:
            return False
        return True


class TaskDataAPI:
    """``context.data``: entry point to the invoking project's collections."""

    def __init__(
        self,
        documents: "DocumentService",
        principal: Principal,
        project: str,
        lifetime: InvocationLifetime,
    ) -> None:
        self._documents = documents
        self._principal = principal
        self._project = project
        self._lifetime = lifetime

    def collection(self, name: str) -> ScopedCollection:
        self._lifetime.check()
        validate_collection_name(name)
        return ScopedCollection(self._documents, self._principal, self._project, name, self._lifetime)


class TaskInvoker:
    """``context.tasks``: call another task by name (project scope, then global)."""

    def __init__(
        self,
        run: Callable[[str, dict[str, Any]], Awaitable[Any]],
        lifetime: InvocationLifetime,
    ) -> None:
        self._run = run
        self._lifetime = lifetime

    async def do(self, task_name: str, params: dict[str, Any] | None = None) -> Any:
        """Invoke a task and return its result; raises if it fails."""
        self._lifetime.check()
        return await self._run(task_name, dict(params or {}))


class TaskContext:
    """The ``context`` argument of a task handler."""

    def __init__(
        self,
        *,
        console: TaskConsole,
        data: TaskDataAPI,
        tasks: TaskInvoker,
        services: Mapping[str, Any],
        principal: Principal,
        project: str,
        lifetime: InvocationLifetime,
    ) -> None:
        self._console = console
        self._data = data
        self._tasks = tasks
        self._services = MappingProxyType(dict(services))
        self._user = MappingProxyType(
            {"userId": principal.user_id, "projectName": principal.project_name}
        )
        self._project = MappingProxyType({"name": project})
        self._lifetime = lifetime

    @property
    def active(self) -> bool:
        return self._lifetime.active

    @property
    def console(self) -> TaskConsole:
        self._lifetime.check()
        return self._console

    @property
    def data(self) -> TaskDataAPI:
        self._lifetime.check()
        return self._data

    @property
    def tasks(self) -> TaskInvoker:
        self._lifetime.check()
        return self._tasks

    @property
    def services(self) -> Mapping[str, Any]:
        self._lifetime.check()
        return self._services

    @property
    def user(self) -> Mapping[str, str]:
        self._lifetime.check()
        return self._user

    @property
    def project(self) -> Mapping[str, str]:
        self._lifetime.check()
        return self._project

    def close(self) -> None:
        self._lifetime.close()
