"""Project (tenant) registry: creation with sanitized unique names, lookup, API keys.

Project records live in the reserved system namespace; the sanitized name is
both the record id and the project's storage namespace.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from app.core.constants import PROJECTS_COLLECTION, SYSTEM_NAMESPACE
from app.domain.entities.project import ProjectEntity
from app.domain.enums import FilterOperator
from app.domain.exceptions import (
    ProjectAlreadyExistsException,
    ProjectNotFoundException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.value_objects.query import FieldFilter, QueryPlan
from app.infrastructure.exceptions import DocumentExistsError
from app.infrastructure.storage.protocol import DocumentStoreProtocol
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_api_key
from app.shared.utils.sanitization import sanitize_project_name

logger = logging.getLogger(__name__)

MAX_NAME_SUFFIX = 1000


class ProjectService:
    """Creates and resolves projects. Names are immutable; API keys can be rotated."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def get(self, name: str) -> ProjectEntity | None:
        record = await self._store.get(SYSTEM_NAMESPACE, PROJECTS_COLLECTION, name)
        return ProjectEntity.from_record(record) if record else None

    async def resolve(self, name: str) -> ProjectEntity:
        """Return the project or raise ProjectNotFoundException."""
        project = await self.get(name)
        if project is None:
            raise ProjectNotFoundException(name)
        return project

    async def create(self, display_name: str, owner_id: str, description: str = "") -> ProjectEntity:
        """Create a project under a sanitized, unique name.

        Args:
            display_name: Name as entered by the user (kept for display).
            owner_id: Creating principal.
            description: Optional free text.

        Returns:
            The new project, including its API key.

        Raises:
            ValidationException: Empty name, or nothing valid left after sanitization.
            ProjectAlreadyExistsException: No free suffix within the attempt budget.
        """
        if not display_name or not display_name.strip():
            raise ValidationException("Project name is required", field="name")
        try:
            base = sanitize_project_name(display_name)
        except ValueError as e:
            raise ValidationException(str(e), field="name") from e

        now = self._clock()
        for suffix in range(MAX_NAME_SUFFIX + 1):
            candidate = base if suffix == 0 else f"{base}_{suffix}"
            project = ProjectEntity(
                name=candidate,
                display_name=display_name.strip(),
                owner_id=owner_id,
                api_key=generate_api_key(),
                description=description or "",
                created_at=now,
                updated_at=now,
            )
            try:
                await self._store.insert(
                    SYSTEM_NAMESPACE, PROJECTS_COLLECTION, candidate, project.to_record()
                )
            except DocumentExistsError:
                continue
            logger.info("Project created: %s (display name %r) by %s", candidate, display_name, owner_id)
            return project
        raise ProjectAlreadyExistsException(base)

    async def ensure_project(self, name: str, owner_id: str, description: str = "") -> ProjectEntity:
        """Create a project with an exact name if missing (used to seed the public project)."""
        existing = await self.get(name)
        if existing is not None:
            return existing
        now = self._clock()
        project = ProjectEntity(
            name=name,
            display_name=name,
            owner_id=owner_id,
            api_key=generate_api_key(),
            description=description,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._store.insert(SYSTEM_NAMESPACE, PROJECTS_COLLECTION, name, project.to_record())
        except DocumentExistsError:
            return await self.resolve(name)
        logger.info("Seeded project %s", name)
        return project

    async def list_owned(self, owner_id: str) -> list[ProjectEntity]:
        plan = QueryPlan(
            collection=PROJECTS_COLLECTION,
            where=FieldFilter("ownerId", FilterOperator.EQUAL, owner_id),
        )
        records = await self._store.find(SYSTEM_NAMESPACE, PROJECTS_COLLECTION, plan)
        return [ProjectEntity.from_record(r) for r in records]

    async def list_names(self) -> list[str]:
        records = await self._store.find(SYSTEM_NAMESPACE, PROJECTS_COLLECTION)
        return [r["_id"] for r in records]

    async def regenerate_api_key(self, name: str, owner_id: str) -> ProjectEntity:
        """Issue a new API key, invalidating the previous one. Owner only.

        Raises:
            ResourceNotFoundException: Project missing or not owned by owner_id.
        """
        project = await self.get(name)
        if project is None or not project.is_owned_by(owner_id):
            raise ResourceNotFoundException("project", name)
        project.api_key = generate_api_key()
        project.updated_at = self._clock()
        await self._store.put(SYSTEM_NAMESPACE, PROJECTS_COLLECTION, name, project.to_record())
        logger.info("API key regenerated for project %s", name)
        return project
