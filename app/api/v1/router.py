"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from app.api.v1.dependencies (no manual service construction).
Mounted under ``/v1`` by app.main, following the Firestore REST path layout.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import documents, projects, queries, tasks, triggers
from app.core.constants import DATABASE_ID

DATABASE_PREFIX = f"/projects/{{project}}/databases/{DATABASE_ID}"

api_router = APIRouter()

api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(queries.router, prefix=DATABASE_PREFIX, tags=["queries"])
api_router.include_router(
    documents.router, prefix=f"{DATABASE_PREFIX}/documents", tags=["documents"]
)
api_router.include_router(tasks.router, prefix="/projects/{project}/tasks", tags=["tasks"])
api_router.include_router(
    triggers.router, prefix="/projects/{project}/triggers", tags=["triggers"]
)
