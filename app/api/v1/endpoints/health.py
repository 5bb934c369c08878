"""Health check endpoint. No dependencies; used for liveness probes."""

from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.health import HealthResponse
from app.shared.utils.datetime import utc_now

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return healthy status with server time and version."""
    return HealthResponse(timestamp=utc_now(), version=get_settings().app_version)
