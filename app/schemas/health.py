"""Health check API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="healthy", description="Service status")
    timestamp: datetime
    version: str
