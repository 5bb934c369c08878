"""Application lifespan: startup and shutdown.

Wiring only. The service container is built by create_app(); here it is
started (global tasks, public project, scheduler) and shut down (scheduler,
storage engine, shared HTTP client). Telemetry, when enabled, installs its
tracer provider first and flushes it last.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Set up telemetry, run container startup, yield, then shut both down."""
    container = app.state.container
    settings = container.settings

    # ---- Startup ----
    telemetry = getattr(app.state, "telemetry", None)
    if telemetry is not None:
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        telemetry.instrument_logging()
        logger.info("Telemetry initialized")

    await container.startup()
    logger.info(
        "%s %s started (storage: %s, scheduler: %s)",
        settings.app_name,
        settings.app_version,
        settings.storage_backend,
        "on" if settings.scheduler_enabled else "off",
    )

    yield

    # ---- Shutdown ----
    await container.shutdown()
    if telemetry is not None:
        telemetry.shutdown()
