import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from redfish_exporter import __version__
from redfish_exporter.api.metrics import build_router
from redfish_exporter.config import Settings
from redfish_exporter.deps import get_settings
from redfish_exporter.services.orchestrator import SessionPool, TargetOrchestrator

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    metrics_path: Optional[str] = None,
    orchestrator: Optional[TargetOrchestrator] = None
) -> FastAPI:
    """
    Build the exporter application.

    Args:
        settings: Settings to use (defaults to the environment)
        metrics_path: Scrape endpoint path (defaults to METRICS_PATH)
        orchestrator: Orchestrator to scrape with (defaults to one built from settings)

    Returns:
        The FastAPI application
    """
    settings = settings or get_settings()
    metrics_path = metrics_path or settings.METRICS_PATH
    if orchestrator is None:
        orchestrator = TargetOrchestrator(SessionPool.from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Redfish Exporter {__version__} - Starting up")
        logger.info(f"Metrics available at {metrics_path}?target=<host>")
        yield
        logger.info("Shutting down, closing Redfish sessions")
        orchestrator.close()

    app = FastAPI(
        title="Redfish Exporter",
        description="Prometheus exporter for BMC hardware health over Redfish",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.metrics_path = metrics_path

    app.include_router(build_router(metrics_path), tags=["Metrics"])
    return app


app = create_app()
