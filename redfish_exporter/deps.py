from functools import lru_cache

from fastapi import Request

from redfish_exporter.config import Settings
from redfish_exporter.services.orchestrator import TargetOrchestrator


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def get_orchestrator(request: Request) -> TargetOrchestrator:
    """The application's orchestrator, created by create_app()."""
    return request.app.state.orchestrator


def get_metrics_path(request: Request) -> str:
    return request.app.state.metrics_path
