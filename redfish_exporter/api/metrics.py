"""
Metrics API - Prometheus scrape endpoint for Redfish targets.

This module provides endpoints for:
- Per-target metrics (<metrics path>?target=<host>)
- An index page describing how to scrape

Every request registers a single-use collector in its own registry, so
concurrent scrapes of different targets never share metric state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from redfish_exporter.deps import get_metrics_path, get_orchestrator
from redfish_exporter.services.orchestrator import TargetOrchestrator

logger = logging.getLogger(__name__)

MISSING_TARGET_MESSAGE = "Error: 'target' parameter is required (e.g. ?target=bmc.example.com)"

INDEX_TEMPLATE = """<html>
<head><title>Redfish Exporter</title></head>
<body>
<h1>Redfish Exporter</h1>
<p>This exporter requires a target parameter (hostname only):</p>
<p><a href="{path}?target=bmc.example.com">{path}?target=bmc.example.com</a></p>
</body>
</html>"""


def normalize_target(target: str) -> str:
    """Strip a scheme that was included by mistake; targets are always reached over https."""
    if target.startswith("http://"):
        target = target[len("http://"):]
    if target.startswith("https://"):
        target = target[len("https://"):]
    return target


class TargetCollector:
    """Single-use prometheus_client collector that scrapes one target."""

    def __init__(self, orchestrator: TargetOrchestrator, target: str):
        self.orchestrator = orchestrator
        self.target = target

    def describe(self):
        return self.orchestrator.describe()

    def collect(self):
        return self.orchestrator.scrape(self.target)


# ============================================================================
# Endpoints
# ============================================================================

def metrics(
    target: Optional[str] = Query(None, description="BMC hostname to scrape"),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator)
):
    """
    Scrape one BMC and return its metrics in Prometheus text format.

    **Returns:** 400 with a plain text message when no target is given.
    """
    if not target:
        return PlainTextResponse(MISSING_TARGET_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

    target = normalize_target(target)
    logger.debug(f"Starting metrics collection for target {target}")

    registry = CollectorRegistry()
    registry.register(TargetCollector(orchestrator, target))
    body = generate_latest(registry)

    logger.debug(f"Finished metrics collection for target {target}")
    return Response(content=body, media_type=CONTENT_TYPE_LATEST)


def index(metrics_path: str = Depends(get_metrics_path)):
    return HTMLResponse(INDEX_TEMPLATE.format(path=metrics_path))


def build_router(metrics_path: str) -> APIRouter:
    """Router serving the scrape endpoint at metrics_path and the index page at /."""
    router = APIRouter()
    router.add_api_route(metrics_path, metrics, methods=["GET"], response_class=Response)
    router.add_api_route("/", index, methods=["GET"], response_class=HTMLResponse)
    return router
