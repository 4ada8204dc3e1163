"""
Redfish metric collectors.

Each scrape instantiates every class in ALL_COLLECTORS once for its target.
"""

from redfish_exporter.services.collectors.base import MetricCollector, ScrapeTimer, health_value
from redfish_exporter.services.collectors.fans import FanCollector
from redfish_exporter.services.collectors.power import PowerCollector
from redfish_exporter.services.collectors.sensors import SensorCollector
from redfish_exporter.services.collectors.system import SystemCollector
from redfish_exporter.services.collectors.telemetry import TelemetryCollector

ALL_COLLECTORS = (
    SystemCollector,
    SensorCollector,
    PowerCollector,
    FanCollector,
    TelemetryCollector,
)

__all__ = [
    "ALL_COLLECTORS",
    "FanCollector",
    "MetricCollector",
    "PowerCollector",
    "ScrapeTimer",
    "SensorCollector",
    "SystemCollector",
    "TelemetryCollector",
    "health_value",
]
