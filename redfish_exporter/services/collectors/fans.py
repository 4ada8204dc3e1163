"""
Fan Collector - Fan health, state and speed of the main chassis.
"""

from typing import Dict, Mapping

from prometheus_client.core import GaugeMetricFamily

from redfish_exporter.models.readings import FanReading
from redfish_exporter.services.collectors.base import HEALTH_HELP, MetricCollector, health_value
from redfish_exporter.services.locator import ChassisLocator
from redfish_exporter.services.session import RedfishSession


class FanCollector(MetricCollector[FanReading]):
    """Collects fan metrics from the Thermal view."""

    subsystem = "fan"

    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "health": GaugeMetricFamily(
                "ipmi_fan_health",
                f"Fan health status {HEALTH_HELP}",
                labels=["name"],
            ),
            "state": GaugeMetricFamily(
                "ipmi_fan_state",
                "Fan operating state (1 = Enabled, 0 = Disabled)",
                labels=["name"],
            ),
            "speed": GaugeMetricFamily(
                "ipmi_fan_speed_rpm",
                "Fan speed in RPM",
                labels=["name"],
            ),
        }

    def fetch(self, session: RedfishSession) -> Dict[str, FanReading]:
        thermal = ChassisLocator(session).get_primary().thermal()

        readings: Dict[str, FanReading] = {}
        for fan in thermal.fans:
            if not fan.name:
                continue
            readings[fan.name] = FanReading(
                name=fan.name,
                health=health_value(fan.status.health),
                state=1.0 if fan.status.state == "Enabled" else 0.0,
                speed_rpm=fan.reading,
            )
        return readings

    def add_samples(self, families: Dict[str, GaugeMetricFamily], snapshot: Mapping[str, FanReading]) -> None:
        for reading in snapshot.values():
            families["health"].add_metric([reading.name], reading.health)
            families["state"].add_metric([reading.name], reading.state)
            families["speed"].add_metric([reading.name], reading.speed_rpm)
