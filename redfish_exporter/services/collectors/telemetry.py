"""
Telemetry Collector - Whole-system power consumption.
"""

from typing import Dict, Mapping

from prometheus_client.core import GaugeMetricFamily

from redfish_exporter.models.readings import PowerConsumptionReading
from redfish_exporter.services.collectors.base import MetricCollector
from redfish_exporter.services.locator import ChassisLocator
from redfish_exporter.services.session import RedfishSession


class TelemetryCollector(MetricCollector[PowerConsumptionReading]):
    """
    Collects the system's power draw from the main chassis.

    The first power control entry reporting a positive consumption is used.
    Nothing is exported when no entry reports one.
    """

    subsystem = "telemetry"

    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "consumption": GaugeMetricFamily(
                "ipmi_telemetry_power_consumption_watts",
                "Current power consumption in watts",
            ),
        }

    def fetch(self, session: RedfishSession) -> Dict[str, PowerConsumptionReading]:
        power = ChassisLocator(session).get_primary().power()

        for index, control in enumerate(power.power_control):
            if control.power_consumed_watts > 0:
                self.logger.debug(f"Power consumption of {self.target}: {control.power_consumed_watts} W")
                key = control.member_id or str(index)
                return {key: PowerConsumptionReading(watts=control.power_consumed_watts)}

        self.logger.debug(f"No power consumption reported by {self.target}")
        return {}

    def add_samples(
        self,
        families: Dict[str, GaugeMetricFamily],
        snapshot: Mapping[str, PowerConsumptionReading]
    ) -> None:
        for reading in snapshot.values():
            families["consumption"].add_metric([], reading.watts)
