"""
Power Collector - Power supply health and wattage.

Power supplies are read from the main chassis. When that fails, every other
chassis is scanned (skipping known problematic ones) for the first that
reports named power supplies.
"""

from typing import Dict, List, Mapping

from prometheus_client.core import GaugeMetricFamily

from redfish_exporter.models.readings import PsuReading
from redfish_exporter.models.redfish import PowerSupply
from redfish_exporter.services.collectors.base import HEALTH_HELP, MetricCollector, health_value
from redfish_exporter.services.locator import PRIMARY_CHASSIS_ID, ChassisLocator
from redfish_exporter.services.redfish import RedfishError
from redfish_exporter.services.session import RedfishSession


class PowerCollector(MetricCollector[PsuReading]):
    """Collects power supply metrics."""

    subsystem = "power"

    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "health": GaugeMetricFamily(
                "ipmi_psu_health",
                f"Power supply health status {HEALTH_HELP}",
                labels=["name"],
            ),
            "ac_input": GaugeMetricFamily(
                "ipmi_psu_ac_input_power_watts",
                "Power supply AC input power in watts",
                labels=["name"],
            ),
            "dc_output": GaugeMetricFamily(
                "ipmi_psu_dc_output_power_watts",
                "Power supply DC output power in watts",
                labels=["name"],
            ),
        }

    def fetch(self, session: RedfishSession) -> Dict[str, PsuReading]:
        supplies = self._power_supplies(ChassisLocator(session))

        readings: Dict[str, PsuReading] = {}
        for psu in supplies:
            if not psu.name:
                continue
            # PSUs are numbered by position among the named ones
            name = f"PSU {len(readings) + 1}"
            readings[name] = PsuReading(
                name=name,
                health=health_value(psu.status.health),
                ac_input_watts=psu.power_input_watts,
                dc_output_watts=psu.output_watts,
            )
        return readings

    def _power_supplies(self, locator: ChassisLocator) -> List[PowerSupply]:
        try:
            return locator.get_by_id(PRIMARY_CHASSIS_ID).power().power_supplies
        except RedfishError as e:
            self.logger.debug(f"Failed to get power supplies from main chassis of {self.target}, scanning all: {e}")

        chassis, supplies = locator.find_power_supplies()
        self.logger.debug(f"Using power supplies of chassis {chassis.id} for {self.target}")
        return supplies

    def add_samples(self, families: Dict[str, GaugeMetricFamily], snapshot: Mapping[str, PsuReading]) -> None:
        for reading in snapshot.values():
            families["health"].add_metric([reading.name], reading.health)
            families["ac_input"].add_metric([reading.name], reading.ac_input_watts)
            families["dc_output"].add_metric([reading.name], reading.dc_output_watts)
