"""
Sensor Collector - Temperatures and voltages of the main chassis.

Temperatures come from the Thermal view, voltages from the Power view. A
failed Power read keeps the temperature readings.
"""

from typing import Dict, Mapping

from prometheus_client.core import GaugeMetricFamily

from redfish_exporter.models.readings import SensorReading
from redfish_exporter.services.collectors.base import HEALTH_HELP, MetricCollector, health_value
from redfish_exporter.services.locator import PRIMARY_CHASSIS_ID, ChassisLocator
from redfish_exporter.services.redfish import RedfishError
from redfish_exporter.services.session import RedfishSession
from redfish_exporter.utils.numbers import round_half_away

TEMPERATURE = "temperature"
VOLTAGE = "voltage"


class SensorCollector(MetricCollector[SensorReading]):
    """Collects temperature and voltage sensor readings."""

    subsystem = "sensor"

    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "temperature": GaugeMetricFamily(
                "ipmi_temperature_celsius",
                "Temperature reading in degree Celsius",
                labels=["name"],
            ),
            "temperature_health": GaugeMetricFamily(
                "ipmi_temperature_health",
                f"Temperature sensor health status {HEALTH_HELP}",
                labels=["name"],
            ),
            "voltage": GaugeMetricFamily(
                "ipmi_voltage_volts",
                "Voltage reading in Volts",
                labels=["name"],
            ),
            "voltage_health": GaugeMetricFamily(
                "ipmi_voltage_health",
                f"Voltage sensor health status {HEALTH_HELP}",
                labels=["name"],
            ),
        }

    def fetch(self, session: RedfishSession) -> Dict[str, SensorReading]:
        chassis = ChassisLocator(session).get_by_id(PRIMARY_CHASSIS_ID)
        thermal = chassis.thermal()

        readings: Dict[str, SensorReading] = {}
        for temp in thermal.temperatures:
            if not temp.name:
                continue
            readings[f"{TEMPERATURE}:{temp.name}"] = SensorReading(
                name=temp.name,
                kind=TEMPERATURE,
                value=temp.reading_celsius,
                health=health_value(temp.status.health),
            )

        try:
            power = chassis.power()
        except RedfishError as e:
            self.logger.debug(
                f"Failed to get voltages for {self.target}, keeping {len(readings)} temperature readings: {e}"
            )
            return readings

        for volt in power.voltages:
            if not volt.name:
                continue
            readings[f"{VOLTAGE}:{volt.name}"] = SensorReading(
                name=volt.name,
                kind=VOLTAGE,
                value=round_half_away(volt.reading_volts, 3),
                health=health_value(volt.status.health),
            )

        return readings

    def add_samples(self, families: Dict[str, GaugeMetricFamily], snapshot: Mapping[str, SensorReading]) -> None:
        for reading in snapshot.values():
            families[reading.kind].add_metric([reading.name], reading.value)
            families[f"{reading.kind}_health"].add_metric([reading.name], reading.health)
