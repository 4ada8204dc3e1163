"""
System Collector - Power state, processor and memory health.

Reads the first computer system the BMC lists. Processor readings are keyed
by processor id; the system-wide power state and memory summary ride on the
first processor's reading.
"""

from dataclasses import replace
from typing import Dict, Mapping

from prometheus_client.core import GaugeMetricFamily

from redfish_exporter.models.readings import CpuReading
from redfish_exporter.models.redfish import ComputerSystem, Processor
from redfish_exporter.services.collectors.base import HEALTH_HELP, MetricCollector, health_value
from redfish_exporter.services.locator import list_members, parse_members
from redfish_exporter.services.redfish import ResourceNotFound
from redfish_exporter.services.session import RedfishSession


class SystemCollector(MetricCollector[CpuReading]):
    """Collects system-level metrics."""

    subsystem = "system"

    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        return {
            "power_state": GaugeMetricFamily(
                "ipmi_system_power_state",
                "System power state (1 = On, 0 = Off)",
            ),
            "cpu_health": GaugeMetricFamily(
                "ipmi_cpu_health",
                f"CPU health status {HEALTH_HELP}",
                labels=["name", "model", "cores"],
            ),
            "memory_health": GaugeMetricFamily(
                "ipmi_memory_health",
                f"Overall memory subsystem health status {HEALTH_HELP}",
                labels=["total_gib"],
            ),
        }

    def fetch(self, session: RedfishSession) -> Dict[str, CpuReading]:
        systems_path = session.call(lambda client: client.service_root.systems_path)
        systems = parse_members(ComputerSystem, list_members(session, systems_path), systems_path)
        if not systems:
            self.logger.debug(f"No systems reported by {self.target}")
            return {}

        system = systems[0]
        if not system.processors or not system.processors.odata_id:
            raise ResourceNotFound(f"system {system.id} has no Processors collection")

        processors_path = system.processors.odata_id
        processors = parse_members(Processor, list_members(session, processors_path), processors_path)

        memory = system.memory_summary
        readings: Dict[str, CpuReading] = {}
        for cpu in processors:
            if cpu.id in readings:
                continue
            reading = CpuReading(
                name=cpu.id,
                model=cpu.model,
                cores=cpu.total_cores,
                health=health_value(cpu.status.health),
            )
            if not readings:
                reading = replace(
                    reading,
                    power_state=1.0 if system.power_state == "On" else 0.0,
                    memory_health=health_value(memory.status.health),
                    total_memory_gib=f"{memory.total_system_memory_gib:.0f}",
                )
            readings[cpu.id] = reading

        return readings

    def add_samples(self, families: Dict[str, GaugeMetricFamily], snapshot: Mapping[str, CpuReading]) -> None:
        for reading in snapshot.values():
            # Power state and memory health are system-wide, report them once
            if reading.carries_system:
                families["power_state"].add_metric([], reading.power_state)
                families["memory_health"].add_metric([reading.total_memory_gib], reading.memory_health)

            families["cpu_health"].add_metric(
                [reading.name, reading.model, str(reading.cores)],
                reading.health,
            )
