"""
Data models for the exporter.

This package contains:
- Redfish resource models parsed from BMC responses
- Frozen reading models held in collector snapshots
"""

from .redfish import (
    ServiceRoot,
    Status,
    Link,
    ComputerSystem,
    MemorySummary,
    Processor,
    Chassis,
    Thermal,
    Temperature,
    Fan,
    Power,
    PowerControl,
    PowerSupply,
    Voltage
)
from .readings import (
    CpuReading,
    SensorReading,
    PsuReading,
    FanReading,
    PowerConsumptionReading
)

__all__ = [
    # Redfish resources
    "ServiceRoot",
    "Status",
    "Link",
    "ComputerSystem",
    "MemorySummary",
    "Processor",
    "Chassis",
    "Thermal",
    "Temperature",
    "Fan",
    "Power",
    "PowerControl",
    "PowerSupply",
    "Voltage",

    # Snapshot readings
    "CpuReading",
    "SensorReading",
    "PsuReading",
    "FanReading",
    "PowerConsumptionReading"
]
