"""
Reading Models - Per-component values held in collector snapshots.

Readings are frozen so a published snapshot can be shared with readers
without copying.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CpuReading:
    """One processor. The first processor also carries the system-wide values."""
    name: str
    model: str
    cores: int
    health: float
    power_state: Optional[float] = None
    memory_health: Optional[float] = None
    total_memory_gib: Optional[str] = None

    @property
    def carries_system(self) -> bool:
        return self.power_state is not None


@dataclass(frozen=True)
class SensorReading:
    name: str
    kind: str  # "temperature" or "voltage"
    value: float
    health: float


@dataclass(frozen=True)
class PsuReading:
    name: str
    health: float
    ac_input_watts: float
    dc_output_watts: float


@dataclass(frozen=True)
class FanReading:
    name: str
    health: float
    state: float
    speed_rpm: float


@dataclass(frozen=True)
class PowerConsumptionReading:
    watts: float
