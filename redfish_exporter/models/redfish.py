"""
Redfish Resource Models - Tolerant views of the BMC JSON payloads.

Management controllers implement the Redfish schema unevenly, so every field
here is optional, unknown properties are ignored and explicit nulls are
accepted. Only the properties read by the collectors are modelled.
"""

from typing import Annotated, List, Optional, TypeVar
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

T = TypeVar("T")

# null-tolerant field types
Text = Annotated[str, BeforeValidator(lambda v: "" if v is None else v)]
Number = Annotated[float, BeforeValidator(lambda v: 0.0 if v is None else v)]
Count = Annotated[int, BeforeValidator(lambda v: 0 if v is None else v)]
Members = Annotated[List[T], BeforeValidator(lambda v: [] if v is None else v)]
Nested = BeforeValidator(lambda v: {} if v is None else v)


class RedfishModel(BaseModel):
    """Base model for Redfish resources."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Link(RedfishModel):
    """Reference to another resource."""
    odata_id: Text = Field("", alias="@odata.id")


class Status(RedfishModel):
    """Common Redfish status object."""
    health: Text = Field("", alias="Health")
    state: Text = Field("", alias="State")


StatusField = Annotated[Status, Nested]


# ============================================================================
# Service Root
# ============================================================================

class ServiceRootLinks(RedfishModel):
    sessions: Optional[Link] = Field(None, alias="Sessions")


class ServiceRoot(RedfishModel):
    """The /redfish/v1/ document, used for link discovery."""
    systems: Optional[Link] = Field(None, alias="Systems")
    chassis: Optional[Link] = Field(None, alias="Chassis")
    links: Annotated[ServiceRootLinks, Nested] = Field(default_factory=ServiceRootLinks, alias="Links")

    @property
    def systems_path(self) -> str:
        return (self.systems and self.systems.odata_id) or "/redfish/v1/Systems"

    @property
    def chassis_path(self) -> str:
        return (self.chassis and self.chassis.odata_id) or "/redfish/v1/Chassis"

    @property
    def sessions_path(self) -> Optional[str]:
        """Session collection link, or None when the service only offers basic auth."""
        if self.links.sessions and self.links.sessions.odata_id:
            return self.links.sessions.odata_id
        return None


# ============================================================================
# Systems
# ============================================================================

class MemorySummary(RedfishModel):
    total_system_memory_gib: Number = Field(0.0, alias="TotalSystemMemoryGiB")
    status: StatusField = Field(default_factory=Status, alias="Status")


class ComputerSystem(RedfishModel):
    id: Text = Field("", alias="Id")
    power_state: Text = Field("", alias="PowerState")
    memory_summary: Annotated[MemorySummary, Nested] = Field(default_factory=MemorySummary, alias="MemorySummary")
    processors: Optional[Link] = Field(None, alias="Processors")


class Processor(RedfishModel):
    id: Text = Field("", alias="Id")
    model: Text = Field("", alias="Model")
    total_cores: Count = Field(0, alias="TotalCores")
    status: StatusField = Field(default_factory=Status, alias="Status")


# ============================================================================
# Chassis, Thermal and Power
# ============================================================================

class Chassis(RedfishModel):
    id: Text = Field("", alias="Id")
    name: Text = Field("", alias="Name")
    thermal: Optional[Link] = Field(None, alias="Thermal")
    power: Optional[Link] = Field(None, alias="Power")


class Temperature(RedfishModel):
    name: Text = Field("", alias="Name")
    reading_celsius: Number = Field(0.0, alias="ReadingCelsius")
    status: StatusField = Field(default_factory=Status, alias="Status")


class Fan(RedfishModel):
    name: Text = Field("", alias="Name")
    reading: Number = Field(0.0, alias="Reading")
    status: StatusField = Field(default_factory=Status, alias="Status")

    @model_validator(mode="before")
    @classmethod
    def _legacy_fan_name(cls, data):
        # Thermal schemas before 1.1 name fans with FanName
        if isinstance(data, dict) and not data.get("Name") and data.get("FanName"):
            data = {**data, "Name": data["FanName"]}
        return data


class Thermal(RedfishModel):
    temperatures: Members[Temperature] = Field(default_factory=list, alias="Temperatures")
    fans: Members[Fan] = Field(default_factory=list, alias="Fans")


class Voltage(RedfishModel):
    name: Text = Field("", alias="Name")
    reading_volts: Number = Field(0.0, alias="ReadingVolts")
    status: StatusField = Field(default_factory=Status, alias="Status")


class PowerSupply(RedfishModel):
    member_id: Text = Field("", alias="MemberId")
    name: Text = Field("", alias="Name")
    power_input_watts: Number = Field(0.0, alias="PowerInputWatts")
    power_output_watts: Optional[float] = Field(None, alias="PowerOutputWatts")
    last_power_output_watts: Optional[float] = Field(None, alias="LastPowerOutputWatts")
    status: StatusField = Field(default_factory=Status, alias="Status")

    @property
    def output_watts(self) -> float:
        """DC output, falling back to the last reported value on older firmware."""
        if self.power_output_watts is not None:
            return self.power_output_watts
        return self.last_power_output_watts or 0.0


class PowerControl(RedfishModel):
    member_id: Text = Field("", alias="MemberId")
    power_consumed_watts: Number = Field(0.0, alias="PowerConsumedWatts")


class Power(RedfishModel):
    power_control: Members[PowerControl] = Field(default_factory=list, alias="PowerControl")
    power_supplies: Members[PowerSupply] = Field(default_factory=list, alias="PowerSupplies")
    voltages: Members[Voltage] = Field(default_factory=list, alias="Voltages")
