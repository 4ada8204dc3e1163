from .orchestrator import SessionPool, TargetOrchestrator
from .redfish import ConnectionConfig, RedfishClient, RedfishError
from .session import RedfishSession

__all__ = [
    "ConnectionConfig",
    "RedfishClient",
    "RedfishError",
    "RedfishSession",
    "SessionPool",
    "TargetOrchestrator",
]
