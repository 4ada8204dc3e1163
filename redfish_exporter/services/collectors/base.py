"""
Base collector interface for Redfish metric collection.

Every scrape builds fresh collector instances bound to one target. The
orchestrator calls update() on each of them in parallel against the target's
session, then reads the results back with collect_snapshot().

Each collector is responsible for:
1. Describing its metric families (describe_schema)
2. Fetching readings from the BMC (fetch)
3. Turning its last snapshot into metric samples (add_samples)
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Dict, Generic, List, Mapping, Optional, TypeVar

from prometheus_client.core import GaugeMetricFamily, Metric

from redfish_exporter.services.redfish import RedfishError
from redfish_exporter.services.session import RedfishSession

logger = logging.getLogger(__name__)

NAMESPACE = "ipmi"

HEALTH_OK = 1.0
HEALTH_DEGRADED = 0.0
HEALTH_NOT_AVAILABLE = 2.0
HEALTH_HELP = "(1 = OK, 0 = Warning/Critical, 2 = Not Available)"

ReadingT = TypeVar("ReadingT")


def health_value(status: Optional[str]) -> float:
    """
    Map a Redfish health string onto the exported tri-state value.

    "OK" is 1, any other non-empty status is 0, and a missing status is 2.
    """
    if not status:
        return HEALTH_NOT_AVAILABLE
    if status == "OK":
        return HEALTH_OK
    return HEALTH_DEGRADED


class ScrapeTimer:
    """Duration of the last update of one collector, exported as a gauge."""

    HELP = "Duration of the last scrape in seconds"

    def __init__(self, subsystem: str):
        self.subsystem = subsystem
        self.metric_name = f"{NAMESPACE}_{subsystem}_scrape_duration_seconds"
        self.duration = 0.0
        self.last_collect: Optional[float] = None
        self._lock = threading.Lock()

    def record(self, start: float, target: str) -> float:
        """Record the time elapsed since start (a time.perf_counter() value)."""
        duration = time.perf_counter() - start
        with self._lock:
            self.duration = duration
            self.last_collect = time.time()

        logger.debug(f"Scrape completed: subsystem={self.subsystem} target={target} duration={duration:.3f}s")
        return duration

    def describe(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.metric_name, self.HELP)

    def collect(self) -> GaugeMetricFamily:
        with self._lock:
            duration = self.duration
        return GaugeMetricFamily(self.metric_name, self.HELP, value=duration)


class MetricCollector(ABC, Generic[ReadingT]):
    """
    Abstract base class for Redfish metric collectors.

    The snapshot is an immutable mapping of component id to reading. update()
    swaps in an empty snapshot before fetching and a complete new one after,
    so readers only ever see a whole snapshot and a failed fetch never leaves
    stale readings behind.
    """

    # Subsystem name used in the scrape duration metric (override in subclasses)
    subsystem: str = "unknown"

    def __init__(self):
        self.target = ""
        self.timer = ScrapeTimer(self.subsystem)
        self.logger = logging.getLogger(type(self).__module__)
        self._lock = threading.Lock()
        self._snapshot: Mapping[str, ReadingT] = MappingProxyType({})

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def snapshot(self) -> Mapping[str, ReadingT]:
        """The last complete snapshot."""
        with self._lock:
            return self._snapshot

    def bind_target(self, target: str) -> None:
        """Record which target the next update queries (used for logging)."""
        self.target = target

    def update(self, session: RedfishSession) -> Mapping[str, ReadingT]:
        """
        Refresh the snapshot from the target.

        Redfish errors are logged at debug level and leave an empty snapshot;
        they are never raised to the caller.

        Args:
            session: Session of the bound target

        Returns:
            The newly published snapshot
        """
        start = time.perf_counter()
        self._publish({})
        try:
            readings = self.fetch(session)
        except RedfishError as e:
            self.logger.debug(f"{self.name} update for {self.target} failed: {e}")
            readings = {}
        finally:
            self.timer.record(start, self.target)
        return self._publish(readings)

    def describe_schema(self) -> List[Metric]:
        """Metric families this collector exposes, without samples."""
        return [*self.new_families().values(), self.timer.describe()]

    def collect_snapshot(self) -> List[Metric]:
        """Metric families populated from the last snapshot, plus the scrape duration."""
        families = self.new_families()
        self.add_samples(families, self.snapshot)
        return [family for family in families.values() if family.samples] + [self.timer.collect()]

    def _publish(self, readings: Dict[str, ReadingT]) -> Mapping[str, ReadingT]:
        snapshot = MappingProxyType(dict(readings))
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    @abstractmethod
    def new_families(self) -> Dict[str, GaugeMetricFamily]:
        """
        Create empty metric families for this collector.

        Returns:
            Families keyed by a short local name
        """
        pass

    @abstractmethod
    def fetch(self, session: RedfishSession) -> Dict[str, ReadingT]:
        """
        Read the current values from the target.

        Returns:
            Readings keyed by component id

        Raises:
            RedfishError: If the readings cannot be obtained
        """
        pass

    @abstractmethod
    def add_samples(self, families: Dict[str, GaugeMetricFamily], snapshot: Mapping[str, ReadingT]) -> None:
        """Add one sample per reading to the families from new_families()."""
        pass

    def __repr__(self) -> str:
        return f"{self.name}(target={self.target!r}, readings={len(self.snapshot)})"
