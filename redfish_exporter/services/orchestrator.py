"""
Target Orchestrator - Multi-target scrape coordination.

This module keeps one RedfishSession per scraped hostname and runs the
collectors for a target in parallel on every scrape.

Flow of one scrape:
1. Look up (or create and connect) the target's session
2. Build a fresh instance of every collector, bound to the target
3. Update all collectors in parallel and wait for all of them
4. Read every collector's snapshot in a fixed order
"""

import logging
import threading
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Type

from prometheus_client.core import Metric

from redfish_exporter.config import Settings
from redfish_exporter.services.collectors import ALL_COLLECTORS, MetricCollector
from redfish_exporter.services.redfish import ConnectionConfig, RedfishError
from redfish_exporter.services.session import RedfishSession
from redfish_exporter.services.taskgroup import run_task_group

logger = logging.getLogger(__name__)


class SessionPool:
    """
    Registry of sessions keyed by hostname.

    Sessions are created on first use and kept until close_all(). Every
    target shares the configured credentials.
    """

    def __init__(
        self,
        username: str,
        password: str,
        insecure: bool = True,
        request_timeout: Optional[float] = None,
        session_factory: Callable[[ConnectionConfig], RedfishSession] = RedfishSession
    ):
        self.username = username
        self.password = password
        self.insecure = insecure
        self.request_timeout = request_timeout
        self._session_factory = session_factory
        self._sessions: Dict[str, RedfishSession] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "SessionPool":
        return cls(
            username=settings.REDFISH_USERNAME,
            password=settings.REDFISH_PASSWORD,
            insecure=settings.REDFISH_INSECURE,
            request_timeout=settings.REDFISH_REQUEST_TIMEOUT,
            **kwargs
        )

    def connection_config(self, hostname: str) -> ConnectionConfig:
        return ConnectionConfig(
            host=f"https://{hostname}",
            username=self.username,
            password=self.password,
            insecure=self.insecure,
            request_timeout=self.request_timeout,
        )

    def get_or_create(self, hostname: str) -> RedfishSession:
        """
        Get the connected session for a hostname, creating it on first use.

        The pool lock only covers the lookup; connecting happens under the
        session's own lock. A session whose connect fails is removed and
        abandoned; callers already holding it fail and the next scrape
        starts over.

        Args:
            hostname: Target host, without scheme

        Returns:
            The connected session

        Raises:
            RedfishError: If the session could not connect
        """
        with self._lock:
            session = self._sessions.get(hostname)
            if session is None:
                session = self._session_factory(self.connection_config(hostname))
                self._sessions[hostname] = session
                logger.info(f"Created new session for target {hostname}")

        try:
            session.connect()
        except RedfishError:
            with self._lock:
                if self._sessions.get(hostname) is session:
                    del self._sessions[hostname]
            session.abandon()
            raise

        return session

    def get(self, hostname: str) -> Optional[RedfishSession]:
        with self._lock:
            return self._sessions.get(hostname)

    def hostnames(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def close_all(self) -> None:
        """Log out of every session and empty the pool."""
        with self._lock:
            sessions = list(self._sessions.items())
            self._sessions.clear()

        for hostname, session in sessions:
            session.close()
            logger.debug(f"Closed session for target {hostname}")

        if sessions:
            logger.info(f"Closed {len(sessions)} Redfish sessions")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class TargetOrchestrator:
    """Scrapes any number of targets through one shared session pool."""

    def __init__(
        self,
        pool: SessionPool,
        collector_factories: Sequence[Type[MetricCollector]] = ALL_COLLECTORS
    ):
        self.pool = pool
        self.collector_factories = tuple(collector_factories)

    def get_or_create_session(self, target: str) -> RedfishSession:
        return self.pool.get_or_create(target)

    def describe(self) -> List[Metric]:
        """Static metric descriptors of every collector."""
        metrics: List[Metric] = []
        for factory in self.collector_factories:
            metrics.extend(factory().describe_schema())
        return metrics

    def scrape(self, target: str) -> List[Metric]:
        """
        Collect every metric family for one target.

        Connection and collector failures are logged and never raised; a
        target that cannot be reached yields no metrics.

        Args:
            target: Hostname of the BMC

        Returns:
            Metric families of all collectors, in collector order
        """
        try:
            session = self.get_or_create_session(target)
        except RedfishError as e:
            logger.error(f"Error connecting to target {target}: {e}")
            return []

        collectors = [factory() for factory in self.collector_factories]
        for collector in collectors:
            collector.bind_target(target)

        outcomes = run_task_group([
            (collector.name, partial(collector.update, session))
            for collector in collectors
        ])
        for outcome in outcomes:
            if not outcome.ok:
                logger.error(f"Error updating {outcome.name} for target {target}: {outcome.error}")

        metrics: List[Metric] = []
        for collector in collectors:
            metrics.extend(collector.collect_snapshot())
        return metrics

    def close(self) -> None:
        """Close every session. Called once at shutdown."""
        self.pool.close_all()
