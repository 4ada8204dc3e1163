"""
Redfish Session - One serialized, self-healing connection per target.

A RedfishSession owns exactly one RedfishClient at a time. Every remote call
runs under the session lock, so concurrent collectors for the same target
take turns on the connection. When a call is rejected with HTTP 401 the
session logs out the old client, connects a new one and retries the call
once.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional, TypeVar

from redfish_exporter.services.redfish import (
    AuthError,
    ConnectError,
    ConnectionConfig,
    ReconnectError,
    RedfishClient,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class RedfishSession:
    """Serialized access to one Redfish service."""

    def __init__(
        self,
        config: ConnectionConfig,
        client_factory: Callable[[ConnectionConfig], RedfishClient] = RedfishClient.connect
    ):
        """
        Initialize a session. No connection is made until connect() or call().

        Args:
            config: Connection settings, fixed for the session's lifetime
            client_factory: Opens a logged-in client or raises ConnectError
        """
        self.config = config
        self._client_factory = client_factory
        self._client: Optional[RedfishClient] = None
        self._lock = threading.Lock()
        self.state = SessionState.DISCONNECTED

    @property
    def host(self) -> str:
        return self.config.host

    def connect(self) -> None:
        """
        Establish the connection if it is not already up.

        Raises:
            ConnectError: On transport or login failure
        """
        with self._lock:
            self._ensure_connected()

    def call(self, operation: Callable[[RedfishClient], T]) -> T:
        """
        Run one remote operation under the session lock.

        On an authentication failure the session reconnects and retries the
        operation exactly once; a second failure propagates.

        Args:
            operation: Callable performing requests on the live client

        Returns:
            Whatever the operation returns

        Raises:
            ReconnectError: If reconnecting after an AuthError fails
            RedfishError: Any error raised by the operation or the retry
        """
        with self._lock:
            client = self._ensure_connected()
            try:
                return operation(client)
            except AuthError as e:
                logger.info(f"Authentication failed for {self.host}, reconnecting: {e}")
                try:
                    client = self._reconnect()
                except ConnectError as reconnect_error:
                    raise ReconnectError(e, reconnect_error) from reconnect_error
                return operation(client)

    def reconnect(self) -> None:
        """
        Close and re-establish the connection.

        Raises:
            ConnectError: If the new connection cannot be established
        """
        with self._lock:
            self._reconnect()

    def close(self) -> None:
        """Log out of the current connection. Safe to call more than once."""
        with self._lock:
            if self._client is not None:
                self._client.logout()
                self._client = None
            self.state = SessionState.CLOSED

    def abandon(self) -> None:
        """
        Close a session that is being dropped from its pool.

        Callers already waiting on the lock then fail with a closed-session
        error instead of reconnecting a session nobody will close.
        """
        self.close()
        logger.debug(f"Abandoned session for {self.host}")

    def _ensure_connected(self) -> RedfishClient:
        if self.state == SessionState.CLOSED:
            raise TransportError(f"session for {self.host} is closed")
        if self._client is None:
            self._client = self._client_factory(self.config)
            self.state = SessionState.CONNECTED
            logger.debug(f"Connected to Redfish API at {self.host}")
        return self._client

    def _reconnect(self) -> RedfishClient:
        if self.state == SessionState.CLOSED:
            raise ConnectError(f"session for {self.host} is closed")

        self.state = SessionState.RECONNECTING
        if self._client is not None:
            self._client.logout()
            self._client = None

        try:
            self._client = self._client_factory(self.config)
        except ConnectError:
            self.state = SessionState.DISCONNECTED
            raise

        self.state = SessionState.CONNECTED
        return self._client
