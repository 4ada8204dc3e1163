import requests
import urllib3
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from redfish_exporter.models.redfish import ServiceRoot

logger = logging.getLogger(__name__)

SERVICE_ROOT_PATH = "/redfish/v1/"

ModelT = TypeVar("ModelT", bound=BaseModel)


# ============================================================================
# Errors
# ============================================================================

class RedfishError(Exception):
    """Base exception for Redfish client errors."""
    pass


class TransportError(RedfishError):
    """The service was unreachable, timed out or answered with an error status."""
    pass


class ConnectError(TransportError):
    """The connection handshake or login failed."""
    pass


class AuthError(TransportError):
    """Credentials were rejected or the session expired (HTTP 401)."""
    pass


class MalformedResponseError(TransportError):
    """The response body was not the JSON resource we expected."""
    pass


class ReconnectError(TransportError):
    """Reconnecting after an authentication failure did not succeed."""

    def __init__(self, original: RedfishError, reconnect_error: RedfishError):
        super().__init__(f"failed to reconnect: {reconnect_error} (original error: {original})")
        self.original = original
        self.reconnect_error = reconnect_error


class PartialResultError(RedfishError):
    """Some members of a collection could not be retrieved."""

    def __init__(self, items: List[Dict[str, Any]], failures: List[RedfishError]):
        super().__init__(
            f"failed to retrieve some items: {len(failures)} of {len(items) + len(failures)} members"
        )
        self.items = items
        self.failures = failures


class ResourceNotFound(RedfishError):
    """A requested resource is absent from an otherwise successful response."""
    pass


# ============================================================================
# Connection
# ============================================================================

@dataclass(frozen=True)
class ConnectionConfig:
    """Where and how to reach one Redfish service."""
    host: str
    username: str
    password: str
    insecure: bool = True
    request_timeout: Optional[float] = None


def parse_resource(model: Type[ModelT], payload: Dict[str, Any], path: str = "") -> ModelT:
    """Validate a payload against a resource model, raising MalformedResponseError on mismatch."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected {model.__name__} payload at {path or '<unknown>'}: {e}") from e


class RedfishClient:
    """
    A single live connection to a Redfish service.

    The client is not thread-safe; callers serialize access through a
    RedfishSession.
    """

    def __init__(self, config: ConnectionConfig):
        self.base_url = config.host.rstrip('/')
        self.timeout = config.request_timeout
        self.verify = not config.insecure
        self._credentials = (config.username, config.password)

        self.http = requests.Session()
        self.http.headers.update({"Accept": "application/json", "OData-Version": "4.0"})

        self.service_root = ServiceRoot()
        self.session_uri: Optional[str] = None
        self._logged_out = False

        if config.insecure:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @classmethod
    def connect(cls, config: ConnectionConfig) -> "RedfishClient":
        """
        Open a connection and log in.

        Raises:
            ConnectError: If the service root cannot be read or login fails
        """
        client = cls(config)
        try:
            client.login()
        except TransportError as e:
            client.logout()
            raise ConnectError(f"failed to connect to Redfish API at {client.base_url}: {e}") from e
        return client

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if path.startswith("/"):
            return f"{self.base_url}{path}"
        return f"{self.base_url}/{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        try:
            response = self.http.request(method, url, timeout=self.timeout, verify=self.verify, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request to {url} timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"An error occurred while querying {url}: {e}") from e

        if response.status_code == 401:
            raise AuthError(f"401 unauthorized: {method} {url}")
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise TransportError(f"HTTP error occurred: {e}") from e
        return response

    def login(self) -> None:
        """Read the service root and open a Redfish session (basic auth if sessions are unsupported)."""
        self.service_root = parse_resource(ServiceRoot, self.get(SERVICE_ROOT_PATH), SERVICE_ROOT_PATH)

        sessions_path = self.service_root.sessions_path
        if sessions_path is None:
            logger.debug(f"{self.base_url} advertises no session service, using basic auth")
            self.http.auth = self._credentials
            return

        username, password = self._credentials
        response = self._request("POST", sessions_path, json={"UserName": username, "Password": password})
        self.session_uri = response.headers.get("Location")
        token = response.headers.get("X-Auth-Token")
        if not token:
            raise AuthError("session created but no X-Auth-Token returned")

        self.http.headers["X-Auth-Token"] = token

    def logout(self) -> None:
        """Delete the Redfish session. Runs at most once; failures are only logged."""
        if self._logged_out:
            return
        self._logged_out = True

        try:
            if self.session_uri:
                self._request("DELETE", self.session_uri)
        except TransportError as e:
            logger.debug(f"Logout from {self.base_url} failed: {e}")
        finally:
            self.http.close()

    def get(self, path: str) -> Dict[str, Any]:
        """GET a resource and return its JSON body."""
        response = self._request("GET", path)
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {response.url}: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected a JSON object from {response.url}")
        return payload

    def get_collection(self, path: str) -> List[Dict[str, Any]]:
        """
        GET a collection and each of its members.

        Raises:
            AuthError: If any request is rejected, so the caller can re-authenticate
            PartialResultError: If some members failed; carries the ones that succeeded
        """
        collection = self.get(path)
        items: List[Dict[str, Any]] = []
        failures: List[RedfishError] = []

        for member in collection.get("Members") or []:
            member_path = member.get("@odata.id") if isinstance(member, dict) else None
            if not member_path:
                failures.append(MalformedResponseError(f"Collection member without @odata.id in {path}"))
                continue
            try:
                items.append(self.get(member_path))
            except AuthError:
                raise
            except TransportError as e:
                failures.append(e)

        if failures:
            raise PartialResultError(items, failures)
        return items
