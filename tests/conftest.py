"""
Pytest configuration and fixtures for all tests

The Redfish HTTP API is mocked with `responses`. FakeBMC registers the
resources of one BMC host; the `bmc` fixture gives a host with a complete,
healthy layout that individual tests override as needed.
"""
import copy

import pytest
import responses
from fastapi.testclient import TestClient

from redfish_exporter.config import Settings
from redfish_exporter.main import create_app
from redfish_exporter.services.orchestrator import SessionPool, TargetOrchestrator
from redfish_exporter.services.redfish import ConnectionConfig
from redfish_exporter.services.session import RedfishSession

SESSIONS_PATH = "/redfish/v1/SessionService/Sessions"

SERVICE_ROOT = {
    "@odata.id": "/redfish/v1/",
    "Systems": {"@odata.id": "/redfish/v1/Systems"},
    "Chassis": {"@odata.id": "/redfish/v1/Chassis"},
    "Links": {"Sessions": {"@odata.id": SESSIONS_PATH}},
}

SYSTEM = {
    "Id": "1",
    "PowerState": "On",
    "MemorySummary": {"TotalSystemMemoryGiB": 256, "Status": {"Health": "OK"}},
    "Processors": {"@odata.id": "/redfish/v1/Systems/1/Processors"},
}

PROCESSORS = {
    "/redfish/v1/Systems/1/Processors/CPU1": {
        "Id": "CPU1",
        "Model": "Intel Xeon Gold 6338",
        "TotalCores": 32,
        "Status": {"Health": "OK"},
    },
    "/redfish/v1/Systems/1/Processors/CPU2": {
        "Id": "CPU2",
        "Model": "Intel Xeon Gold 6338",
        "TotalCores": 32,
        "Status": {"Health": "Warning"},
    },
}

THERMAL = {
    "Temperatures": [
        {"Name": "CPU1 Temp", "ReadingCelsius": 45, "Status": {"Health": "OK"}},
        {"Name": "Inlet Temp", "ReadingCelsius": 22.5, "Status": {"Health": "Warning"}},
        {"Name": "", "ReadingCelsius": 99},
    ],
    "Fans": [
        {"Name": "Fan1", "Reading": 5400, "Status": {"Health": "OK", "State": "Enabled"}},
        {"FanName": "Fan2", "Reading": 0, "Status": {"State": "Absent"}},
        {"Name": "", "Reading": 1000},
    ],
}

POWER = {
    "PowerControl": [
        {"MemberId": "0", "PowerConsumedWatts": 0},
        {"MemberId": "1", "PowerConsumedWatts": 310},
    ],
    "PowerSupplies": [
        {"Name": "PS1", "PowerInputWatts": 180, "PowerOutputWatts": 165, "Status": {"Health": "OK"}},
        {"Name": "", "PowerInputWatts": 1},
        {"Name": "PS2", "PowerInputWatts": 175, "LastPowerOutputWatts": 160, "Status": {"Health": "Critical"}},
    ],
    "Voltages": [
        {"Name": "12V", "ReadingVolts": 12.0625, "Status": {"Health": "OK"}},
        {"Name": "3.3V", "ReadingVolts": 3.3125, "Status": {}},
    ],
}


class FakeBMC:
    """Registers the Redfish resources of one host on a RequestsMock."""

    def __init__(self, rsps: responses.RequestsMock, host: str = "bmc-a", token: str = "token-a"):
        self.rsps = rsps
        self.host = host
        self.base = f"https://{host}"
        self.token = token

    def url(self, path: str) -> str:
        return f"{self.base}{path}"

    def add(self, path: str, json=None, status: int = 200, method: str = responses.GET, **kwargs):
        self.rsps.add(method, self.url(path), json=json, status=status, **kwargs)

    def replace(self, path: str, json=None, status: int = 200, method: str = responses.GET, **kwargs):
        self.rsps.replace(method, self.url(path), json=json, status=status, **kwargs)

    def add_service_root(self, payload=None):
        self.add("/redfish/v1/", payload or SERVICE_ROOT)

    def add_login(self):
        self.add(
            SESSIONS_PATH,
            json={"Id": "1"},
            status=201,
            method=responses.POST,
            headers={"X-Auth-Token": self.token, "Location": f"{SESSIONS_PATH}/1"},
        )
        self.add(f"{SESSIONS_PATH}/1", status=204, method=responses.DELETE)

    def add_collection(self, path: str, members: dict):
        """Register a collection and each member, keyed by member path."""
        self.add(path, {"Members": [{"@odata.id": member} for member in members]})
        for member, payload in members.items():
            self.add(member, payload)

    def chassis_payload(self, chassis_id: str, thermal: bool = True, power: bool = True) -> dict:
        payload = {"Id": chassis_id, "Name": f"Chassis {chassis_id}"}
        if thermal:
            payload["Thermal"] = {"@odata.id": f"/redfish/v1/Chassis/{chassis_id}/Thermal"}
        if power:
            payload["Power"] = {"@odata.id": f"/redfish/v1/Chassis/{chassis_id}/Power"}
        return payload

    def add_chassis_list(self, *chassis_ids: str):
        self.add_collection(
            "/redfish/v1/Chassis",
            {f"/redfish/v1/Chassis/{cid}": self.chassis_payload(cid) for cid in chassis_ids},
        )

    def add_thermal(self, chassis_id: str = "1", payload=None, status: int = 200):
        self.add(f"/redfish/v1/Chassis/{chassis_id}/Thermal", payload if payload is not None else THERMAL, status)

    def add_power(self, chassis_id: str = "1", payload=None, status: int = 200):
        self.add(f"/redfish/v1/Chassis/{chassis_id}/Power", payload if payload is not None else POWER, status)

    def calls_to(self, path: str, method: str = "GET") -> int:
        url = self.url(path)
        return sum(1 for call in self.rsps.calls if call.request.method == method and call.request.url == url)

    def with_standard_layout(self) -> "FakeBMC":
        """Service root, login, one system with two CPUs and a main chassis."""
        self.add_service_root()
        self.add_login()
        self.add_collection("/redfish/v1/Systems", {"/redfish/v1/Systems/1": copy.deepcopy(SYSTEM)})
        self.add_collection("/redfish/v1/Systems/1/Processors", copy.deepcopy(PROCESSORS))
        self.add_chassis_list("1")
        self.add_thermal("1")
        self.add_power("1")
        return self


@pytest.fixture
def redfish_mock():
    """Active responses mock for the Redfish API"""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def bmc_factory(redfish_mock):
    """Create fake BMC hosts on the shared mock"""
    def factory(host: str = "bmc-a", token: str = "token-a") -> FakeBMC:
        return FakeBMC(redfish_mock, host, token)
    return factory


@pytest.fixture
def bmc(bmc_factory):
    """A healthy BMC at https://bmc-a"""
    return bmc_factory().with_standard_layout()


@pytest.fixture
def connection_config(bmc):
    return ConnectionConfig(host=bmc.base, username="admin", password="secret")


@pytest.fixture
def session(connection_config):
    """Session against the fake BMC, logged out after the test"""
    session = RedfishSession(connection_config)
    yield session
    session.close()


@pytest.fixture
def test_settings():
    """Override settings for testing"""
    return Settings(
        REDFISH_USERNAME="admin",
        REDFISH_PASSWORD="secret",
        REDFISH_INSECURE=True,
        METRICS_PATH="/metrics",
    )


@pytest.fixture
def pool(test_settings, redfish_mock):
    pool = SessionPool.from_settings(test_settings)
    yield pool
    pool.close_all()


@pytest.fixture
def orchestrator(pool):
    return TargetOrchestrator(pool)


@pytest.fixture
def client(test_settings, orchestrator):
    """Create test client for an app wired to the test orchestrator"""
    app = create_app(settings=test_settings, orchestrator=orchestrator)
    return TestClient(app)


@pytest.fixture
def thermal_payload():
    """Copy of the standard Thermal resource, safe to modify"""
    return copy.deepcopy(THERMAL)


@pytest.fixture
def power_payload():
    """Copy of the standard Power resource, safe to modify"""
    return copy.deepcopy(POWER)
