"""
Unit tests for the Redfish client

Tests the RedfishClient implementation including:
- Login through the session service and basic auth fallback
- Error mapping (timeouts, HTTP errors, 401, malformed bodies)
- Collection fetching with partial results
- Logout
"""

import pytest
import responses
from requests.exceptions import ConnectionError, Timeout

from redfish_exporter.models import Thermal
from redfish_exporter.services.redfish import (
    AuthError,
    ConnectError,
    ConnectionConfig,
    MalformedResponseError,
    PartialResultError,
    RedfishClient,
    TransportError,
    parse_resource,
)


@pytest.fixture
def client(connection_config):
    client = RedfishClient.connect(connection_config)
    yield client
    client.logout()


class TestRedfishClientInitialization:
    """Test client construction"""

    def test_client_init_strips_trailing_slash(self):
        """Test that trailing slash is stripped from the host"""
        client = RedfishClient(ConnectionConfig(host="https://bmc-a/", username="u", password="p"))
        assert client.base_url == "https://bmc-a"
        assert client.verify is False
        assert client.timeout is None

    def test_client_init_secure_with_timeout(self):
        client = RedfishClient(ConnectionConfig(
            host="https://bmc-a", username="u", password="p", insecure=False, request_timeout=5.0
        ))
        assert client.verify is True
        assert client.timeout == 5.0

    def test_url_building(self):
        client = RedfishClient(ConnectionConfig(host="https://bmc-a", username="u", password="p"))
        assert client._url("/redfish/v1/Chassis") == "https://bmc-a/redfish/v1/Chassis"
        assert client._url("redfish/v1/Chassis") == "https://bmc-a/redfish/v1/Chassis"
        assert client._url("https://other/redfish/v1/") == "https://other/redfish/v1/"


class TestRedfishLogin:
    """Test session login"""

    def test_connect_creates_session(self, bmc, client):
        """Test login posts credentials and stores the token"""
        assert client.http.headers["X-Auth-Token"] == "token-a"
        assert client.session_uri == "/redfish/v1/SessionService/Sessions/1"

        login = [call for call in bmc.rsps.calls if call.request.method == "POST"][0]
        assert b'"UserName": "admin"' in login.request.body
        assert b'"Password": "secret"' in login.request.body

    def test_service_root_links_discovered(self, client):
        assert client.service_root.systems_path == "/redfish/v1/Systems"
        assert client.service_root.chassis_path == "/redfish/v1/Chassis"

    def test_connect_without_session_service_uses_basic_auth(self, bmc_factory):
        """Test fallback to basic auth when no Sessions link is advertised"""
        bmc = bmc_factory("bmc-basic")
        bmc.add_service_root({"Systems": {"@odata.id": "/redfish/v1/Systems"}})

        client = RedfishClient.connect(ConnectionConfig(host=bmc.base, username="admin", password="secret"))

        assert client.http.auth == ("admin", "secret")
        assert client.session_uri is None
        assert "X-Auth-Token" not in client.http.headers

    def test_connect_login_rejected(self, bmc_factory):
        """Test that rejected credentials fail with ConnectError"""
        bmc = bmc_factory("bmc-denied")
        bmc.add_service_root()
        bmc.add("/redfish/v1/SessionService/Sessions", method=responses.POST, status=401)

        with pytest.raises(ConnectError) as exc_info:
            RedfishClient.connect(ConnectionConfig(host=bmc.base, username="admin", password="wrong"))

        assert "failed to connect" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, AuthError)

    def test_connect_without_token(self, bmc_factory):
        bmc = bmc_factory("bmc-notoken")
        bmc.add_service_root()
        bmc.add("/redfish/v1/SessionService/Sessions", json={}, method=responses.POST, status=201)

        with pytest.raises(ConnectError) as exc_info:
            RedfishClient.connect(ConnectionConfig(host=bmc.base, username="admin", password="secret"))

        assert "X-Auth-Token" in str(exc_info.value)

    def test_connect_without_token_deletes_created_session(self, bmc_factory):
        """Test that a session created without a token is still deleted"""
        bmc = bmc_factory("bmc-notoken")
        bmc.add_service_root()
        bmc.add(
            "/redfish/v1/SessionService/Sessions",
            json={},
            method=responses.POST,
            status=201,
            headers={"Location": "/redfish/v1/SessionService/Sessions/7"},
        )
        bmc.add("/redfish/v1/SessionService/Sessions/7", status=204, method=responses.DELETE)

        with pytest.raises(ConnectError):
            RedfishClient.connect(ConnectionConfig(host=bmc.base, username="admin", password="secret"))

        assert bmc.calls_to("/redfish/v1/SessionService/Sessions/7", "DELETE") == 1

    def test_connect_unreachable(self, bmc_factory):
        bmc = bmc_factory("bmc-down")
        bmc.add("/redfish/v1/", body=ConnectionError("Connection refused"))

        with pytest.raises(ConnectError):
            RedfishClient.connect(ConnectionConfig(host=bmc.base, username="admin", password="secret"))


class TestRedfishGet:
    """Test resource reads and error mapping"""

    def test_get_sends_token(self, bmc, client):
        payload = client.get("/redfish/v1/Chassis/1/Thermal")

        assert payload["Temperatures"][0]["Name"] == "CPU1 Temp"
        assert bmc.rsps.calls[-1].request.headers["X-Auth-Token"] == "token-a"

    def test_get_timeout(self, bmc, client):
        """Test timeout handling"""
        bmc.replace("/redfish/v1/Chassis/1/Thermal", body=Timeout("Connection timed out"))

        with pytest.raises(TransportError) as exc_info:
            client.get("/redfish/v1/Chassis/1/Thermal")

        assert "timed out" in str(exc_info.value).lower()

    def test_get_http_error(self, bmc, client):
        """Test HTTP error handling"""
        bmc.replace("/redfish/v1/Chassis/1/Thermal", json={"error": "boom"}, status=500)

        with pytest.raises(TransportError) as exc_info:
            client.get("/redfish/v1/Chassis/1/Thermal")

        assert "HTTP error" in str(exc_info.value)
        assert not isinstance(exc_info.value, AuthError)

    def test_get_unauthorized(self, bmc, client):
        """Test that 401 maps to AuthError"""
        bmc.replace("/redfish/v1/Chassis/1/Thermal", status=401)

        with pytest.raises(AuthError) as exc_info:
            client.get("/redfish/v1/Chassis/1/Thermal")

        assert "401" in str(exc_info.value)

    def test_get_invalid_json(self, bmc, client):
        bmc.replace("/redfish/v1/Chassis/1/Thermal", body="<html>not json</html>")

        with pytest.raises(MalformedResponseError):
            client.get("/redfish/v1/Chassis/1/Thermal")

    def test_get_non_object_json(self, bmc, client):
        bmc.replace("/redfish/v1/Chassis/1/Thermal", json=[1, 2, 3])

        with pytest.raises(MalformedResponseError):
            client.get("/redfish/v1/Chassis/1/Thermal")

    def test_parse_resource_mismatch(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_resource(Thermal, {"Temperatures": "not-a-list"}, "/redfish/v1/Chassis/1/Thermal")

        assert "/redfish/v1/Chassis/1/Thermal" in str(exc_info.value)

    def test_parse_resource_tolerates_nulls(self):
        thermal = parse_resource(Thermal, {"Temperatures": None, "Fans": [{"Name": "Fan1", "Reading": None, "Status": None}]})

        assert thermal.temperatures == []
        assert thermal.fans[0].reading == 0.0
        assert thermal.fans[0].status.health == ""


class TestRedfishCollection:
    """Test collection fetching"""

    def test_get_collection(self, client):
        items = client.get_collection("/redfish/v1/Systems/1/Processors")

        assert [item["Id"] for item in items] == ["CPU1", "CPU2"]

    def test_get_collection_partial(self, bmc, client):
        """Test that failed members are reported with the ones that succeeded"""
        bmc.replace("/redfish/v1/Systems/1/Processors/CPU2", status=500)

        with pytest.raises(PartialResultError) as exc_info:
            client.get_collection("/redfish/v1/Systems/1/Processors")

        assert "failed to retrieve some items" in str(exc_info.value)
        assert [item["Id"] for item in exc_info.value.items] == ["CPU1"]
        assert len(exc_info.value.failures) == 1

    def test_get_collection_auth_error_propagates(self, bmc, client):
        bmc.replace("/redfish/v1/Systems/1/Processors/CPU2", status=401)

        with pytest.raises(AuthError):
            client.get_collection("/redfish/v1/Systems/1/Processors")

    def test_get_collection_member_without_link(self, bmc, client):
        bmc.replace("/redfish/v1/Chassis", json={"Members": [{"@odata.id": "/redfish/v1/Chassis/1"}, {}]})

        with pytest.raises(PartialResultError) as exc_info:
            client.get_collection("/redfish/v1/Chassis")

        assert len(exc_info.value.items) == 1

    def test_get_empty_collection(self, bmc, client):
        bmc.replace("/redfish/v1/Chassis", json={"Members": []})

        assert client.get_collection("/redfish/v1/Chassis") == []


class TestRedfishLogout:
    """Test session logout"""

    def test_logout_deletes_session_once(self, bmc, client):
        client.logout()
        client.logout()

        assert bmc.calls_to("/redfish/v1/SessionService/Sessions/1", "DELETE") == 1

    def test_logout_failure_is_swallowed(self, bmc, client):
        bmc.replace("/redfish/v1/SessionService/Sessions/1", method=responses.DELETE, status=500)

        client.logout()

        assert bmc.calls_to("/redfish/v1/SessionService/Sessions/1", "DELETE") == 1
