from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from common.diagnostics import LogSeverity
from common.errors import QueryError, ResultCode
from connectors import connections_manager
from connectors.memory_directory_connector import MemoryDirectoryConnector
from connectors.rest_directory_connector import RestDirectoryConnector, RestDirectorySession
from directory.models import SearchScope
from mock_directory import daemon
from provider.config import ConfigHolder, ProviderConfig
from provider.engine import PiblingMirrorEngine

SAMPLE = Path(__file__).resolve().parents[2] / "mock_directory" / "sample_directory.yaml"


@pytest.fixture
def connector():
    """Connector talking to the mock directory daemon in-process."""
    daemon.use_directory(MemoryDirectoryConnector.from_fixture(SAMPLE))
    session = RestDirectorySession("http://testserver", client=TestClient(daemon.app))
    return RestDirectoryConnector(session)


def _connector_for(handler) -> RestDirectoryConnector:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RestDirectoryConnector(RestDirectorySession("http://directory.test", client=client))


def test_search(connector):
    matches = connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=targetClass)", ["phoneNumber"])
    assert [m.dn for m in matches] == [
        "ou=People,dc=example,dc=com",
        "ou=Sales,dc=example,dc=com",
        "ou=Archive,dc=example,dc=com",
    ]
    assert matches[0].get_values("phoneNumber") == ["555-1111"]


def test_search_missing_base(connector):
    with pytest.raises(QueryError) as excinfo:
        connector.search("ou=Nowhere,dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.NO_SUCH_OBJECT
    assert "does not exist" in excinfo.value.message


def test_search_bad_filter(connector):
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(&(a=b)(c=d))", [])
    assert excinfo.value.result_code is ResultCode.FILTER_ERROR


def test_status_and_info(connector):
    assert connector.session.is_alive
    status = connector.status
    assert status.status == "ok"
    assert status.naming_contexts == ["dc=example,dc=com"]
    assert connector.info.type == "rest"
    assert connector.info.hostURL == "http://testserver"


def test_timeout_maps_to_result_code():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(QueryError) as excinfo:
        _connector_for(handler).search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.TIMEOUT


def test_connection_failure_maps_to_server_down():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    connector = _connector_for(handler)
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.SERVER_DOWN
    assert not connector.session.is_alive


def test_http_status_without_detail():
    connector = _connector_for(lambda request: httpx.Response(403, text="forbidden"))
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.INSUFFICIENT_ACCESS_RIGHTS


def test_malformed_response():
    connector = _connector_for(lambda request: httpx.Response(200, json=[{"dn": "garbage"}]))
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.PROTOCOL_ERROR


def test_response_not_a_list():
    connector = _connector_for(lambda request: httpx.Response(200, json={"dn": "dc=example,dc=com"}))
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.PROTOCOL_ERROR


def test_error_body_not_an_object():
    connector = _connector_for(lambda request: httpx.Response(500, json=["boom"]))
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.OTHER
    assert "HTTP 500" in excinfo.value.message


def test_undecodable_response():
    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=iter([b"not gzip at all"]))

    with pytest.raises(QueryError) as excinfo:
        _connector_for(handler).search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.PROTOCOL_ERROR


def test_too_many_redirects():
    def handler(request):
        return httpx.Response(302, headers={"Location": "http://directory.test/search"})

    client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True, max_redirects=2)
    connector = RestDirectoryConnector(RestDirectorySession("http://directory.test", client=client))
    with pytest.raises(QueryError) as excinfo:
        connector.search("dc=example,dc=com", SearchScope.ONE, "(objectclass=*)", [])
    assert excinfo.value.result_code is ResultCode.PROTOCOL_ERROR


@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(500, json=["boom"]),
    lambda request: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=iter([b"not gzip at all"])),
    lambda request: httpx.Response(200, json="entries"),
], ids=["error-body-list", "undecodable", "not-a-list"])
def test_engine_survives_bad_responses(handler):
    messages = []

    class Diagnostics:
        def log_message(self, severity, message):
            messages.append((severity, message))

        def debug_enabled(self):
            return False

        def debug_info(self, message):
            messages.append((LogSeverity.DEBUG, message))

    connector = _connector_for(handler)
    holder = ConfigHolder(ProviderConfig(source_attribute="phoneNumber", source_objectclass="targetClass"))
    engine = PiblingMirrorEngine(holder, Diagnostics())
    assert engine.generate("ou=People,dc=example,dc=com", "phoneNumber", connector) is None
    assert [severity for severity, _ in messages] == [LogSeverity.MILD_ERROR]


def test_search_request_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json=[])

    assert _connector_for(handler).search("dc=example,dc=com", SearchScope.ONE, "(objectclass=x)", ["mail"]) == []
    assert seen["path"] == "/search"
    assert b'"scope":"one"' in seen["body"].replace(b" ", b"")
    assert b'"attributes":["mail"]' in seen["body"].replace(b" ", b"")


def test_sessions_are_reused(monkeypatch):
    created = []

    class FakeSession:
        def __init__(self, host_URL, user=None, password=None, timeout=5.0):
            self.base_URL = host_URL
            self.user = user
            self.closed = False
            created.append(self)

        def connect(self):
            pass

        def disconnect(self):
            self.closed = True

    monkeypatch.setattr(connections_manager, "RestDirectorySession", FakeSession)
    monkeypatch.setattr(connections_manager, "_active_sessions", {})
    first = connections_manager.get_session("http://dir.test/", "admin", "secret")
    second = connections_manager.get_session("http://dir.test", "admin", "other")
    third = connections_manager.get_session("http://dir.test", "reader", "secret")
    assert first is second
    assert third is not first
    assert len(created) == 2
    connections_manager.close_sessions()
    assert all(session.closed for session in created)


def test_unsupported_directory_type(monkeypatch):
    monkeypatch.setattr(connections_manager, "_active_sessions", {})
    with pytest.raises(ValueError):
        connections_manager.get_session("http://dir.test", directory_type="ldap")
