from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from rsconnector.capabilities import with_users
from rsconnector.config import ClientConfig
from rsconnector.errors import ApiPermissionError, ConfigurationError, ResourceSpaceError
from rsconnector.infra.http.rs_client import QuerySecretsFilter, RSClientCore
from rsconnector.infra.http.signature import sign

BASE = "https://dam.example.com/api/"
SECRET = "k" * 64


def make_core(handler, **overrides) -> RSClientCore:
    config = ClientConfig(base_url=BASE, user="admin", secret=SECRET, **overrides)
    return RSClientCore(config, transport=httpx.MockTransport(handler))


def test_request_is_signed_get_with_json_accept():
    seen: list[httpx.Request] = []

    def responder(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json="2")

    core = make_core(responder)

    result = asyncio.run(core.request("get_api_version"))

    assert result == 2
    request = seen[0]
    assert request.method == "GET"
    assert request.headers["Accept"] == "application/json"
    assert str(request.url).startswith("https://dam.example.com/api/?principal=admin&function=get_api_version&sign=")
    assert request.url.params["sign"] == sign(SECRET, "principal=admin&function=get_api_version")


def test_internal_url_is_preferred_for_requests():
    hosts: list[str] = []

    def responder(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200, json=[])

    core = make_core(responder, internal_url="http://resourcespace:8080/api")

    asyncio.run(core.request("get_resource_types"))

    assert hosts == ["resourcespace"]


def test_session_key_mode_appends_authmode_after_signing():
    seen: list[httpx.Request] = []

    def responder(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=True)

    core = make_core(responder, auth_mode="sessionKey")

    asyncio.run(core.request("delete_resource", {"resource": 5}))

    url = str(seen[0].url)
    assert "&authmode=sessionkey&sign=" in url
    assert seen[0].url.params["sign"] == sign(SECRET, "principal=admin&function=delete_resource&resource=5")


def test_server_error_raises_resource_space_error():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    core = make_core(responder)

    with pytest.raises(ResourceSpaceError) as exc:
        asyncio.run(core.request("do_search", {"search": "x"}))

    assert exc.value.status_code == 500
    assert exc.value.code == "HTTP_5XX"
    assert exc.value.rs_error == "boom"
    assert exc.value.function_name == "do_search"


@pytest.mark.parametrize("status", [401, 403])
def test_forbidden_with_empty_array_body_is_not_empty_result(status):
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="[]")

    core = make_core(responder)

    with pytest.raises(ApiPermissionError) as exc:
        asyncio.run(core.request("get_users"))

    assert exc.value.status_code == status
    assert exc.value.code == "PERMISSION_DENIED"


def test_access_denied_body_raises_permission_error():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="Access denied")

    core = make_core(responder)

    with pytest.raises(ApiPermissionError):
        asyncio.run(core.request("save_user", {"ref": 1}))


def test_timeout_is_wrapped_with_cause():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    core = make_core(responder, timeout=1.0)

    with pytest.raises(ResourceSpaceError) as exc:
        asyncio.run(core.request("do_search"))

    assert exc.value.code == "TIMEOUT"
    assert exc.value.retryable is True
    assert isinstance(exc.value.__cause__, httpx.TimeoutException)


def test_network_error_is_wrapped_with_cause():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    core = make_core(responder)

    with pytest.raises(ResourceSpaceError) as exc:
        asyncio.run(core.request("do_search"))

    assert exc.value.code == "NETWORK_ERROR"
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


def test_plain_text_body_is_returned_as_string():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="https://dam.example.com/filestore/1.jpg")

    core = make_core(responder)

    assert asyncio.run(core.request("get_resource_path")) == "https://dam.example.com/filestore/1.jpg"


def test_secrets_are_redacted_in_debug_logs(caplog):
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=True)

    core = make_core(responder)
    caplog.set_level(logging.DEBUG, logger="rsconnector.client")

    asyncio.run(core.request("save_user", {"ref": 3, "data": '{"password":"hunter2pass","fullname":"Bob"}'}))
    asyncio.run(core.request("login", {"username": "bob", "password": "hunter2pass"}))

    assert "save_user" in caplog.text
    assert "hunter2pass" not in caplog.text
    assert SECRET not in caplog.text
    assert "***" in caplog.text


def test_invalid_config_fails_at_construction():
    with pytest.raises(ConfigurationError):
        RSClientCore(ClientConfig(base_url=BASE, user="admin", secret="short"))


def test_rewrite_url_uses_internal_base():
    core = make_core(lambda request: httpx.Response(200), internal_url="http://rs:8080/api/")

    assert core.rewrite_url("https://dam.example.com/filestore/a.jpg") == "http://rs:8080/filestore/a.jpg"


def test_httpx_request_log_does_not_leak_passwords(caplog, rs_server, make_client):
    server = rs_server({"login": "f" * 64, "save_user": True})
    client = make_client(server, with_users)
    caplog.set_level(logging.INFO)

    asyncio.run(client.check_credentials("bob", "hunter2pass"))
    asyncio.run(client.save_user(7, {"password": "hunter2pass", "fullname": "Bob"}))

    httpx_lines = [r.getMessage() for r in caplog.records if r.name == "httpx"]
    assert len(httpx_lines) == 2
    assert "function=login" in httpx_lines[0]
    assert "password=***" in httpx_lines[0]
    assert "hunter2pass" not in caplog.text


def test_query_secrets_filter_rewrites_plain_messages():
    message = "GET https://dam.example.com/api/?function=login&password=pw1 done"
    record = logging.LogRecord("httpx", logging.INFO, __file__, 1, message, None, None)

    assert QuerySecretsFilter().filter(record) is True
    assert "pw1" not in record.getMessage()
    assert "function=login" in record.getMessage()
