"""Tests for the synchronous Exa client.

Requests go through a real ``httpx.Client`` backed by ``httpx.MockTransport``
so URL building, headers, bodies and error classification are all exercised
without touching the network.
"""

from __future__ import annotations

import json
import socketserver
import threading
import time
from typing import Callable, List

import httpx
import pytest

from exa_sdk import ExaClient
from exa_sdk.exceptions import (
    ErrorPayload,
    ExaAPIError,
    ExaConfigurationError,
    ExaTimeoutError,
)

API_KEY = "test-api-key"
BASE_URL = "https://api.exa.test"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> ExaClient:
    return ExaClient(API_KEY, base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture()
def seen() -> List[httpx.Request]:
    return []


@pytest.fixture()
def ok_client(seen: List[httpx.Request]):
    """Client whose server records the request and echoes ``{"ok": true}``."""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    yield client
    client.close()


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:

    @pytest.mark.parametrize("api_key", ["", None])
    def test_missing_api_key_raises(self, api_key):
        with pytest.raises(ExaConfigurationError, match="EXA_API_KEY is required"):
            ExaClient(api_key)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ExaClient("")

    def test_default_headers(self):
        with ExaClient(API_KEY) as client:
            assert client.headers == {
                "accept": "application/json",
                "content-type": "application/json",
                "x-api-key": API_KEY,
            }

    def test_default_timeout_is_thirty_seconds(self):
        with ExaClient(API_KEY) as client:
            assert client.timeout == 30.0

    def test_timeout_is_read_only(self):
        with ExaClient(API_KEY) as client:
            with pytest.raises(AttributeError):
                client.timeout = 5.0

    def test_trailing_slash_stripped(self):
        with ExaClient(API_KEY, base_url="https://api.exa.test/") as client:
            assert client.base_url == "https://api.exa.test"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:

    def test_get_builds_url_and_headers(self, ok_client: ExaClient, seen):
        result = ok_client.get("/test", {"param": "value"})

        assert result == {"ok": True}
        request = seen[0]
        assert request.method == "GET"
        assert str(request.url) == f"{BASE_URL}/test?param=value"
        assert request.headers["accept"] == "application/json"
        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-api-key"] == API_KEY
        assert request.content == b""

    def test_get_skips_none_but_keeps_falsy_values(self, ok_client: ExaClient, seen):
        ok_client.get(
            "/search",
            {"missing": None, "zero": 0, "empty": "", "flag": False, "text": "x"},
        )

        params = seen[0].url.params
        assert "missing" not in params
        assert dict(params) == {"zero": "0", "empty": "", "flag": "false", "text": "x"}

    def test_get_without_params_has_no_query(self, ok_client: ExaClient, seen):
        ok_client.get("/test", {"only": None})
        assert str(seen[0].url) == f"{BASE_URL}/test"

    @pytest.mark.parametrize("verb", ["post", "put", "patch"])
    def test_body_verbs_send_json(self, ok_client: ExaClient, seen, verb):
        payload = {"name": "New Item", "count": 0}

        result = getattr(ok_client, verb)("/test", payload)

        assert result == {"ok": True}
        assert seen[0].method == verb.upper()
        assert str(seen[0].url) == f"{BASE_URL}/test"
        assert json.loads(seen[0].content) == payload
        assert seen[0].headers["x-api-key"] == API_KEY

    def test_post_without_body_sends_nothing(self, ok_client: ExaClient, seen):
        ok_client.post("/test")
        assert seen[0].content == b""

    def test_delete(self, ok_client: ExaClient, seen):
        assert ok_client.delete("/test/1") == {"ok": True}
        assert seen[0].method == "DELETE"
        assert seen[0].content == b""

    def test_header_overrides_win(self, ok_client: ExaClient, seen):
        ok_client.get("/test", headers={"accept": "text/plain", "x-trace": "abc"})

        assert seen[0].headers["accept"] == "text/plain"
        assert seen[0].headers["x-trace"] == "abc"
        assert seen[0].headers["x-api-key"] == API_KEY

    def test_overrides_do_not_leak_between_calls(self, ok_client: ExaClient, seen):
        ok_client.get("/one", headers={"x-api-key": "other"})
        ok_client.get("/two")

        assert seen[0].headers["x-api-key"] == "other"
        assert seen[1].headers["x-api-key"] == API_KEY

    def test_response_body_returned_unchanged(self):
        body = {"results": [{"id": "123", "score": 0.5}], "next": None}
        client = _client(lambda request: httpx.Response(200, json=body))
        assert client.post("/search", {"query": "q"}) == body

    def test_no_content_returns_none(self):
        client = _client(lambda request: httpx.Response(204))
        assert client.delete("/test/1") is None


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:

    def test_json_error_body(self):
        client = _client(
            lambda request: httpx.Response(
                400, json={"message": "Bad Request", "details": "Invalid parameter"}
            )
        )

        with pytest.raises(ExaAPIError) as exc_info:
            client.get("/test")

        err = exc_info.value
        assert err.status_code == 400
        assert err.response is not None
        assert err.response.status_code == 400
        assert err.payload == ErrorPayload(message="Bad Request", details="Invalid parameter")
        assert str(err) == "HTTP error! status: 400"

    def test_non_json_error_falls_back_to_reason_phrase(self):
        client = _client(lambda request: httpx.Response(502, content=b"<html>oops</html>"))

        with pytest.raises(ExaAPIError) as exc_info:
            client.get("/test")

        assert exc_info.value.status_code == 502
        assert exc_info.value.payload.message == "Bad Gateway"
        assert exc_info.value.payload.details is None

    def test_non_json_error_without_reason_phrase(self):
        client = _client(lambda request: httpx.Response(599, content=b"nope"))

        with pytest.raises(ExaAPIError) as exc_info:
            client.get("/test")

        assert exc_info.value.payload.message == "HTTP error! status: 599"

    def test_server_timeout_is_an_api_error(self):
        client = _client(lambda request: httpx.Response(408, json={"message": "slow"}))

        with pytest.raises(ExaAPIError) as exc_info:
            client.get("/test")

        assert not isinstance(exc_info.value, ExaTimeoutError)
        assert exc_info.value.status_code == 408
        assert exc_info.value.payload.message == "slow"

    def test_client_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("socket read timed out", request=request)

        client = _client(handler)

        with pytest.raises(ExaTimeoutError) as exc_info:
            client.get("/test")

        assert exc_info.value.status_code == 408
        assert str(exc_info.value) == "Request timeout"
        assert exc_info.value.response is None
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    def test_connect_error_propagates_unmodified(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(httpx.ConnectError, match="connection refused"):
            client.get("/test")

    def test_invalid_json_on_success_is_generic(self):
        client = _client(lambda request: httpx.Response(200, content=b"not json"))

        with pytest.raises(json.JSONDecodeError):
            client.get("/test")


# ---------------------------------------------------------------------------
# Wall-clock timeout against a real socket
# ---------------------------------------------------------------------------

_SLOW_RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: application/json\r\n"
    b"Content-Length: 11\r\n"
    b"\r\n"
    b'{"ok":true}'
)


class _TrickleHandler(socketserver.BaseRequestHandler):
    """Answers every request correctly, six bytes every 0.1s."""

    def handle(self) -> None:
        self.request.recv(65536)
        for start in range(0, len(_SLOW_RESPONSE), 6):
            try:
                self.request.sendall(_SLOW_RESPONSE[start:start + 6])
            except OSError:
                return
            time.sleep(0.1)


@pytest.fixture()
def trickle_url():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _TrickleHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


class TestWallClockTimeout:

    def test_trickled_response_is_aborted(self, trickle_url):
        with ExaClient(API_KEY, base_url=trickle_url, timeout=0.3) as client:
            started = time.monotonic()
            with pytest.raises(ExaTimeoutError) as exc_info:
                client.get("/x")
            elapsed = time.monotonic() - started

        assert exc_info.value.status_code == 408
        assert str(exc_info.value) == "Request timeout"
        assert elapsed < 1.0

    def test_every_call_gets_its_own_deadline(self, trickle_url):
        with ExaClient(API_KEY, base_url=trickle_url, timeout=0.3) as client:
            for _ in range(2):
                with pytest.raises(ExaTimeoutError):
                    client.get("/x")

    def test_trickled_response_within_timeout_succeeds(self, trickle_url):
        with ExaClient(API_KEY, base_url=trickle_url, timeout=5.0) as client:
            assert client.get("/x") == {"ok": True}

    def test_slow_handler_past_deadline_times_out(self):
        def handler(request: httpx.Request) -> httpx.Response:
            time.sleep(0.3)
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(ExaTimeoutError):
            _client(handler, timeout=0.05).get("/slow")

    def test_fast_call_is_not_cancelled_later(self):
        client = _client(lambda request: httpx.Response(200, json={"n": 1}), timeout=0.05)

        assert client.get("/fast") == {"n": 1}
        time.sleep(0.1)
        assert client.get("/fast") == {"n": 1}


# ---------------------------------------------------------------------------
# Query values
# ---------------------------------------------------------------------------


def test_list_query_values_are_comma_joined(ok_client: ExaClient, seen):
    ok_client.get("/contents", {"ids": ["a", "b"], "flags": (True, None, 0)})

    assert dict(seen[0].url.params) == {"ids": "a,b", "flags": "true,,0"}
