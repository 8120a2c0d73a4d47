# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: JSON-RPC-2.0

import json
import os
import sys
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from mokichat.errors import TransportError  # noqa: E402
from mokichat.provider.http import HttpProvider, RpcMethods  # noqa: E402


class _Relay(BaseHTTPRequestHandler):
    seen = []
    reply = b""
    status = 200

    def do_POST(self):
        body = self.rfile.read(int(self.headers.get("Content-Length", 0)))
        type(self).seen.append((json.loads(body), self.headers))
        self.send_response(type(self).status)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(type(self).reply)

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    _Relay.seen = []
    _Relay.status = 200
    srv = HTTPServer(("127.0.0.1", 0), _Relay)
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{srv.server_address[1]}", _Relay
    srv.shutdown()
    srv.server_close()


def test_rpc_method_names():
    assert [m.value for m in RpcMethods] == [
        "eth_getBlock",
        "moki_getIdentity",
        "moki_getIdentityByUsername",
        "mokiService_sendMessage",
        "mokiService_getChat",
    ]


def test_request_envelope_and_result(server):
    url, relay = server
    relay.reply = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"data": [], "end": True}}).encode()
    p = HttpProvider(url, timeout=5)
    out = p.request(RpcMethods.MOKI_SERVICE_GET_CHAT, ["0xabc", {"after": "1"}], authorization_header="0xdead")

    assert out == {"data": [], "end": True}
    body, headers = relay.seen[0]
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "mokiService_getChat"
    assert body["params"] == ["0xabc", {"after": "1"}]
    assert headers["Authorization"] == "0xdead"
    assert headers["Content-Type"] == "application/json"


def test_request_without_params_or_auth(server):
    url, relay = server
    relay.reply = b'{"jsonrpc":"2.0","id":1,"result":null}'
    assert HttpProvider(url, timeout=5).request("eth_getBlock") is None
    body, headers = relay.seen[0]
    assert body["params"] == []
    assert "Authorization" not in headers


def test_rpc_error_raises(server):
    url, relay = server
    relay.reply = b'{"jsonrpc":"2.0","id":1,"error":{"code":-32000,"message":"unknown user"}}'
    with pytest.raises(TransportError) as ei:
        HttpProvider(url, timeout=5).request(RpcMethods.MOKI_GET_IDENTITY_BY_USERNAME, ["@x"])
    assert ei.value.code == -32000
    assert ei.value.method == "moki_getIdentityByUsername"
    assert "unknown user" in str(ei.value)


def test_rpc_error_with_http_status(server):
    url, relay = server
    relay.status = 500
    relay.reply = b'{"jsonrpc":"2.0","id":1,"error":{"code":-32603,"message":"internal"}}'
    with pytest.raises(TransportError) as ei:
        HttpProvider(url, timeout=5).request("eth_getBlock")
    assert ei.value.code == -32603


def test_non_json_body(server):
    url, relay = server
    relay.reply = b"<html>bad gateway</html>"
    with pytest.raises(TransportError):
        HttpProvider(url, timeout=5).request("eth_getBlock")


def test_connection_refused():
    with pytest.raises(TransportError):
        HttpProvider("http://127.0.0.1:9", timeout=2).request("eth_getBlock")


def test_rpc_http_error_without_error_member(server):
    url, relay = server
    relay.status = 500
    relay.reply = b'{"detail": "internal server error"}'
    with pytest.raises(TransportError) as ei:
        HttpProvider(url, timeout=5).request("eth_getBlock")
    assert ei.value.code == 500
    assert "HTTP 500" in str(ei.value)


def test_http_error_with_non_json_body(server):
    url, relay = server
    relay.status = 502
    relay.reply = b"<html>bad gateway</html>"
    with pytest.raises(TransportError) as ei:
        HttpProvider(url, timeout=5).request("eth_getBlock")
    assert ei.value.code == 502
