"""
End-to-end tests against a live server on a local port.
"""

import json
import socket
import time

import pytest

from tinyserve.handlers.api import register_default_routes
from tinyserve.middleware import CORSMiddleware

from conftest import LiveServer, send_raw, split_response


def read_until_closed(sock: socket.socket) -> bytes:
    """Read until the server closes the connection (a reset counts as closed)."""
    chunks = []
    try:
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    except ConnectionResetError:
        pass
    return b"".join(chunks)


class TestStaticFiles:
    """Static files over a real socket."""

    def test_get_file_round_trip(self, live_server, public_root):
        live_server.start()
        status, headers, body = live_server.request("GET", "/a.txt")

        assert status == 200
        assert headers["content-type"] == "text/plain"
        assert body == (public_root / "a.txt").read_bytes()
        assert headers["content-length"] == str(len(body))
        assert headers["connection"] == "close"
        assert headers["server"].startswith("TinyServe/")

    def test_index(self, live_server):
        live_server.start()
        status, headers, body = live_server.request("GET", "/")

        assert status == 200
        assert headers["content-type"] == "text/html"
        assert body == b"<h1>Home</h1>"

    def test_not_found(self, live_server):
        live_server.start()
        status, headers, body = live_server.request("GET", "/missing.html")

        assert status == 404
        assert headers["content-type"] == "text/html"
        assert b"404 Not Found" in body

    def test_traversal(self, live_server):
        live_server.start()
        status, _, _ = live_server.request("GET", "/../../etc/passwd")

        assert status == 404

    def test_binary_file(self, live_server):
        live_server.start()
        status, headers, body = live_server.request("GET", "/blob.bin")

        assert status == 200
        assert headers["content-type"] == "application/octet-stream"
        assert body == bytes(range(256))


class TestRoutes:
    """Routes and middleware over a real socket."""

    def test_status(self, live_server):
        register_default_routes(live_server.server)
        live_server.start()

        status, headers, body = live_server.request("GET", "/api/status")
        payload = json.loads(body)

        assert status == 200
        assert headers["content-type"] == "application/json"
        assert payload["status"] == "ok"
        assert payload["uptime"] >= 0

    def test_echo(self, live_server):
        register_default_routes(live_server.server)
        live_server.start()

        status, _, body = live_server.request(
            "POST", "/api/echo",
            headers={"Content-Type": "application/json"},
            body=b'{"test":"data"}',
        )
        payload = json.loads(body)

        assert status == 200
        assert payload["json"] == {"test": "data"}
        assert payload["body"] == '{"test":"data"}'

    def test_query_beats_form(self, live_server):
        register_default_routes(live_server.server)
        live_server.start()

        _, _, body = live_server.request(
            "POST", "/api/echo?name=Query",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body=b"name=Body",
        )

        assert json.loads(body)["params"] == {"name": "Query"}

    def test_invalid_json(self, live_server):
        register_default_routes(live_server.server)
        live_server.start()

        status, _, body = live_server.request(
            "POST", "/api/echo",
            headers={"Content-Type": "application/json"},
            body=b"{oops",
        )

        assert status == 400
        assert b"Invalid JSON" in body

    def test_cors_preflight(self, live_server):
        live_server.server.add_middleware(CORSMiddleware())
        live_server.start()

        status, headers, body = live_server.request("OPTIONS", "/api/status")

        assert status == 204
        assert body == b""
        assert headers["access-control-allow-origin"] == "*"

    def test_handler_error_is_500(self, live_server):
        @live_server.server.get("/boom")
        def boom(request, response):
            raise KeyError("missing")

        live_server.start()
        status, _, _ = live_server.request("GET", "/boom")

        assert status == 500

        # The server keeps serving
        status, _, _ = live_server.request("GET", "/a.txt")
        assert status == 200

    def test_str_body_is_sent(self, live_server):
        @live_server.server.get("/s")
        def plain(request, response):
            response.body = "hello"

        live_server.start()
        status, headers, body = live_server.request("GET", "/s")

        assert status == 200
        assert body == b"hello"
        assert headers["content-length"] == "5"

    def test_method_case_is_consistent(self, live_server):
        live_server.server.register_route("GET", "/r", lambda req, res: res.text("routed"))
        live_server.start()

        assert live_server.request("get", "/r")[0] == 404
        assert live_server.request("get", "/a.txt")[0] == 404
        assert live_server.request("GET", "/r")[0] == 200

    def test_huge_content_length_is_400(self, live_server):
        live_server.start()

        raw = send_raw(
            live_server.address,
            b"POST /x HTTP/1.1\r\nContent-Length: 99999999999999\r\n\r\n",
        )
        status, _, body = split_response(raw)

        assert status == 400
        assert b"exceeds" in body

    def test_oversized_headers_are_400(self, make_server):
        live = LiveServer(make_server(max_request_size=1024))
        live.start()
        try:
            status, _, _ = live.request("GET", "/a.txt", headers={"X-Big": "a" * 2048})
            assert status == 400

            status, _, _ = live.request("GET", "/a.txt")
            assert status == 200
        finally:
            live.stop()


class TestConnections:
    """Connection-level behaviour."""

    def test_port_zero_gets_real_port(self, live_server):
        live_server.start()
        assert live_server.server.address[1] != 0

    def test_registration_frozen_while_running(self, live_server):
        live_server.start()

        with pytest.raises(RuntimeError):
            live_server.server.register_route("GET", "/late", lambda req, res: None)

    def test_malformed_request_gets_no_reply(self, live_server):
        live_server.start()
        assert send_raw(live_server.address, b"NONSENSE\r\n\r\n") == b""

    def test_client_that_sends_nothing(self, live_server):
        live_server.start()

        with socket.create_connection(live_server.address, timeout=5.0) as sock:
            sock.shutdown(socket.SHUT_WR)
            assert sock.recv(1024) == b""

        status, _, _ = live_server.request("GET", "/a.txt")
        assert status == 200

    def test_sequential_requests(self, live_server):
        live_server.start()

        for _ in range(10):
            status, _, _ = live_server.request("GET", "/a.txt")
            assert status == 200

    def test_capacity_503(self, make_server):
        live = LiveServer(make_server(max_connections=1))
        live.start()
        try:
            # Holds the only slot without sending a request
            idle = socket.create_connection(live.address, timeout=5.0)
            time.sleep(0.3)

            raw = send_raw(live.address, b"GET /a.txt HTTP/1.1\r\n\r\n")
            status, _, body = split_response(raw)

            assert status == 503
            assert b"capacity" in body
            idle.close()
        finally:
            live.stop()

    def test_stalled_client_does_not_block_others(self, make_server):
        live = LiveServer(make_server(timeout=1.0))
        live.start()
        try:
            # Half a request line, never finished
            stalled = socket.create_connection(live.address, timeout=5.0)
            stalled.sendall(b"GET /a")
            time.sleep(0.2)

            started = time.monotonic()
            status, _, _ = live.request("GET", "/a.txt")

            assert status == 200
            assert time.monotonic() - started < 4.0
            assert read_until_closed(stalled) == b""
            stalled.close()
        finally:
            live.stop()

    def test_idle_client_is_swept(self, make_server):
        live = LiveServer(make_server(timeout=0.5))
        live.start()
        try:
            idle = socket.create_connection(live.address, timeout=5.0)
            started = time.monotonic()

            assert read_until_closed(idle) == b""
            assert time.monotonic() - started < 4.0
            idle.close()

            status, _, _ = live.request("GET", "/a.txt")
            assert status == 200
        finally:
            live.stop()

    def test_shutdown_stops_server(self, live_server):
        live_server.start()
        address = live_server.address

        live_server.stop()

        assert live_server.server.is_running is False
        with pytest.raises(OSError):
            socket.create_connection(address, timeout=1.0).close()

    def test_port_in_use_raises(self, make_server):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            server = make_server(port=port)
            with pytest.raises(OSError):
                server.run()

        assert server.is_running is False
