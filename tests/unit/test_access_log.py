"""
Unit tests for access logging.
"""

import logging

from tinyserve.access_log import BODY_EXCERPT_LENGTH, AccessLogger, RequestLog
from tinyserve.http.response import HTTPResponse

from conftest import make_request


class TestRequestLog:
    """Tests for RequestLog."""

    def test_to_text(self):
        entry = RequestLog("GET", "/a.txt?x=1", 200, 1.5, "127.0.0.1")
        assert entry.to_text() == "GET /a.txt?x=1 - 200 - 1.50ms"

    def test_to_dict(self):
        entry = RequestLog("POST", "/api/echo", 201, 12.3456, "10.0.0.2")

        assert entry.to_dict() == {
            "method": "POST",
            "target": "/api/echo",
            "status": 201,
            "duration_ms": 12.35,
            "client_ip": "10.0.0.2",
        }


class TestAccessLogger:
    """Tests for AccessLogger."""

    def test_logs_one_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="tinyserve.access"):
            entry = AccessLogger().log(make_request("GET", "/x"), HTTPResponse(status=404), 0.002)

        assert entry.status == 404
        assert entry.duration_ms == 2.0
        assert entry.client_ip == "127.0.0.1"
        assert [r.getMessage() for r in caplog.records] == ["GET /x - 404 - 2.00ms"]

    def test_verbose_logs_headers_and_body(self, caplog):
        request = make_request("POST", "/api/echo", body=b"x" * 500)

        with caplog.at_level(logging.INFO, logger="tinyserve.access"):
            AccessLogger(verbose=True).log(request, HTTPResponse(), 0.001)

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 3
        assert messages[1].startswith("  Headers: {")
        assert '"host": "localhost"' in messages[1]
        assert messages[2] == "  Body: " + "x" * BODY_EXCERPT_LENGTH

    def test_verbose_without_body(self, caplog):
        with caplog.at_level(logging.INFO, logger="tinyserve.access"):
            AccessLogger(verbose=True).log(make_request("GET", "/"), HTTPResponse(), 0.001)

        assert len(caplog.records) == 2
