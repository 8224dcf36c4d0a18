"""
=============================================================================
ACCESS LOG
=============================================================================

One line per completed request/response cycle, on the "tinyserve.access"
logger:

    2026-10-17 12:00:00 [INFO] tinyserve.access: GET /api/status - 200 - 0.41ms
                                                 ─┬─ ─────┬───── ─┬─ ───┬──
                                                  │       │       │     │
                                            method  raw target  status  time

With verbose mode on, two more lines follow each request:

    tinyserve.access:   Headers: {"host": "localhost:8080", ...}
    tinyserve.access:   Body: {"test":"data"}          (first 200 chars)

The access logger is namespaced separately from the server's own loggers
so it can be silenced or redirected on its own:

    logging.getLogger("tinyserve.access").setLevel(logging.WARNING)

=============================================================================
"""

from dataclasses import dataclass
import json
import logging

from .http.request import HTTPRequest
from .http.response import HTTPResponse

logger = logging.getLogger("tinyserve.access")

# Verbose mode logs at most this many characters of a request body
BODY_EXCERPT_LENGTH = 200


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    Fields:
        method:      Method token as received
        target:      Raw request target, including any query string
        status:      Response status code
        duration_ms: Time from start of parsing to response ready
        client_ip:   Peer address, "" when unknown
    """

    method: str
    target: str
    status: int
    duration_ms: float
    client_ip: str = ""

    def to_dict(self) -> dict:
        """Convert to a dictionary for JSON serialization."""
        return {
            "method": self.method,
            "target": self.target,
            "status": self.status,
            "duration_ms": round(self.duration_ms, 2),
            "client_ip": self.client_ip,
        }

    def to_text(self) -> str:
        """Format as "<METHOD> <target> - <status> - <ms>ms"."""
        return (
            f"{self.method} {self.target} - {self.status} - "
            f"{self.duration_ms:.2f}ms"
        )


class AccessLogger:
    """
    Writes access log entries.

    Args:
        verbose: Also log request headers and a body excerpt.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def log(
        self,
        request: HTTPRequest,
        response: HTTPResponse,
        duration: float,
    ) -> RequestLog:
        """
        Log a completed cycle.

        Args:
            request: The parsed request.
            response: The response about to be written.
            duration: Processing time in seconds.

        Returns:
            The entry that was logged.
        """
        entry = RequestLog(
            method=request.method,
            target=request.target,
            status=int(response.status),
            duration_ms=duration * 1000,
            client_ip=request.client_address[0],
        )
        logger.info(entry.to_text())

        if self.verbose:
            logger.info(f"  Headers: {json.dumps(request.headers)}")
            if request.body:
                excerpt = request.body.decode("utf-8", errors="replace")
                logger.info(f"  Body: {excerpt[:BODY_EXCERPT_LENGTH]}")

        return entry
