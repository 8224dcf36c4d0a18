"""
=============================================================================
HTTP RESPONSE
=============================================================================

The mutable response object that middleware and handlers fill in, and the
writer that turns it into bytes for the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n                       ◄── status line         │
    │    ────┬─── ─┬─ ─┬─                                                 │
    │     Version Code Phrase (status_codes.reason_phrase)                 │
    │                                                                      │
    │    Server: TinyServe/1.0.0\r\n               ◄── default header      │
    │    Connection: close\r\n                     ◄── always "close"      │
    │    Content-Type: application/json\r\n        ◄── set by handler      │
    │    Content-Length: 27\r\n                    ◄── added if missing    │
    │    Date: Sat, 17 Oct 2026 12:00:00 GMT\r\n   ◄── added if missing    │
    │    \r\n                                                              │
    │    {"message": "Hello World"}                ◄── body bytes          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Headers are written in insertion order. Setting a header that already
exists under a different capitalization replaces it rather than sending
both.

=============================================================================
ONE RESPONSE PER REQUEST
=============================================================================

The dispatcher creates exactly one HTTPResponse per request, hands the
same object to every middleware and then to the route handler, and returns
it to the connection, which writes it once. Error pages are the exception:
they replace the response wholesale (error_response builds a fresh one), so
headers a middleware set before the failure are not sent.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from typing import Any, Dict, Optional, Union
import json

from ..version import SERVER_NAME, __version__
from .status_codes import HTTPStatus, reason_phrase


def default_headers(server_name: str = SERVER_NAME) -> Dict[str, str]:
    """Headers every response starts with."""
    return {"Server": server_name, "Connection": "close"}


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Handlers and middleware receive the response already created and
    mutate it in place:

        @server.get("/hello")
        def hello(request, response):
            response.json({"message": "Hello"})

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Dispatcher creates        middleware/handler        Connection
        HTTPResponse()   ─────►   set_header / json  ─────► to_bytes()
                                  set_body / status         sendall()

    =========================================================================
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=default_headers)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def reason(self) -> str:
        """Reason phrase for the current status ("Unknown" if unlisted)."""
        return reason_phrase(self.status)

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.reason}"

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        key = self._find_header(name)
        return self.headers[key] if key is not None else default

    def has_header(self, name: str) -> bool:
        """Whether a header is set, ignoring case."""
        return self._find_header(name) is not None

    def set_header(self, name: str, value: Any) -> "HTTPResponse":
        """
        Set a response header, replacing any existing value.

        Returns self for method chaining:
            response.set_header("X-Custom", "value").set_header("X-Other", "v")

        Raises:
            ValueError: The name or value contains CR or LF, which would
                        end the header early on the wire.
        """
        value = str(value)
        _check_header(name, value)
        self.remove_header(name)
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> "HTTPResponse":
        """Remove a header (any capitalization) if present."""
        key = self._find_header(name)
        if key is not None:
            del self.headers[key]
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """
        Set the response body.

        Strings are encoded to UTF-8 bytes.

        Raises:
            TypeError: The body is neither text nor bytes.
        """
        self.body = _body_bytes(body)
        return self

    def json(self, data: Any, status: Optional[int] = None) -> "HTTPResponse":
        """
        Send `data` as a JSON body.

        Example:
            response.json({"error": "not allowed"}, status=403)
        """
        if status is not None:
            self.status = status
        self.set_header("Content-Type", "application/json")
        return self.set_body(json.dumps(data))

    def text(self, text: str, status: Optional[int] = None) -> "HTTPResponse":
        """Send a plain text body."""
        if status is not None:
            self.status = status
        self.set_header("Content-Type", "text/plain")
        return self.set_body(text)

    def html(self, html: str, status: Optional[int] = None) -> "HTTPResponse":
        """Send an HTML body."""
        if status is not None:
            self.status = status
        self.set_header("Content-Type", "text/html")
        return self.set_body(html)

    def validate(self) -> "HTTPResponse":
        """
        Make the response safe to serialize.

        Handlers may assign `body` and `headers` directly, bypassing
        set_body and set_header. A str body is encoded here.

        Raises:
            TypeError: The body is neither text nor bytes.
            ValueError: A header name or value contains CR or LF.
        """
        self.body = _body_bytes(self.body)
        for name, value in self.headers.items():
            _check_header(name, str(value))
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        =====================================================================
        SERIALIZATION RULES
        =====================================================================

            1. Status line from status + reason table ("Unknown" if unlisted)
            2. Headers in insertion order
            3. Content-Length = len(body) unless the handler set one
            4. Date added unless the handler set one
            5. Connection: close, whatever the handler set

        A str body is encoded as UTF-8 first; a header value carrying CR
        or LF raises ValueError instead of being written.

        =====================================================================
        """
        body = _body_bytes(self.body)
        response = HTTPResponse(
            status=self.status,
            headers={},
            body=body,
            version=self.version,
        )
        for name, value in self.headers.items():
            response.set_header(name, value)

        if not response.has_header("Content-Length"):
            response.set_header("Content-Length", len(body))

        if not response.has_header("Date"):
            response.set_header("Date", format_http_date(datetime.now(timezone.utc)))

        # One request per connection, so this is never negotiable
        response.set_header("Connection", "close")

        lines = [response.status_line]
        for name, value in response.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + body

    def _find_header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None


def _body_bytes(body: Union[str, bytes, bytearray, memoryview]) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    raise TypeError(
        f"Response body must be str or bytes, not {type(body).__name__}"
    )


def _check_header(name: str, value: str) -> None:
    if any(c in name or c in value for c in "\r\n"):
        raise ValueError(f"Invalid header {name!r}: CR/LF not allowed")


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sat, 17 Oct 2026 12:00:00 GMT

    HTTP dates are always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# ERROR PAGES
# =============================================================================

ERROR_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>{status} {reason}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 50px; background: #f5f5f5; }}
        .error-container {{ background: white; padding: 30px; border-radius: 8px; }}
        h1 {{ color: #e74c3c; margin: 0 0 20px 0; }}
        p {{ color: #555; line-height: 1.6; }}
        .footer {{ margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd; color: #999; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="error-container">
        <h1>{status} {reason}</h1>
        <p>{message}</p>
        <div class="footer">TinyServe v{version}</div>
    </div>
</body>
</html>
"""


def error_page(status: int, message: str) -> str:
    """
    Render the HTML error document.

    The message is HTML-escaped: it often echoes exception text or parts
    of the request.
    """
    return ERROR_PAGE_TEMPLATE.format(
        status=int(status),
        reason=reason_phrase(status),
        message=escape(str(message)),
        version=__version__,
    )


def error_response(
    status: int,
    message: str,
    server_name: str = SERVER_NAME,
) -> HTTPResponse:
    """
    Build a fresh error response.

    Examples:
        error_response(404, "The requested resource was not found")
        error_response(500, "Internal Server Error: division by zero")
    """
    response = HTTPResponse(status=status, headers=default_headers(server_name))
    return response.html(error_page(status, message))
