"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads one HTTP/1.x request from a connection and turns it into an
immutable HTTPRequest.

=============================================================================
WHAT THE PARSER READS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     ONE REQUEST, LINE BY LINE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  POST /api/echo?debug=1 HTTP/1.1\r\n        ◄── request line         │
    │  ──┬─ ─────────┬─────── ────┬───                                    │
    │    │           │            │                                        │
    │  method     target      protocol                                     │
    │                                                                      │
    │  Host: localhost:8080\r\n                   ◄── header lines         │
    │  Content-Type: application/json\r\n             (until a blank line) │
    │  Content-Length: 15\r\n                                              │
    │  \r\n                                       ◄── end of headers       │
    │                                                                      │
    │  {"test":"data"}                            ◄── exactly 15 bytes     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Unlike a buffer-based parser that waits for the whole message first, this
parser pulls from a line-readable binary stream (socket.makefile("rb") in
production, io.BytesIO in tests). It reads the request line, then header
lines up to the blank line, then exactly Content-Length body bytes. Nothing
beyond that is read: without Content-Length the body is empty even if the
client keeps sending.

=============================================================================
PARSING RULES
=============================================================================

    Request line    Split on whitespace. Fewer than three tokens is a
                    MalformedRequestLine. Extra tokens are ignored.

    Headers         "name: value" lines. Names are lowercased, the last
                    occurrence of a name wins, and lines that don't match
                    the pattern are skipped without aborting the parse.

    Body            Read only when Content-Length is a positive integer.

    Size            Request line, headers and declared body together may
                    not exceed max_request_size (10 MB by default). Going
                    over raises RequestTooLarge, a 400, without the body
                    ever being read.

    JSON            Content-Type containing application/json → the body is
                    decoded. A decode failure raises InvalidJSONBody, which
                    the dispatcher turns into a 400 before anything else
                    runs.

    Form            Content-Type containing
                    application/x-www-form-urlencoded → body pairs go into
                    params.

    Query           The query string is decoded into params AFTER the form
                    body, so "?name=Query" beats a body field "name=Body".

    Path            The path component, percent-decoded.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Dict, Optional
import json
import re

from .forms import parse_form_data, percent_decode


class HTTPMethod(str, Enum):
    """
    The recognized HTTP methods.

    Requests with any other method are still parsed and carried; they are
    just "unrecognized" (HTTPRequest.is_known_method is False) and can only
    be served by a route registered for that exact method.
    """
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


KNOWN_METHODS = frozenset(m.value for m in HTTPMethod)


# =============================================================================
# PARSE ERRORS
# =============================================================================

class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code the client would get if a response is sent at
    all. Some parse errors (a garbled request line) get no response: the
    connection is simply dropped.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MalformedRequestLine(HTTPParseError):
    """The request line could not be split into method, target and protocol."""


class InvalidJSONBody(HTTPParseError):
    """The body was declared as application/json but did not decode."""


class RequestTooLarge(HTTPParseError):
    """Headers plus declared body exceed the parser's max_request_size."""


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Frozen: handlers and middleware read it, never reassign its fields.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Method token exactly as sent ("GET", "PATCH", ...)

        target:         Raw request target, "/a%20b.txt?x=1"

        path:           Percent-decoded path, "/a b.txt"
                        (".." is NOT removed here; see handlers.static)

        query_string:   Raw text after the first "?", "x=1"

        version:        Protocol token, "HTTP/1.1"

        headers:        Lowercase name → value as received

        body:           Raw body bytes

        json:           Decoded JSON body (only meaningful if has_json)

        has_json:       True when a JSON body was present and decoded.
                        Separates "no JSON" from a JSON body of `null`.

        params:         Form body pairs overlaid with query pairs

        client_address: (ip, port) of the peer

    =========================================================================
    """

    method: str
    target: str
    path: str
    version: str = "HTTP/1.1"
    query_string: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    json: Any = None
    has_json: bool = False
    params: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def is_known_method(self) -> bool:
        """Whether the method is one of GET, POST, PUT, DELETE."""
        return self.method in KNOWN_METHODS

    @property
    def content_type(self) -> str:
        """Raw Content-Type header value, or an empty string."""
        return self.headers.get("content-type", "")

    @property
    def content_length(self) -> int:
        """Declared Content-Length, or 0 when missing or not a number."""
        return _parse_content_length(self.headers.get("content-length", ""))

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

            request.get_header("Content-Type")  # stored as "content-type"
        """
        return self.headers.get(name.lower(), default)

    def get_param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a merged form/query parameter."""
        return self.params.get(name, default)


class RequestParser:
    """
    Parses a single HTTP request from a binary stream.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        stream.readline()
              │
              ├── b""  ─────────────────────► None (peer went away)
              │
              ▼
        _parse_request_line ── < 3 tokens ──► MalformedRequestLine
              │
              ▼
        _read_headers ──────── over limit ──► RequestTooLarge
              │          (until blank line or EOF)
              │
              ▼
        _read_body ─────────── over limit ──► RequestTooLarge
              │          (exactly Content-Length bytes)
              │
              ▼
        _decode_body ───────── bad JSON ────► InvalidJSONBody
              │
              ▼
        HTTPRequest(...)

    ==========================================================================
    """

    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.+)$")

    def __init__(
        self,
        max_line_length: int = 64 * 1024,
        max_request_size: int = 10 * 1024 * 1024,
    ):
        """
        Args:
            max_line_length: Longest request line accepted, in bytes.
                             Anything longer is treated as malformed.
            max_request_size: Most bytes one request may take, request
                              line, headers and body together. Default is
                              10 MB. A larger request raises RequestTooLarge
                              before its body is read.
        """
        self.max_line_length = max_line_length
        self.max_request_size = max_request_size

    def parse(
        self,
        stream: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> Optional[HTTPRequest]:
        """
        Read and parse one request.

        Args:
            stream: Binary stream supporting readline() and read().
            client_address: Peer (ip, port), recorded on the request.

        Returns:
            The parsed request, or None if the stream was already at EOF
            (the client connected and left without sending anything).

        Raises:
            MalformedRequestLine: Request line missing method/target/protocol.
            RequestTooLarge: Headers or declared body over max_request_size.
            InvalidJSONBody: JSON Content-Type with an undecodable body.
        """
        raw_line = stream.readline(self.max_line_length + 1)
        if not raw_line:
            return None
        if len(raw_line) > self.max_line_length:
            raise MalformedRequestLine("Request line too long")

        method, target, version = self._parse_request_line(_decode_line(raw_line))
        budget = self.max_request_size - len(raw_line)
        headers, budget = self._read_headers(stream, budget)
        body = self._read_body(stream, headers, budget)

        raw_path, _, query_string = target.partition("?")
        json_value, has_json, params = self._decode_body(body, headers)

        # Query pairs are applied last so they override body pairs
        if query_string:
            params.update(parse_form_data(query_string))

        return HTTPRequest(
            method=method,
            target=target,
            path=percent_decode(raw_path),
            version=version,
            query_string=query_string,
            headers=headers,
            body=body,
            json=json_value,
            has_json=has_json,
            params=params,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """Split "METHOD TARGET PROTOCOL" into its three tokens."""
        parts = line.split()
        if len(parts) < 3:
            raise MalformedRequestLine(f"Invalid request line: {line!r}")
        return parts[0], parts[1], parts[2]

    def _read_headers(
        self,
        stream: BinaryIO,
        budget: int,
    ) -> tuple[Dict[str, str], int]:
        """
        Read header lines up to the blank separator line.

        Both "\\r\\n" and bare "\\n" line endings are accepted. A line that
        isn't "name: value" is skipped; parsing carries on with the next.

        Returns:
            (headers, bytes of the size budget left for the body)
        """
        headers: Dict[str, str] = {}

        while True:
            # Never buffer more than the budget allows, even for one line
            raw_line = stream.readline(max(budget, 0) + 1)
            if not raw_line:
                break  # EOF before the blank line: take what we have

            budget -= len(raw_line)
            if budget < 0:
                raise RequestTooLarge(
                    f"Request headers exceed {self.max_request_size} bytes"
                )

            line = _decode_line(raw_line)
            if line == "":
                break

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            headers[name.strip().lower()] = value

        return headers, budget

    def _read_body(
        self,
        stream: BinaryIO,
        headers: Dict[str, str],
        budget: int,
    ) -> bytes:
        """Read exactly Content-Length bytes, or fewer if the peer hangs up."""
        remaining = _parse_content_length(headers.get("content-length", ""))
        if remaining > budget:
            raise RequestTooLarge(
                f"Request body of {remaining} bytes exceeds the "
                f"{self.max_request_size} byte limit"
            )

        chunks = []

        while remaining > 0:
            chunk = stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        return b"".join(chunks)

    def _decode_body(
        self,
        body: bytes,
        headers: Dict[str, str],
    ) -> tuple[Any, bool, Dict[str, str]]:
        """
        Interpret the body according to Content-Type.

        Returns:
            (json value, has_json, form params)
        """
        if not body:
            return None, False, {}

        content_type = headers.get("content-type", "").lower()

        if "application/json" in content_type:
            try:
                return json.loads(body), True, {}
            except ValueError as e:
                # JSONDecodeError and UnicodeDecodeError both land here
                raise InvalidJSONBody(f"Invalid JSON: {e}", status_code=400)

        if "application/x-www-form-urlencoded" in content_type:
            text = body.decode("utf-8", errors="replace")
            return None, False, parse_form_data(text)

        return None, False, {}


# =============================================================================
# HELPERS
# =============================================================================

def _decode_line(raw: bytes) -> str:
    """Decode a wire line and drop its CRLF / LF terminator."""
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def _parse_content_length(value: str) -> int:
    """Positive Content-Length, or 0 for missing, negative or junk values."""
    try:
        length = int(value.strip())
    except ValueError:
        return 0
    return length if length > 0 else 0


def parse_request(
    stream: BinaryIO,
    client_address: tuple[str, int] = ("", 0),
) -> Optional[HTTPRequest]:
    """
    Convenience wrapper: parse one request with a default RequestParser.

    Example:
        request = parse_request(io.BytesIO(b"GET / HTTP/1.1\\r\\n\\r\\n"))
    """
    return RequestParser().parse(stream, client_address)
