"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

Turns bytes read from a client into an HTTPRequest, and an HTTPResponse
back into bytes.

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /path?x=1 HTTP/1.1\\r\\n        HTTP/1.1 200 OK\\r\\n
    Header: Value\\r\\n                 Server: TinyServe/1.0.0\\r\\n
    \\r\\n                              Connection: close\\r\\n
    [body]                            Content-Length: 2\\r\\n
                                      \\r\\n
                                      ok

    request.py       RequestParser, HTTPRequest
    response.py      HTTPResponse, error pages
    router.py        RouteTable: exact (method, path) → handler
    forms.py         percent-decoding, key=value&... parsing
    status_codes.py  HTTPStatus, reason_phrase()
    mime_types.py    get_mime_type()

=============================================================================
"""

from .request import (
    HTTPMethod,
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedRequestLine,
    InvalidJSONBody,
    RequestTooLarge,
    parse_request,
)
from .response import HTTPResponse, error_page, error_response
from .router import Handler, RouteTable
from .status_codes import HTTPStatus, reason_phrase
from .mime_types import get_mime_type
from .forms import parse_form_data, percent_decode

__all__ = [
    # Requests
    "HTTPMethod",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequestLine",
    "InvalidJSONBody",
    "RequestTooLarge",
    "parse_request",

    # Responses
    "HTTPResponse",
    "error_page",
    "error_response",

    # Routing
    "Handler",
    "RouteTable",

    # Helpers
    "HTTPStatus",
    "reason_phrase",
    "get_mime_type",
    "parse_form_data",
    "percent_decode",
]
