"""
=============================================================================
BUILT-IN API ROUTES
=============================================================================

Two JSON endpoints for checking that a server is up and for seeing what a
client actually sent:

    GET  /api/status   {"status": "ok", "version": "1.0.0", "uptime": 12.3}
    POST /api/echo     the parsed request, mirrored back

Registered by the command-line entry point. Applications embedding
TinyServe opt in explicitly:

    server = TinyServe(config)
    register_default_routes(server)

=============================================================================
"""

from typing import Any, Dict

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..version import __version__


def status_payload(uptime: float) -> Dict[str, Any]:
    """Body of GET /api/status."""
    return {
        "status": "ok",
        "version": __version__,
        "uptime": round(uptime, 3),
    }


def echo_payload(request: HTTPRequest) -> Dict[str, Any]:
    """
    Body of POST /api/echo.

    `body` is the raw body as text; `json` is the parsed body, or None
    when there was no JSON body.
    """
    return {
        "method": request.method,
        "path": request.path,
        "headers": dict(request.headers),
        "body": request.body.decode("utf-8", errors="replace"),
        "json": request.json if request.has_json else None,
        "params": dict(request.params),
    }


def echo_handler(request: HTTPRequest, response: HTTPResponse) -> None:
    response.json(echo_payload(request), status=200)


def register_default_routes(server) -> None:
    """
    Register /api/status and /api/echo on a TinyServe instance.

    Must be called before server.run().
    """

    def status_handler(request: HTTPRequest, response: HTTPResponse) -> None:
        response.json(status_payload(server.uptime), status=200)

    server.register_route("GET", "/api/status", status_handler)
    server.register_route("POST", "/api/echo", echo_handler)
