"""
=============================================================================
TINYSERVE - Minimal HTTP Server for Local Development
=============================================================================

A single-threaded HTTP/1.1 server on raw sockets: static files from a
document root, exact-match routes for small JSON APIs, and a middleware
chain that can add headers or answer a request early.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tinyserve/
    ├── __init__.py          # Package exports
    ├── __main__.py          # CLI entry point (python -m tinyserve)
    ├── server.py            # TinyServe, the object applications build
    ├── dispatcher.py        # Middleware → route → static → 404
    ├── access_log.py        # One log line per request
    ├── config.py            # ServerConfig dataclass
    ├── version.py           # Version and Server header value
    ├── core/                # Sockets
    │   ├── socket_server.py # select() accept loop
    │   └── connection.py    # One client socket, one request
    ├── http/                # Protocol
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response model and error pages
    │   ├── router.py        # Exact (method, path) routes
    │   ├── forms.py         # Query string / form decoding
    │   ├── status_codes.py  # Reason phrases
    │   └── mime_types.py    # Extension → Content-Type
    ├── middleware/
    │   ├── base.py          # Middleware contract and pipeline
    │   ├── cors.py          # CORS headers and preflight
    │   └── headers.py       # Request IDs, Cache-Control
    └── handlers/
        ├── static.py        # Files under the document root
        └── api.py           # /api/status and /api/echo

=============================================================================
QUICK START
=============================================================================

    from tinyserve import TinyServe, ServerConfig

    server = TinyServe(ServerConfig(port=8080, root="./public"))

    @server.get("/hello")
    def hello(request, response):
        response.json({"message": "Hello, World!"})

    server.run()

=============================================================================
"""

from .version import SERVER_NAME, __version__
from .config import ServerConfig
from .server import TinyServe, create_app

__all__ = ["TinyServe", "ServerConfig", "create_app", "SERVER_NAME", "__version__"]
