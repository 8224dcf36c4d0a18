"""
=============================================================================
CORS (Cross-Origin Resource Sharing) MIDDLEWARE
=============================================================================

Lets pages served from another origin (a frontend dev server on :3000,
say) call the APIs this server exposes.

=============================================================================
CORS REQUEST FLOW
=============================================================================

    SIMPLE REQUEST:
    ┌─────────┐                                          ┌─────────┐
    │ Browser │─────────── GET /api/status ─────────────▶│ Server  │
    │         │           Origin: http://localhost:3000  │         │
    │         │◀──────────────────────────────────────────│         │
    │         │    Access-Control-Allow-Origin: *        │         │
    └─────────┘                                          └─────────┘

    PREFLIGHT REQUEST:
    ┌─────────┐                                          ┌─────────┐
    │ Browser │─────────── OPTIONS /api/echo ───────────▶│ Server  │
    │         │           Access-Control-Request-Method: │         │
    │         │             POST                         │         │
    │         │◀──────────────────────────────────────────│         │
    │         │    204 No Content                        │         │
    │         │    Access-Control-Allow-Methods: ...     │         │
    │         │                                          │         │
    │         │─────────── POST /api/echo ──────────────▶│         │
    │         │◀──────────────────────────────────────────│         │
    └─────────┘    200 OK + Access-Control-Allow-Origin  └─────────┘

The headers are set on every response before routing. An OPTIONS
request is answered right here with 204 and an empty body: the chain
stops and no route or static lookup happens.

=============================================================================
"""

from typing import Optional, Sequence

from .base import Middleware
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus

DEFAULT_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
DEFAULT_HEADERS = ("Content-Type", "Authorization")


class CORSMiddleware(Middleware):
    """
    CORS middleware.

    =========================================================================
    USAGE EXAMPLES
    =========================================================================

        # Development: allow every origin
        server.add_middleware(CORSMiddleware())

        # Only the local frontend, with a custom header
        server.add_middleware(CORSMiddleware(
            origin="http://localhost:3000",
            headers=["Content-Type", "X-API-Key"],
        ))

    Add it before any middleware that might reject the request
    (authentication, say): preflights must succeed without credentials.

    =========================================================================
    """

    def __init__(
        self,
        origin: str = "*",
        methods: Sequence[str] = DEFAULT_METHODS,
        headers: Sequence[str] = DEFAULT_HEADERS,
        max_age: Optional[int] = None,
    ):
        """
        Args:
            origin: Value of Access-Control-Allow-Origin.
            methods: Methods listed in Access-Control-Allow-Methods.
            headers: Request headers listed in Access-Control-Allow-Headers.
            max_age: Seconds a browser may cache a preflight answer; no
                     Access-Control-Max-Age header when None.
        """
        self.origin = origin
        self.methods = list(methods)
        self.headers = list(headers)
        self.max_age = max_age

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        response.set_header("Access-Control-Allow-Origin", self.origin)
        response.set_header("Access-Control-Allow-Methods", ", ".join(self.methods))
        response.set_header("Access-Control-Allow-Headers", ", ".join(self.headers))

        if request.method == "OPTIONS":
            return self._handle_preflight(response)

        return True

    def _handle_preflight(self, response: HTTPResponse) -> bool:
        """Answer the preflight with 204 and stop the chain."""
        response.status = HTTPStatus.NO_CONTENT
        response.set_body(b"")

        if self.max_age is not None:
            response.set_header("Access-Control-Max-Age", self.max_age)

        return False


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# - Allow-Origin/Methods/Headers on every response
# - OPTIONS → 204, empty body, chain stops
# - CORS is enforced by browsers; it does nothing against curl
# =============================================================================
