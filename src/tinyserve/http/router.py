"""
=============================================================================
ROUTE TABLE
=============================================================================

Maps an exact (method, path) pair to a handler function.

=============================================================================
ROUTING ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming Request                                                   │
    │   GET /api/status                                                    │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTE TABLE          (dict keyed by (METHOD, path))        │   │
    │   │                                                              │   │
    │   │   ("GET",  "/api/status") → status_handler   ← MATCH!       │   │
    │   │   ("POST", "/api/echo")   → echo_handler                     │   │
    │   │   ("GET",  "/hello")      → hello                            │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   status_handler(request, response)                                  │
    │                                                                      │
    │   No entry? The dispatcher falls back to static files (GET only).    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Matching is exact string equality on the path. There are no path
parameters, no wildcards and no trailing-slash normalization:
"/hello" and "/hello/" are different routes. Lookups are a single dict
access.

Registering the same (method, path) twice silently replaces the first
handler: last registration wins.

=============================================================================
FREEZING
=============================================================================

The table is built before the server starts accepting connections. When
the event loop starts, the server calls freeze(); any registration after
that raises RuntimeError instead of racing with request handling.

=============================================================================
"""

from typing import Callable, Dict, List, Optional
import logging

from .request import HTTPRequest
from .response import HTTPResponse

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

# A handler fills in the response it is given. Its return value is ignored.
Handler = Callable[[HTTPRequest, HTTPResponse], None]


class RouteTable:
    """
    Exact-match HTTP route table.

    ==========================================================================
    DECORATOR-BASED API
    ==========================================================================

        routes = RouteTable()

        @routes.get("/hello")
        def hello(request, response):
            response.text("Hello, World!")

        @routes.post("/api/items")
        def create_item(request, response):
            response.json({"created": request.json}, status=201)

        # Or without decorators
        routes.register("DELETE", "/api/items", delete_items)

    ==========================================================================
    """

    def __init__(self):
        self._routes: Dict[tuple[str, str], Handler] = {}
        self._frozen = False

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def register(self, method: str, path: str, handler: Handler) -> None:
        """
        Register a handler for (method, path).

        Args:
            method: HTTP method, upper-cased here ("get" → "GET").
            path: Exact request path, e.g. "/api/status".
            handler: Callable taking (request, response).

        Raises:
            RuntimeError: The table was frozen because serving started.
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register {method.upper()} {path}: routes are frozen"
            )

        key = (method.upper(), path)
        if key in self._routes:
            logger.debug(f"Replacing handler for {key[0]} {path}")
        self._routes[key] = handler

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """
        Decorator to register a route.

        Example:
            @routes.route("PATCH", "/api/items")
            def patch_items(request, response):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.register(method, path, handler)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        """Decorator for GET routes."""
        return self.route("GET", path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        """Decorator for POST routes."""
        return self.route("POST", path)

    def put(self, path: str) -> Callable[[Handler], Handler]:
        """Decorator for PUT routes."""
        return self.route("PUT", path)

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        """Decorator for DELETE routes."""
        return self.route("DELETE", path)

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, method: str, path: str) -> Optional[Handler]:
        """
        Find the handler for an exact (method, path) pair.

        The request method is matched as sent: "get" does not reach a
        route registered for GET, just as it never reaches static files.

        Returns:
            The handler, or None when nothing is registered.
        """
        return self._routes.get((method, path))

    def has_path(self, path: str) -> bool:
        """Whether any method has a route registered for this exact path."""
        return any(route_path == path for _, route_path in self._routes)

    def routes(self) -> List[tuple[str, str]]:
        """All registered (method, path) pairs, in registration order."""
        return list(self._routes)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def freeze(self) -> None:
        """Reject further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._routes
