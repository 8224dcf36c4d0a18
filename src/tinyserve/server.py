"""
=============================================================================
TINYSERVE
=============================================================================

The object applications build: it owns the configuration, the route
table and the middleware pipeline, and wires them to the socket server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TINYSERVE ARCHITECTURE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │    TinyServe    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  Dispatcher  │    │ ServerConfig │        │
    │    │ (select loop)│    │              │    │              │        │
    │    └──────┬───────┘    └──────┬───────┘    └──────────────┘        │
    │           │                   │                                     │
    │           ▼                   ├──► MiddlewarePipeline                │
    │    ┌──────────────┐           ├──► RouteTable                        │
    │    │  Connection  │ ────────► └──► StaticFileResolver                │
    │    └──────────────┘                                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. CLIENT CONNECTS
       └── SocketServer accepts, registers the socket with the selector

    2. CLIENT SENDS
       └── Socket becomes readable, Connection.serve() runs

    3. PARSE → MIDDLEWARE → ROUTE → STATIC
       └── Dispatcher.process() decides the one response

    4. SEND AND CLOSE
       └── Response written with sendall(), connection closed

=============================================================================
SETUP VS SERVING
=============================================================================

Routes and middleware are registered BEFORE run(). When serving starts,
both registries are frozen; registering afterwards raises RuntimeError.

=============================================================================
"""

import logging
import time
from typing import Callable, Optional, Tuple, Union

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer
from .dispatcher import Dispatcher
from .handlers.static import StaticFileResolver
from .http.request import RequestParser
from .http.router import Handler, RouteTable
from .middleware.base import Middleware, MiddlewareFunc, MiddlewarePipeline
from .version import __version__

logger = logging.getLogger(__name__)


class TinyServe:
    """
    A minimal HTTP server for local development.

    =========================================================================
    USAGE
    =========================================================================

        server = TinyServe(ServerConfig(port=8080, root="./public"))

        @server.get("/hello")
        def hello(request, response):
            response.text("Hello, World!")

        @server.post("/api/items")
        def create_item(request, response):
            response.json({"created": request.json}, status=201)

        @server.use
        def powered_by(request, response):
            response.set_header("X-Powered-By", "TinyServe")
            return True

        server.run()   # blocks until Ctrl+C

    Anything not routed is looked up under the document root for GET
    requests, with "/" mapping to index.html.

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: The configuration is invalid. The document root is
                        NOT checked here, only when run() starts.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._routes = RouteTable()
        self._middleware = MiddlewarePipeline()
        self._static = StaticFileResolver(self.config.root)

        self._dispatcher = Dispatcher(
            routes=self._routes,
            middleware=self._middleware,
            static=self._static,
            server_name=self.config.server_name,
            access_log=AccessLogger(verbose=self.config.verbose),
            parser=RequestParser(max_request_size=self.config.max_request_size),
        )

        self._socket_server = SocketServer(self.config)
        self._started_at: Optional[float] = None

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register_route(self, method: str, path: str, handler: Handler) -> None:
        """
        Register a handler for an exact (method, path).

        A later registration for the same pair replaces the earlier one.
        """
        self._routes.register(method, path, handler)

    def add_middleware(self, middleware: Union[Middleware, MiddlewareFunc]) -> None:
        """Append middleware; it runs after everything added before it."""
        self._middleware.add(middleware)

    def use(self, middleware):
        """
        Add middleware. Works as a call or as a decorator.

            server.use(CORSMiddleware())

            @server.use
            def tag(request, response):
                ...
                return True
        """
        self.add_middleware(middleware)
        return middleware

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """Decorator to register a route for any method."""
        return self._routes.route(method, path)

    def get(self, path: str) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self._routes.get(path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self._routes.post(path)

    def put(self, path: str) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self._routes.put(path)

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        """Register a DELETE route."""
        return self._routes.delete(path)

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def middleware(self) -> MiddlewarePipeline:
        return self._middleware

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Blocks until shutdown() is called or SIGINT/SIGTERM arrives.

        Raises:
            ValueError: The document root does not exist.
            OSError: The address could not be bound.
        """
        self.config.validate_root()
        self._setup_logging()
        self.freeze()

        self._started_at = time.monotonic()

        try:
            self._socket_server.start(
                self._handle_connection,
                on_ready=self._print_startup_banner,
            )
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def freeze(self) -> None:
        """Freeze routes and middleware. run() does this before serving."""
        self._routes.freeze()
        self._middleware.freeze()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the configured one before the server starts."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def uptime(self) -> float:
        """Seconds since run() started serving, 0.0 before that."""
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until a running server has fully stopped."""
        return self._socket_server.wait_for_shutdown(timeout)

    def _print_startup_banner(self):
        """Print server startup information."""
        host, port = self.address
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  TinyServe v{__version__}")
        print(f"  Listening on http://{host}:{port}")
        print(f"  Document root: {self.config.root}")
        print(f"  Max connections: {self.config.max_connections}")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

        for method, path in self._routes.routes():
            logger.debug(f"Route: {method:8} {path}")

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.effective_log_level

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("tinyserve").setLevel(level)

        logger.info(f"Starting TinyServe v{__version__}")
        logger.info(f"Document root: {self.config.root}")
        if self.config.verbose:
            logger.info("Verbose mode enabled")

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._socket_server.shutdown()
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Run one connection's request cycle (called by SocketServer)."""
        conn.serve(self._dispatcher.process)


def create_app(config: Optional[ServerConfig] = None) -> TinyServe:
    """
    Create a TinyServe application.

    Example:
        app = create_app(ServerConfig(port=3000))

        @app.get("/")
        def index(request, response):
            response.html("<h1>Hello!</h1>")

        app.run()
    """
    return TinyServe(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Registration: routes and middleware, before serving
# 2. Request flow: Accept → Parse → Middleware → Route → Static → Respond
# 3. Lifecycle: validate root, log setup, freeze, serve, shut down
#
# KEY DESIGN DECISIONS:
# - One select() loop, one request per connection, no threads
# - Handlers mutate a response instead of returning one
# - Registries frozen once serving starts
# =============================================================================
