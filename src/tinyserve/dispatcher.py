"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Takes one connection's input stream through the whole request cycle and
produces the single response to send back (or nothing at all).

=============================================================================
THE DECISION CHAIN
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ONE REQUEST, FIRST "SEND" WINS                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   PARSE ──── EOF / malformed request line ──────► None (just close)  │
    │     │                                                                │
    │     ├─────── invalid JSON body ─────────────────► 400 error page     │
    │     ├─────── request too large ─────────────────► 400 error page     │
    │     ▼                                                                │
    │   MIDDLEWARE ── a middleware returns False ────► response as left    │
    │     │                                                                │
    │     ▼                                                                │
    │   ROUTE (method, path) ── found ─► handler ────► response            │
    │     │                                │                               │
    │     │                                ├─ raises ─► 500 error page     │
    │     │                                └─ bad body/header ► 500 page   │
    │     ▼                                                                │
    │   STATIC (GET, path not routed) ── file ───────► file response       │
    │     │                                                                │
    │     ▼                                                                │
    │   404 error page                                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each stage either produces THE response or passes control on. Nothing can
send twice: the dispatcher returns one HTTPResponse, and the connection
writes it once.

The route key uses the sanitized path (".." removed), the same path the
static resolver sees, so no stage ever acts on a path containing "..".

=============================================================================
"""

from typing import BinaryIO, Optional
import logging
import time

from .access_log import AccessLogger
from .handlers.static import StaticFileResolver, sanitize_path
from .http.request import HTTPParseError, HTTPRequest, MalformedRequestLine, RequestParser
from .http.response import HTTPResponse, default_headers, error_response
from .http.router import RouteTable
from .http.status_codes import HTTPStatus
from .middleware.base import MiddlewarePipeline
from .version import SERVER_NAME

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "The requested resource was not found on this server."


class Dispatcher:
    """
    Runs the parse → middleware → route → static decision chain.

    Usage:
        dispatcher = Dispatcher(routes, middleware, StaticFileResolver("./public"))

        response = dispatcher.process(sock_file, ("127.0.0.1", 52344))
        if response is not None:
            conn.send_response(response.to_bytes())
    """

    def __init__(
        self,
        routes: RouteTable,
        middleware: MiddlewarePipeline,
        static: StaticFileResolver,
        server_name: str = SERVER_NAME,
        access_log: Optional[AccessLogger] = None,
        parser: Optional[RequestParser] = None,
    ):
        self.routes = routes
        self.middleware = middleware
        self.static = static
        self.server_name = server_name
        self.access_log = access_log or AccessLogger()
        self.parser = parser or RequestParser()

    def process(
        self,
        stream: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> Optional[HTTPResponse]:
        """
        Read one request from `stream` and decide the response.

        Socket errors while reading (timeouts, resets) are not handled here;
        they propagate to the connection, which abandons it.

        Returns:
            The response to write, or None when the connection should be
            closed without a reply.
        """
        start = time.perf_counter()

        try:
            request = self.parser.parse(stream, client_address)
        except MalformedRequestLine as e:
            logger.debug(f"Dropping connection from {client_address[0]}: {e}")
            return None
        except HTTPParseError as e:
            logger.warning(f"Bad request from {client_address[0]}: {e}")
            return error_response(e.status_code, str(e), self.server_name)

        if request is None:
            logger.debug(f"Client {client_address[0]} closed without a request")
            return None

        response = self.dispatch(request)
        self.access_log.log(request, response, time.perf_counter() - start)
        return response

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Decide the response for an already parsed request.

        A middleware or route handler that raises produces a 500 page; the
        exception is logged with its traceback and goes no further. So does
        one that leaves a response that cannot be serialized (a body that
        is not text or bytes, a header carrying CR/LF).
        """
        response = HTTPResponse(headers=default_headers(self.server_name))
        path = sanitize_path(request.path)

        try:
            if not self.middleware.run(request, response):
                return response.validate()

            handler = self.routes.lookup(request.method, path)
            if handler is not None:
                handler(request, response)
                return response.validate()

            # ─────────────────────────────────────────────────────────────
            # STATIC FALLBACK
            # ─────────────────────────────────────────────────────────────
            if request.method == "GET" and not self.routes.has_path(path):
                if self.static.serve(path, response):
                    return response.validate()
        except Exception as e:
            logger.exception(f"Error handling {request.method} {request.path}: {e}")
            return error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                f"Internal Server Error: {e}",
                self.server_name,
            )

        return error_response(HTTPStatus.NOT_FOUND, NOT_FOUND_MESSAGE, self.server_name)
