"""
=============================================================================
SOCKET SERVER (SINGLE READINESS LOOP)
=============================================================================

Owns the listening socket and every accepted client socket, multiplexed
by one selectors.DefaultSelector loop on one thread.

=============================================================================
THE EVENT LOOP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       select() loop                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   while running:                                                     │
    │       events = selector.select(timeout=0.5)                          │
    │           │                                                          │
    │           ├── listener readable                                      │
    │           │       accept() every pending client                      │
    │           │       at capacity?  ──yes──► 503 page, close             │
    │           │       otherwise register it for EVENT_READ               │
    │           │                                                          │
    │           └── client readable                                        │
    │                   run the FULL request cycle (blocking),             │
    │                   write at most one response,                        │
    │                   unregister + close, no matter what                 │
    │                                                                      │
    │       every second: close clients idle longer than `timeout`         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One ready connection is processed completely before the next event is
looked at. That makes request handling strictly serial: handlers never run
concurrently and need no locking. The price is that a slow client holds
up everyone else for at most `timeout` seconds per blocking read.

The number of tracked (accepted, not yet served) clients never exceeds
`max_connections`; connection number max_connections + 1 is turned away
with a 503 instead of queueing.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (Ctrl+C) and SIGTERM both call shutdown(). The loop notices within
one select() timeout, closes every tracked client and the listener, and
start() returns.

Signal handlers can only be installed from the main thread. When the
server runs on another thread (tests, embedding), they are skipped and
shutdown() must be called explicitly.

=============================================================================
"""

import logging
import selectors
import signal
import socket
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from ..http.response import error_response
from ..http.status_codes import HTTPStatus
from .connection import Connection

logger = logging.getLogger(__name__)

# How long select() may block before the loop rechecks the running flag
SELECT_TIMEOUT_SECS = 0.5

# How often tracked clients are checked for idleness
IDLE_SWEEP_INTERVAL_SECS = 1.0

CAPACITY_MESSAGE = "Server is at capacity. Please try again later."


class SocketServer:
    """
    Low-level TCP server built around a single selector loop.

    Usage:
        def handle_connection(conn: Connection):
            conn.serve(dispatcher.process)

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()

    The handler is called once per connection, when the client has sent
    something. The server closes the connection after the handler returns,
    so the handler never has to.
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog,
                    max_connections, timeout, server_name).

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._selector: Optional[selectors.BaseSelector] = None
        self._connections: Dict[str, Connection] = {}
        self._bound_address: Optional[Tuple[str, int]] = None

        self._running = False
        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        # Saved so they can be restored when the server stops
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The server's bound (IP, port).

        Before start() this is the configured address; afterwards it has
        the real port, which differs when port 0 asked for any free port.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    @property
    def connection_count(self) -> int:
        """Number of accepted clients waiting to be served."""
        return len(self._connections)

    # =========================================================================
    # SETUP
    # =========================================================================

    def _create_socket(self) -> socket.socket:
        """Create the listening socket (not yet bound)."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting the server must not fail with "Address already in use"
        # while the old socket sits in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.setblocking(False)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers, on the main thread only."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def start(
        self,
        connection_handler: Callable[[Connection], None],
        on_ready: Optional[Callable[[], None]] = None,
    ):
        """
        Bind, listen and run the event loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called with each connection that became
                                readable.
            on_ready: Called once the socket is listening, before the
                      first connection is accepted.

        Raises:
            OSError: The address could not be bound (logged first).
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._selector = selectors.DefaultSelector()
        self._selector.register(self._socket, selectors.EVENT_READ, data=None)

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            if on_ready is not None:
                on_ready()
            self._event_loop(connection_handler)
        finally:
            self._cleanup()

    def _event_loop(self, connection_handler: Callable[[Connection], None]):
        last_idle_sweep = time.monotonic()

        while self._running:
            try:
                events = self._selector.select(timeout=SELECT_TIMEOUT_SECS)
            except OSError:
                if not self._running:
                    break
                raise

            for key, _ in events:
                if key.data is None:
                    self._accept_clients()
                    continue
                self._handle_client(key.data, connection_handler)

            now = time.monotonic()
            if now - last_idle_sweep >= IDLE_SWEEP_INTERVAL_SECS:
                self._sweep_idle_connections(now)
                last_idle_sweep = now

    def _accept_clients(self):
        """Accept every pending connection on the listener."""
        while True:
            try:
                client_socket, client_address = self._socket.accept()
            except BlockingIOError:
                return
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                return

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            if len(self._connections) >= self.config.max_connections:
                self._reject(client_socket, client_address)
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                timeout=self.config.timeout,
            )
            self._connections[conn.id] = conn
            self._selector.register(client_socket, selectors.EVENT_READ, data=conn)

    def _reject(self, client_socket: socket.socket, client_address: tuple):
        """Turn a connection away with a 503 page."""
        logger.warning(
            f"Connection limit ({self.config.max_connections}) reached, "
            f"rejecting {client_address[0]}"
        )
        response = error_response(
            HTTPStatus.SERVICE_UNAVAILABLE,
            CAPACITY_MESSAGE,
            self.config.server_name,
        )
        with Connection(socket=client_socket, address=client_address[:2],
                        timeout=self.config.timeout) as conn:
            conn.send_response(response.to_bytes())

    def _handle_client(self, conn: Connection, connection_handler: Callable[[Connection], None]):
        """Run one connection's cycle, then always release it."""
        try:
            connection_handler(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            self._close_connection(conn)

    def _sweep_idle_connections(self, now: float):
        """Close clients that connected but sent nothing for `timeout` seconds."""
        for conn in list(self._connections.values()):
            if now - conn.last_activity <= self.config.timeout:
                continue
            logger.debug(f"[{conn.id}] Idle for {now - conn.last_activity:.1f}s, closing")
            self._close_connection(conn)

    def _close_connection(self, conn: Connection):
        if self._connections.pop(conn.id, None) is None:
            return

        try:
            self._selector.unregister(conn.socket)
        except (KeyError, ValueError):
            pass  # Never registered or socket already closed

        conn.close()

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def shutdown(self):
        """
        Stop the event loop.

        Safe to call from a signal handler or another thread, and more
        than once. The loop exits within one select() timeout.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Close every tracked client, the selector and the listener."""
        for conn in list(self._connections.values()):
            self._close_connection(conn)

        if self._selector is not None:
            self._selector.close()
            self._selector = None

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._restore_signals()
        self._running = False
        self._ready_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server is listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the server has stopped. False on timeout."""
        return self._shutdown_event.wait(timeout)
