"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for exactly one request/response cycle.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Lifetime                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept() ──► registered with selector, waiting for bytes           │
    │                     │                                                │
    │                     │ readable (or idle too long → swept)            │
    │                     ▼                                                │
    │                serve(process)                                        │
    │                     │                                                │
    │                     ├── makefile("rb") → request stream              │
    │                     ├── process(stream, address) → response | None   │
    │                     └── sendall(response bytes)                      │
    │                     │                                                │
    │                     ▼                                                │
    │                close()   ALWAYS, whatever happened above             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no keep-alive: every response carries "Connection: close" and
the socket is closed right after it is written. A second request on the
same TCP connection is never read.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

A request may arrive split across any number of TCP segments. Rather than
buffering by hand until "\\r\\n\\r\\n" shows up, the socket is wrapped in a
buffered binary file (socket.makefile("rb")), so the parser can simply
call readline() for the request line and headers and read(n) for the body.
The socket's timeout bounds every one of those blocking reads.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► WRITING ──────► CLOSED
     │             │
     └─────────────┴──── (idle sweep, timeout, reset) ──► CLOSED

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, Optional

from ..http.response import HTTPResponse

logger = logging.getLogger(__name__)


# Reads one request from a stream and decides the response (or None)
RequestProcessor = Callable[[BinaryIO, tuple[str, int]], Optional[HTTPResponse]]


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and idle tracking."""
    NEW = "new"              # Accepted, waiting for the client to send
    READING = "reading"      # Request being read and processed
    WRITING = "writing"      # Sending the response
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current connection state.
        created_at: Monotonic time the connection was accepted.
        last_activity: Monotonic time of the last read or write.
        timeout: Socket timeout in seconds for every read and write.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)

    timeout: float = 30.0

    def __post_init__(self):
        # Blocking reads, bounded by the timeout
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def idle_time(self) -> float:
        """Seconds since the last activity."""
        return time.monotonic() - self.last_activity

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # REQUEST/RESPONSE CYCLE
    # =========================================================================

    def serve(self, process: RequestProcessor) -> bool:
        """
        Run the single request/response cycle for this connection.

        Args:
            process: Called with the request stream and client address;
                     returns the response to send, or None to send nothing.

        Returns:
            True if a response was written.

        Read timeouts and resets abandon the connection: they are logged
        at debug level and reported as False, never raised.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.monotonic()

        try:
            with self.socket.makefile("rb") as stream:
                response = process(stream, self.address)
        except OSError as e:
            # socket.timeout and ConnectionResetError are both OSErrors
            logger.debug(f"[{self.id}] Abandoning connection from {self.client_ip}: {e}")
            return False

        if response is None:
            return False

        return self.send_response(response.to_bytes())

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() so the whole response goes out; send() may write
        only part of it.

        Returns:
            True if send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        self.last_activity = time.monotonic()

        try:
            self.socket.sendall(data)
            self.last_activity = time.monotonic()
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN: the client sees end-of-response.
        2. Discard whatever the client sent that was never read, without
           waiting for more. Closing with unread data would reset the
           connection and could cut off the response.
        3. close() releases the file descriptor.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.setblocking(False)
            while self.socket.recv(4096):
                pass
        except OSError:
            pass  # Nothing buffered (BlockingIOError) or peer gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection from {self.client_ip} closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False
