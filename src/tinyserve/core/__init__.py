"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking layer under TinyServe:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • One select() loop: accepts clients, serves readable ones         │
    │  • Answers 503 when max_connections clients are already open        │
    │  • Stops on SIGINT/SIGTERM or shutdown()                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Client socket readable
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Wraps one client socket with its read timeout                    │
    │  • Reads one request, writes one response, closes                   │
    │  • NEW → READING → WRITING → CLOSED                                 │
    └─────────────────────────────────────────────────────────────────────┘

Requests are served one at a time, in the order their sockets become
readable.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
]
