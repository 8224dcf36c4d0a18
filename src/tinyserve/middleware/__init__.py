"""
=============================================================================
MIDDLEWARE
=============================================================================

Middleware runs before routing, in the order it was added. Each one gets
the request and the response being built and returns:

    True    → continue with the next middleware, then routing
    False   → stop; the response as it stands is sent

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Request                                                            │
    │      │                                                               │
    │      ▼                                                               │
    │   ┌──────────────────┐                                               │
    │   │ CORSMiddleware   │ ──► Allow-* headers; OPTIONS → 204, stop      │
    │   └────────┬─────────┘                                               │
    │            ▼                                                          │
    │   ┌──────────────────┐                                               │
    │   │ RequestId...     │ ──► X-Request-ID                              │
    │   └────────┬─────────┘                                               │
    │            ▼                                                          │
    │   Route handler or static file                                       │
    └─────────────────────────────────────────────────────────────────────┘

Plain functions work too; they are wrapped in FunctionMiddleware.

=============================================================================
"""

from .base import FunctionMiddleware, Middleware, MiddlewareFunc, MiddlewarePipeline
from .cors import CORSMiddleware
from .headers import CacheControlMiddleware, RequestIdMiddleware

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewareFunc",
    "FunctionMiddleware",
    "MiddlewarePipeline",

    # Built-in middleware
    "CORSMiddleware",
    "RequestIdMiddleware",
    "CacheControlMiddleware",
]
