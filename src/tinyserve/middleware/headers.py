"""
=============================================================================
HEADER MIDDLEWARE
=============================================================================

Small middleware that only add response headers and always continue.

    RequestIdMiddleware      X-Request-ID: 3f9a01c2
    CacheControlMiddleware   Cache-Control: public, max-age=3600   (assets)
                             Cache-Control: no-cache, no-store, must-revalidate

=============================================================================
REQUEST CORRELATION
=============================================================================

The request ID shows up both in the response header and in the server
log, so a failing request seen in the browser's network tab can be found
in the log:

    DEBUG tinyserve.middleware.headers: [REQUEST-3f9a01c2] POST /api/echo

=============================================================================
"""

import logging
import uuid
from typing import Sequence

from .base import Middleware
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse

logger = logging.getLogger(__name__)


class RequestIdMiddleware(Middleware):
    """
    Tags each response with a random 8-hex-digit X-Request-ID.

    Usage:
        server.add_middleware(RequestIdMiddleware())
    """

    header_name = "X-Request-ID"

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        request_id = uuid.uuid4().hex[:8]
        response.set_header(self.header_name, request_id)
        logger.debug(f"[REQUEST-{request_id}] {request.method} {request.path}")
        return True


ASSET_EXTENSIONS = (
    ".css", ".js", ".png", ".jpg", ".jpeg", ".gif", ".svg", ".woff", ".woff2",
)

NO_CACHE = "no-cache, no-store, must-revalidate"


class CacheControlMiddleware(Middleware):
    """
    Sets Cache-Control by path: assets may be cached, everything else not.

    Args:
        max_age: Seconds browsers may cache an asset.
        extensions: Path suffixes treated as cacheable assets.

    Example:
        server.add_middleware(CacheControlMiddleware(max_age=86400))

        GET /css/site.css   →  Cache-Control: public, max-age=86400
        GET /api/status     →  Cache-Control: no-cache, no-store, must-revalidate
    """

    def __init__(self, max_age: int = 3600, extensions: Sequence[str] = ASSET_EXTENSIONS):
        self.max_age = max_age
        self.extensions = tuple(ext.lower() for ext in extensions)

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        if request.path.lower().endswith(self.extensions):
            response.set_header("Cache-Control", f"public, max-age={self.max_age}")
        else:
            response.set_header("Cache-Control", NO_CACHE)
        return True
