"""
Built-in handlers: static files under the document root, and the
/api/status and /api/echo routes.
"""

from .static import INDEX_FILE, StaticFileResolver, sanitize_path
from .api import echo_handler, register_default_routes

__all__ = [
    "INDEX_FILE",
    "StaticFileResolver",
    "sanitize_path",
    "echo_handler",
    "register_default_routes",
]
