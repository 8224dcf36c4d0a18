"""
=============================================================================
STATIC FILE RESOLVER
=============================================================================

Serves files from the document root when no route matched.

=============================================================================
WHEN STATIC FILES ARE SERVED
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATIC FALLBACK DECISION                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   route found for (method, path)?  ──yes──►  route handler           │
    │        │ no                                                          │
    │        ▼                                                             │
    │   method is GET and no route for this path under ANY method?         │
    │        │ yes                                      │ no               │
    │        ▼                                          ▼                  │
    │   StaticFileResolver.serve(path)                 404                 │
    │        │                                                             │
    │        ├── True  ──► 200, file bytes, Content-Type by extension      │
    │        └── False ──► 404                                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A route always beats a same-named file: with GET /data.json routed and
public/data.json on disk, the route wins.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    sanitize_path     "/../../etc/passwd"  →  "//etc/passwd"
    candidate_path    "//etc/passwd"       →  <root>/etc/passwd

Every literal ".." substring is deleted, then the path is joined UNDER the
document root (leading slashes are stripped first, so the join can never
produce an absolute path outside it).

This is substring removal, not segment-aware canonicalization. It blocks
the classic "../" climb, but it also mangles legitimate names that happen
to contain ".." ("/notes..txt" becomes "/notestxt") and it does not resolve
symlinks that point outside the root. It is kept this way for compatibility
with the behavior clients of this server already rely on.

=============================================================================
"""

from pathlib import Path
import logging

from ..http.mime_types import get_mime_type
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


def sanitize_path(path: str) -> str:
    """
    Remove every ".." substring from a request path.

        >>> sanitize_path("/../../etc/passwd")
        '//etc/passwd'
        >>> sanitize_path("/a/b.txt")
        '/a/b.txt'
    """
    return path.replace("..", "")


class StaticFileResolver:
    """
    Maps request paths to files under a document root.

    Usage:
        resolver = StaticFileResolver("./public")

        if not resolver.serve(request.path, response):
            ...  # nothing on disk: send a 404
    """

    def __init__(self, root: str | Path):
        """
        Args:
            root: Document root. Not checked here; the server validates it
                  when it starts.
        """
        self.root = Path(root)

    def candidate_path(self, path: str) -> Path:
        """
        Compute the filesystem path a request path maps to.

        Directory paths get the index file:

            "/"         →  <root>/index.html
            "/docs/"    →  <root>/docs/index.html
            "/a.txt"    →  <root>/a.txt
        """
        path = sanitize_path(path)

        if path == "" or path.endswith("/"):
            path += INDEX_FILE

        return self.root / path.lstrip("/")

    def serve(self, path: str, response: HTTPResponse) -> bool:
        """
        Fill `response` with the file at `path`, if there is one.

        Args:
            path: Decoded request path.
            response: Response to populate on success.

        Returns:
            True if a regular file was read and loaded into the response.
            False for anything else: missing file, a directory, permission
            denied, a read error or an unrepresentable path. The caller
            can't tell these apart, and doesn't need to.
        """
        candidate = self.candidate_path(path)

        try:
            if not candidate.is_file():
                return False
            content = candidate.read_bytes()
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot serve {candidate}: {e}")
            return False

        response.status = HTTPStatus.OK
        response.set_header("Content-Type", get_mime_type(candidate))
        response.set_header("Content-Length", len(content))
        response.set_body(content)

        logger.debug(f"Served {candidate} ({len(content)} bytes)")
        return True


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# - GET only, and only for paths no route claims under any method
# - "/" and "dir/" map to index.html
# - Files are read fully into memory; there is no streaming
# - Every failure folds into "no file", which the dispatcher turns into 404
# =============================================================================
