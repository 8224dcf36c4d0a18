"""
=============================================================================
MIME TYPE REGISTRY
=============================================================================

Maps file extensions to Content-Type values for static file serving.

When the server hands a file to a browser, the Content-Type header tells
the browser what to do with the bytes:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION → CONTENT-TYPE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   index.html   ──►  text/html                 render as a page       │
    │   app.js       ──►  application/javascript    execute as script      │
    │   logo.png     ──►  image/png                 decode as an image     │
    │   data.bin     ──►  application/octet-stream  offer as a download    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The table is deliberately small: it covers what a local development server
actually sees (pages, styles, scripts, images, fonts, media). Anything not
listed falls back to application/octet-stream.

No charset parameter is appended. A file is served with exactly the type
listed here, so a .txt file is "text/plain" and nothing more.

=============================================================================
"""

from pathlib import Path


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are lowercase extensions including the leading dot, which is what
# Path.suffix returns.
#
# =============================================================================

MIME_TYPES = {
    # Documents and text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",

    # Binary documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",

    # Video
    ".mp4": "video/mp4",
    ".webm": "video/webm",
}

# "I don't know what this is, treat it as opaque bytes"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: str | Path) -> str:
    """
    Get the Content-Type for a file based on its extension.

    The extension is lowercased before lookup, so "LOGO.PNG" and
    "logo.png" resolve the same way.

    Args:
        path: File path or bare filename.

    Returns:
        The MIME type, or application/octet-stream when the extension is
        missing or unknown.

    Examples:
        >>> get_mime_type("/srv/public/a.txt")
        'text/plain'

        >>> get_mime_type("firmware.bin")
        'application/octet-stream'

        >>> get_mime_type("Makefile")
        'application/octet-stream'
    """
    extension = Path(path).suffix.lower()
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)
