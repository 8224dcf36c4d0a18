"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The closed set of status codes TinyServe knows a reason phrase for.

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (looked up here)
              └───────── Status code (set by handlers)

Handlers are free to set any integer status. Codes outside this table are
still sent; they just get the placeholder phrase "Unknown". Serializing a
response must never fail because of an unusual status code.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes with a known reason phrase.

    IntEnum members compare equal to plain ints, so handlers can write
    either `response.status = 404` or `response.status = HTTPStatus.NOT_FOUND`.

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for this status code."""
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}

UNKNOWN_PHRASE = "Unknown"


def reason_phrase(status: int) -> str:
    """
    Look up the reason phrase for any integer status.

    Args:
        status: Status code, known or not.

    Returns:
        The phrase from the table, or "Unknown".

    Examples:
        >>> reason_phrase(201)
        'Created'
        >>> reason_phrase(418)
        'Unknown'
    """
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return UNKNOWN_PHRASE
