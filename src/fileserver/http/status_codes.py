"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The gateway speaks a deliberately small slice of HTTP. Only five status
lines can ever leave the server:

    ┌───────┬──────────────────┬───────────────────────────────────────────┐
    │ Code  │ Phrase           │ When                                      │
    ├───────┼──────────────────┼───────────────────────────────────────────┤
    │  200  │ OK               │ Default. Also used when raw I/O fails     │
    │  400  │ Bad Request      │ Host header disagrees with server domain  │
    │  404  │ Not Found        │ GET / PUT / DELETE on a missing path      │
    │  406  │ Not Acceptable   │ DELETE on a directory without opt-in      │
    │  409  │ Conflict         │ POST on existing path, PUT on directory   │
    └───────┴──────────────────┴───────────────────────────────────────────┘

=============================================================================
WHY AN IntEnum?
=============================================================================

IntEnum members ARE integers, so they compare and format like numbers:

    HTTPStatus.NOT_FOUND == 404        → True
    f"{HTTPStatus.NOT_FOUND:d}"        → "404"

while still carrying a name and a reason phrase for the status line.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes emitted by the file server.

    Usage:
        status = HTTPStatus.CONFLICT
        print(status.line)      # "409 Conflict"
        print(status.is_error)  # True
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    NOT_ACCEPTABLE = 406
    CONFLICT = 409

    @property
    def phrase(self) -> str:
        """Reason phrase that follows the code on the status line."""
        return _STATUS_PHRASES[self]

    @property
    def line(self) -> str:
        """
        Code and phrase as they appear after the version token.

            HTTP/1.1 404 Not Found
                     ─────────────
                          │
                          └── this part
        """
        return f"{int(self)} {self.phrase}"

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.NOT_ACCEPTABLE: "Not Acceptable",
    HTTPStatus.CONFLICT: "Conflict",
}
