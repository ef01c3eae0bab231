"""
=============================================================================
RESPONSE WRITER
=============================================================================

Handlers do not build wire bytes themselves. They return a RawResult:
body bytes plus two optional overrides. The ResponseWriter turns that into
the one fixed response shape this server ever sends.

=============================================================================
RESPONSE SHAPE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 409 Conflict\r\n       ← status override, or "200 OK"     │
    │  Server: HWServer\r\n            ← fixed identification             │
    │  Content-Length: 33\r\n          ← always len(body)                 │
    │  Content-Type: \r\n              ← may be empty (listings, errors)  │
    │  \r\n                                                               │
    │  File /srv/a.txt already exists  ← body, verbatim                   │
    └─────────────────────────────────────────────────────────────────────┘

Header order is fixed. There is no Date header, no Connection header and
no chunked encoding: every connection carries exactly one response and is
then closed.

The empty "Content-Type: " line is kept on purpose. Existing clients parse
it, so the writer emits the header even when it has no value.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)

HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"


class Sink(Protocol):
    """Anything the writer can push response bytes into."""

    def send(self, data: bytes) -> bool: ...


@dataclass
class RawResult:
    """
    Handler output, before serialization.

    Attributes:
        body:         Response body (possibly empty).
        status:       Status override. None means 200 OK.
        content_type: Content-Type value. None is written as an empty value.
    """

    body: bytes = b""
    status: Optional[HTTPStatus] = None
    content_type: Optional[str] = None

    @property
    def effective_status(self) -> HTTPStatus:
        """The status that will go on the wire."""
        return self.status if self.status is not None else HTTPStatus.OK

    @classmethod
    def error(cls, status: HTTPStatus, message: str = "") -> "RawResult":
        """Build a result carrying an error status and a text message."""
        return cls(body=message.encode("utf-8", "surrogateescape"), status=status)


class ResponseWriter:
    """
    Serializes RawResults and writes them to a connection.

    Usage:
        writer = ResponseWriter(server_name="HWServer")
        writer.write(conn, RawResult(body=b"hi"))
    """

    def __init__(self, server_name: str = "HWServer"):
        self.server_name = server_name

    def serialize(self, result: RawResult) -> bytes:
        """Render a RawResult as complete response bytes."""
        lines = [
            f"{HTTP_VERSION} {result.effective_status.line}",
            f"Server: {self.server_name}",
            f"Content-Length: {len(result.body)}",
            f"Content-Type: {result.content_type or ''}",
            "",
        ]
        head = CRLF.join(lines) + CRLF
        return head.encode("utf-8") + result.body

    def write(self, sink: Sink, result: RawResult) -> bool:
        """
        Send one response, in full.

        Returns:
            True if the bytes were handed to the socket, False otherwise.
        """
        sent = sink.send(self.serialize(result))
        if sent:
            logger.debug("Response has been sent")
        return sent
