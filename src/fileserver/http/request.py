"""
=============================================================================
REQUEST READER
=============================================================================

Reads one request off a byte stream and turns it into a Request object.

The gateway understands a small, strict subset of HTTP/1.1. Anything it
does not understand is skipped rather than rejected.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  REQUEST LINE                                                       │
    │  ─────────────────────────────────────────────────────────────────  │
    │  POST /notes/todo.txt HTTP/1.1\r\n                                  │
    │  ──┬─ ──────┬──────── ───┬────                                      │
    │    │        │            └── ignored                                │
    │    │        └── path, relative to the working directory             │
    │    └── verb                                                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │  HEADERS (name token includes the colon)                            │
    │  ─────────────────────────────────────────────────────────────────  │
    │  Host: files.local\r\n                                              │
    │  Content-Length: 11\r\n                                             │
    │  Create-Directory: True\r\n                                         │
    │  \r\n                          ← empty line ends the headers        │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BODY                                                               │
    │  ─────────────────────────────────────────────────────────────────  │
    │  hello world                   ← exactly Content-Length bytes       │
    └─────────────────────────────────────────────────────────────────────┘

RECOGNIZED HEADERS:

    Content-Length:     body size; anything but digits → 0
    Create-Directory:   POST makes a directory iff value is exactly "True"
    Remove-Directory:   DELETE may remove a directory iff exactly "True"
    Host:               compared with the configured server domain

Header names are matched exactly (case-sensitive).

=============================================================================
FAILURE MODES
=============================================================================

    Request line with fewer than two tokens  → RequestParseError
                                               (connection closed, no reply)
    Stream ends before Content-Length bytes  → warning logged, request
                                               returned with a short body
    Stream ends inside the headers           → treated as end of headers

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Protocol


logger = logging.getLogger(__name__)

# Paths arrive as raw bytes. surrogateescape lets undecodable bytes survive
# the round trip into os.* calls unchanged.
WIRE_ENCODING = "utf-8"
WIRE_ERRORS = "surrogateescape"

CONTENT_LENGTH = "Content-Length:"
CREATE_DIRECTORY = "Create-Directory:"
REMOVE_DIRECTORY = "Remove-Directory:"
HOST = "Host:"

# Upper bound on a single read() while collecting the body
BODY_CHUNK_SIZE = 64 * 1024


class RequestParseError(Exception):
    """
    Raised when no usable Request can be read from the stream.

    There is nothing meaningful to answer, so the server closes the
    connection without writing a response.
    """


class ByteStream(Protocol):
    """The two reading operations the reader needs from a connection."""

    def readline(self) -> bytes: ...

    def read(self, size: int) -> bytes: ...


@dataclass
class Request:
    """
    One parsed request.

    Created once per connection by RequestReader, consumed once by the
    router, then thrown away.

    Attributes:
        verb:             First request-line token ("GET", "POST", ...).
        path:             Second token, not yet joined to the working
                          directory and not checked for "..".
        content_length:   Declared body size (never negative).
        create_directory: POST should create a directory, not a file.
        remove_directory: DELETE may recurse into a directory.
        wrong_domain:     Host header disagreed with the server domain.
        body:             Body bytes. Shorter than content_length only if
                          the client hung up early.
    """

    verb: str
    path: str
    content_length: int = 0
    create_directory: bool = False
    remove_directory: bool = False
    wrong_domain: bool = False
    body: bytes = b""

    @property
    def is_truncated(self) -> bool:
        """True if the stream closed before the whole body arrived."""
        return len(self.body) < self.content_length


class RequestReader:
    """
    Reads a single Request from a byte stream.

        RequestReader(server_domain="files.local").read(conn)
              │
              ├──► _read_request_line()   "GET /a.txt HTTP/1.1"
              ├──► _apply_header() × N    until the empty line
              └──► _read_body()           exactly content_length bytes

    The reader is stateless between calls; one instance can serve every
    connection.
    """

    def __init__(self, server_domain: str = ""):
        """
        Args:
            server_domain: Expected Host header value. Empty accepts any.
        """
        self.server_domain = server_domain

    def read(self, stream: ByteStream) -> Request:
        """
        Read one request: request line, headers, body.

        Raises:
            RequestParseError: If the request line is missing or malformed.
        """
        line = self._read_line(stream)
        logger.debug(f"Got line: {line!r}")

        tokens = line.split(" ")
        if len(tokens) < 2:
            raise RequestParseError(f"Malformed request line: {line!r}")

        request = Request(verb=tokens[0], path=tokens[1])

        while True:
            line = self._read_line(stream)
            if line == "":
                break
            logger.debug(f"Got line: {line!r}")
            self._apply_header(line, request)

        request.body = self._read_body(stream, request.content_length)
        if request.is_truncated:
            logger.warning(
                f"Error while reading body: expected {request.content_length} bytes, "
                f"got {len(request.body)}"
            )

        return request

    def _read_line(self, stream: ByteStream) -> str:
        """Read one line and strip the trailing CR/LF characters."""
        raw = stream.readline()
        return raw.decode(WIRE_ENCODING, WIRE_ERRORS).rstrip("\r\n")

    def _apply_header(self, line: str, request: Request) -> None:
        """
        Update the request from one header line.

        The line is split on the FIRST space only, so values may contain
        spaces: "Host: my files" → ("Host:", "my files").
        """
        name, _, value = line.partition(" ")

        if name == CONTENT_LENGTH:
            request.content_length = _parse_length(value)
        elif name == CREATE_DIRECTORY:
            if value == "True":
                request.create_directory = True
        elif name == REMOVE_DIRECTORY:
            if value == "True":
                request.remove_directory = True
        elif name == HOST:
            if self.server_domain and self.server_domain != value:
                request.wrong_domain = True

    def _read_body(self, stream: ByteStream, length: int) -> bytes:
        """
        Read up to `length` bytes, stopping early only at end of stream.

        The declared length comes from the client, so memory is only
        committed as bytes actually arrive.
        """
        if length <= 0:
            return b""

        chunks = []
        remaining = length
        while remaining > 0:
            chunk = stream.read(min(remaining, BODY_CHUNK_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        return b"".join(chunks)


def _parse_length(value: str) -> int:
    """Content-Length as an int; anything but plain ASCII digits counts as 0."""
    # int() alone would also accept " 5", "+5" and "1_000"
    if not (value.isascii() and value.isdigit()):
        return 0
    return int(value)
