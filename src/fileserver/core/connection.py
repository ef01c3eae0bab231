"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket in the small byte-stream API the request
reader and response writer need:

    readline()   one line, terminator included ("" bytes at end of stream)
    read(n)      up to n bytes, blocking until n arrive or the peer closes
    send(data)   the whole buffer, or False if the peer went away
    close()      orderly TCP shutdown, then release the descriptor

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

One send() on the client does not mean one recv() on the server:

    client:  send(b"GET /a.txt HTTP/1.1\r\nHost: x\r\n\r\n")

    server:  recv() → b"GET /a.t"
             recv() → b"xt HTTP/1.1\r\nHo"
             recv() → b"st: x\r\n\r\n"

Reading line-by-line therefore needs a buffer that survives between
recv() calls. socket.makefile("rb") gives us exactly that: a
BufferedReader whose readline() and read(n) keep calling recv() until
they have what was asked for.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. The lifecycle is always:

    NEW ──► READING ──► WRITING ──► CLOSED

and the server moves on to the next accept() only after CLOSED.

=============================================================================
"""

import logging
import socket
import time
import uuid
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)

DRAIN_TIMEOUT = 0.5
DRAIN_CHUNK_SIZE = 4096


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""

    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSED = "closed"


class Connection:
    """
    A client connection with buffered reads.

    Usage:
        with Connection(client_socket, client_address) as conn:
            line = conn.readline()
            body = conn.read(11)
            conn.send(b"HTTP/1.1 200 OK\\r\\n...")

    Attributes:
        socket:     The accepted client socket.
        address:    Client (ip, port).
        id:         Short identifier for log lines.
        state:      Current ConnectionState.
        created_at: When the connection was accepted.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple,
        buffer_size: int = 8192,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            sock:        Accepted client socket.
            address:     Client address as returned by accept().
            buffer_size: Read buffer size for the underlying file object.
            timeout:     Per-operation deadline in seconds. None blocks
                         forever, so a stalled client stalls the server.
        """
        self.socket = sock
        self.address = address
        self.id = uuid.uuid4().hex[:8]
        self.state = ConnectionState.NEW
        self.created_at = time.time()

        # settimeout(None) is the same as setblocking(True)
        self.socket.settimeout(timeout)
        self._reader = self.socket.makefile("rb", buffering=buffer_size)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Seconds since accept()."""
        return time.time() - self.created_at

    def readline(self) -> bytes:
        """
        Read one line including its terminator.

        Returns b"" at end of stream or if the peer reset the connection.
        """
        self.state = ConnectionState.READING
        try:
            return self._reader.readline()
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def read(self, size: int) -> bytes:
        """
        Read up to `size` bytes.

        Blocks until `size` bytes have arrived or the peer closes; a short
        result means the stream ended early.
        """
        self.state = ConnectionState.READING
        try:
            return self._reader.read(size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def send(self, data: bytes) -> bool:
        """
        Send all of `data`.

        sendall() loops until the kernel has accepted every byte; a plain
        send() may stop after a partial write.

        Returns:
            True on success, False if the peer is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Error writing response: {e}")
            return False
        return True

    def close(self) -> None:
        """
        Close the connection.

        shutdown(SHUT_WR) sends our FIN first so the client sees a clean
        end of response before the descriptor goes away.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        # Unread input at close() makes the kernel send RST over the response.
        # The drain has one overall deadline so a chatty peer cannot hold us.
        deadline = time.monotonic() + DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(DRAIN_CHUNK_SIZE):
                    break
        except OSError:
            pass

        self._reader.close()
        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
