"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Everything above TCP
(parsing, dispatch, filesystem work) lives in the callback it is given.

=============================================================================
SEQUENTIAL ACCEPT LOOP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   socket() ─► bind() ─► listen() ─┐                                 │
    │                                   ▼                                 │
    │                 ┌──────────► accept() ◄── blocks (1s slices)        │
    │                 │                 │                                 │
    │                 │                 ▼                                 │
    │                 │     handler(Connection)  ◄── runs to completion   │
    │                 │                 │                                 │
    │                 └─────────────────┘                                 │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

One connection is handled start to finish before the next accept(). Other
clients wait in the kernel's backlog queue meanwhile. A client that
connects and never finishes its request holds everyone else up unless a
per-connection timeout is configured.

The 1-second accept() timeout is not a client deadline. It only lets the
loop notice shutdown() between connections.

=============================================================================
SIGNALS
=============================================================================

    SIGINT  (Ctrl+C)                 ┐
    SIGTERM (kill, docker stop, ...) ┘──► shutdown() ──► loop exits

Python only allows signal handlers on the main thread, so when the server
runs in a worker thread (tests, embedding) shutdown() must be called
directly instead.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Listening socket plus a sequential accept loop.

    Usage:
        def handle(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Bind address, backlog and per-connection settings.

        The socket is not created until start().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        With port 0 in the config the OS picks a free port; once the
        socket is bound this reports the real one.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening TCP socket with its options set."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restart without waiting out TIME_WAIT on the old socket
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self) -> None:
        """Route SIGINT/SIGTERM to shutdown(), if we are on the main thread."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called once per accepted connection, on this
                                thread. It owns the connection and must
                                close it.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Listening at {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]) -> None:
        """Accept and fully handle connections, one at a time."""
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Failed to accept connection: {e}")
                break

            logger.info(f"Handle connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                client_socket,
                client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )
            connection_handler(conn)

    def shutdown(self) -> None:
        """
        Ask the accept loop to stop.

        Safe to call from a signal handler or another thread, and safe to
        call more than once. The connection in progress, if any, is
        finished first.
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self) -> None:
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True once listening, False if the timeout expired first.
        """
        return self._ready_event.wait(timeout)

