"""
=============================================================================
FILE SERVER
=============================================================================

Ties the pieces together. For every accepted connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   Connection                                                        │
    │      │                                                              │
    │      ▼                                                              │
    │   RequestReader.read()      bytes ──► Request                       │
    │      │  RequestParseError ──► close, no response                    │
    │      ▼                                                              │
    │   RequestRouter.dispatch()  Request ──► FileHandlers.<op>           │
    │      │                                     │                        │
    │      │◄──────────── RawResult ─────────────┘                        │
    │      ▼                                                              │
    │   ResponseWriter.write()    RawResult ──► bytes on the socket       │
    │      │                                                              │
    │      ▼                                                              │
    │   AccessLogger.log()  ──►  close                                    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The only state shared between connections is the frozen ServerConfig and
the working directory on disk. Each connection gets its own Request and
RawResult, and nothing survives the close.

=============================================================================
"""

import logging
import socket
import time
from typing import Optional

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer
from .handlers import FileHandlers
from .http import RequestParseError, RequestReader, RequestRouter, ResponseWriter


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FileServer:
    """
    Network gateway to a directory tree.

    Usage:
        config = ServerConfig(working_directory="/srv/files", port=8080)
        server = FileServer(config)
        server.run()   # blocks until SIGINT/SIGTERM or shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Validated here; a bad config raises ValueError before
                    any socket is created.
        """
        config.validate()
        self.config = config

        self._socket_server = SocketServer(config)
        self._reader = RequestReader(server_domain=config.server_domain)
        self._handlers = FileHandlers(config.working_directory)
        self._router = RequestRouter.for_handlers(self._handlers)
        self._writer = ResponseWriter(server_name=config.server_name)
        self._access = AccessLogger(log_format=config.log_format)

    @property
    def address(self):
        """Bound (host, port); meaningful once the server is ready."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self) -> None:
        """
        Serve until shut down. Blocks the calling thread.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        self._setup_logging()

        logger.info(
            f"Starting server on {self.config.address}, domain {self.config.server_domain!r}, "
            f"working directory {self.config.working_directory}"
        )
        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        logger.info("Server stopped")

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # No-op if the root logger already has handlers (embedding, tests)
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        logging.getLogger("fileserver").setLevel(level)

    def shutdown(self) -> None:
        """Stop accepting after the current connection. Thread-safe."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_connection(self, conn: Connection) -> None:
        """
        Serve exactly one request on `conn`, then close it.

        Never raises: anything unexpected is logged and the connection is
        dropped so the accept loop can carry on with the next client.
        """
        with conn:
            started = time.perf_counter()

            try:
                request = self._reader.read(conn)
            except RequestParseError as e:
                logger.warning(f"[{conn.id}] {e}; closing without response")
                return
            except socket.timeout:
                logger.warning(f"[{conn.id}] Timed out reading request")
                return
            except OSError as e:
                logger.warning(f"[{conn.id}] Error reading request: {e}")
                return
            except Exception as e:
                logger.exception(f"[{conn.id}] Error reading request: {e}")
                return

            try:
                result = self._router.dispatch(request)
                self._writer.write(conn, result)
            except Exception as e:
                logger.exception(f"[{conn.id}] Error handling {request.verb} {request.path}: {e}")
                return

            self._access.log(conn.client_ip, request, result, started)

