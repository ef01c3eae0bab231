"""
=============================================================================
FILESERVER - Remote File Access Over a Minimal HTTP/1.1 Protocol
=============================================================================

Exposes one directory tree to network clients. Each TCP connection carries
exactly one request, which becomes exactly one filesystem operation:

    GET     /path   → file contents, or a long listing for a directory
    POST    /path   → create a file (or, with Create-Directory: True, a dir)
    PUT     /path   → overwrite an existing file
    DELETE  /path   → delete a file (or, with Remove-Directory: True, a tree)

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   SocketServer            accept loop, one connection at a time     │
    │        │                                                            │
    │        ▼                                                            │
    │   Connection              readline / read(n) / send / close         │
    │        │                                                            │
    │        ▼                                                            │
    │   RequestReader  ──►  RequestRouter  ──►  FileHandlers              │
    │                                               │                     │
    │                                               ▼                     │
    │                       ResponseWriter  ◄──  RawResult                │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

    fileserver/
    ├── __main__.py          # CLI entry point
    ├── config.py            # ServerConfig (CLI > environment > defaults)
    ├── server.py            # FileServer: wires the pipeline together
    ├── access_log.py        # One record per served request
    ├── core/
    │   ├── connection.py    # Byte stream over an accepted socket
    │   └── socket_server.py # Listening socket + accept loop
    ├── http/
    │   ├── request.py       # Wire format → Request
    │   ├── response.py      # RawResult → wire format
    │   ├── router.py        # Verb → handler
    │   ├── status_codes.py  # The five statuses in use
    │   └── mime_types.py    # Extension → Content-Type
    └── handlers/
        ├── files.py         # fetch / create / replace / remove
        └── listing.py       # Long-format directory listing

=============================================================================
QUICK START
=============================================================================

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(working_directory="/srv/files"))
    server.run()

Then, from any shell:

    printf 'POST /hello.txt HTTP/1.1\\r\\nContent-Length: 5\\r\\n\\r\\nhello' \\
        | nc localhost 8080

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
