"""
=============================================================================
FILESYSTEM HANDLERS
=============================================================================

The four operations the gateway exposes, one per verb:

    ┌────────┬──────────┬─────────────────────────────────────────────────┐
    │ Verb   │ Handler  │ Effect                                          │
    ├────────┼──────────┼─────────────────────────────────────────────────┤
    │ GET    │ fetch    │ file contents, or a long listing for a dir     │
    │ POST   │ create   │ new file from the body, or new dir (opt-in)    │
    │ PUT    │ replace  │ overwrite an existing regular file             │
    │ DELETE │ remove   │ delete a file, or a whole tree (opt-in)        │
    └────────┴──────────┴─────────────────────────────────────────────────┘

Every path is join(working_directory, request.path). Nothing here
canonicalizes or rejects ".." segments; confinement is NOT enforced.

=============================================================================
TWO KINDS OF FAILURE
=============================================================================

    RESOURCE STATE (checked up front, reported to the client):

        missing path             → 404 Not Found
        POST on existing path    → 409 Conflict
        PUT on a directory       → 409 Conflict
        DELETE dir, no opt-in    → 406 Not Acceptable

    RAW I/O (permission denied, disk full, ...):

        logged here, NOT turned into an error status. The client gets
        whatever the handler had built so far, usually an empty 200.

    A path the OS cannot represent at all (an embedded NUL byte) raises
    ValueError instead of OSError and lands in the same two buckets: a
    failed stat is "missing", a failed write is logged.

The existence check and the write/delete that follows are two separate
system calls. Another process can change the path in between.

=============================================================================
"""

import logging
import os
import shutil
import stat

from ..http.mime_types import get_content_type
from ..http.request import Request
from ..http.response import RawResult
from ..http.status_codes import HTTPStatus
from .listing import list_directory


logger = logging.getLogger(__name__)

# rwx for everyone, filtered by the process umask
PERMISSIVE_MODE = 0o777


class FileHandlers:
    """
    Filesystem operations rooted at a working directory.

    Usage:
        handlers = FileHandlers("/srv/files")
        result = handlers.fetch(request)
    """

    def __init__(self, working_directory: str):
        self.working_directory = working_directory

    def resolve(self, requested: str) -> str:
        """
        Join a request path onto the working directory.

        Leading slashes are dropped so "/a.txt" lands inside the root
        instead of replacing it. The result is normalized the way a plain
        path join would, which means ".." still walks upward.

            resolve("/notes/a.txt")  → "<root>/notes/a.txt"
            resolve("/")             → "<root>"
        """
        joined = os.path.join(self.working_directory, requested.lstrip("/"))
        return os.path.normpath(joined)

    # =========================================================================
    # GET
    # =========================================================================

    def fetch(self, request: Request) -> RawResult:
        """Return file contents or a directory listing."""
        path = self.resolve(request.path)

        try:
            info = os.stat(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Error while getting file: {e}")
            return RawResult.error(HTTPStatus.NOT_FOUND, f"File {path} not found")

        if stat.S_ISDIR(info.st_mode):
            try:
                return RawResult(body=list_directory(path))
            except (OSError, ValueError) as e:
                logger.error(f"Error listing directory {path}: {e}")
                return RawResult()

        try:
            with open(path, "rb") as f:
                body = f.read()
        except (OSError, ValueError) as e:
            logger.error(f"Error while reading file {path}: {e}")
            return RawResult()

        return RawResult(body=body, content_type=get_content_type(path))

    # =========================================================================
    # POST
    # =========================================================================

    def create(self, request: Request) -> RawResult:
        """Create a new file from the body, or a new directory."""
        path = self.resolve(request.path)

        if os.path.exists(path):
            return RawResult.error(HTTPStatus.CONFLICT, f"File {path} already exists")

        if request.create_directory:
            try:
                os.mkdir(path, PERMISSIVE_MODE)
            except (OSError, ValueError) as e:
                logger.error(f"Error while creating directory {path}: {e}")
            return RawResult()

        try:
            _write_file(path, request.body)
        except (OSError, ValueError) as e:
            logger.error(f"Error while creating file {path}: {e}")

        return RawResult()

    # =========================================================================
    # PUT
    # =========================================================================

    def replace(self, request: Request) -> RawResult:
        """Overwrite an existing regular file with the body."""
        path = self.resolve(request.path)

        try:
            info = os.stat(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Error while putting file: {e}")
            return RawResult.error(HTTPStatus.NOT_FOUND, f"File {path} not found")

        if stat.S_ISDIR(info.st_mode):
            return RawResult.error(HTTPStatus.CONFLICT, f"File {path} is a directory")

        try:
            _write_file(path, request.body)
        except (OSError, ValueError) as e:
            logger.error(f"Error while writing to file {path}: {e}")

        return RawResult()

    # =========================================================================
    # DELETE
    # =========================================================================

    def remove(self, request: Request) -> RawResult:
        """
        Delete a file, or a directory tree when Remove-Directory is set.

        Directories need the explicit opt-in so a stray DELETE cannot wipe
        a whole subtree.
        """
        path = self.resolve(request.path)

        try:
            info = os.stat(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Error while deleting file: {e}")
            return RawResult.error(HTTPStatus.NOT_FOUND, f"File {path} not found")

        if stat.S_ISDIR(info.st_mode):
            if not request.remove_directory:
                return RawResult.error(
                    HTTPStatus.NOT_ACCEPTABLE, f"File {path} is a directory"
                )
            try:
                # A link to a directory is removed as a link, not followed
                if os.path.islink(path):
                    os.remove(path)
                else:
                    shutil.rmtree(path)
            except (OSError, ValueError) as e:
                logger.error(f"Error while removing directory {path}: {e}")
            return RawResult()

        try:
            os.remove(path)
        except (OSError, ValueError) as e:
            logger.error(f"Error while removing file {path}: {e}")

        return RawResult()


def _write_file(path: str, data: bytes) -> None:
    """Create or truncate `path` and write `data` as its entire contents."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PERMISSIVE_MODE)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
