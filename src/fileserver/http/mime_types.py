"""
=============================================================================
MIME TYPE LOOKUP
=============================================================================

GET on a regular file answers with a Content-Type derived from the file's
extension. Clients use it to decide what to do with the bytes:

    notes.txt   → text/plain; charset=utf-8   (show it)
    photo.png   → image/png                   (render it)
    dump.bin    → application/octet-stream    (save it)

=============================================================================
LOOKUP ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  1. MIME_TYPES table below        (predictable across platforms)    │
    │           │ miss                                                    │
    │           ▼                                                         │
    │  2. stdlib mimetypes registry     (system mime.types, if present)   │
    │           │ miss                                                    │
    │           ▼                                                         │
    │  3. application/octet-stream      ("unknown binary data")          │
    └─────────────────────────────────────────────────────────────────────┘

Text types get a "; charset=utf-8" parameter appended, so a client never
has to guess the encoding of a text file.

=============================================================================
"""

import mimetypes
from pathlib import Path
from typing import Optional, Union


# Extensions are lowercase and include the dot.
MIME_TYPES = {
    # Documents and markup
    ".txt": "text/plain",
    ".log": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".pdf": "application/pdf",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".bmp": "image/bmp",

    # Audio / video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Archives
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",

    # Source code
    ".py": "text/x-python",
    ".go": "text/x-go",
    ".c": "text/x-c",
    ".h": "text/x-c",
    ".sh": "text/x-shellscript",

    # Binaries
    ".wasm": "application/wasm",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

# application/* types that are nevertheless text
_TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
}


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the bare MIME type for a file based on its extension.

    Examples:
        >>> get_mime_type("report.PDF")
        'application/pdf'

        >>> get_mime_type("no_extension")
        'application/octet-stream'
    """
    extension = Path(path).suffix.lower()
    if not extension:
        return default or DEFAULT_MIME_TYPE

    mime_type = MIME_TYPES.get(extension)
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(f"file{extension}", strict=False)

    return mime_type or default or DEFAULT_MIME_TYPE


def is_text_type(mime_type: str) -> bool:
    """Check whether a MIME type describes text content."""
    return mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES


def get_content_type(path: Union[str, Path], charset: str = "utf-8") -> str:
    """
    Get the Content-Type header value for a file.

    Examples:
        >>> get_content_type("index.html")
        'text/html; charset=utf-8'

        >>> get_content_type("logo.png")
        'image/png'
    """
    mime_type = get_mime_type(path)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
