"""
Wire protocol: reading requests, routing them and writing responses.
"""

from .status_codes import HTTPStatus
from .request import Request, RequestReader, RequestParseError
from .response import RawResult, ResponseWriter
from .router import RequestRouter
from .mime_types import get_mime_type, get_content_type

__all__ = [
    "HTTPStatus",
    "Request",
    "RequestReader",
    "RequestParseError",
    "RawResult",
    "ResponseWriter",
    "RequestRouter",
    "get_mime_type",
    "get_content_type",
]
