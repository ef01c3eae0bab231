"""
=============================================================================
ACCESS LOG
=============================================================================

One record per served request, on its own logger so it can be routed or
silenced separately from operational messages:

    logging.getLogger("fileserver.access").setLevel(logging.WARNING)

TEXT FORMAT (default):

    127.0.0.1 - - [2026-01-15T12:30:45+00:00] "PUT /notes/a.txt" 409 31 0.84ms

JSON FORMAT (log_format="json"):

    {"client_ip": "127.0.0.1", "verb": "PUT", "path": "/notes/a.txt",
     "status_code": 409, "content_length": 31, "duration_ms": 0.84, ...}

Requests that never parsed (malformed request line) produce no record:
there is no verb, no path and no response to describe.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from .http.request import Request
from .http.response import RawResult


logger = logging.getLogger("fileserver.access")


@dataclass
class RequestLog:
    """Structured description of one request/response pair."""

    client_ip: str
    verb: str
    path: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "client_ip": self.client_ip,
            "verb": self.verb,
            "path": self.path,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache-style single line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.verb} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Emits RequestLog records in the configured format.

    Usage:
        access = AccessLogger(log_format="json")
        started = time.perf_counter()
        ...
        access.log(conn.client_ip, request, result, started)
    """

    def __init__(self, log_format: str = "text"):
        self.log_format = log_format

    def build(
        self,
        client_ip: str,
        request: Request,
        result: RawResult,
        started: float,
    ) -> RequestLog:
        """Assemble the record; `started` is a time.perf_counter() value."""
        return RequestLog(
            client_ip=client_ip,
            verb=request.verb,
            path=request.path,
            status_code=int(result.effective_status),
            content_length=len(result.body),
            duration_ms=(time.perf_counter() - started) * 1000,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def format(self, entry: RequestLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(
        self,
        client_ip: str,
        request: Request,
        result: RawResult,
        started: float,
    ) -> RequestLog:
        """Build, format and emit one record. Errors go out at WARNING."""
        entry = self.build(client_ip, request, result, started)
        level = logging.WARNING if result.effective_status.is_error else logging.INFO
        logger.log(level, self.format(entry))
        return entry
