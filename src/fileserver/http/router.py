"""
=============================================================================
REQUEST ROUTER
=============================================================================

Maps a parsed Request to exactly one handler and returns its RawResult.

There are no URL patterns here: the path is data for the handler, and the
verb alone picks the operation.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        DISPATCH ORDER                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Request                                                           │
    │      │                                                              │
    │      ├── wrong_domain? ──────────► 400 Bad Request (no handler)     │
    │      │                                                              │
    │      ├── verb registered? ───────► handler(request)                 │
    │      │                                                              │
    │      └── anything else ──────────► empty 200                        │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Unknown verbs are NOT errors. A "PATCH" or "HEAD" gets an empty 200
response and touches nothing. Clients depend on this leniency.

=============================================================================
"""

import logging
from typing import Callable, Dict, List, Optional

from .request import Request
from .response import RawResult
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)

Handler = Callable[[Request], RawResult]


class RequestRouter:
    """
    Verb-based dispatcher.

    Usage:
        router = RequestRouter()
        router.add_route("GET", handlers.fetch)
        result = router.dispatch(request)

    Or wired to a FileHandlers instance in one go:
        router = RequestRouter.for_handlers(handlers)
    """

    def __init__(self):
        self._routes: Dict[str, Handler] = {}

    @classmethod
    def for_handlers(cls, handlers) -> "RequestRouter":
        """Build the standard GET/POST/PUT/DELETE table."""
        router = cls()
        router.add_route("GET", handlers.fetch)
        router.add_route("POST", handlers.create)
        router.add_route("PUT", handlers.replace)
        router.add_route("DELETE", handlers.remove)
        return router

    def add_route(self, verb: str, handler: Handler) -> None:
        """Register the handler for a verb, replacing any previous one."""
        self._routes[verb] = handler

    def route(self, verb: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_route.

            @router.route("GET")
            def fetch(request):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(verb, handler)
            return handler
        return decorator

    def match(self, verb: str) -> Optional[Handler]:
        """Handler for a verb, or None. Verbs are case-sensitive."""
        return self._routes.get(verb)

    @property
    def verbs(self) -> List[str]:
        return sorted(self._routes)

    def dispatch(self, request: Request) -> RawResult:
        """Select and run the handler for a request."""
        if request.wrong_domain:
            logger.warning(f"Rejecting {request.verb} {request.path}: Host does not match")
            return RawResult(status=HTTPStatus.BAD_REQUEST)

        handler = self.match(request.verb)
        if handler is None:
            logger.debug(f"No handler for verb {request.verb!r}, answering empty")
            return RawResult()

        return handler(request)
