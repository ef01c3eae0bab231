"""
Unit tests for verb dispatch.
"""

import pytest

from fileserver.http.request import Request
from fileserver.http.response import RawResult
from fileserver.http.router import RequestRouter
from fileserver.http.status_codes import HTTPStatus


class StubHandlers:
    """Stands in for FileHandlers and records which operation ran."""

    def __init__(self):
        self.calls = []

    def _record(self, name):
        def handler(request):
            self.calls.append((name, request.path))
            return RawResult(body=name.encode())
        return handler

    @property
    def fetch(self):
        return self._record("fetch")

    @property
    def create(self):
        return self._record("create")

    @property
    def replace(self):
        return self._record("replace")

    @property
    def remove(self):
        return self._record("remove")


@pytest.fixture
def stubs() -> StubHandlers:
    return StubHandlers()


@pytest.fixture
def router(stubs) -> RequestRouter:
    return RequestRouter.for_handlers(stubs)


class TestDispatch:
    """Tests for RequestRouter.dispatch."""

    @pytest.mark.parametrize("verb,operation", [
        ("GET", "fetch"),
        ("POST", "create"),
        ("PUT", "replace"),
        ("DELETE", "remove"),
    ])
    def test_verb_selects_handler(self, router, stubs, verb, operation):
        result = router.dispatch(Request(verb=verb, path="/a"))

        assert stubs.calls == [(operation, "/a")]
        assert result.body == operation.encode()

    @pytest.mark.parametrize("verb", ["PATCH", "HEAD", "OPTIONS", "get", "", "FOO"])
    def test_unknown_verb_is_empty_success(self, router, stubs, verb):
        """Unrecognized verbs are answered, not rejected."""
        result = router.dispatch(Request(verb=verb, path="/a"))

        assert stubs.calls == []
        assert result.body == b""
        assert result.status is None
        assert result.effective_status == HTTPStatus.OK

    @pytest.mark.parametrize("verb", ["GET", "POST", "PUT", "DELETE", "PATCH"])
    def test_wrong_domain_is_bad_request(self, router, stubs, verb):
        """A Host mismatch short-circuits every verb to 400."""
        request = Request(verb=verb, path="/a", wrong_domain=True, body=b"data")

        result = router.dispatch(request)

        assert stubs.calls == []
        assert result.status == HTTPStatus.BAD_REQUEST
        assert result.body == b""


class TestRegistration:
    """Tests for adding routes."""

    def test_verbs(self, router):
        assert router.verbs == ["DELETE", "GET", "POST", "PUT"]

    def test_match(self, router):
        assert router.match("GET") is not None
        assert router.match("PATCH") is None

    def test_add_route_replaces(self, router):
        router.add_route("GET", lambda request: RawResult(body=b"replaced"))

        result = router.dispatch(Request(verb="GET", path="/"))

        assert result.body == b"replaced"

    def test_route_decorator(self):
        router = RequestRouter()

        @router.route("MKCOL")
        def make_collection(request):
            return RawResult(status=HTTPStatus.CONFLICT)

        assert router.match("MKCOL") is make_collection
        assert router.dispatch(Request(verb="MKCOL", path="/")).status == HTTPStatus.CONFLICT
