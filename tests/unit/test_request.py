"""
Unit tests for reading requests off a byte stream.
"""

import io
import logging
import os

import pytest

from fileserver.http.request import BODY_CHUNK_SIZE, Request, RequestParseError, RequestReader


def read(raw: bytes, server_domain: str = "") -> Request:
    return RequestReader(server_domain=server_domain).read(io.BytesIO(raw))


class TestRequestLine:
    """Tests for the first line of a request."""

    def test_simple_get(self):
        """Test parsing a GET with no headers."""
        request = read(b"GET /hello.txt HTTP/1.1\r\n\r\n")

        assert request.verb == "GET"
        assert request.path == "/hello.txt"
        assert request.content_length == 0
        assert request.body == b""
        assert not request.create_directory
        assert not request.remove_directory
        assert not request.wrong_domain

    def test_version_token_is_optional(self):
        """Two tokens are enough; the version is never looked at."""
        request = read(b"DELETE /a\r\n\r\n")

        assert request.verb == "DELETE"
        assert request.path == "/a"

    def test_unknown_verb_is_parsed(self):
        """Verbs are not validated by the reader."""
        request = read(b"PATCH /a HTTP/1.1\r\n\r\n")
        assert request.verb == "PATCH"

    def test_bare_lf_line_endings(self):
        """Lines ending in a lone LF are accepted too."""
        request = read(b"GET /a HTTP/1.1\nHost: x\n\n")
        assert request.path == "/a"

    @pytest.mark.parametrize("raw", [
        b"GARBAGE\r\n\r\n",
        b"\r\n\r\n",
        b"",
    ])
    def test_malformed_request_line(self, raw):
        """Fewer than two tokens cannot become a Request."""
        with pytest.raises(RequestParseError):
            read(raw)

    def test_undecodable_path_survives(self):
        """Path bytes that are not UTF-8 map back to the same bytes on disk."""
        request = read(b"GET /caf\xe9.txt HTTP/1.1\r\n\r\n")
        assert os.fsencode(request.path) == b"/caf\xe9.txt"


class TestHeaders:
    """Tests for the recognized header set."""

    def test_content_length_reads_exact_body(self):
        """Exactly Content-Length bytes are consumed as the body."""
        stream = io.BytesIO(
            b"POST /a.txt HTTP/1.1\r\n"
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"helloEXTRA"
        )

        request = RequestReader().read(stream)

        assert request.content_length == 5
        assert request.body == b"hello"
        assert stream.read() == b"EXTRA"

    def test_body_may_contain_newlines(self):
        body = b"line one\r\n\r\nline two\n"
        request = read(
            b"POST /a HTTP/1.1\r\n"
            + f"Content-Length: {len(body)}\r\n\r\n".encode()
            + body
        )
        assert request.body == body

    @pytest.mark.parametrize("value", ["abc", "-5", "+5", "1_000", "", "5 "])
    def test_invalid_content_length_is_zero(self, value):
        """Anything but plain digits counts as no body."""
        request = read(
            f"POST /a HTTP/1.1\r\nContent-Length: {value}\r\n\r\nhello".encode()
        )
        assert request.content_length == 0
        assert request.body == b""

    def test_header_names_are_case_sensitive(self):
        request = read(b"POST /a HTTP/1.1\r\ncontent-length: 5\r\n\r\nhello")
        assert request.content_length == 0

    def test_create_directory_true(self):
        request = read(b"POST /d HTTP/1.1\r\nCreate-Directory: True\r\n\r\n")
        assert request.create_directory

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "True "])
    def test_create_directory_requires_exact_true(self, value):
        request = read(
            f"POST /d HTTP/1.1\r\nCreate-Directory: {value}\r\n\r\n".encode()
        )
        assert not request.create_directory

    def test_remove_directory_true(self):
        request = read(b"DELETE /d HTTP/1.1\r\nRemove-Directory: True\r\n\r\n")
        assert request.remove_directory

    def test_remove_directory_false(self):
        request = read(b"DELETE /d HTTP/1.1\r\nRemove-Directory: False\r\n\r\n")
        assert not request.remove_directory

    def test_unknown_headers_ignored(self):
        request = read(
            b"GET /a HTTP/1.1\r\n"
            b"User-Agent: pytest\r\n"
            b"Accept: */*\r\n"
            b"X-Anything: at all\r\n"
            b"\r\n"
        )
        assert request.path == "/a"
        assert request.content_length == 0

    def test_header_without_value(self):
        """A bare header name is ignored rather than rejected."""
        request = read(b"GET /a HTTP/1.1\r\nContent-Length:\r\n\r\n")
        assert request.content_length == 0

    def test_stream_ends_inside_headers(self):
        """EOF before the blank line ends the headers."""
        request = read(b"GET /a HTTP/1.1\r\nHost: x\r\n")
        assert request.verb == "GET"


class TestHostHeader:
    """Tests for domain checking."""

    def test_mismatch_sets_flag(self):
        request = read(
            b"GET /a HTTP/1.1\r\nHost: evil.example\r\n\r\n",
            server_domain="files.local",
        )
        assert request.wrong_domain

    def test_match_clears_flag(self):
        request = read(
            b"GET /a HTTP/1.1\r\nHost: files.local\r\n\r\n",
            server_domain="files.local",
        )
        assert not request.wrong_domain

    def test_no_domain_configured_accepts_any(self):
        request = read(b"GET /a HTTP/1.1\r\nHost: anything\r\n\r\n")
        assert not request.wrong_domain

    def test_missing_host_header_is_not_a_mismatch(self):
        request = read(b"GET /a HTTP/1.1\r\n\r\n", server_domain="files.local")
        assert not request.wrong_domain

    def test_host_value_may_contain_spaces(self):
        """The line is split on the first space only."""
        request = read(
            b"GET /a HTTP/1.1\r\nHost: my files\r\n\r\n",
            server_domain="my files",
        )
        assert not request.wrong_domain


class TestTruncatedBody:
    """Tests for a client that hangs up before the body is complete."""

    def test_short_body_is_returned(self):
        request = read(b"POST /a HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")

        assert request.body == b"abc"
        assert request.content_length == 10
        assert request.is_truncated

    def test_short_body_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fileserver.http.request"):
            read(b"POST /a HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")

        assert "expected 10 bytes, got 3" in caplog.text

    def test_missing_body(self):
        request = read(b"POST /a HTTP/1.1\r\nContent-Length: 4\r\n\r\n")

        assert request.body == b""
        assert request.is_truncated

    def test_complete_body_is_not_truncated(self):
        request = read(b"POST /a HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc")
        assert not request.is_truncated

    @pytest.mark.parametrize("length", [b"99999999999999999999", str(2 ** 62).encode()])
    def test_huge_length_reads_what_arrives(self, length):
        """A declared length far beyond what is sent costs only what is sent."""
        request = read(b"POST /a HTTP/1.1\r\nContent-Length: " + length + b"\r\n\r\nabc")

        assert request.body == b"abc"
        assert request.content_length == int(length)
        assert request.is_truncated


class TestChunkedStream:
    """The body may arrive in several reads, as it does over TCP."""

    class TrickleStream:
        """Hands out at most `step` bytes per read() call."""

        def __init__(self, data: bytes, step: int = 2):
            self._buffer = io.BytesIO(data)
            self._step = step

        def readline(self) -> bytes:
            return self._buffer.readline()

        def read(self, size: int) -> bytes:
            return self._buffer.read(min(size, self._step))

    def test_body_assembled_from_partial_reads(self):
        stream = self.TrickleStream(
            b"PUT /a HTTP/1.1\r\nContent-Length: 9\r\n\r\nabcdefghi"
        )

        request = RequestReader().read(stream)

        assert request.body == b"abcdefghi"

    def test_reads_are_bounded(self):
        """No single read() asks for more than one chunk."""
        requested = []

        class RecordingStream(io.BytesIO):
            def read(self, size=-1):
                requested.append(size)
                return super().read(size)

        body = b"x" * (BODY_CHUNK_SIZE * 2 + 10)
        stream = RecordingStream(
            b"PUT /a HTTP/1.1\r\nContent-Length: 99999999999\r\n\r\n" + body
        )

        request = RequestReader().read(stream)

        assert request.body == body
        assert requested
        assert max(requested) <= BODY_CHUNK_SIZE
