"""
Unit tests for output sinks.
"""

import io

import pytest

from httputils.emitter import HeaderCall, RecordingSink, StdoutEmitter, StreamSink
from httputils.http import HTTPResponse, ResponseBuilder


class BrokenPipeStream(io.BytesIO):
    """Stream whose reader has gone away."""

    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")


class TestStreamSink:
    """Tests for StreamSink."""

    def test_full_response(self):
        """Test the raw bytes of an emitted response."""
        buffer = io.BytesIO()
        response = HTTPResponse(headers={"Content-Type": "text/plain"}, body="Hello World!")

        StdoutEmitter(response, sink=StreamSink(buffer)).emit()

        assert buffer.getvalue() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 12\r\n"
            b"\r\n"
            b"Hello World!"
        )

    def test_headers_only(self):
        """Test that a bodyless response is flushed as a header block."""
        buffer = io.BytesIO()

        StdoutEmitter(HTTPResponse(status=204), sink=StreamSink(buffer)).emit()

        assert buffer.getvalue() == b"HTTP/1.1 204 No Content\r\n\r\n"

    def test_partial_content_response(self):
        """Test a 206 response end to end."""
        buffer = io.BytesIO()
        response = HTTPResponse(
            status=206,
            headers={"Content-Range": "bytes 10-19/*"},
            body="abcdefghijklmnopqrstuvwxyz",
        )

        StdoutEmitter(response, buffer_size=4, sink=StreamSink(buffer)).emit()

        head, _, body = buffer.getvalue().partition(b"\r\n\r\n")
        assert head.split(b"\r\n") == [
            b"HTTP/1.1 206 Partial Content",
            b"Content-Range: bytes 10-19/26",
            b"Content-Length: 10",
        ]
        assert body == b"klmnopqrst"

    def test_replace_header(self):
        """Test that replace=True drops earlier values."""
        sink = StreamSink(io.BytesIO())
        sink.send_header("X-A: 1")
        sink.send_header("x-a: 2")

        assert sink.header_lines == ["x-a: 2"]

    def test_add_header(self):
        """Test that replace=False keeps earlier values."""
        sink = StreamSink(io.BytesIO())
        sink.send_header("Set-Cookie: a=1", False)
        sink.send_header("Set-Cookie: b=2", False)

        assert sink.header_lines == ["Set-Cookie: a=1", "Set-Cookie: b=2"]

    def test_malformed_header(self):
        """Test that a line without a colon is rejected."""
        with pytest.raises(ValueError):
            StreamSink(io.BytesIO()).send_header("not a header")

    def test_location_implies_302(self):
        """Test the implicit redirect status of a Location header."""
        sink = StreamSink(io.BytesIO())
        sink.send_header("Location: /elsewhere")

        assert sink.status_code == 302
        assert sink.status_line == "HTTP/1.1 302 Found"

    def test_location_keeps_201(self):
        """Test that a Location header keeps a 201 status."""
        sink = StreamSink(io.BytesIO())
        sink.send_header("HTTP/1.1 201 Created")
        sink.send_header("Location: /items/1")

        assert sink.status_code == 201

    def test_status_line_last_wins_over_location(self):
        """Test that the status line sent after Location decides the status."""
        buffer = io.BytesIO()
        response = HTTPResponse(status=200, headers={"Location": "/x"}, body="ok")

        StdoutEmitter(response, sink=StreamSink(buffer)).emit()

        assert buffer.getvalue().startswith(b"HTTP/1.1 200 OK\r\n")

    def test_redirect(self):
        """Test a redirect built with ResponseBuilder."""
        buffer = io.BytesIO()

        StdoutEmitter(ResponseBuilder().redirect("/new").build(), sink=StreamSink(buffer)).emit()

        assert buffer.getvalue() == b"HTTP/1.1 302 Found\r\nLocation: /new\r\n\r\n"

    def test_status_code_overrides_status_line(self):
        """Test that an explicit status code wins over the status line text."""
        sink = StreamSink(io.BytesIO())
        sink.send_header("HTTP/1.1 200 OK", True, 404)

        assert sink.status_line == "HTTP/1.1 404 Not Found"

    def test_headers_sent_records_caller(self):
        """Test that the committing caller is recorded."""
        sink = StreamSink(io.BytesIO())
        assert sink.headers_sent() == (False, None, None)

        sink.write(b"body")
        sent, file, line = sink.headers_sent()

        assert sent is True
        assert file.endswith("test_sinks.py")
        assert line > 0

    def test_header_after_commit_raises(self):
        """Test that headers can't be sent after the body started."""
        sink = StreamSink(io.BytesIO())
        sink.write(b"body")

        with pytest.raises(RuntimeError):
            sink.send_header("X-Late: 1")

    def test_emit_twice_raises(self):
        """Test that a second response on the same sink is refused."""
        sink = StreamSink(io.BytesIO())
        StdoutEmitter(HTTPResponse(body="one"), sink=sink).emit()

        with pytest.raises(RuntimeError, match="Headers already sent in file"):
            StdoutEmitter(HTTPResponse(body="two"), sink=sink).emit()

    def test_buffered_output(self):
        """Test that buffered writes wait for flush()."""
        buffer = io.BytesIO()
        sink = StreamSink(buffer, buffered=True)
        sink.send_header("Content-Length: 5")
        sink.write(b"Hello")

        assert buffer.getvalue() == b""
        assert sink.output_started()

        sink.flush()

        assert buffer.getvalue() == b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nHello"
        assert not sink.output_started()

    def test_pending_output_blocks_emitter(self):
        """Test that pending buffered output prevents emission."""
        sink = StreamSink(io.BytesIO(), buffered=True)
        sink.write(b"stray output")

        with pytest.raises(RuntimeError, match="Output has been emitted previously"):
            StdoutEmitter(HTTPResponse(body="Hello"), sink=sink).emit()

    def test_buffered_emission(self):
        """Test a full emission through a buffered sink."""
        buffer = io.BytesIO()

        StdoutEmitter(HTTPResponse(body="Hello"), buffer_size=2, sink=StreamSink(buffer, buffered=True)).emit()

        assert buffer.getvalue().endswith(b"\r\n\r\nHello")

    def test_broken_pipe(self, caplog):
        """Test that a vanished client marks the connection dead."""
        sink = StreamSink(BrokenPipeStream())

        with caplog.at_level("WARNING", logger="httputils.emitter.sinks"):
            sink.write(b"data")

        assert not sink.is_connection_alive()
        assert "connection lost" in caplog.text

    def test_broken_pipe_during_emission(self):
        """Test that emission ends quietly when the client is gone."""
        sink = StreamSink(BrokenPipeStream())

        StdoutEmitter(HTTPResponse(body="abcdefghij"), buffer_size=2, sink=sink).emit()

        assert not sink.is_connection_alive()


class TestRecordingSink:
    """Tests for RecordingSink."""

    def test_records_calls(self):
        """Test that header calls and chunks are recorded."""
        sink = RecordingSink()
        sink.send_header("X-Foo: bar")
        sink.send_header("HTTP/1.1 200 OK", True, 200)
        sink.write(b"ab")
        sink.write(b"cd")

        assert sink.header_calls == [
            HeaderCall("X-Foo: bar", True, 0),
            HeaderCall("HTTP/1.1 200 OK", True, 200),
        ]
        assert sink.header_lines == ["X-Foo: bar", "HTTP/1.1 200 OK"]
        assert sink.body == b"abcd"

    def test_disconnect_after(self):
        """Test the simulated disconnect."""
        sink = RecordingSink(disconnect_after=1)
        assert sink.is_connection_alive()

        sink.write(b"x")

        assert not sink.is_connection_alive()

    def test_defaults(self):
        """Test that a fresh sink reports no earlier output."""
        sink = RecordingSink()

        assert not sink.output_started()
        assert sink.headers_sent() == (False, None, None)
