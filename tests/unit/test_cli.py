"""
Unit tests for the command line entry point.
"""

import io

import pytest

from httputils import __version__
from httputils.__main__ import build_parser, main, parse_range


@pytest.fixture
def text_file(tmp_path, monkeypatch):
    """A small text file, with the HTTPUTILS_* environment cleared."""
    for name in ("HTTPUTILS_BUFFER_SIZE", "HTTPUTILS_BUFFERED", "HTTPUTILS_LOG_LEVEL", "HTTPUTILS_PROTOCOL_VERSION"):
        monkeypatch.delenv(name, raising=False)

    path = tmp_path / "hello.txt"
    path.write_bytes(b"hello world")
    return path


def run(*argv):
    stdout = io.BytesIO()
    code = main([str(arg) for arg in argv], stdout=stdout)
    return code, stdout.getvalue()


class TestParseRange:
    """Tests for parse_range()."""

    def test_valid(self):
        assert parse_range("0-1023") == (0, 1023)
        assert parse_range(" 5-9 ") == (5, 9)

    @pytest.mark.parametrize("value", ["", "5", "-5", "a-b", "1-2-3"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid range"):
            parse_range(value)


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["file.txt"])

        assert args.file == "file.txt"
        assert args.status == 200
        assert args.byte_range is None
        assert args.header == []
        assert args.cookie == []
        assert args.buffer_size is None
        assert args.buffered is False

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert f"httputils {__version__}" in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    def test_emit_file(self, text_file):
        """Test that the whole file is sent as a 200 response."""
        code, output = run(text_file)
        head, _, body = output.partition(b"\r\n\r\n")

        assert code == 0
        assert head.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Content-Type: text/plain; charset=utf-8" in head
        assert b"Content-Length: 11" in head
        assert b"Last-Modified: " in head
        assert body == b"hello world"

    def test_emit_range(self, text_file):
        code, output = run(text_file, "--range", "0-4", "--buffer-size", "2")
        head, _, body = output.partition(b"\r\n\r\n")

        assert code == 0
        assert head.startswith(b"HTTP/1.1 206 Partial Content\r\n")
        assert b"Content-Range: bytes 0-4/11" in head
        assert b"Content-Length: 5" in head
        assert body == b"hello"

    def test_headers_and_cookies(self, text_file):
        code, output = run(
            text_file,
            "--header", "X-Id: 1",
            "--cookie", "session=abc",
            "--cookie", "theme=dark",
            "--content-type", "text/markdown",
        )
        head = output.partition(b"\r\n\r\n")[0]

        assert code == 0
        assert b"X-Id: 1\r\n" in head + b"\r\n"
        assert b"Set-Cookie: session=abc\r\n" in head + b"\r\n"
        assert b"Set-Cookie: theme=dark\r\n" in head + b"\r\n"
        assert b"Content-Type: text/markdown\r\n" in head + b"\r\n"

    def test_custom_status(self, text_file):
        code, output = run(text_file, "--status", "404")

        assert code == 0
        assert output.startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_protocol_version_from_env(self, text_file, monkeypatch):
        monkeypatch.setenv("HTTPUTILS_PROTOCOL_VERSION", "1.0")

        code, output = run(text_file)

        assert code == 0
        assert output.startswith(b"HTTP/1.0 200 OK\r\n")

    def test_buffered(self, text_file):
        code, output = run(text_file, "--buffered")

        assert code == 0
        assert output.endswith(b"\r\n\r\nhello world")

    def test_invalid_range(self, text_file, capsys):
        code, output = run(text_file, "--range", "abc")

        assert code == 1
        assert output == b""
        assert "Invalid range" in capsys.readouterr().err

    def test_invalid_header(self, text_file, capsys):
        code, _ = run(text_file, "--header", "NoColon")

        assert code == 1
        assert "Invalid header" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        code, output = run(tmp_path / "missing.txt")

        assert code == 1
        assert output == b""
        assert "Unable to open" in capsys.readouterr().err

    def test_invalid_buffer_size(self, text_file, capsys):
        code, _ = run(text_file, "--buffer-size", "0")

        assert code == 1
        assert "buffer_size must be >= 1" in capsys.readouterr().err

    def test_invalid_environment(self, text_file, monkeypatch, capsys):
        monkeypatch.setenv("HTTPUTILS_BUFFER_SIZE", "huge")

        code, _ = run(text_file)

        assert code == 1
        assert "invalid environment configuration" in capsys.readouterr().err
