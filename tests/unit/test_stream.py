"""
Unit tests for body streams and stream helpers.
"""

import io

import pytest

from httputils.http.stream import (
    Stream,
    copy_to_stream,
    get_contents,
    mode_allows_read,
    mode_allows_read_only,
    mode_allows_read_write,
    mode_allows_write,
    mode_allows_write_only,
    try_fopen,
    try_get_contents,
    validate_mode,
)


@pytest.fixture
def fopen_test_file(tmp_path):
    """A small text file on disk."""
    path = tmp_path / "fopen-test.txt"
    path.write_bytes(b"foo bar baz\n")
    return path


class TestStream:
    """Tests for the Stream class."""

    def test_from_bytes(self):
        """Test an in-memory stream."""
        stream = Stream.from_bytes("Hello")

        assert stream.size == 5
        assert stream.readable() and stream.writable() and stream.seekable()
        assert stream.read(3) == b"Hel"
        assert stream.tell() == 3
        assert not stream.eof()
        assert stream.get_contents() == b"lo"
        assert stream.eof()

    def test_from_file(self, fopen_test_file):
        """Test a file-backed stream."""
        stream = Stream.from_file(fopen_test_file)

        try:
            assert stream.size == 12
            assert stream.readable()
            assert not stream.writable()
            assert bytes(stream) == b"foo bar baz\n"
        finally:
            stream.close()

    def test_explicit_size(self):
        assert Stream(io.BytesIO(b"abc"), size=10).size == 10

    def test_bytes_reads_from_start(self):
        stream = Stream.from_bytes(b"abcdef")
        stream.read(4)

        assert bytes(stream) == b"abcdef"

    def test_eof_without_size(self):
        """Test that a short read marks the end of an unseekable stream."""
        class Unseekable(io.BytesIO):
            def seekable(self):
                return False

        stream = Stream(Unseekable(b"abc"))

        assert stream.read(2) == b"ab"
        assert not stream.eof()
        assert stream.read(2) == b"c"
        assert stream.eof()

        with pytest.raises(RuntimeError, match="stream is not seekable"):
            stream.seek(0)

    def test_detach(self):
        """Test that a detached stream refuses further use."""
        resource = io.BytesIO(b"data")
        stream = Stream(resource)

        assert stream.detach() is resource
        assert not stream.readable()
        assert stream.size is None
        assert stream.eof()

        with pytest.raises(RuntimeError):
            stream.read(1)

        with pytest.raises(RuntimeError):
            stream.tell()

    def test_close(self):
        resource = io.BytesIO(b"data")
        stream = Stream(resource)
        stream.close()

        assert resource.closed
        assert not stream.seekable()

    def test_negative_length(self):
        with pytest.raises(ValueError):
            Stream.from_bytes(b"abc").read(-1)

    def test_write_to_read_only(self, fopen_test_file):
        stream = Stream.from_file(fopen_test_file)

        try:
            with pytest.raises(RuntimeError, match="stream is not writable"):
                stream.write(b"nope")
        finally:
            stream.close()


class TestModes:
    """Tests for fopen-style mode checks."""

    def test_mode_allows_read(self):
        assert mode_allows_read("r+")
        assert not mode_allows_read("w")

    def test_mode_allows_read_only(self):
        assert mode_allows_read_only("r")
        assert not mode_allows_read_only("r+b")

    def test_mode_allows_write(self):
        assert mode_allows_write("w+")
        assert not mode_allows_write("rb")

    def test_mode_allows_write_only(self):
        assert mode_allows_write_only("a")
        assert not mode_allows_write_only("c+t")

    def test_mode_allows_read_write(self):
        assert mode_allows_read_write("r+e")
        assert not mode_allows_read_write("r")

    def test_check_mode_is_valid_throws(self):
        with pytest.raises(ValueError, match=r"invalid fopen mode: b\+"):
            validate_mode("b+")

    def test_mode_allowed_flag_position_irrelevant(self, fopen_test_file):
        """Test that only the first 15 characters count."""
        mode = "rwarrrrrw++++b12345"

        assert mode_allows_read(mode)
        assert validate_mode(mode) == mode[:15]

        handle = try_fopen(fopen_test_file, mode)
        handle.close()


class TestStreamHelpers:
    """Tests for get_contents(), copy_to_stream() and friends."""

    def test_get_contents_rewinds_stream(self):
        stream = Stream.from_bytes(b"")
        stream.write("test")

        assert stream.tell() == 4
        assert get_contents(stream) == b"test"
        assert stream.tell() == 0

    def test_get_contents_from_unreadable_stream(self, fopen_test_file):
        stream = Stream(open(fopen_test_file, "ab"))

        try:
            assert not stream.readable()
            assert get_contents(stream) is None
        finally:
            stream.close()

    def test_copy_to_stream(self):
        content = b"teststream"
        source = Stream.from_bytes(content)
        destination = Stream.from_bytes(b"")

        assert copy_to_stream(source, destination) == len(content)
        assert bytes(destination) == content

    def test_copy_to_stream_with_max_length(self):
        source = Stream.from_bytes(b"teststream")
        destination = Stream.from_bytes(b"")

        assert copy_to_stream(source, destination, 4) == 4
        assert bytes(destination) == b"test"

    def test_copy_to_stream_from_current_position(self):
        source = Stream.from_bytes(b"teststream")
        destination = Stream.from_bytes(b"")
        source.seek(4)

        assert copy_to_stream(source, destination) == 6
        assert bytes(destination) == b"stream"

    def test_copy_to_stream_exception(self, fopen_test_file):
        source = Stream(open(fopen_test_file, "ab"))

        try:
            with pytest.raises(RuntimeError, match="source must be readable and destination must be writable"):
                copy_to_stream(source, Stream.from_bytes(b""))
        finally:
            source.close()

    def test_try_fopen(self, fopen_test_file):
        handle = try_fopen(fopen_test_file, "r")

        try:
            assert handle.read() == b"foo bar baz\n"
        finally:
            handle.close()

    def test_try_fopen_c_mode_does_not_truncate(self, fopen_test_file):
        """Test that "c" opens for writing without truncating."""
        handle = try_fopen(fopen_test_file, "c")
        handle.write(b"F")
        handle.close()

        assert fopen_test_file.read_bytes() == b"Foo bar baz\n"

    def test_try_fopen_missing_file(self):
        with pytest.raises(RuntimeError, match='Unable to open "/path/not/found" using mode "r": '):
            try_fopen("/path/not/found", "r")

    def test_try_fopen_empty_path(self):
        with pytest.raises(RuntimeError, match='Unable to open "" using mode "r": Path cannot be empty'):
            try_fopen("", "r")

    def test_try_get_contents(self, fopen_test_file):
        handle = try_fopen(fopen_test_file, "r")

        try:
            assert b"foo" in try_get_contents(handle)
            assert try_get_contents(handle, 3, 4) == b"bar"
        finally:
            handle.close()

    def test_try_get_contents_on_unreadable_resource(self, fopen_test_file):
        handle = try_fopen(fopen_test_file, "a")

        try:
            with pytest.raises(RuntimeError, match="Unable to read stream contents:"):
                try_get_contents(handle)
        finally:
            handle.close()

    def test_try_get_contents_on_invalid_resource(self, fopen_test_file):
        handle = try_fopen(fopen_test_file, "r")
        handle.close()

        with pytest.raises(RuntimeError, match="supplied resource is not a valid stream resource"):
            try_get_contents(handle)
