"""
=============================================================================
BODY STREAMS
=============================================================================

Message bodies are byte streams, not byte strings. A 4 GB video must be
served without ever living in memory, so the message model holds a Stream
handle and the emitter reads from it chunk by chunk.

    ┌────────────────────────────────────────────────────────────────────┐
    │                          Stream                                    │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   wraps any binary file object:                                    │
    │                                                                     │
    │     io.BytesIO          → in-memory body (seekable, known size)    │
    │     open(path, "rb")    → file body (seekable, known size)         │
    │     socket.makefile()   → piped body (NOT seekable, size unknown)  │
    │                                                                     │
    │   position ──► 0 ─────────────── tell() ─────────── size           │
    │                │███████████████████│                 │             │
    │                └── already read ───┘                 └── eof()     │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

The module also hosts the stream helpers: fopen-style mode inspection,
"read everything and rewind", stream-to-stream copy and file opening that
raises one descriptive RuntimeError instead of leaking OSError variants.

=============================================================================
"""

import io
import os
import re
import stat
from pathlib import Path
from typing import BinaryIO, Optional, Union


# Chunk size used when copying between streams
COPY_CHUNK_SIZE = 8192

_MODE_PATTERN = re.compile(r"^[acrwx]+[befht+\d]*$")


class Stream:
    """
    A message body: a binary file object plus the metadata the emitter needs.

    The stream does not own any buffering of its own; reads and seeks go
    straight to the wrapped object. Once detached or closed, every
    operation raises RuntimeError.
    """

    def __init__(self, resource: Optional[BinaryIO] = None, size: Optional[int] = None):
        """
        Args:
            resource: Binary file object; an empty BytesIO when omitted.
            size: Explicit body size, for wrapped objects that can't report it.
        """
        self._resource: Optional[BinaryIO] = resource if resource is not None else io.BytesIO()
        self._size = size
        self._eof = False

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def from_bytes(cls, content: Union[bytes, str] = b"") -> "Stream":
        """Create a seekable in-memory stream positioned at the start."""
        if isinstance(content, str):
            content = content.encode("utf-8")

        return cls(io.BytesIO(content))

    @classmethod
    def from_file(cls, path: Union[str, Path], mode: str = "rb") -> "Stream":
        """Open a file as a stream (see try_fopen for the accepted modes)."""
        return cls(try_fopen(path, mode))

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    @property
    def resource(self) -> BinaryIO:
        if self._resource is None or self._resource.closed:
            raise RuntimeError("stream is detached or closed")

        return self._resource

    def readable(self) -> bool:
        if self._resource is None or self._resource.closed:
            return False

        return self._resource.readable()

    def writable(self) -> bool:
        if self._resource is None or self._resource.closed:
            return False

        return self._resource.writable()

    def seekable(self) -> bool:
        if self._resource is None or self._resource.closed:
            return False

        return self._resource.seekable()

    @property
    def size(self) -> Optional[int]:
        """
        Total size in bytes, or None when it can't be known (pipes, sockets).
        """
        if self._size is not None:
            return self._size

        if self._resource is None or self._resource.closed:
            return None

        if isinstance(self._resource, io.BytesIO):
            with self._resource.getbuffer() as view:
                return view.nbytes

        try:
            fd = self._resource.fileno()
        except (OSError, AttributeError, ValueError):
            fd = None

        if fd is not None:
            try:
                if self._resource.writable():
                    self._resource.flush()

                info = os.fstat(fd)
            except OSError:
                return None

            # only regular files have a meaningful size; pipes and sockets don't
            return info.st_size if stat.S_ISREG(info.st_mode) else None

        if self.seekable():
            current = self._resource.tell()
            end = self._resource.seek(0, io.SEEK_END)
            self._resource.seek(current)
            return end

        return None

    # =========================================================================
    # POSITIONING
    # =========================================================================

    def tell(self) -> int:
        return self.resource.tell()

    def eof(self) -> bool:
        """
        True once the read position has reached the end of the stream.

        For streams of unknown size this turns True after a read came back
        short of what was requested.
        """
        if self._resource is None or self._resource.closed:
            return True

        if self.seekable():
            size = self.size

            if size is not None:
                return self._resource.tell() >= size

        return self._eof

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        if not self.seekable():
            raise RuntimeError("stream is not seekable")

        self.resource.seek(offset, whence)
        self._eof = False

    def rewind(self) -> None:
        self.seek(0)

    # =========================================================================
    # READING AND WRITING
    # =========================================================================

    def read(self, length: int) -> bytes:
        """Read up to `length` bytes from the current position."""
        if not self.readable():
            raise RuntimeError("stream is not readable")

        if length < 0:
            raise ValueError("length must be non-negative")

        data = self.resource.read(length)

        if data is None:
            data = b""

        if len(data) < length:
            self._eof = True

        return data

    def write(self, data: Union[bytes, str]) -> int:
        if not self.writable():
            raise RuntimeError("stream is not writable")

        if isinstance(data, str):
            data = data.encode("utf-8")

        return self.resource.write(data)

    def get_contents(self) -> bytes:
        """Read everything from the current position to the end."""
        if not self.readable():
            raise RuntimeError("stream is not readable")

        data = self.resource.read()
        self._eof = True
        return data or b""

    def close(self) -> None:
        if self._resource is not None:
            self._resource.close()
            self._resource = None

    def detach(self) -> Optional[BinaryIO]:
        """Separate the wrapped file object from the stream and return it."""
        resource, self._resource = self._resource, None
        return resource

    def __bytes__(self) -> bytes:
        if self.seekable():
            self.rewind()

        return self.get_contents()

    def __repr__(self) -> str:
        return f"<Stream size={self.size} seekable={self.seekable()}>"


# =============================================================================
# MODE HELPERS
# =============================================================================
#
# fopen-style modes: the first character decides the access ("r", "w", "a",
# "x", "c"), the rest may carry modifier flags in any order ("b", "t", "e",
# "+", ...). Only the first 15 characters are significant.
#
#     "r"   → read only          "r+"  → read and write
#     "w"   → write only         "w+"  → read and write
#
# =============================================================================

def validate_mode(mode: str) -> str:
    """
    Check an fopen-style mode and return its significant part.

    Raises:
        ValueError: If the mode is not a valid fopen mode.
    """
    mode = mode[:15]

    if not _MODE_PATTERN.match(mode):
        raise ValueError(f"invalid fopen mode: {mode}")

    return mode


def mode_allows_read_write(mode: str) -> bool:
    return "+" in validate_mode(mode)


def mode_allows_read_only(mode: str) -> bool:
    mode = validate_mode(mode)
    return mode[0] == "r" and "+" not in mode


def mode_allows_write_only(mode: str) -> bool:
    mode = validate_mode(mode)
    return mode[0] in "acwx" and "+" not in mode


def mode_allows_read(mode: str) -> bool:
    mode = validate_mode(mode)
    return mode[0] == "r" or (mode[0] in "acwx" and "+" in mode)


def mode_allows_write(mode: str) -> bool:
    mode = validate_mode(mode)
    return mode[0] in "acwx" or (mode[0] == "r" and "+" in mode)


# =============================================================================
# STREAM HELPERS
# =============================================================================

def get_contents(stream: Stream) -> Optional[bytes]:
    """
    Read the whole stream and rewind it before and after.

    Returns None instead of raising when the stream can't be read.
    """
    if stream.seekable():
        stream.rewind()

    try:
        data = stream.get_contents()
    except (RuntimeError, OSError, ValueError):
        return None

    if stream.seekable():
        stream.rewind()

    return data


def copy_to_stream(source: Stream, destination: Stream, max_length: Optional[int] = None) -> int:
    """
    Copy from the current position of `source` into `destination`.

    Copies until the end of the source or until `max_length` bytes were
    copied, and returns the number of bytes written.

    Raises:
        RuntimeError: If the source isn't readable or the destination
                      isn't writable.
    """
    if not source.readable() or not destination.writable():
        raise RuntimeError("source must be readable and destination must be writable")

    remaining = max_length
    written = 0

    while not source.eof():
        chunk_size = COPY_CHUNK_SIZE if remaining is None else min(COPY_CHUNK_SIZE, remaining)

        if chunk_size <= 0:
            break

        chunk = source.read(chunk_size)

        if not chunk:
            break

        written += destination.write(chunk)

        if remaining is not None:
            remaining -= len(chunk)

    return written


def try_fopen(filename: Union[str, Path], mode: str) -> BinaryIO:
    """
    Open a file with an fopen-style mode, always in binary.

    The "c" mode (open for writing, create if missing, never truncate) has
    no direct counterpart in open(), so it goes through os.open().

    Raises:
        ValueError: If the mode is invalid.
        RuntimeError: If the file can't be opened.
    """
    mode = validate_mode(mode)
    access = mode[0]
    plus = "+" in mode

    try:
        if str(filename) == "":
            raise ValueError("Path cannot be empty")

        if access == "c":
            flags = os.O_CREAT | (os.O_RDWR if plus else os.O_WRONLY)
            return os.fdopen(os.open(filename, flags, 0o666), "r+b" if plus else "wb")

        return open(filename, f"{access}b{'+' if plus else ''}")
    except (OSError, ValueError) as e:
        raise RuntimeError(f'Unable to open "{filename}" using mode "{mode}": {e}') from e


def try_get_contents(handle: BinaryIO, length: Optional[int] = None, offset: int = -1) -> bytes:
    """
    Read from an open file object, optionally from `offset` and at most
    `length` bytes.

    Raises:
        RuntimeError: If the handle is closed or can't be read.
    """
    try:
        if handle.closed:
            raise ValueError("supplied resource is not a valid stream resource")

        if offset >= 0:
            handle.seek(offset)

        data = handle.read() if length is None else handle.read(length)
    except (OSError, ValueError) as e:
        raise RuntimeError(f"Unable to read stream contents: {e}") from e

    return data or b""
