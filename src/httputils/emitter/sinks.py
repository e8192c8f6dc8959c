"""
=============================================================================
OUTPUT SINKS
=============================================================================

An OutputSink is where an emitter sends header lines and body bytes. The
emitter never touches sys.stdout or a socket itself, so the same engine
can write to a CGI stdout, a socket file or an in-memory recorder.

    ┌──────────────────┐  send_header("X-Foo: bar")    ┌──────────────────┐
    │                  │ ────────────────────────────► │                  │
    │  ResponseEmitter │  write(b"chunk")              │    OutputSink    │
    │                  │ ────────────────────────────► │                  │
    │                  │  is_connection_alive()?       │  StreamSink      │
    │                  │ ◄──────────────────────────── │  RecordingSink   │
    └──────────────────┘                               └──────────────────┘

=============================================================================
HEADER CALL SEMANTICS
=============================================================================

    send_header(line, replace=True, status_code=0)

    - "Name: value" with replace=True drops earlier headers of that name;
      replace=False adds another line (used for Set-Cookie).
    - A line starting with "HTTP/" sets the status line.
    - A non-zero status_code forces the response status.
    - "Location: ..." switches the status to 302 Found unless a 201 or
      3xx status is already set. This is why emitters send the status
      line last.

=============================================================================
"""

import logging
import traceback
from abc import ABC, abstractmethod
from typing import BinaryIO, List, NamedTuple, Optional, Tuple

from ..http.status_codes import reason_phrase


logger = logging.getLogger(__name__)

HeadersSent = Tuple[bool, Optional[str], Optional[int]]


class OutputSink(ABC):
    """Destination for an emitted response."""

    @abstractmethod
    def send_header(self, line: str, replace: bool = True, status_code: int = 0) -> None:
        """Queue one header line (or the status line)."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write a chunk of body data."""

    @abstractmethod
    def flush(self) -> None:
        """Push pending output (headers included) to the client."""

    @abstractmethod
    def is_connection_alive(self) -> bool:
        """False once the client went away."""

    @abstractmethod
    def output_started(self) -> bool:
        """True if body output is pending that was not produced by an emitter."""

    @abstractmethod
    def headers_sent(self) -> HeadersSent:
        """
        Whether the header block has been committed.

        Returns:
            (sent, file, line): file and line of the code that committed the
            headers, or (False, None, None).
        """


class StreamSink(OutputSink):
    """
    Sink writing a raw HTTP/1.x response to a binary stream.

    Works with sys.stdout.buffer (CGI), socket.makefile("wb") or an
    io.BytesIO. Header lines are collected until the first body write
    (or flush) and then written as one block:

        HTTP/1.1 200 OK\\r\\n
        Content-Length: 12\\r\\n
        \\r\\n
        Hello World!

    With buffered=True body writes are held back until flush().
    """

    def __init__(self, stream: BinaryIO, buffered: bool = False, protocol_version: str = "1.1"):
        self._stream = stream
        self._buffered = buffered
        self._protocol_version = protocol_version
        self._headers: List[Tuple[str, str]] = []
        self._status_line: Optional[str] = None
        self._status_code = 200
        self._pending: List[bytes] = []
        self._sent_from: Optional[Tuple[str, int]] = None
        self._alive = True

    # =========================================================================
    # HEADERS
    # =========================================================================

    def send_header(self, line: str, replace: bool = True, status_code: int = 0) -> None:
        """
        Raises:
            RuntimeError: If the header block has already been written.
            ValueError: If the line is neither a status line nor "Name: value".
        """
        if self._sent_from is not None:
            file, lineno = self._sent_from
            raise RuntimeError(f"Cannot send header, output started in file {file} on line {lineno}.")

        if line[:5].upper() == "HTTP/":
            self._status_line = line.strip()
            parts = self._status_line.split()

            if len(parts) > 1 and parts[1].isdigit():
                self._status_code = int(parts[1])

        else:
            name, sep, value = line.partition(":")

            if not sep or not name.strip():
                raise ValueError(f"malformed header line: {line!r}")

            name = name.strip()

            if replace:
                self._headers = [(n, v) for n, v in self._headers if n.lower() != name.lower()]

            self._headers.append((name, value.strip()))

            if name.lower() == "location" and self._status_code != 201 and not 300 <= self._status_code < 400:
                self._status_code = 302

        if status_code:
            self._status_code = status_code

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def header_lines(self) -> List[str]:
        return [f"{name}: {value}" for name, value in self._headers]

    @property
    def status_line(self) -> str:
        """
        The status line to send. An explicit status line is kept when its
        code matches the current status, otherwise one is built from the
        standard reason phrase.
        """
        if self._status_line is not None:
            parts = self._status_line.split(None, 2)

            if len(parts) > 1 and parts[1] == str(self._status_code):
                return self._status_line

            version = parts[0]
        else:
            version = f"HTTP/{self._protocol_version}"

        return f"{version} {self._status_code} {reason_phrase(self._status_code)}".strip()

    def _commit(self) -> None:
        """Write the header block once, remembering who triggered it."""
        if self._sent_from is not None:
            return

        self._sent_from = _caller_location()
        lines = [self.status_line] + self.header_lines
        self._send(("\r\n".join(lines) + "\r\n\r\n").encode("latin-1"))

    # =========================================================================
    # BODY
    # =========================================================================

    def write(self, data: bytes) -> None:
        if not self._alive:
            return

        if self._buffered:
            self._pending.append(data)
            return

        self._commit()
        self._send(data)

    def flush(self) -> None:
        if not self._alive:
            return

        self._commit()

        if self._pending:
            data = b"".join(self._pending)
            self._pending.clear()
            self._send(data)

        try:
            self._stream.flush()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._mark_dead(e)

    def _send(self, data: bytes) -> None:
        if not data or not self._alive:
            return

        try:
            self._stream.write(data)
        except (BrokenPipeError, ConnectionResetError) as e:
            self._mark_dead(e)

    def _mark_dead(self, error: OSError) -> None:
        logger.warning(f"Client connection lost: {error}")
        self._alive = False

    # =========================================================================
    # STATE
    # =========================================================================

    def is_connection_alive(self) -> bool:
        return self._alive

    def output_started(self) -> bool:
        return bool(self._pending)

    def headers_sent(self) -> HeadersSent:
        if self._sent_from is None:
            return False, None, None

        return True, self._sent_from[0], self._sent_from[1]


def _caller_location() -> Tuple[str, int]:
    """File and line of the innermost frame outside this module."""
    for frame in reversed(traceback.extract_stack()):
        if frame.filename != __file__:
            return frame.filename, frame.lineno

    return __file__, 0


# =============================================================================
# IN-MEMORY SINK
# =============================================================================

class HeaderCall(NamedTuple):
    """One recorded send_header() call."""
    line: str
    replace: bool
    status_code: int


class RecordingSink(OutputSink):
    """
    Sink that records everything in memory.

    Useful in tests and for capturing a response without a client:

        sink = RecordingSink()
        StdoutEmitter(response, sink=sink).emit()
        sink.header_lines   → ["Content-Length: 12", "HTTP/1.1 200 OK"]
        sink.body           → b"Hello World!"

    Args:
        disconnect_after: Report the client as gone after this many chunks.
        previous_output: Simulate output written before the emitter ran.
        headers_sent_from: Simulate headers committed at (file, line).
    """

    def __init__(
        self,
        disconnect_after: Optional[int] = None,
        previous_output: bytes = b"",
        headers_sent_from: Optional[Tuple[str, int]] = None,
    ):
        self.disconnect_after = disconnect_after
        self.previous_output = previous_output
        self.headers_sent_from = headers_sent_from
        self.header_calls: List[HeaderCall] = []
        self.chunks: List[bytes] = []
        self.flush_count = 0

    def send_header(self, line: str, replace: bool = True, status_code: int = 0) -> None:
        self.header_calls.append(HeaderCall(line, replace, status_code))

    def write(self, data: bytes) -> None:
        self.chunks.append(data)

    def flush(self) -> None:
        self.flush_count += 1

    def is_connection_alive(self) -> bool:
        return self.disconnect_after is None or len(self.chunks) < self.disconnect_after

    def output_started(self) -> bool:
        return len(self.previous_output) > 0

    def headers_sent(self) -> HeadersSent:
        if self.headers_sent_from is None:
            return False, None, None

        return True, self.headers_sent_from[0], self.headers_sent_from[1]

    @property
    def header_lines(self) -> List[str]:
        return [call.line for call in self.header_calls]

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)
