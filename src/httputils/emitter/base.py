"""
=============================================================================
RESPONSE EMISSION ENGINE
=============================================================================

Turns an HTTPResponse into header calls and body chunks on an OutputSink.
Before anything is sent, the emitter reconciles the length headers with
the actual body so that what is announced is exactly what gets written.

=============================================================================
LENGTH RECONCILIATION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHICH LENGTH GETS ANNOUNCED?                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  No body (1xx, 204, 205, 304, empty or unknown size)                 │
    │     └── Content-Length removed, nothing is written                   │
    │                                                                      │
    │  206 + Content-Range "bytes 10-19/*"                                 │
    │     └── valid   → Content-Range "bytes 10-19/26", Content-Length 10  │
    │     └── invalid → 200 OK, Content-Range removed, full body           │
    │                                                                      │
    │  No Content-Length                                                   │
    │     └── Content-Length = body size                                   │
    │                                                                      │
    │  Content-Length smaller than the body                                │
    │     └── kept, only the first Content-Length bytes are written        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BODY STREAMING
=============================================================================

The body is never loaded as a whole. It is read in buffer_size chunks and
each chunk goes straight to the sink:

    body stream ──read(buffer_size)──► emit_buffer() ──► sink.write()
                                                             │
                        stop early when the client is gone ◄─┘
                        (sink.is_connection_alive() is False)

Ranged output (Content-Range or a short Content-Length) seeks to the
range start first and never writes more than the range length, so the
body stream must be seekable.

=============================================================================
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus, allows_body
from ..http.stream import Stream
from .sinks import OutputSink


logger = logging.getLogger(__name__)

# Default chunk size for body reads (64 KB)
DEFAULT_BUFFER_SIZE = 65536

# "bytes 0-499/1234" or "bytes 0-499/*"
_CONTENT_RANGE = re.compile(
    r"(?P<unit>[a-z]+)\s+(?P<start>\d+)-(?P<end>\d+)/(?P<total>\d+|\*)",
    re.IGNORECASE,
)


class EmissionState(Enum):
    """
    Emitter lifecycle states.

    CONSTRUCTED → HEADERS_VALIDATED → HEADERS_SENT → BODY_SENT → DONE,
    or FAILED as soon as any step raises.
    """
    CONSTRUCTED = "constructed"              # Headers reconciled, nothing sent
    HEADERS_VALIDATED = "headers_validated"  # No earlier output, headers can go out
    HEADERS_SENT = "headers_sent"            # Header lines handed to the sink
    BODY_SENT = "body_sent"                  # Body written (or skipped)
    DONE = "done"                            # Sink flushed
    FAILED = "failed"                        # Emission aborted with an exception


@dataclass(frozen=True)
class RangeSpec:
    """
    A parsed Content-Range.

    Attributes:
        start: First byte position.
        end: Last byte position as requested (may exceed the body).
        total: Complete length of the representation.
        length: Number of bytes that will actually be written.
    """
    start: int
    end: int
    total: int
    length: int


@dataclass(frozen=True)
class EmissionPlan:
    """What emit_body() will write, decided once at construction."""
    has_body: bool = False
    has_custom_length: bool = False
    has_content_range: bool = False
    range_start: int = 0
    range_length: int = 0


class ResponseEmitter(ABC):
    """
    Base class for response emitters.

    Subclasses implement emit() (header validation and header calls) and
    use emit_body() for the body. The emitter borrows the body stream and
    never closes it.

    Attributes:
        response: The reconciled response (a new value, the caller's
                  response is left untouched).
        sink: Where header lines and body chunks go.
        buffer_size: Chunk size for body reads.
        plan: The EmissionPlan derived from the response.
        state: Current EmissionState.
    """

    def __init__(self, response: HTTPResponse, sink: OutputSink, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Args:
            response: The response to emit.
            sink: Output destination.
            buffer_size: Chunk size for body reads, at least 1.

        Raises:
            ValueError: If buffer_size is smaller than 1.
        """
        if buffer_size < 1:
            raise ValueError("Buffer length must be greater than zero.")

        self.sink = sink
        self.buffer_size = buffer_size
        self.body: Stream = response.body
        self.response = response
        self.response, self.plan = self._reconcile(response)
        self.state = EmissionState.CONSTRUCTED

        if self.body.seekable():
            self.body.rewind()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def has_custom_length(self) -> bool:
        return self.plan.has_custom_length

    @property
    def has_content_range(self) -> bool:
        return self.plan.has_content_range

    def has_body(self) -> bool:
        """
        Whether the response has (or is supposed to have) a body.

        Informational, 204, 205 and 304 responses never carry one. For all
        others the body stream has to be readable with a known, non-zero
        size.
        """
        if not allows_body(self.response.status):
            return False

        if not self.body.readable():
            return False

        size = self.body.size
        return size is not None and size > 0

    def get_status_line(self) -> str:
        """The full status line, e.g. "HTTP/1.1 200 OK"."""
        return self.response.status_line

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    def parse_content_range(self) -> Optional[RangeSpec]:
        """
        Parse the Content-Range header of the response.

        Only the "bytes" unit is accepted. A "*" total stands for the body
        size. An end beyond the total is accepted and the length clamped.

        Returns:
            The RangeSpec, or None when the header is missing or invalid.
        """
        match = _CONTENT_RANGE.search(self.response.get_header_line("Content-Range"))

        if match is None or match.group("unit").lower() != "bytes":
            return None

        start = int(match.group("start"))
        end = int(match.group("end"))

        if match.group("total") == "*":
            total = self.body.size or 0
        else:
            total = int(match.group("total"))

        if end < start:
            return None

        length = end - start + 1

        if end > total:
            length = max(0, total - start)

        return RangeSpec(start=start, end=end, total=total, length=length)

    def _reconcile(self, response: HTTPResponse) -> Tuple[HTTPResponse, EmissionPlan]:
        """
        Work out the length headers and the emission plan.

        All header edits are collected first and applied to a single new
        response value.
        """
        if not self.has_body():
            return response.without_header("Content-Length"), EmissionPlan()

        size = self.body.size

        if response.status == HTTPStatus.PARTIAL_CONTENT and response.has_header("Content-Range"):
            byte_range = self.parse_content_range()

            if byte_range is None:
                logger.warning(
                    f"Invalid Content-Range {response.get_header_line('Content-Range')!r}, "
                    f"sending the full body with 200 OK"
                )
                reconciled = response.with_header_changes(
                    updates={"Content-Length": str(size)},
                    remove=("Content-Range",),
                )
                return reconciled.with_status(HTTPStatus.OK, "OK"), EmissionPlan(has_body=True)

            logger.debug(f"Emitting range {byte_range.start}-{byte_range.end}/{byte_range.total} ({byte_range.length} bytes)")
            reconciled = response.with_header_changes(updates={
                "Content-Range": f"bytes {byte_range.start}-{byte_range.end}/{byte_range.total}",
                "Content-Length": str(byte_range.length),
            })
            plan = EmissionPlan(
                has_body=True,
                has_content_range=True,
                range_start=byte_range.start,
                range_length=byte_range.length,
            )
            return reconciled, plan

        if not response.has_header("Content-Length"):
            return response.with_header("Content-Length", str(size)), EmissionPlan(has_body=True)

        declared = response.get_header_line("Content-Length")

        try:
            content_length = int(declared)
        except ValueError:
            content_length = -1

        if content_length < 0:
            logger.warning(f"Replacing invalid Content-Length {declared!r} with the body size {size}")
            return response.with_header("Content-Length", str(size)), EmissionPlan(has_body=True)

        # a shorter declared length is honoured, the rest of the body is dropped
        if content_length < size:
            logger.debug(f"Custom Content-Length {content_length} of {size} bytes")
            return response, EmissionPlan(has_body=True, has_custom_length=True, range_length=content_length)

        return response, EmissionPlan(has_body=True)

    # =========================================================================
    # BODY OUTPUT
    # =========================================================================

    def emit_buffer(self, data: bytes) -> None:
        """Hand one chunk of body data to the sink."""
        self.sink.write(data)

    def emit_body(self) -> None:
        """
        Emit the body with respect to Content-Range and Content-Length.
        """
        if not self.plan.has_body:
            return

        if self.plan.has_custom_length:
            self.emit_body_range(0, self.plan.range_length)
            return

        if self.plan.has_content_range:
            self.emit_body_range(self.plan.range_start, self.plan.range_length)
            return

        while not self.body.eof():
            chunk = self.body.read(self.buffer_size)

            if not chunk:
                break

            self.emit_buffer(chunk)

            if not self.sink.is_connection_alive():
                logger.info("Client disconnected, body emission stopped")
                break

    def emit_body_range(self, start: int, length: int) -> None:
        """
        Emit `length` bytes of the body starting at `start`.

        Raises:
            RuntimeError: If the body stream is not seekable.
        """
        self.sink.flush()

        if not self.body.seekable():
            raise RuntimeError("body must be seekable")

        self.body.seek(start)

        while length >= self.buffer_size and not self.body.eof():
            contents = self.body.read(self.buffer_size)

            if not contents:
                break

            length -= len(contents)
            self.emit_buffer(contents)

            if not self.sink.is_connection_alive():
                logger.info(f"Client disconnected, {length} bytes of the range not sent")
                return

        if length > 0 and not self.body.eof():
            self.emit_buffer(self.body.read(length))

    # =========================================================================
    # ABSTRACT
    # =========================================================================

    @abstractmethod
    def emit(self) -> None:
        """Emit the response: headers first, then the body."""
