"""
Emitter for CGI-style output on standard output.

Headers are validated against earlier output, sent as individual header
calls (status line last) and followed by the body.
"""

import logging
import sys
from typing import Optional

from ..http.headers import normalize
from ..http.response import HTTPResponse
from .base import DEFAULT_BUFFER_SIZE, EmissionState, ResponseEmitter
from .sinks import OutputSink, StreamSink


logger = logging.getLogger(__name__)


class StdoutEmitter(ResponseEmitter):
    """
    Emit a response to stdout, or to any sink given.

    Usage:
        StdoutEmitter(response).emit()
        StdoutEmitter(response, sink=StreamSink(sock.makefile("wb"))).emit()
    """

    def __init__(
        self,
        response: HTTPResponse,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        sink: Optional[OutputSink] = None,
    ):
        if sink is None:
            sink = StreamSink(sys.stdout.buffer)

        super().__init__(response, sink, buffer_size)

    def emit(self) -> None:
        """
        Emit headers and body, then flush the sink.

        Raises:
            RuntimeError: If output was already produced or headers were
                          already sent, or if a ranged body can't be seeked.
        """
        try:
            if self.sink.output_started():
                raise RuntimeError("Output has been emitted previously; cannot emit response.")

            sent, file, line = self.sink.headers_sent()

            if sent:
                raise RuntimeError(f"Headers already sent in file {file} on line {line}.")

            self.state = EmissionState.HEADERS_VALIDATED

            self.emit_headers()
            self.state = EmissionState.HEADERS_SENT

            self.emit_body()
            self.state = EmissionState.BODY_SENT

            self.sink.flush()
            self.state = EmissionState.DONE

        except Exception:
            self.state = EmissionState.FAILED
            raise

        logger.debug(f"Emitted {self.get_status_line()!r}")

    def emit_headers(self) -> None:
        """
        Send every header, then Set-Cookie lines, then the status line.

        The status line goes last because a Location header may change the
        status on its own.
        """
        headers = normalize(self.response.get_headers())

        for name, value in headers.items():
            if name == "Set-Cookie":
                continue

            self.sink.send_header(f"{name}: {value}", True)

        cookies = headers.get("Set-Cookie")

        if isinstance(cookies, dict):
            for cookie in cookies.values():
                self.sink.send_header(f"Set-Cookie: {cookie}", False)

        self.sink.send_header(self.get_status_line(), True, self.response.status)
