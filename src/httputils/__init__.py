"""
=============================================================================
HTTPUTILS - HTTP Message Utilities and Response Emitter
=============================================================================

Helpers for working with HTTP messages (headers, query strings, URIs,
cookies, bodies) and an emitter that streams a response to its client with
Content-Length and Content-Range handled correctly.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httputils/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httputils)
    ├── config.py            # EmitterConfig dataclass, logging setup
    ├── http/                # Message model and helpers
    │   ├── message.py       # HTTPMessage, HTTPRequest, ServerRequest
    │   ├── response.py      # HTTPResponse, ResponseBuilder
    │   ├── stream.py        # Body streams
    │   ├── headers.py       # Header normalization
    │   ├── query.py         # Query strings
    │   ├── uri.py           # Uri value and URI helpers
    │   ├── cookie.py        # Set-Cookie builder
    │   ├── mime_types.py    # MIME type detection
    │   ├── message_util.py  # Body decoding and decompression
    │   ├── server_util.py   # Requests from a WSGI environ
    │   └── status_codes.py  # HTTP status enum
    └── emitter/             # Response emission
        ├── base.py          # ResponseEmitter engine
        ├── sinks.py         # OutputSink, StreamSink, RecordingSink
        └── stdout.py        # StdoutEmitter

=============================================================================
QUICK START
=============================================================================

    from httputils import ResponseBuilder, StdoutEmitter

    response = (ResponseBuilder()
        .file("video.mp4")
        .byte_range(0, 1023)
        .build())

    StdoutEmitter(response).emit()

    # HTTP/1.1 206 Partial Content
    # Content-Type: video/mp4
    # Content-Range: bytes 0-1023/146515
    # Content-Length: 1024

=============================================================================
"""

__version__ = "1.0.0"

from .config import EmitterConfig, setup_logging
from .emitter import (
    OutputSink,
    RecordingSink,
    ResponseEmitter,
    StdoutEmitter,
    StreamSink,
)
from .http import (
    Cookie,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    ResponseBuilder,
    ServerRequest,
    Stream,
    Uri,
)

__all__ = [
    "EmitterConfig",
    "setup_logging",
    "ResponseEmitter",
    "StdoutEmitter",
    "OutputSink",
    "StreamSink",
    "RecordingSink",
    "HTTPRequest",
    "HTTPResponse",
    "ServerRequest",
    "ResponseBuilder",
    "HTTPStatus",
    "Stream",
    "Uri",
    "Cookie",
    "__version__",
]
