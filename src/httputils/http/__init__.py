"""
=============================================================================
HTTP MESSAGE MODEL AND HELPERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ MESSAGES (message.py, response.py)                                  │
    │ ─────────────────────────────────────────────────────────────────── │
    │   HTTPRequest / ServerRequest / HTTPResponse: frozen values with    │
    │   copy-on-write with_* methods; bodies are Streams (stream.py)      │
    │   ResponseBuilder: fluent construction of responses                 │
    └─────────────────────────────────────────────────────────────────────┘
    ┌─────────────────────────────────────────────────────────────────────┐
    │ HELPERS                                                             │
    │ ─────────────────────────────────────────────────────────────────── │
    │   headers.py       header normalization                             │
    │   query.py         query string build / parse / merge               │
    │   uri.py           Uri value, URI predicates, parse_url             │
    │   cookie.py        Set-Cookie builder                               │
    │   mime_types.py    MIME type by extension, filename or content      │
    │   message_util.py  body decoding, decompression, string rendering   │
    │   server_util.py   ServerRequest from a WSGI environ                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .cookie import Cookie
from .headers import normalize, normalize_header_name, trim_values
from .message import HTTPMessage, HTTPRequest, ServerRequest
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
)
from .status_codes import HTTPStatus
from .stream import Stream
from .uri import Uri

__all__ = [
    # Messages
    "HTTPMessage",
    "HTTPRequest",
    "ServerRequest",
    "HTTPResponse",
    "ResponseBuilder",
    "Stream",
    "Uri",
    "Cookie",

    # Status codes
    "HTTPStatus",

    # Headers and dates
    "normalize",
    "normalize_header_name",
    "trim_values",
    "format_http_date",
]
