"""
=============================================================================
HTTP RESPONSE
=============================================================================

The immutable response value handed to an emitter, and a fluent builder
for putting one together.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 206 Partial Content                                 │ │
    │  │    ────┬─── ─┬─ ───────┬───────                                 │ │
    │  │    Version  Code     Phrase                                     │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: video/mp4                                      │ │
    │  │    Content-Range: bytes 0-1023/146515                           │ │
    │  │    Content-Length: 1024                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY (Stream) ────────────────────────────────────────────────┐ │
    │  │    read in chunks by the emitter, never loaded as a whole       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .json({"message": "Hello"})
        .header("X-Custom", "value")
        .build())

Each builder method returns the builder; build() produces the frozen
HTTPResponse. Changing a built response goes through its with_* methods,
which return new responses.

=============================================================================
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .cookie import Cookie
from .message import BodyInput, HeadersInput, HTTPMessage, coerce_body, coerce_headers
from .mime_types import get_content_type
from .status_codes import HTTPStatus, reason_phrase
from .stream import Stream


@dataclass(frozen=True)
class HTTPResponse(HTTPMessage):
    """
    An HTTP response: status, reason phrase, headers, body stream.

    The reason phrase defaults to the standard phrase of the status code.

        >>> HTTPResponse(status=404).status_line
        'HTTP/1.1 404 Not Found'
    """

    status: int = HTTPStatus.OK
    reason_phrase: str = ""
    headers: HeadersInput = ()
    body: BodyInput = None
    protocol_version: str = "1.1"

    def __post_init__(self):
        status = int(self.status)

        if not 100 <= status <= 599:
            raise ValueError(f"status code has to be an integer between 100 and 599, got {status}")

        object.__setattr__(self, "status", status)
        object.__setattr__(self, "reason_phrase", self.reason_phrase or reason_phrase(status))
        object.__setattr__(self, "headers", coerce_headers(self.headers))
        object.__setattr__(self, "body", coerce_body(self.body))

    @property
    def status_line(self) -> str:
        """
        The HTTP status line.

        Format: HTTP/VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK". Trailing space is removed when the
        reason phrase is empty ("HTTP/1.1 299").
        """
        return f"HTTP/{self.protocol_version} {self.status} {self.reason_phrase}".strip()

    def with_status(self, code: int, reason: str = "") -> "HTTPResponse":
        """Change the status; an empty reason uses the standard phrase."""
        return replace(self, status=code, reason_phrase=reason)


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse values.

    Headers set through header() replace earlier values of the same name;
    cookie() adds one Set-Cookie header per call.
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._reason = ""
        self._headers: List[Tuple[str, str]] = []
        self._body: BodyInput = None

    # =========================================================================
    # STATUS
    # =========================================================================

    def status(self, status: int, reason: str = "") -> "ResponseBuilder":
        self._status = status
        self._reason = reason
        return self

    # =========================================================================
    # HEADERS
    # =========================================================================

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Set a header, replacing any earlier value of the same name."""
        key = name.lower()
        self._headers = [(n, v) for n, v in self._headers if n.lower() != key]
        self._headers.append((name, value))
        return self

    def headers(self, headers: dict) -> "ResponseBuilder":
        for name, value in headers.items():
            self.header(name, value)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def cookie(self, cookie: Cookie) -> "ResponseBuilder":
        """Add a Set-Cookie header; several cookies may be set."""
        self._headers.append(("Set-Cookie", str(cookie)))
        return self

    def last_modified(self, dt: datetime) -> "ResponseBuilder":
        return self.header("Last-Modified", format_http_date(dt))

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: BodyInput) -> "ResponseBuilder":
        """Set the body: a Stream, bytes, text or a binary file object."""
        self._body = body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text
        return self.header("Content-Type", content_type)

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        """
        Serialize data to JSON and set the Content-Type.

        ensure_ascii=False keeps non-ASCII characters readable in the body.
        """
        indent = 2 if pretty else None
        self._body = json.dumps(data, indent=indent, ensure_ascii=False)
        return self.header("Content-Type", "application/json; charset=utf-8")

    def file(self, path: Union[str, Path], content_type: Optional[str] = None) -> "ResponseBuilder":
        """
        Stream a file from disk; the Content-Type follows the file name
        unless given.
        """
        self._body = Stream.from_file(path)
        return self.header("Content-Type", content_type or get_content_type(path))

    # =========================================================================
    # PARTIAL CONTENT
    # =========================================================================

    def byte_range(self, start: int, end: int, total: Optional[int] = None) -> "ResponseBuilder":
        """
        Turn the response into a 206 Partial Content for bytes start..end
        (inclusive). An unknown total is written as "*" and resolved to
        the body size when the response is emitted.
        """
        self._status = HTTPStatus.PARTIAL_CONTENT
        self._reason = ""
        return self.header("Content-Range", f"bytes {start}-{end}/{'*' if total is None else total}")

    # =========================================================================
    # REDIRECTS
    # =========================================================================

    def redirect(self, location: str, permanent: bool = False) -> "ResponseBuilder":
        """
        301 Moved Permanently or 302 Found, with a Location header.
        """
        self._status = HTTPStatus.MOVED_PERMANENTLY if permanent else HTTPStatus.FOUND
        self._reason = ""
        return self.header("Location", location)

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            reason_phrase=self._reason,
            headers=list(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 9110).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT; naive datetimes are taken as UTC.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )

