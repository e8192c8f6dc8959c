"""
=============================================================================
HTTP MESSAGES
=============================================================================

Immutable request/response values shared by every helper in this package.

    ┌────────────────────────────────────────────────────────────────────┐
    │                      HTTP MESSAGE                                  │
    ├────────────────────────────────────────────────────────────────────┤
    │  start line   GET /index.html HTTP/1.1   |   HTTP/1.1 200 OK        │
    │  headers      ordered (name, values) pairs, names matched           │
    │               case-insensitively, original casing kept              │
    │  body         Stream (never a bytes blob)                           │
    └────────────────────────────────────────────────────────────────────┘

=============================================================================
COPY-ON-WRITE
=============================================================================

Messages are frozen dataclasses. Every with_* method returns a NEW message
and leaves the original untouched:

    original = HTTPResponse(status=200)
    changed  = original.with_header("X-Foo", "bar")

    original.has_header("X-Foo")   → False
    changed.has_header("X-Foo")    → True

Only the body stream is shared between copies; it is a handle to external
data, not part of the value.

=============================================================================
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

from .headers import trim_values
from .stream import Stream
from .uri import Uri


HeaderItems = Tuple[Tuple[str, Tuple[str, ...]], ...]
HeaderValue = Union[str, int, float, bool, None, List, Tuple]
HeadersInput = Union[Mapping, Iterable, None]
BodyInput = Union[Stream, bytes, str, BinaryIO, None]

_HEADER_NAME = re.compile(r"^[a-zA-Z0-9'`#$%&*+.^_|~!-]+$")


def _header_values(value: HeaderValue) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        values = tuple(trim_values(value))
    else:
        values = tuple(trim_values([value]))

    if not values:
        raise ValueError("header values must not be empty")

    return values


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not _HEADER_NAME.match(name):
        raise ValueError(f"header name must be an RFC 7230 compatible string: {name!r}")

    return name


def coerce_headers(headers: HeadersInput) -> HeaderItems:
    """
    Build the internal header tuple from a mapping or (name, value) pairs.

    Repeated names (in any casing) are merged into one entry that keeps the
    casing of the first occurrence.
    """
    if headers is None:
        return ()

    if isinstance(headers, Mapping):
        pairs = headers.items()
    else:
        pairs = headers

    merged: Dict[str, Tuple[str, List[str]]] = {}

    for name, value in pairs:
        name = _check_name(name)
        values = _header_values(value)
        key = name.lower()

        if key in merged:
            merged[key][1].extend(values)
        else:
            merged[key] = (name, list(values))

    return tuple((name, tuple(values)) for name, values in merged.values())


def coerce_body(body: BodyInput) -> Stream:
    """Wrap bytes, text or a binary file object in a Stream."""
    if body is None:
        return Stream()

    if isinstance(body, Stream):
        return body

    if isinstance(body, (bytes, bytearray, str)):
        return Stream.from_bytes(bytes(body) if not isinstance(body, str) else body)

    return Stream(body)


class HTTPMessage:
    """
    Header and body operations shared by requests and responses.

    Subclasses are frozen dataclasses with `headers`, `body` and
    `protocol_version` fields.
    """

    headers: HeaderItems
    body: Stream
    protocol_version: str

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_headers(self) -> Dict[str, List[str]]:
        """All headers as name → list of values, in insertion order."""
        return {name: list(values) for name, values in self.headers}

    def has_header(self, name: str) -> bool:
        key = name.lower()
        return any(existing.lower() == key for existing, _ in self.headers)

    def get_header(self, name: str) -> List[str]:
        key = name.lower()

        for existing, values in self.headers:
            if existing.lower() == key:
                return list(values)

        return []

    def get_header_line(self, name: str) -> str:
        """All values of one header joined by ", " ("" when absent)."""
        return ", ".join(self.get_header(name))

    # =========================================================================
    # COPY-ON-WRITE MODIFIERS
    # =========================================================================

    def with_header(self, name: str, value: HeaderValue):
        """Replace a header; an existing header keeps its position."""
        return self.with_header_changes(updates={name: value})

    def with_added_header(self, name: str, value: HeaderValue):
        """Append values to a header, creating it when absent."""
        _check_name(name)
        values = _header_values(value)
        key = name.lower()
        headers = []
        found = False

        for existing, current in self.headers:
            if existing.lower() == key:
                current = current + values
                found = True

            headers.append((existing, current))

        if not found:
            headers.append((name, values))

        return replace(self, headers=tuple(headers))

    def without_header(self, name: str):
        return self.with_header_changes(remove=(name,))

    def with_header_changes(
        self,
        updates: Optional[Mapping[str, HeaderValue]] = None,
        remove: Iterable[str] = (),
    ):
        """
        Apply several header edits in one pass and return one new message.

        Headers named in `remove` are dropped; headers in `updates` replace
        existing ones in place or are appended in the given order.
        """
        updates = {_check_name(name): _header_values(value) for name, value in (updates or {}).items()}
        removed = {name.lower() for name in remove}
        pending = {name.lower(): name for name in updates}
        headers = []

        for existing, values in self.headers:
            key = existing.lower()

            if key in pending:
                name = pending.pop(key)
                headers.append((name, updates[name]))
            elif key not in removed:
                headers.append((existing, values))

        for name in pending.values():
            headers.append((name, updates[name]))

        return replace(self, headers=tuple(headers))

    def with_body(self, body: BodyInput):
        return replace(self, body=coerce_body(body))

    def with_protocol_version(self, version: str):
        return replace(self, protocol_version=version)


# =============================================================================
# REQUESTS
# =============================================================================

@dataclass(frozen=True)
class HTTPRequest(HTTPMessage):
    """
    An outgoing or incoming HTTP request.

    When the URI carries a host and no Host header is given, a Host header
    is added as the first header.
    """

    method: str = "GET"
    uri: Union[Uri, str] = field(default_factory=Uri)
    headers: HeadersInput = ()
    body: BodyInput = None
    protocol_version: str = "1.1"

    def __post_init__(self):
        uri = self.uri if isinstance(self.uri, Uri) else Uri.parse(self.uri)
        headers = coerce_headers(self.headers)

        object.__setattr__(self, "uri", uri)
        object.__setattr__(self, "body", coerce_body(self.body))

        if uri.host and not any(name.lower() == "host" for name, _ in headers):
            headers = ((("Host", (_host_header(uri),)),) + headers)

        object.__setattr__(self, "headers", headers)

    @property
    def request_target(self) -> str:
        """origin-form target: path (default "/") plus query."""
        target = self.uri.path or "/"

        if self.uri.query:
            target += f"?{self.uri.query}"

        return target

    def with_method(self, method: str) -> "HTTPRequest":
        return replace(self, method=method)

    def with_uri(self, uri: Union[Uri, str], preserve_host: bool = False) -> "HTTPRequest":
        """
        Replace the URI; the Host header follows the new URI unless
        `preserve_host` is set and a Host header already exists.
        """
        uri = uri if isinstance(uri, Uri) else Uri.parse(uri)
        request = replace(self, uri=uri)

        if uri.host and not (preserve_host and self.has_header("Host")):
            request = request.with_header("Host", _host_header(uri))

        return request


def _host_header(uri: Uri) -> str:
    return uri.host if uri.port is None else f"{uri.host}:{uri.port}"


@dataclass(frozen=True)
class ServerRequest(HTTPRequest):
    """
    A request as seen by the server: the plain request plus the
    environment it arrived in (server params, cookies, query, parsed body)
    and free-form attributes set by the application.
    """

    server_params: Mapping = field(default_factory=dict)
    cookie_params: Mapping = field(default_factory=dict)
    query_params: Mapping = field(default_factory=dict)
    parsed_body: Any = None
    attributes: Mapping = field(default_factory=dict)

    def with_cookie_params(self, cookies: Mapping) -> "ServerRequest":
        return replace(self, cookie_params=dict(cookies))

    def with_query_params(self, query: Mapping) -> "ServerRequest":
        return replace(self, query_params=dict(query))

    def with_parsed_body(self, data: Any) -> "ServerRequest":
        return replace(self, parsed_body=data)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> "ServerRequest":
        return replace(self, attributes={**self.attributes, name: value})

    def without_attribute(self, name: str) -> "ServerRequest":
        return replace(self, attributes={k: v for k, v in self.attributes.items() if k != name})
