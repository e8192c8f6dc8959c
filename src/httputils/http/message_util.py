"""
=============================================================================
MESSAGE CONTENT HELPERS
=============================================================================

Read, decode and annotate the body of any HTTP message.

    get_contents()             raw body bytes (stream rewound afterwards)
    decode_json()/decode_xml() parsed body
    decompress()               body decoded per Content-Encoding
    to_string()                the message as it would look on the wire
    set_content_length_header()
    set_content_type_header()  type from extension → filename → content
    with_cookie()              attach a Set-Cookie header

=============================================================================
CONTENT-ENCODING TOKENS
=============================================================================

    ┌────────────────┬────────────────────────────────────────────────┐
    │  Token         │  Decoder                                       │
    ├────────────────┼────────────────────────────────────────────────┤
    │  "" / identity │  none                                          │
    │  gzip, x-gzip  │  gzip (RFC 1952)                               │
    │  compress      │  zlib stream (RFC 1950)                        │
    │  deflate       │  raw deflate (RFC 1951)                        │
    │  br            │  brotli      (optional "brotli" package)       │
    │  zstd          │  zstandard   (optional "zstandard" package)    │
    └────────────────┴────────────────────────────────────────────────┘

=============================================================================
"""

import gzip
import json
import logging
import zlib
from types import SimpleNamespace
from typing import Any, Optional, Union
from xml.etree import ElementTree

from . import stream as stream_util
from .cookie import Cookie
from .message import HTTPMessage, HTTPRequest
from .mime_types import get_from_content, get_from_extension, get_from_filename
from .response import HTTPResponse

# Optional compression codecs
try:
    import brotli
    BROTLI_AVAILABLE = True
except ImportError:
    BROTLI_AVAILABLE = False

try:
    import zstandard
    ZSTD_AVAILABLE = True
except ImportError:
    ZSTD_AVAILABLE = False


logger = logging.getLogger(__name__)


def get_contents(message: HTTPMessage) -> bytes:
    """
    Read the whole body of a message.

    Raises:
        RuntimeError: If the body can't be read.
    """
    content = stream_util.get_contents(message.body)

    if content is None:
        raise RuntimeError("invalid message content")

    return content


def decode_json(message: HTTPMessage, as_dict: bool = False) -> Any:
    """
    Decode a JSON body.

    Objects become SimpleNamespace instances (attribute access) unless
    `as_dict` is set.

    Raises:
        json.JSONDecodeError: If the body is not valid JSON.
    """
    hook = None if as_dict else (lambda obj: SimpleNamespace(**obj))
    return json.loads(get_contents(message), object_hook=hook)


def decode_xml(message: HTTPMessage, as_dict: bool = False) -> Union[ElementTree.Element, Any]:
    """
    Decode an XML body into an Element, or into plain dicts with `as_dict`.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed XML.
    """
    root = ElementTree.fromstring(get_contents(message))

    if as_dict:
        return _element_to_dict(root)

    return root


def _element_to_dict(element: ElementTree.Element) -> Any:
    """Leaf elements become their text; repeated child tags become lists."""
    children = list(element)

    if not children and not element.attrib:
        return element.text or ""

    result: dict = {}

    if element.attrib:
        result["@attributes"] = dict(element.attrib)

    for child in children:
        value = _element_to_dict(child)

        if child.tag not in result:
            result[child.tag] = value
        elif isinstance(result[child.tag], list):
            result[child.tag].append(value)
        else:
            result[child.tag] = [result[child.tag], value]

    return result


def to_string(message: HTTPMessage, append_body: bool = True) -> str:
    """
    Render a message as text: start line, headers and (optionally) body.

    Request example:
        GET /foo HTTP/1.1\\r\\nHost: localhost\\r\\nfoo: bar\\r\\n\\r\\ntestbody
    """
    if isinstance(message, HTTPRequest):
        msg = f"{message.method} {message.request_target} HTTP/{message.protocol_version}"

        if not message.has_header("Host"):
            msg += f"\r\nHost: {message.uri.host}"

    elif isinstance(message, HTTPResponse):
        msg = f"HTTP/{message.protocol_version} {message.status} {message.reason_phrase}"

    else:
        msg = ""

    for name, values in message.get_headers().items():
        msg += f"\r\n{name}: {', '.join(values)}"

    # large or file-backed bodies may not be wanted in a log line
    if append_body:
        msg += f"\r\n\r\n{get_contents(message).decode('utf-8', errors='replace')}"

    return msg


def decompress(message: HTTPMessage) -> bytes:
    """
    Decode the body according to the Content-Encoding header.

    Raises:
        RuntimeError: For unknown encodings, missing optional codecs or
                      bodies that fail to decode.
    """
    data = get_contents(message)
    encoding = message.get_header_line("Content-Encoding").lower()

    if encoding in ("", "identity"):
        return data

    if encoding == "br":
        if not BROTLI_AVAILABLE:
            raise RuntimeError("cannot decompress brotli compressed message body")

        return brotli.decompress(data)

    if encoding == "zstd":
        if not ZSTD_AVAILABLE:
            raise RuntimeError("cannot decompress zstd compressed message body")

        return zstandard.ZstdDecompressor().decompressobj().decompress(data)

    try:
        if encoding in ("gzip", "x-gzip"):
            return gzip.decompress(data)

        if encoding == "compress":
            return zlib.decompress(data)

        if encoding == "deflate":
            return zlib.decompress(data, -zlib.MAX_WBITS)
    except (OSError, EOFError, zlib.error) as e:
        logger.warning(f"Failed to decode {encoding} body: {e}")
        raise RuntimeError(f"cannot decompress {encoding} compressed message body: {e}") from e

    raise RuntimeError(f"unknown content-encoding value: {encoding}")


def set_content_length_header(message: HTTPMessage) -> HTTPMessage:
    """
    Add Content-Length from the body size when the header is missing and
    the size is known and non-zero.
    """
    size = message.body.size

    if not message.has_header("Content-Length") and size is not None and size > 0:
        message = message.with_header("Content-Length", str(size))

    return message


def set_content_type_header(
    message: HTTPMessage,
    filename: Optional[str] = None,
    extension: Optional[str] = None,
) -> HTTPMessage:
    """
    Set Content-Type, guessed from the extension, then the filename, then
    the body content.

    Raises:
        RuntimeError: If no type could be determined.
    """
    mime_type = (
        get_from_extension((extension or "").strip(".\t\n\r\0\x0b "))
        or get_from_filename(filename or "")
        or get_from_content(get_contents(message))
    )

    if mime_type is None:
        raise RuntimeError("could not determine content type")

    return message.with_header("Content-Type", mime_type)


def with_cookie(message: HTTPMessage, cookie: Cookie) -> HTTPMessage:
    """Attach a cookie as an additional Set-Cookie header."""
    return message.with_added_header("Set-Cookie", str(cookie))
