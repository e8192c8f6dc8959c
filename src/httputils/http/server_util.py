"""
Build a ServerRequest (and its Uri) from a WSGI/CGI environ.

The environ is the dict a WSGI server hands to the application (PEP 3333);
CGI variables like REQUEST_URI and HTTPS are honoured when present.
"""

import logging
from http.cookies import CookieError, SimpleCookie
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from .message import ServerRequest
from .query import QUERY_RFC1738, parse
from .stream import Stream
from .uri import Uri


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def uri_from_environ(environ: Mapping[str, Any]) -> Uri:
    """
    Reconstruct the request URI.

    Host resolution order: HTTP_HOST (may carry a port), SERVER_NAME,
    SERVER_ADDR, then "localhost". SERVER_PORT applies unless the Host
    header named a port. The path comes from REQUEST_URI, or from
    SCRIPT_NAME + PATH_INFO under plain WSGI.
    """
    https = environ.get("HTTPS")

    if https:
        secure = https != "off"
    else:
        secure = environ.get("wsgi.url_scheme") == "https"

    uri = Uri(scheme="https" if secure else "http")
    has_port = False
    has_query = False

    if environ.get("HTTP_HOST"):
        host, sep, port = environ["HTTP_HOST"].partition(":")
        uri = uri.with_host(host)

        if sep and port:
            has_port = True
            uri = uri.with_port(int(port))

    elif environ.get("SERVER_NAME"):
        uri = uri.with_host(environ["SERVER_NAME"])

    elif environ.get("SERVER_ADDR"):
        uri = uri.with_host(environ["SERVER_ADDR"])

    else:
        uri = uri.with_host("localhost")

    if not has_port and environ.get("SERVER_PORT"):
        uri = uri.with_port(int(environ["SERVER_PORT"]))

    if environ.get("REQUEST_URI"):
        path, sep, query = environ["REQUEST_URI"].partition("?")
        uri = uri.with_path(path)

        if sep:
            has_query = True
            uri = uri.with_query(query)

    elif "PATH_INFO" in environ:
        uri = uri.with_path(quote(environ.get("SCRIPT_NAME", "") + environ["PATH_INFO"]))

    if not has_query and environ.get("QUERY_STRING"):
        uri = uri.with_query(environ["QUERY_STRING"])

    return uri


def headers_from_environ(environ: Mapping[str, Any]) -> Dict[str, str]:
    """
    Collect request headers: HTTP_* variables plus CONTENT_TYPE and
    CONTENT_LENGTH ("HTTP_X_FORWARDED_FOR" → "X-Forwarded-For").
    """
    headers = {}

    for key, value in environ.items():
        if value is None or not isinstance(key, str):
            continue

        if key.startswith("HTTP_"):
            name = key[5:]
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value != "":
            name = key
        else:
            continue

        headers[name.replace("_", "-").title()] = value

    return headers


def cookies_from_environ(environ: Mapping[str, Any]) -> Dict[str, str]:
    raw = environ.get("HTTP_COOKIE")

    if not raw:
        return {}

    cookie = SimpleCookie()

    try:
        cookie.load(raw)
    except CookieError as e:
        logger.warning(f"Ignoring malformed Cookie header: {e}")
        return {}

    return {name: morsel.value for name, morsel in cookie.items()}


def server_request_from_environ(environ: Mapping[str, Any]) -> ServerRequest:
    """
    Create a ServerRequest from a WSGI environ.

    URL-encoded form bodies of POST requests are parsed into `parsed_body`
    (and stay available as the body stream). Any other body is exposed as
    a stream over wsgi.input.
    """
    method = environ.get("REQUEST_METHOD") or "GET"
    protocol = environ.get("SERVER_PROTOCOL")
    protocol = protocol[5:] if protocol else "1.1"
    content_type = environ.get("CONTENT_TYPE") or ""
    length = _content_length(environ)
    body: Optional[Stream] = None
    parsed_body = None
    wsgi_input = environ.get("wsgi.input")

    if wsgi_input is not None:
        if method == "POST" and content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
            data = wsgi_input.read(length) if length is not None else wsgi_input.read()
            body = Stream.from_bytes(data)
            parsed_body = parse(data.decode("latin-1"), QUERY_RFC1738)
        else:
            body = Stream(wsgi_input, size=length)

    return ServerRequest(
        method=method,
        uri=uri_from_environ(environ),
        headers=headers_from_environ(environ),
        body=body,
        protocol_version=protocol,
        server_params=dict(environ),
        cookie_params=cookies_from_environ(environ),
        query_params=parse(environ.get("QUERY_STRING") or ""),
        parsed_body=parsed_body,
    )


def _content_length(environ: Mapping[str, Any]) -> Optional[int]:
    value = environ.get("CONTENT_LENGTH")

    try:
        return int(value) if value not in (None, "") else None
    except ValueError:
        logger.warning(f"Ignoring invalid CONTENT_LENGTH: {value!r}")
        return None
