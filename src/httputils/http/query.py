"""
Query string helpers: clean parameter sets, build sorted query strings,
merge parameters into a URL and parse query strings without PHP-style
bracket magic (``q[]=a`` stays the key ``"q[]"``).
"""

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote, quote_plus, unquote, unquote_plus

from .uri import parse_url


# how booleans are cast by clean_params()
BOOLEANS_AS_BOOL = 0
BOOLEANS_AS_INT = 1
BOOLEANS_AS_STRING = 2
BOOLEANS_AS_INT_STRING = 3

# encodings for build() / parse()
NO_ENCODING = -1
QUERY_RFC1738 = 1   # "+" for spaces (form encoding)
QUERY_RFC3986 = 2   # "%20" for spaces

QueryParams = Dict[str, Any]


def clean_params(
    params: Union[Mapping, Iterable],
    bool_cast: Optional[int] = None,
    remove_empty: Optional[bool] = None,
) -> Union[dict, list]:
    """
    Clean a (nested) parameter set.

    Strings are trimmed, booleans are cast according to `bool_cast` and,
    unless `remove_empty` is False, empty strings and empty non-numeric
    values (None, empty containers) are dropped. Nested mappings and lists
    are cleaned recursively and keep their type.

    Raises:
        ValueError: If `bool_cast` is not one of the BOOLEANS_AS_* constants.
    """
    bool_cast = BOOLEANS_AS_BOOL if bool_cast is None else bool_cast
    remove_empty = True if remove_empty is None else remove_empty

    is_mapping = isinstance(params, Mapping)
    items = params.items() if is_mapping else enumerate(params)
    cleaned = {}

    for key, value in items:
        if isinstance(value, (Mapping, list, tuple, set)):
            cleaned[key] = clean_params(value, bool_cast, remove_empty)

        elif isinstance(value, bool):
            cleaned[key] = _cast_bool(value, bool_cast)

        elif isinstance(value, str):
            value = value.strip()

            if remove_empty and value == "":
                continue

            cleaned[key] = value

        else:
            if remove_empty and not isinstance(value, (int, float)) and not value:
                continue

            cleaned[key] = value

    return cleaned if is_mapping else list(cleaned.values())


def _cast_bool(value: bool, bool_cast: int) -> Union[bool, int, str]:
    if bool_cast == BOOLEANS_AS_BOOL:
        return value
    if bool_cast == BOOLEANS_AS_INT:
        return int(value)
    if bool_cast == BOOLEANS_AS_STRING:
        return "true" if value else "false"
    if bool_cast == BOOLEANS_AS_INT_STRING:
        return str(int(value))

    raise ValueError("invalid bool_cast parameter value")


def _encoder(encoding: int) -> Callable[[str], str]:
    if encoding == QUERY_RFC3986:
        return lambda value: quote(value, safe="")
    if encoding == QUERY_RFC1738:
        return lambda value: quote_plus(value, safe="")

    return lambda value: value


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else ""

    return "" if value is None else str(value)


def build(
    params: Mapping,
    encoding: Optional[int] = None,
    delimiter: Optional[str] = None,
    enclosure: Optional[str] = None,
) -> str:
    """
    Build a query string from a parameter mapping.

    Parameters are sorted by name (byte order); list values produce one pair
    per value, sorted by their string form. None values produce the bare key
    and booleans become 0/1.

    Examples:
        >>> build({"c": 1, "a": 2, "b": [3, 1, 2]})
        'a=2&b=1&b=2&b=3&c=1'
    """
    if not params:
        return ""

    encode = _encoder(QUERY_RFC3986 if encoding is None else encoding)
    enclosure = "" if enclosure is None else enclosure
    delimiter = "&" if delimiter is None else delimiter

    def pair(key: str, value: Any) -> str:
        if value is None:
            return key

        if isinstance(value, bool):
            value = int(value)

        return f"{key}={enclosure}{encode(str(value))}{enclosure}"

    pairs: List[str] = []

    for name in sorted(params, key=lambda k: str(k).encode("utf-8")):
        value = params[name]
        key = encode(str(name))

        if isinstance(value, (list, tuple)):
            for duplicate in sorted(value, key=_to_str):
                pairs.append(pair(key, duplicate))
        else:
            pairs.append(pair(key, value))

    return delimiter.join(pairs)


def merge(uri: str, query: Mapping) -> str:
    """
    Merge parameters into the query of a URL string.

    Existing parameters with the same name are overwritten; the result is
    rebuilt (and therefore sorted) by build(). A trailing "?" is dropped
    when nothing is left.
    """
    parts = parse_url(uri) or {}
    params = parse(str(parts.get("query", "")))
    params.update(query)
    request_uri = uri.split("?", 1)[0]

    if params:
        request_uri += f"?{build(params)}"

    return request_uri


def parse(querystring: str, url_encoding: Optional[int] = None) -> QueryParams:
    """
    Parse a query string into a dict.

    Repeated keys collect their values in a list, keys without "=" map to
    None. By default "+" is decoded as a space; QUERY_RFC3986 keeps it,
    NO_ENCODING leaves the string undecoded.

    Examples:
        >>> parse("?q=a&q=b&flag")
        {'q': ['a', 'b'], 'flag': None}
    """
    querystring = querystring.strip("?")

    if querystring == "":
        return {}

    if url_encoding == NO_ENCODING:
        decode = lambda value: value
    elif url_encoding == QUERY_RFC3986:
        decode = unquote
    elif url_encoding == QUERY_RFC1738:
        decode = unquote_plus
    else:
        decode = lambda value: unquote(value.replace("+", " "))

    result: QueryParams = {}

    for part in querystring.split("&"):
        key, sep, value = part.partition("=")
        key = decode(key)
        value = decode(value) if sep else None

        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]

    return result


def recursive_rawurlencode(data: Any) -> Union[str, list, dict]:
    """
    Percent-encode a scalar or every scalar inside nested lists/dicts.

    Raises:
        ValueError: If a value is neither a scalar nor None.
    """
    if isinstance(data, Mapping):
        return {key: recursive_rawurlencode(value) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        return [recursive_rawurlencode(value) for value in data]

    if data is not None and not isinstance(data, (str, int, float, bool)):
        raise ValueError("data is neither scalar nor null")

    return quote(_to_str(data), safe="")
