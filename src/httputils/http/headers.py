"""
=============================================================================
HEADER NORMALIZATION
=============================================================================

Turns loosely shaped header input into one canonical, ordered mapping.

    INPUT (any mix of)                       OUTPUT
    ─────────────────────────────────        ──────────────────────────────
    {"x-foo": "bar"}                         {"X-Foo": "bar, baz",
    ["x - fOO: baz "]                  ──►    "Accept": "foo, bar",
    [("accept", ["foo", "bar"])]              "Set-Cookie": {
    {"set-cookie": "id=1; HttpOnly"}              "id": "id=1; HttpOnly"}}

Rules:

    1. Names lose spaces/CR/LF and every dash separated part is capitalized
       ("content-TYPE" → "Content-Type").
    2. Values are converted to strings, stripped of CR/LF and trimmed.
    3. Repeated names are combined with ", " in order of appearance.
    4. Set-Cookie is never combined: cookies are keyed by their (lower-cased)
       name, so a later cookie with the same name replaces the earlier one.
    5. Anything that is not a name/value pair (bare strings without ":",
       numeric names, empty mappings) is silently skipped.

=============================================================================
"""

from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional, Tuple, Union


NormalizedHeaders = Dict[str, Union[str, Dict[str, str]]]

_SCALARS = (str, int, float, bool)


def normalize(headers: Union[Mapping, Iterable]) -> NormalizedHeaders:
    """
    Normalize an array of header lines/pairs into a name → value mapping.

    Args:
        headers: A mapping of name → value (value may be a scalar, None or a
                 list of values) or an iterable of "Name: value" lines,
                 (name, value) pairs and single-entry mappings.

    Returns:
        Ordered dict of normalized names to combined values; "Set-Cookie"
        maps to a dict of cookie name → cookie string.

    Raises:
        ValueError: If a value is neither a scalar nor None.
    """
    normalized: NormalizedHeaders = {}

    for key, val in _iter_pairs(headers):
        name = normalize_header_name(key)

        if name == "Set-Cookie":
            cookies = normalized.setdefault("Set-Cookie", {})

            for cookie in trim_values(val if isinstance(val, (list, tuple)) else [val]):
                cookie_name = cookie.split("=", 1)[0].strip().lower()
                cookies[cookie_name] = cookie

            continue

        if isinstance(val, (list, tuple)):
            val = ", ".join(trim_values(val))
        else:
            val = trim_values([val])[0]

        if name in normalized and val == "":
            continue

        if normalized.get(name):
            normalized[name] += f", {val}"
        else:
            normalized[name] = val

    return normalized


def _iter_pairs(headers: Union[Mapping, Iterable]):
    """Yield (name, value) pairs from any supported header input shape."""
    if isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = ((None, item) for item in headers)

    for key, val in items:
        if isinstance(key, str):
            yield key, val
            continue

        # positional entry: a "Name: value" line or a single pair
        pair = normalize_kv(val)

        if pair is not None:
            yield pair


def normalize_kv(value: Any) -> Optional[Tuple[str, Any]]:
    """
    Extract a (name, value) pair from a positional header entry.

    Accepts "Name: value" strings, (name, value) tuples and non-empty
    mappings (the first entry is used). Returns None for anything else.
    """
    if isinstance(value, str):
        if ":" not in value:
            return None

        name, val = value.split(":", 1)
        return name, val

    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
        return value[0], value[1]

    if isinstance(value, Mapping) and len(value) > 0:
        name, val = next(iter(value.items()))

        if isinstance(name, str):
            return name, val

    return None


def trim_values(values: Iterable) -> List[str]:
    """
    Convert header values to strings and remove CR/LF and surrounding space.

    Booleans follow the usual header convention: True → "1", False → "".

    Raises:
        ValueError: If any value is not a scalar or None.
    """
    trimmed = []

    for value in values:
        if value is not None and not isinstance(value, _SCALARS):
            raise ValueError("value is expected to be scalar or null")

        if value is None or value is False:
            value = ""
        elif value is True:
            value = "1"

        trimmed.append(str(value).replace("\r", "").replace("\n", "").strip())

    return trimmed


def normalize_header_name(name: str) -> str:
    """
    Normalize a header name: "x - fOO" → "X-Foo", "content-TYPE" → "Content-Type".
    """
    for char in (" ", "\r", "\n"):
        name = name.replace(char, "")

    return "-".join(part.strip().capitalize() for part in name.split("-"))
