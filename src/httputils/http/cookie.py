"""
=============================================================================
SET-COOKIE BUILDER (RFC 6265)
=============================================================================

Builds the value of a Set-Cookie response header:

    id=a3fWa; Expires=Thursday, 21-Oct-2027 07:28:00 GMT; Max-Age=3600;
    ─┬─ ──┬── ─────────────────────┬──────────────────── ─────┬──────
     │    │                        │                          │
    name value          absolute expiry (GMT)       relative lifetime

    ...; Domain=example.com; Path=/; Secure; HttpOnly; SameSite=lax

Attributes are always rendered in this order: Expires/Max-Age, Domain,
Path, Secure, HttpOnly, SameSite.

Deleting a cookie: send it with an empty value and an expiry in the past.
An empty value with any expiry is rendered with the fixed past date
01-Jan-1970 12:34:56 GMT and Max-Age=0.

=============================================================================
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from urllib.parse import quote


RESERVED_CHARACTERS = ("\t", "\n", "\v", "\f", "\r", "\x0e", " ", ",", ";", "=")

SAME_SITE_VALUES = ("lax", "strict", "none")

# an expiry of 0 means "delete"; this is a fixed date in the past
DELETE_TIMESTAMP = 45296

Expiry = Union[datetime, timedelta, int, None]


def format_cookie_date(dt: datetime) -> str:
    """
    Format a datetime in the cookie date format.

    Example: Thursday, 01-Jan-1970 12:34:56 GMT
    """
    days = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    dt = dt.astimezone(timezone.utc)

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d}-{months[dt.month - 1]}-{dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


class Cookie:
    """
    Fluent builder for a Set-Cookie header value.

    Each with_* method returns self; str(cookie) renders the header value:

        >>> str(Cookie("id", "a3fWa").with_path("/").with_http_only(True))
        'id=a3fWa; Path=/; HttpOnly'
    """

    def __init__(self, name: str, value: Optional[str] = None):
        self.name = ""
        self.value = ""
        self.expiry: Optional[datetime] = None
        self.max_age = 0
        self.domain: Optional[str] = None
        self.path: Optional[str] = None
        self.secure = False
        self.http_only = False
        self.same_site: Optional[str] = None

        self.with_name_and_value(name, value or "")

    def with_name_and_value(self, name: str, value: str) -> "Cookie":
        """
        Raises:
            ValueError: If the name is empty or contains reserved characters.
        """
        name = name.strip()

        if name == "":
            raise ValueError("The cookie name cannot be empty.")

        if any(char in name for char in RESERVED_CHARACTERS):
            raise ValueError("The cookie name contains invalid (reserved) characters.")

        self.name = name
        self.value = quote(value.strip(), safe="")
        return self

    def with_expiry(self, expiry: Expiry) -> "Cookie":
        """
        Set the expiry.

        Args:
            expiry: None to clear it; a datetime (absolute); a timedelta
                    (relative to now); 0 (delete the cookie); an int smaller
                    than the current timestamp is a number of seconds from
                    now, anything else an absolute unix timestamp.
        """
        if expiry is None:
            self.expiry = None
            self.max_age = 0
            return self

        now = int(time.time())

        if isinstance(expiry, datetime):
            expires = expiry if expiry.tzinfo else expiry.replace(tzinfo=timezone.utc)
        elif isinstance(expiry, timedelta):
            expires = datetime.fromtimestamp(now, timezone.utc) + expiry
        elif expiry == 0:
            expires = datetime.fromtimestamp(DELETE_TIMESTAMP, timezone.utc)
        elif expiry < now:
            expires = datetime.fromtimestamp(now + expiry, timezone.utc)
        else:
            expires = datetime.fromtimestamp(expiry, timezone.utc)

        self.expiry = expires
        self.max_age = max(0, int(expires.timestamp()) - now)
        return self

    def with_domain(self, domain: Optional[str], punycode: Optional[bool] = None) -> "Cookie":
        """
        Set the domain; with `punycode`, international names are converted
        to their ASCII form ("яндекAс.рф" → "xn--a-gtbdum2a6g.xn--p1ai").

        Raises:
            RuntimeError: If the domain can't be converted to IDNA.
        """
        if domain is not None:
            domain = domain.strip().lower()

            if punycode:
                try:
                    domain = domain.encode("idna").decode("ascii")
                except UnicodeError as e:
                    raise RuntimeError("Could not convert the given domain to IDN") from e

        self.domain = domain
        return self

    def with_path(self, path: Optional[str]) -> "Cookie":
        if path is not None:
            path = path.strip() or "/"

        self.path = path
        return self

    def with_secure(self, secure: bool) -> "Cookie":
        self.secure = secure
        return self

    def with_http_only(self, http_only: bool) -> "Cookie":
        self.http_only = http_only
        return self

    def with_same_site(self, same_site: Optional[str]) -> "Cookie":
        """
        Raises:
            ValueError: If the value is not "lax", "strict" or "none".
        """
        if same_site is not None:
            same_site = same_site.strip().lower()

            if same_site not in SAME_SITE_VALUES:
                raise ValueError('The same site attribute must be "lax", "strict" or "none"')

        self.same_site = same_site
        return self

    def __str__(self) -> str:
        """
        Raises:
            ValueError: If SameSite is "none" without Secure.
        """
        parts = [f"{self.name}={self.value}"]

        if self.expiry is not None:
            if self.value == "":
                self.with_expiry(0)

            parts.append(f"Expires={format_cookie_date(self.expiry)}; Max-Age={self.max_age}")

        if self.domain is not None:
            parts.append(f"Domain={self.domain}")

        if self.path is not None:
            parts.append(f"Path={self.path}")

        if self.secure:
            parts.append("Secure")

        if self.http_only:
            parts.append("HttpOnly")

        if self.same_site is not None:
            if self.same_site == "none" and not self.secure:
                raise ValueError('The same site attribute can only be "none" when secure is set to true')

            parts.append(f"SameSite={self.same_site}")

        return "; ".join(parts)

    def __repr__(self) -> str:
        return f"<Cookie {self.name}={self.value!r}>"
