"""
Set-Cookie serialization and Cookie header parsing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
from urllib.parse import quote, unquote

# Same unreserved set as JavaScript's encodeURIComponent
_COOKIE_SAFE = "-_.!~*'()"


class SameSite(str, Enum):
    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


@dataclass(frozen=True)
class CookieOptions:
    """Attributes appended to a Set-Cookie value."""

    max_age: Optional[int] = None
    path: Optional[str] = None
    http_only: bool = False
    secure: bool = False
    same_site: Optional[SameSite] = None


def serialize(name: str, value: str, options: Optional[CookieOptions] = None) -> str:
    """Build a single Set-Cookie header value.

    ``max_age=0`` is emitted, telling the browser to drop the cookie now.
    """
    options = options or CookieOptions()
    if options.same_site is SameSite.NONE and not options.secure:
        raise ValueError("SameSite=None cookies must also be Secure")

    parts = [f"{quote(name, safe=_COOKIE_SAFE)}={quote(value, safe=_COOKIE_SAFE)}"]

    if options.max_age is not None:
        parts.append(f"Max-Age={int(options.max_age)}")
    if options.path:
        parts.append(f"Path={options.path}")
    if options.http_only:
        parts.append("HttpOnly")
    if options.secure:
        parts.append("Secure")
    if options.same_site is not None:
        parts.append(f"SameSite={SameSite(options.same_site).value}")

    return "; ".join(parts)


def parse(cookie_header: Optional[str]) -> Dict[str, str]:
    """Parse a Cookie request header into a name -> value mapping."""
    cookies: Dict[str, str] = {}
    if not cookie_header:
        return cookies

    for fragment in cookie_header.split(";"):
        fragment = fragment.strip()
        if "=" not in fragment:
            continue
        name, _, value = fragment.partition("=")
        name = unquote(name.strip())
        if not name:
            continue
        cookies[name] = unquote(value.strip())

    return cookies
