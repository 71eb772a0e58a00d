"""
Cookie handling for the auth service.

- codec: RFC 6265 style Set-Cookie serialization and Cookie header parsing.
- session: the session-token and CSRF-state cookies built on the codec.
"""

from .codec import CookieOptions, SameSite, parse, serialize
from .session import SessionCookies

__all__ = ["CookieOptions", "SameSite", "parse", "serialize", "SessionCookies"]
