"""
Session-token and CSRF-state cookies.
"""

from typing import Optional

from shared.config import OAuthConfig
from .codec import CookieOptions, SameSite, parse, serialize


class SessionCookies:
    """Builds and reads the two cookies the OAuth flow relies on."""

    def __init__(self, config: OAuthConfig):
        self.config = config

    def _options(self, max_age: int) -> CookieOptions:
        return CookieOptions(
            max_age=max_age,
            path=self.config.cookie_path,
            http_only=True,
            secure=self.config.cookie_secure,
            same_site=SameSite.LAX,
        )

    def session_cookie(self, token: str) -> str:
        return serialize(
            self.config.session_cookie_name, token, self._options(self.config.session_max_age)
        )

    def clear_session_cookie(self) -> str:
        return serialize(self.config.session_cookie_name, "", self._options(0))

    def state_cookie(self, state: str) -> str:
        return serialize(
            self.config.state_cookie_name, state, self._options(self.config.state_max_age)
        )

    def clear_state_cookie(self) -> str:
        return serialize(self.config.state_cookie_name, "", self._options(0))

    def read_session_token(self, cookie_header: Optional[str]) -> Optional[str]:
        return parse(cookie_header).get(self.config.session_cookie_name) or None

    def read_state(self, cookie_header: Optional[str]) -> Optional[str]:
        return parse(cookie_header).get(self.config.state_cookie_name) or None
