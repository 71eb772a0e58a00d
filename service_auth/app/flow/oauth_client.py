"""
Server-to-server calls to the auth server.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from shared.config import OAuthConfig
from shared.errors import UpstreamError
from shared.logging import get_logger


@dataclass(frozen=True)
class RevocationOutcome:
    """Result of a best-effort global logout call."""

    attempted: bool
    succeeded: bool = False
    status_code: Optional[int] = None
    error: Optional[str] = None


class OAuthClient:
    """Token exchange and session revocation against the auth server."""

    def __init__(self, config: OAuthConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.logger = get_logger("auth.oauth_client")
        self._client = httpx.AsyncClient(timeout=config.http_timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for tokens.

        Raises UpstreamError when the token endpoint answers non-2xx. Transport
        failures propagate as httpx errors.
        """
        response = await self._client.post(
            self.config.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.redirect_uri,
                "client_id": self.config.client_id,
                "client_secret": self.config.get_client_secret(),
            },
            headers={"Accept": "application/json"},
        )

        if not response.is_success:
            self.logger.error(
                "Token exchange failed",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamError(
                "auth-server", "Token exchange failed", status_code=response.status_code
            )

        token_data = response.json()
        if not isinstance(token_data, dict):
            raise UpstreamError("auth-server", "Token response is not a JSON object")
        return token_data

    async def revoke_session(self, token: str) -> RevocationOutcome:
        """Ask the auth server to end the session behind ``token``. Never raises."""
        try:
            response = await self._client.post(
                self.config.logout_url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            return RevocationOutcome(attempted=True, error=str(e) or type(e).__name__)

        if not response.is_success:
            return RevocationOutcome(
                attempted=True,
                status_code=response.status_code,
                error=f"Logout endpoint returned {response.status_code}",
            )
        return RevocationOutcome(attempted=True, succeeded=True, status_code=response.status_code)
