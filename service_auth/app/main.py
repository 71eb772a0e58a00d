"""
Auth service for Zest Access.
"""

from typing import Optional

import httpx
from fastapi import Request

from shared.base_service import BaseService
from shared.config import OAuthConfig, get_oauth_config
from .flow.controller import AuthorizationFlowController
from .flow.oauth_client import OAuthClient
from .jwks.client import JWKSClient
from .validation.token_validator import TokenValidator


class AuthService(BaseService):
    """Auth service implementation."""

    def __init__(self, config: Optional[OAuthConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        config = config or get_oauth_config()
        super().__init__("auth", 8010, config)

        try:
            config.validate_secrets()
        except Exception as e:
            self.logger.critical("Refusing to start with incomplete configuration", error=str(e))
            raise

        self.jwks_client = JWKSClient(
            config.jwks_url,
            cache_ttl=config.jwks_cache_ttl,
            min_refresh_interval=config.jwks_min_refresh_interval,
            http_timeout=config.http_timeout,
            transport=transport,
            metrics=self.metrics,
        )
        self.token_validator = TokenValidator(config, self.jwks_client, metrics=self.metrics)
        self.oauth_client = OAuthClient(config, transport=transport)
        self.flow = AuthorizationFlowController(
            config, self.oauth_client, self.token_validator, metrics=self.metrics
        )

        self.logger.info(
            "Auth service configured",
            auth_server_url=config.auth_server_url,
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            env=config.env,
        )

        self._setup_auth_routes()

    def _setup_auth_routes(self):
        """Set up auth-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "auth",
                "message": "Zest Access - Auth Service",
                "version": "1.0.0"
            }

        @self.app.get("/auth/login")
        async def login(request: Request):
            """Start the authorization-code flow."""
            return await self.flow.login(request)

        @self.app.get("/auth/callback")
        async def callback(request: Request):
            """Authorization callback from the auth server."""
            return await self.flow.callback(request)

        @self.app.api_route("/auth/logout", methods=["GET", "POST"])
        async def logout(request: Request):
            """Clear the session, optionally ending it on the auth server too."""
            return await self.flow.logout(request)

        @self.app.get("/auth/me")
        async def me(request: Request):
            """Current user from the session token."""
            return await self.flow.current_user(request)

    async def _check_dependencies(self):
        """Check auth dependencies."""
        return {"auth_server_jwks": await self.jwks_client.check_health()}

    async def shutdown(self):
        await self.oauth_client.close()
        await self.jwks_client.close()


def create_app(config: Optional[OAuthConfig] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = AuthService(config, transport=transport)
    return service.app


if __name__ == "__main__":
    service = AuthService()
    service.run()
