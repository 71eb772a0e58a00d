"""
OAuth2 authorization-code flow: login, callback, logout, current user.

Every entry point is stateless. The CSRF state and the session token travel
in cookies; the authorization code and errors travel in the query string.
"""

import secrets
from typing import Optional
from urllib.parse import urlencode, urljoin

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from shared.config import OAuthConfig
from shared.errors import UpstreamError
from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector
from ..cookies.session import SessionCookies
from ..oauth.state import generate_state
from ..validation.token_validator import TokenValidator
from .oauth_client import OAuthClient, RevocationOutcome


# Reason codes appended to the home URL as ?error=<reason>
AUTH_FAILED = "auth_failed"
INVALID_CALLBACK = "invalid_callback"
CSRF_FAILED = "csrf_failed"
TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
NO_TOKEN = "no_token"
CALLBACK_FAILED = "callback_failed"


class AuthorizationFlowController:
    """Composes state, cookies, token validation and the auth server client."""

    def __init__(
        self,
        config: OAuthConfig,
        oauth_client: OAuthClient,
        token_validator: TokenValidator,
        cookies: Optional[SessionCookies] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.oauth_client = oauth_client
        self.token_validator = token_validator
        self.cookies = cookies or SessionCookies(config)
        self.metrics = metrics
        self.logger = get_logger("auth.flow")

    def _home_url(self, request: Request, error: Optional[str] = None) -> str:
        url = urljoin(str(request.base_url), self.config.home_path)
        if error:
            url = f"{url}?{urlencode({'error': error})}"
        return url

    def _redirect_home(self, request: Request, error: Optional[str] = None) -> RedirectResponse:
        return RedirectResponse(self._home_url(request, error), status_code=302)

    async def login(self, request: Request) -> Response:
        """Redirect the browser to the auth server with a fresh CSRF state."""
        try:
            state = generate_state()
            auth_url = self.config.build_authorization_url(state)

            response = RedirectResponse(auth_url, status_code=302)
            response.headers.append("set-cookie", self.cookies.state_cookie(state))

            self.logger.info("Login initiated", authorize_url=self.config.authorization_url)
            return response
        except Exception as e:
            self.logger.error("Error initiating OAuth flow", error=str(e), exc_info=True)
            return JSONResponse({"error": "Failed to initiate authentication"}, status_code=500)

    async def callback(self, request: Request) -> Response:
        """Validate the callback, exchange the code and start the session.

        The state cookie is cleared on every outcome, so a state value is
        usable for exactly one callback.
        """
        try:
            response = await self._complete_callback(request)
        except Exception as e:
            self.logger.error("Error handling OAuth callback", error=str(e), exc_info=True)
            response = self._callback_failed(request, CALLBACK_FAILED)

        response.headers.append("set-cookie", self.cookies.clear_state_cookie())
        return response

    async def _complete_callback(self, request: Request) -> Response:
        params = request.query_params
        code = params.get("code")
        state = params.get("state")
        error = params.get("error")

        if error:
            self.logger.error("Authorization error", error=error)
            return self._callback_failed(request, AUTH_FAILED)

        if not code or not state:
            return self._callback_failed(request, INVALID_CALLBACK)

        stored_state = self.cookies.read_state(request.headers.get("cookie"))
        if not stored_state or not secrets.compare_digest(
            stored_state.encode("utf-8"), state.encode("utf-8")
        ):
            self.logger.error("CSRF state mismatch", state_cookie_present=bool(stored_state))
            return self._callback_failed(request, CSRF_FAILED)

        try:
            token_data = await self.oauth_client.exchange_code(code)
        except UpstreamError as e:
            self.logger.error("Token exchange rejected", error=e.message, details=e.details)
            return self._callback_failed(request, TOKEN_EXCHANGE_FAILED)

        access_token = token_data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            self.logger.error("No access token received")
            return self._callback_failed(request, NO_TOKEN)

        response = self._redirect_home(request)
        response.headers.append("set-cookie", self.cookies.session_cookie(access_token))

        self.logger.info("Login completed")
        self._record_callback("success")
        return response

    def _callback_failed(self, request: Request, reason: str) -> RedirectResponse:
        self._record_callback(reason)
        return self._redirect_home(request, reason)

    async def logout(self, request: Request) -> Response:
        """Clear the local session; with ?global=true also end it upstream.

        The upstream call is best effort: its outcome is logged and counted
        but never changes the response.
        """
        try:
            global_logout = request.query_params.get("global") == "true"
            token = self.cookies.read_session_token(request.headers.get("cookie"))

            if global_logout and token:
                outcome = await self.oauth_client.revoke_session(token)
                self._record_revocation(outcome)
        except Exception as e:
            self.logger.error("Error during logout", error=str(e), exc_info=True)

        response = self._redirect_home(request)
        response.headers.append("set-cookie", self.cookies.clear_session_cookie())
        return response

    async def current_user(self, request: Request) -> Response:
        """Return the user described by the session token."""
        try:
            token = self.cookies.read_session_token(request.headers.get("cookie"))
            if not token:
                return JSONResponse({"error": "Not authenticated"}, status_code=401)

            validation = await self.token_validator.validate(token)
            if not validation.valid:
                return JSONResponse({"error": validation.error or "Invalid token"}, status_code=401)

            set_user_context(validation.payload.sub)
            return JSONResponse({"user": validation.payload.to_user()})
        except Exception as e:
            self.logger.error("Error getting current user", error=str(e), exc_info=True)
            return JSONResponse({"error": "Failed to get user information"}, status_code=500)

    def _record_callback(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("callback_outcomes_total", outcome=outcome)

    def _record_revocation(self, outcome: RevocationOutcome) -> None:
        if outcome.succeeded:
            self.logger.info("Global logout completed", status_code=outcome.status_code)
        else:
            self.logger.error(
                "Error during global logout",
                error=outcome.error,
                status_code=outcome.status_code,
            )
        if self.metrics is not None:
            self.metrics.increment_counter(
                "revocations_total", status="ok" if outcome.succeeded else "error"
            )
