"""
Tests for the auth service's HTTP surface.
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from service_auth.app.main import AuthService, create_app
from shared.errors import ConfigurationError
from shared.test_helpers import make_oauth_config

STATE = "f" * 64


def set_cookies(response):
    return response.headers.get_list("set-cookie")


def cookie_header(**cookies):
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "auth"
    assert data["version"] == "1.0.0"


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["dependencies"] == {"auth_server_jwks": "ok"}


def test_health_reports_unreachable_keys(client, auth_server):
    auth_server.jwks_status = 500
    response = client.get("/health")
    assert response.json()["dependencies"] == {"auth_server_jwks": "error"}


def test_metrics_endpoint(client):
    client.get("/")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "auth_http_requests_total" in response.text


class TestLogin:

    def test_redirects_to_authorize_with_state(self, client, oauth_config):
        response = client.get("/auth/login")
        assert response.status_code == 302

        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == oauth_config.authorization_url
        query = parse_qs(location.query)
        assert query["client_id"] == [oauth_config.client_id]
        assert query["redirect_uri"] == [oauth_config.redirect_uri]
        assert query["response_type"] == ["code"]
        assert query["scope"] == ["openid profile email"]

        state = query["state"][0]
        assert len(state) == 64
        assert set_cookies(response) == [
            f"oauth_state={state}; Max-Age=600; Path=/; HttpOnly; SameSite=Lax"
        ]

    def test_each_login_gets_fresh_state(self, client):
        first = parse_qs(urlparse(client.get("/auth/login").headers["location"]).query)
        second = parse_qs(urlparse(client.get("/auth/login").headers["location"]).query)
        assert first["state"] != second["state"]


class TestCallback:

    def callback(self, client, query, state_cookie=STATE):
        headers = cookie_header(oauth_state=state_cookie) if state_cookie else {}
        return client.get(f"/auth/callback?{query}", headers=headers)

    def assert_redirect(self, response, error=None):
        assert response.status_code == 302
        expected = "http://testserver/"
        if error:
            expected += f"?error={error}"
        assert response.headers["location"] == expected
        assert "oauth_state=; Max-Age=0; Path=/; HttpOnly; SameSite=Lax" in set_cookies(response)

    def test_success_sets_session_cookie(self, client, auth_server):
        response = self.callback(client, f"code=auth-code&state={STATE}")
        self.assert_redirect(response)
        assert (
            "zest_access_token=issued-access-token; Max-Age=604800; Path=/; HttpOnly; SameSite=Lax"
            in set_cookies(response)
        )

        [call] = auth_server.calls_to("/oauth/token")
        assert call.method == "POST"
        assert parse_qs(call.body.decode()) == {
            "grant_type": ["authorization_code"],
            "code": ["auth-code"],
            "redirect_uri": ["http://testserver/auth/callback"],
            "client_id": ["zestcompilers"],
            "client_secret": ["test-client-secret"],
        }

    def test_authorization_error(self, client, auth_server):
        response = self.callback(client, f"error=access_denied&state={STATE}")
        self.assert_redirect(response, "auth_failed")
        assert auth_server.calls == []

    @pytest.mark.parametrize("query", ["code=auth-code", f"state={STATE}", ""])
    def test_missing_parameters(self, client, auth_server, query):
        response = self.callback(client, query)
        self.assert_redirect(response, "invalid_callback")
        assert auth_server.calls == []

    def test_state_mismatch_makes_no_outbound_call(self, client, auth_server):
        response = self.callback(client, "code=auth-code&state=" + "0" * 64)
        self.assert_redirect(response, "csrf_failed")
        assert auth_server.calls == []

    def test_missing_state_cookie(self, client, auth_server):
        response = self.callback(client, f"code=auth-code&state={STATE}", state_cookie=None)
        self.assert_redirect(response, "csrf_failed")
        assert auth_server.calls == []

    def test_token_endpoint_rejects_code(self, client, auth_server):
        auth_server.token_status = 400
        auth_server.token_body = {"error": "invalid_grant"}
        response = self.callback(client, f"code=stale-code&state={STATE}")
        self.assert_redirect(response, "token_exchange_failed")
        assert not any(c.startswith("zest_access_token=") for c in set_cookies(response))

    def test_token_response_without_access_token(self, client, auth_server):
        auth_server.token_body = {"token_type": "Bearer"}
        response = self.callback(client, f"code=auth-code&state={STATE}")
        self.assert_redirect(response, "no_token")

    def test_token_response_not_json(self, client, auth_server):
        auth_server.token_body = "<html>oops</html>"
        response = self.callback(client, f"code=auth-code&state={STATE}")
        self.assert_redirect(response, "callback_failed")


class TestLogout:

    def test_local_logout_makes_no_call(self, client, auth_server):
        response = client.get(
            "/auth/logout", headers=cookie_header(zest_access_token="tok")
        )
        assert response.status_code == 302
        assert response.headers["location"] == "http://testserver/"
        assert set_cookies(response) == [
            "zest_access_token=; Max-Age=0; Path=/; HttpOnly; SameSite=Lax"
        ]
        assert auth_server.calls == []

    def test_global_logout_revokes_once(self, client, auth_server):
        response = client.post(
            "/auth/logout?global=true", headers=cookie_header(zest_access_token="tok")
        )
        assert response.status_code == 302
        [call] = auth_server.calls_to("/logout")
        assert call.method == "POST"
        assert call.headers["authorization"] == "Bearer tok"

    def test_global_logout_without_session_makes_no_call(self, client, auth_server):
        client.get("/auth/logout?global=true")
        assert auth_server.calls == []

    @pytest.mark.parametrize("failure", [
        {"logout_status": 500},
        {"logout_error": httpx.ConnectError("connection refused")},
    ])
    def test_failed_revocation_still_clears_session(self, client, auth_server, failure):
        for name, value in failure.items():
            setattr(auth_server, name, value)
        response = client.get(
            "/auth/logout?global=true", headers=cookie_header(zest_access_token="tok")
        )
        assert response.status_code == 302
        assert "zest_access_token=; Max-Age=0; Path=/; HttpOnly; SameSite=Lax" in set_cookies(response)
        assert len(auth_server.calls_to("/logout")) == 1


class TestCurrentUser:

    def test_not_authenticated(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_valid_session(self, client, token_generator, mock_user):
        token = token_generator.generate_access_token(mock_user)
        response = client.get("/auth/me", headers=cookie_header(zest_access_token=token))
        assert response.status_code == 200
        assert response.json() == {
            "user": {
                "id": mock_user.user_id,
                "email": mock_user.email,
                "name": mock_user.name,
                "picture": mock_user.picture,
            }
        }

    def test_expired_session(self, client, token_generator, mock_user):
        token = token_generator.generate_access_token(mock_user, expires_in=-1)
        response = client.get("/auth/me", headers=cookie_header(zest_access_token=token))
        assert response.status_code == 401
        assert response.json() == {"error": "Token expired"}

    def test_forged_session(self, client, token_generator, mock_user):
        token = token_generator.generate_forged_token(mock_user)
        response = client.get("/auth/me", headers=cookie_header(zest_access_token=token))
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}


class TestStartup:

    def test_production_without_secrets_refuses_to_start(self, auth_server):
        config = make_oauth_config(env="production", client_secret=None)
        with pytest.raises(ConfigurationError):
            AuthService(config, transport=auth_server.transport())

    def test_production_with_secrets(self, auth_server):
        config = make_oauth_config(env="production", jwt_secret="jwt", cookie_secret="cookie")
        app = create_app(config, transport=auth_server.transport())
        assert app.docs_url is None
