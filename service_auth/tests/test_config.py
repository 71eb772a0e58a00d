"""
Tests for OAuth configuration and CSRF state generation.
"""

import re
from urllib.parse import parse_qs, urlparse

import pytest

from service_auth.app.oauth import generate_state
from shared.config import OAuthConfig
from shared.errors import ConfigurationError
from shared.test_helpers import make_oauth_config


class TestGenerateState:

    def test_state_is_64_hex_chars(self):
        assert re.fullmatch(r"[0-9a-f]{64}", generate_state())

    def test_states_are_unique(self):
        assert len({generate_state() for _ in range(100)}) == 100


class TestOAuthConfig:
    """OAuth settings and derived endpoints."""

    def test_defaults(self, monkeypatch):
        for name in ("AUTH_SERVER_URL", "NEXT_PUBLIC_AUTH_SERVER_URL",
                     "OAUTH_CLIENT_ID", "NEXT_PUBLIC_OAUTH_CLIENT_ID"):
            monkeypatch.delenv(name, raising=False)
        config = OAuthConfig(_env_file=None)
        assert config.auth_server_url == "https://auth.zestacademy.tech"
        assert config.client_id == "zestcompilers"
        assert config.scope == "openid profile email"

    def test_public_env_names_are_accepted(self, monkeypatch):
        monkeypatch.delenv("AUTH_SERVER_URL", raising=False)
        monkeypatch.setenv("NEXT_PUBLIC_AUTH_SERVER_URL", "https://auth.example.org")
        config = OAuthConfig(_env_file=None)
        assert config.auth_server_url == "https://auth.example.org"
        assert config.jwks_url == "https://auth.example.org/.well-known/jwks.json"

    def test_endpoint_urls(self):
        config = make_oauth_config(auth_server_url="https://auth.example.org")
        assert config.authorization_url == "https://auth.example.org/authorize"
        assert config.token_url == "https://auth.example.org/oauth/token"
        assert config.logout_url == "https://auth.example.org/logout"

    def test_build_authorization_url(self):
        config = make_oauth_config()
        url = urlparse(config.build_authorization_url("abc123"))
        assert f"{url.scheme}://{url.netloc}{url.path}" == config.authorization_url
        assert parse_qs(url.query) == {
            "client_id": [config.client_id],
            "redirect_uri": [config.redirect_uri],
            "response_type": ["code"],
            "scope": ["openid profile email"],
            "state": ["abc123"],
        }

    def test_missing_secrets_tolerated_in_development(self):
        config = make_oauth_config(client_secret=None)
        config.validate_secrets()
        assert config.get_client_secret() == ""
        assert config.cookie_secure is False

    def test_missing_secrets_fatal_in_production(self):
        config = make_oauth_config(env="production", client_secret=None)
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_secrets()
        assert set(exc_info.value.details["missing"]) == {
            "OAUTH_CLIENT_SECRET", "JWT_SECRET", "COOKIE_SECRET",
        }
        with pytest.raises(ConfigurationError):
            config.get_jwt_secret()

    def test_complete_production_config(self):
        config = make_oauth_config(
            env="production", jwt_secret="jwt", cookie_secret="cookie",
        )
        config.validate_secrets()
        assert config.get_client_secret() == "test-client-secret"
        assert config.cookie_secure is True

    def test_secrets_are_masked(self):
        config = make_oauth_config()
        assert "test-client-secret" not in repr(config)

    @pytest.mark.parametrize("raw, expected", [
        ("RS256", ["RS256"]),
        ("RS256, HS256", ["RS256", "HS256"]),
        ('["RS256", "ES256"]', ["RS256", "ES256"]),
    ])
    def test_algorithms_from_environment(self, monkeypatch, raw, expected):
        monkeypatch.setenv("JWT_ALGORITHMS", raw)
        config = OAuthConfig(_env_file=None)
        assert config.jwt_algorithms == expected

    def test_algorithms_as_list(self):
        config = make_oauth_config(jwt_algorithms=["HS256"])
        assert config.jwt_algorithms == ["HS256"]
