"""
Shared configuration management for the Zest Access services.

Settings are read once from the environment (and an optional ``.env`` file)
into frozen pydantic-settings models. Secrets are ``Optional[SecretStr]``:
either present or missing, never an empty placeholder inside the model.
"""

import json
from functools import lru_cache
from typing import Annotated, Any, List, Optional
from urllib.parse import urlencode

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError


PRODUCTION_ENV = "production"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # Environment
    env: str = Field(
        default="development",
        validation_alias=AliasChoices("env", "ZEST_ENV", "APP_ENV", "NODE_ENV"),
    )
    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("log_level", "ZEST_LOG_LEVEL", "LOG_LEVEL"),
    )
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("host", "ZEST_HOST"))

    # Outbound HTTP
    http_timeout: float = Field(
        default=10.0,
        validation_alias=AliasChoices("http_timeout", "ZEST_HTTP_TIMEOUT"),
    )

    @property
    def is_production(self) -> bool:
        return self.env.strip().lower() == PRODUCTION_ENV

    def require_secret(self, name: str, secret: Optional[SecretStr]) -> str:
        """Return a secret's value.

        A missing secret is fatal in production and an empty string elsewhere,
        so local development does not need real credentials.
        """
        if secret is not None and secret.get_secret_value():
            return secret.get_secret_value()
        if self.is_production:
            raise ConfigurationError(
                f"Missing required environment variable: {name}",
                details={"variable": name},
            )
        return ""


class OAuthConfig(BaseConfig):
    """OAuth2 client configuration for the auth service."""

    auth_server_url: str = Field(
        default="https://auth.zestacademy.tech",
        validation_alias=AliasChoices("auth_server_url", "AUTH_SERVER_URL", "NEXT_PUBLIC_AUTH_SERVER_URL"),
    )
    client_id: str = Field(
        default="zestcompilers",
        validation_alias=AliasChoices("client_id", "OAUTH_CLIENT_ID", "NEXT_PUBLIC_OAUTH_CLIENT_ID"),
    )
    redirect_uri: str = Field(
        default="https://zestcompilers.tech/auth/callback",
        validation_alias=AliasChoices("redirect_uri", "OAUTH_REDIRECT_URI", "NEXT_PUBLIC_REDIRECT_URI"),
    )

    # Secrets
    client_secret: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("client_secret", "OAUTH_CLIENT_SECRET")
    )
    jwt_secret: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("jwt_secret", "JWT_SECRET")
    )
    cookie_secret: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("cookie_secret", "COOKIE_SECRET")
    )

    # OAuth parameters
    scope: str = "openid profile email"
    response_type: str = "code"

    # Endpoints, relative to auth_server_url
    authorization_endpoint: str = "/authorize"
    token_endpoint: str = "/oauth/token"
    logout_endpoint: str = "/logout"
    jwks_endpoint: str = "/.well-known/jwks.json"

    # Token verification
    jwt_algorithms: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["RS256"],
        validation_alias=AliasChoices("jwt_algorithms", "JWT_ALGORITHMS"),
    )
    jwks_cache_ttl: int = Field(
        default=3600, validation_alias=AliasChoices("jwks_cache_ttl", "JWKS_CACHE_TTL")
    )
    jwks_min_refresh_interval: float = Field(
        default=30.0,
        validation_alias=AliasChoices("jwks_min_refresh_interval", "JWKS_MIN_REFRESH_INTERVAL"),
    )

    # Cookie policy
    session_cookie_name: str = "zest_access_token"
    state_cookie_name: str = "oauth_state"
    session_max_age: int = 60 * 60 * 24 * 7  # 7 days
    state_max_age: int = 600  # 10 minutes
    cookie_path: str = "/"

    # Where the browser lands after login/logout
    home_path: str = "/"

    @field_validator("jwt_algorithms", mode="before")
    @classmethod
    def split_algorithms(cls, value: Any) -> Any:
        """Accept a comma-separated list (RS256,HS256) or a JSON array."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [alg.strip() for alg in value.split(",") if alg.strip()]
        return value

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def authorization_url(self) -> str:
        return f"{self.auth_server_url}{self.authorization_endpoint}"

    @property
    def token_url(self) -> str:
        return f"{self.auth_server_url}{self.token_endpoint}"

    @property
    def logout_url(self) -> str:
        return f"{self.auth_server_url}{self.logout_endpoint}"

    @property
    def jwks_url(self) -> str:
        return f"{self.auth_server_url}{self.jwks_endpoint}"

    def get_client_secret(self) -> str:
        return self.require_secret("OAUTH_CLIENT_SECRET", self.client_secret)

    def get_jwt_secret(self) -> str:
        return self.require_secret("JWT_SECRET", self.jwt_secret)

    def get_cookie_secret(self) -> str:
        return self.require_secret("COOKIE_SECRET", self.cookie_secret)

    def validate_secrets(self) -> None:
        """Fail fast when production is missing any secret."""
        missing = [
            name for name, secret in (
                ("OAUTH_CLIENT_SECRET", self.client_secret),
                ("JWT_SECRET", self.jwt_secret),
                ("COOKIE_SECRET", self.cookie_secret),
            )
            if secret is None or not secret.get_secret_value()
        ]
        if missing and self.is_production:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                details={"missing": missing},
            )

    def build_authorization_url(self, state: str) -> str:
        """Build the authorize URL the browser is redirected to at login."""
        params = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": self.scope,
            "state": state,
        })
        return f"{self.authorization_url}?{params}"


class PlaygroundConfig(BaseConfig):
    """Settings for the compile and explain-code proxies."""

    compiler_api_url: str = Field(
        default="https://api.jdoodle.com/v1/execute",
        validation_alias=AliasChoices("compiler_api_url", "COMPILER_API_URL"),
    )
    compiler_client_id: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("compiler_client_id", "JDOODLE_CLIENT_ID")
    )
    compiler_client_secret: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("compiler_client_secret", "JDOODLE_CLIENT_SECRET")
    )

    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("gemini_api_base", "GEMINI_API_BASE"),
    )
    gemini_model: str = Field(
        default="gemini-flash-latest",
        validation_alias=AliasChoices("gemini_model", "GEMINI_MODEL"),
    )
    gemini_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("gemini_api_key", "GEMINI_API_KEY")
    )
    max_explain_chars: int = 5000

    @property
    def compiler_configured(self) -> bool:
        return bool(
            self.compiler_client_id and self.compiler_client_id.get_secret_value()
            and self.compiler_client_secret and self.compiler_client_secret.get_secret_value()
        )

    @property
    def explain_configured(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.get_secret_value())


@lru_cache()
def get_oauth_config() -> OAuthConfig:
    """Process-wide OAuth configuration."""
    return OAuthConfig()


@lru_cache()
def get_playground_config() -> PlaygroundConfig:
    """Process-wide playground configuration."""
    return PlaygroundConfig()
