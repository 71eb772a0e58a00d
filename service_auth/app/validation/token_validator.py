"""
Session-token decoding and validation.
"""

import json
import time
from typing import Any, Dict, List, Optional, Union

from jose import jws, jwt
from jose.exceptions import JOSEError
from jose.utils import base64url_decode
from pydantic import BaseModel, ConfigDict

from shared.config import OAuthConfig
from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..jwks.client import JWKSClient


INVALID_FORMAT = "Invalid token format"
INVALID_SIGNATURE = "Invalid signature"
UNVERIFIABLE = "Unable to verify token"
TOKEN_EXPIRED = "Token expired"
INVALID_ISSUER = "Invalid issuer"
INVALID_AUDIENCE = "Invalid audience"
VALIDATION_ERROR = "Validation error"


class TokenPayload(BaseModel):
    """Claims carried by a session token.

    Built with ``model_construct`` once the signature and the registered
    claims have been checked, so profile claims pass through as issued.
    """

    model_config = ConfigDict(extra="allow")

    sub: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    iss: Optional[str] = None
    aud: Optional[Union[str, List[str]]] = None
    exp: Optional[float] = None
    iat: Optional[float] = None

    def to_user(self) -> Dict[str, Any]:
        return {
            "id": self.sub,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
        }


class TokenValidationResult(BaseModel):
    """Outcome of validating a session token."""

    valid: bool
    payload: Optional[TokenPayload] = None
    error: Optional[str] = None


def decode_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode a compact JWT's claims without verifying it.

    Returns None unless the token has exactly three segments and a JSON
    object payload. Only the payload segment is read; the header is checked
    during signature verification.
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        claims = json.loads(base64url_decode(parts[1].encode("ascii")))
    except (ValueError, TypeError):
        return None
    return claims if isinstance(claims, dict) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_expired(token: Optional[str], now: Optional[float] = None) -> bool:
    """True when the token cannot be decoded, has no exp, or exp has passed."""
    claims = decode_token(token)
    if not claims or not _is_number(claims.get("exp")):
        return True
    now = int(time.time()) if now is None else now
    return claims["exp"] < now


class TokenValidator:
    """Validates session tokens against the auth server's keys and claims."""

    def __init__(self, config: OAuthConfig, jwks_client: JWKSClient,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.jwks_client = jwks_client
        self.metrics = metrics
        self.logger = get_logger("auth.validator")

    async def validate(self, token: str) -> TokenValidationResult:
        """Verify signature, expiry, issuer and audience, in that order."""
        try:
            result = await self._validate(token)
        except Exception as e:
            self.logger.error("Unexpected error validating token", error=str(e), exc_info=True)
            result = TokenValidationResult(valid=False, error=VALIDATION_ERROR)

        if self.metrics is not None:
            self.metrics.increment_counter(
                "token_validations_total", status="valid" if result.valid else "invalid"
            )
        if not result.valid:
            self.logger.warning("Token validation failed", error=result.error)
        return result

    async def _validate(self, token: str) -> TokenValidationResult:
        claims = decode_token(token)
        if claims is None:
            return TokenValidationResult(valid=False, error=INVALID_FORMAT)

        signature_error = await self._verify_signature(token)
        if signature_error:
            return TokenValidationResult(valid=False, error=signature_error)

        exp = claims.get("exp")
        if exp is not None:
            if not _is_number(exp):
                return TokenValidationResult(valid=False, error=INVALID_FORMAT)
            if exp < int(time.time()):
                return TokenValidationResult(valid=False, error=TOKEN_EXPIRED)

        if claims.get("iss") != self.config.auth_server_url:
            return TokenValidationResult(valid=False, error=INVALID_ISSUER)

        if claims.get("aud") != self.config.client_id:
            return TokenValidationResult(valid=False, error=INVALID_AUDIENCE)

        return TokenValidationResult(valid=True, payload=TokenPayload.model_construct(**claims))

    async def _verify_signature(self, token: str) -> Optional[str]:
        """Return None when the signature checks out, else an error message."""
        try:
            header = jwt.get_unverified_header(token)
        except (JOSEError, ValueError, TypeError):
            return INVALID_FORMAT

        alg = header.get("alg")
        if not isinstance(alg, str) or alg not in self.config.jwt_algorithms:
            self.logger.warning("Token algorithm not allowed", alg=alg)
            return INVALID_SIGNATURE

        if alg.startswith("HS"):
            key: Any = self.config.get_jwt_secret()
            if not key:
                return INVALID_SIGNATURE
        else:
            kid = header.get("kid")
            if not isinstance(kid, str) or not kid:
                return INVALID_SIGNATURE
            try:
                key = await self.jwks_client.get_key(kid)
            except UpstreamError as e:
                self.logger.error("Signing keys unavailable", error=e.message)
                return UNVERIFIABLE
            if key is None:
                return INVALID_SIGNATURE
            if key.get("alg") and key["alg"] != alg:
                return INVALID_SIGNATURE

        try:
            jws.verify(token, key, algorithms=[alg])
        except JOSEError as e:
            self.logger.warning("Token signature rejected", error=str(e))
            return INVALID_SIGNATURE
        return None
