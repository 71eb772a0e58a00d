"""
JWKS client package.

Contains logic for retrieving and caching the JSON Web Key Set (JWKS) the
auth server publishes for verifying session-token signatures.

Key points:
- Cache keys for a TTL to avoid hammering the auth server.
- Select keys by kid; an unknown kid triggers a rate-limited refresh.
- Serve a stale key set when a refresh fails.
"""

from .client import JWKSClient

__all__ = ["JWKSClient"]
