"""
JWKS client for the auth server's published signing keys.
"""

import asyncio
import time
from typing import Dict, Any, Optional

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class JWKSClient:
    """Client for fetching and caching the issuer's JWKS."""

    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 3600,
        min_refresh_interval: float = 30.0,
        *,
        http_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.min_refresh_interval = min_refresh_interval
        self.metrics = metrics
        self.logger = get_logger("auth.jwks")

        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0
        self._last_fetch_attempt: float = 0
        self._last_fetch_failed = False
        self._key_cache: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=http_timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    def _cache_fresh(self, now: float) -> bool:
        return self._jwks_cache is not None and now - self._cache_timestamp < self.cache_ttl

    async def get_jwks(self, force: bool = False) -> Dict[str, Any]:
        """Get JWKS from cache or fetch from the auth server.

        While the auth server is failing, the stale set is served and a new
        fetch is tried at most once per ``min_refresh_interval``.
        """
        if not force and self._cache_fresh(time.time()):
            return self._jwks_cache

        async with self._lock:
            # Another request may have refreshed while we waited
            now = time.time()
            if not force and self._cache_fresh(now):
                return self._jwks_cache
            # Forced refreshes, and retries after a failed refresh, wait out min_refresh_interval
            recent_attempt = now - self._last_fetch_attempt < self.min_refresh_interval
            if self._jwks_cache is not None and recent_attempt and (force or self._last_fetch_failed):
                return self._jwks_cache

            self._last_fetch_attempt = now
            try:
                jwks_data = await self._fetch()
            except Exception as e:
                self._last_fetch_failed = True
                self._record_refresh("error")
                self.logger.error("Failed to fetch JWKS", error=str(e), url=self.jwks_url)
                if self._jwks_cache is not None:
                    self.logger.warning("Using stale JWKS cache due to fetch failure")
                    return self._jwks_cache
                if isinstance(e, UpstreamError):
                    raise
                raise UpstreamError("auth-server", f"JWKS fetch failed: {e}") from e

            self._last_fetch_failed = False
            self._jwks_cache = jwks_data
            self._cache_timestamp = time.time()
            self._key_cache = {
                key["kid"]: key
                for key in jwks_data["keys"]
                if isinstance(key, dict) and isinstance(key.get("kid"), str)
            }
            self._record_refresh("ok")
            self.logger.info("JWKS refreshed successfully", keys_count=len(jwks_data["keys"]))
            return self._jwks_cache

    async def _fetch(self) -> Dict[str, Any]:
        response = await self._client.get(self.jwks_url)
        if not response.is_success:
            raise UpstreamError(
                "auth-server", "JWKS endpoint returned an error", status_code=response.status_code
            )
        payload = response.json()
        if not isinstance(payload, dict) or not isinstance(payload.get("keys"), list):
            raise UpstreamError("auth-server", "JWKS response missing 'keys' array")
        return payload

    async def get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        """Get a signing key by key ID.

        An unknown kid forces one refresh (the key may have rotated), at most
        once per ``min_refresh_interval``.
        """
        await self.get_jwks()
        if kid in self._key_cache:
            return self._key_cache[kid]

        await self.get_jwks(force=True)
        key = self._key_cache.get(kid)
        if key is None:
            self.logger.warning("Key not found", kid=kid)
        return key

    async def check_health(self) -> str:
        """Return 'ok' if the key set can be loaded, otherwise 'error'."""
        try:
            await self.get_jwks()
            return "ok"
        except Exception as exc:
            self.logger.error("JWKS health check failed", error=str(exc))
            return "error"

    def clear_cache(self):
        """Clear all caches."""
        self._jwks_cache = None
        self._cache_timestamp = 0
        self._last_fetch_attempt = 0
        self._last_fetch_failed = False
        self._key_cache.clear()
        self.logger.info("JWKS cache cleared")

    def _record_refresh(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("jwks_refresh_total", status=status)
