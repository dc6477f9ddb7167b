"""JWKS signing-key cache.

Keys are fetched from the auth provider's JWKS endpoint and cached by key id
for ``ttl_seconds``. Refetches (on expiry or an unknown ``kid``) are limited to
``requests_per_minute`` so a flood of forged key ids cannot hammer the provider.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import jwt
import structlog

logger = structlog.get_logger()

JWKSFetcher = Callable[[str], Awaitable[dict[str, Any]]]

_RATE_WINDOW_SECONDS = 60.0


class JWKSError(Exception):
    """A signing key could not be resolved."""


def http_fetcher(timeout_seconds: float = 5.0) -> JWKSFetcher:
    """Build a fetcher that GETs the key set over HTTP."""

    async def fetch(url: str) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    return fetch


class JWKSCache:
    """Time-bounded read-through cache of JWKS signing keys, keyed by ``kid``."""

    def __init__(
        self,
        jwks_url: str,
        *,
        ttl_seconds: float = 3600,
        requests_per_minute: int = 10,
        fetcher: JWKSFetcher | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.jwks_url = jwks_url
        self.ttl_seconds = ttl_seconds
        self.requests_per_minute = requests_per_minute
        self._fetcher = fetcher or http_fetcher()
        self._clock = clock
        self._keys: dict[str, jwt.PyJWK] = {}
        self._fetched_at: float | None = None
        self._fetch_times: deque[float] = deque()
        self._lock = asyncio.Lock()

    @property
    def fetch_count(self) -> int:
        """Fetches made within the current rate window."""
        self._prune(self._clock())
        return len(self._fetch_times)

    def _is_fresh(self) -> bool:
        return self._fetched_at is not None and self._clock() - self._fetched_at < self.ttl_seconds

    def _prune(self, now: float) -> None:
        while self._fetch_times and now - self._fetch_times[0] >= _RATE_WINDOW_SECONDS:
            self._fetch_times.popleft()

    async def get_signing_key(self, kid: str) -> jwt.PyJWK:
        """Return the key for ``kid``, refreshing the key set when needed.

        Raises:
            JWKSError: If the set cannot be fetched or does not contain ``kid``.
        """
        if self._is_fresh() and kid in self._keys:
            return self._keys[kid]

        async with self._lock:
            # Another request may have refreshed the set while we waited.
            if self._is_fresh() and kid in self._keys:
                return self._keys[kid]

            now = self._clock()
            self._prune(now)
            if len(self._fetch_times) >= self.requests_per_minute:
                # Serve a stale key rather than fail when the refetch budget is spent
                if kid in self._keys:
                    logger.warning("jwks_serving_stale_key", kid=kid)
                    return self._keys[kid]
                msg = "JWKS refetch rate limit exceeded"
                raise JWKSError(msg)

            self._fetch_times.append(now)
            await self._refresh(now)

        key = self._keys.get(kid)
        if key is None:
            msg = f"No signing key found for kid '{kid}'"
            raise JWKSError(msg)
        return key

    async def _refresh(self, now: float) -> None:
        try:
            data = await self._fetcher(self.jwks_url)
        except (httpx.HTTPError, ValueError) as e:
            msg = f"Failed to fetch JWKS: {e}"
            raise JWKSError(msg) from e

        if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
            msg = "JWKS response has no 'keys' list"
            raise JWKSError(msg)

        keys: dict[str, jwt.PyJWK] = {}
        for jwk in data["keys"]:
            try:
                key = jwt.PyJWK(jwk)
            except (jwt.PyJWKError, jwt.InvalidKeyError, ValueError) as e:
                logger.warning("jwks_key_skipped", kid=jwk.get("kid"), error=str(e))
                continue
            if key.key_id:
                keys[key.key_id] = key

        self._keys = keys
        self._fetched_at = now
        logger.info("jwks_refreshed", url=self.jwks_url, key_count=len(keys))

    def clear(self) -> None:
        """Drop all cached keys (the refetch budget is kept)."""
        self._keys = {}
        self._fetched_at = None
