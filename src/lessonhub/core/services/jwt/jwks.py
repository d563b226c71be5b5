from abc import ABC, abstractmethod
from typing import Any

import httpx
from cachetools import TTLCache
from loguru import logger

from src.lessonhub.core.exceptions import AuthError, StorageError
from src.lessonhub.runtime.config.config_data import OIDCProviderConfig


class JWKSCache(ABC):
    @abstractmethod
    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """Return the cached JWKS for `jwks_uri`, or an empty dict."""
        raise NotImplementedError

    @abstractmethod
    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_jwks_cache(self) -> None:
        raise NotImplementedError


class JWKSCacheInMemory(JWKSCache):
    """Process-local JWKS cache with a TTL."""

    def __init__(self, ttl: int = 3600, maxsize: int = 10) -> None:
        self._cache: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=maxsize, ttl=ttl)

    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        return self._cache.get(jwks_uri, {})

    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        self._cache[jwks_uri] = jwks

    def clear_jwks_cache(self) -> None:
        self._cache.clear()


class JwksService:
    """Fetches identity-provider signing keys, consulting the cache first.

    Args:
        cache: JWKS cache consulted before the network
        timeout: HTTP timeout in seconds
        min_refresh_interval: Seconds during which a forced refresh of the
            same JWKS URI is served from the cache instead
    """

    def __init__(
        self, cache: JWKSCache, timeout: float = 5.0, min_refresh_interval: int = 60
    ) -> None:
        self._cache = cache
        self._timeout = timeout
        self._recent_refreshes: TTLCache[str, bool] = TTLCache(
            maxsize=100, ttl=min_refresh_interval
        )

    async def fetch_jwks(
        self, provider: OIDCProviderConfig, *, force_refresh: bool = False
    ) -> dict[str, Any]:
        """Return the provider's JWKS.

        `force_refresh` skips the cache, used when a token names a key id
        the cached set does not have (the provider rotated its keys).

        Raises:
            AuthError: If the provider has no JWKS URI
            StorageError: If the JWKS cannot be fetched
        """
        jwks_url = provider.jwks_uri
        if not jwks_url:
            raise AuthError()

        jwks = self._cache.get_jwks(jwks_url)
        if jwks and (not force_refresh or jwks_url in self._recent_refreshes):
            return jwks

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(jwks_url)
                resp.raise_for_status()
                jwks = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Failed to fetch JWKS from {jwks_url}: {exc}")
            raise StorageError("Identity provider unavailable") from exc

        self._recent_refreshes[jwks_url] = True
        self._cache.set_jwks(jwks_url, jwks)
        return jwks
