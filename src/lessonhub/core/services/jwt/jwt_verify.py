"""Identity-provider ID token verification."""

import time
from typing import Any

from authlib.jose import JoseError, JsonWebKey, JsonWebToken
from loguru import logger

from src.lessonhub.core.exceptions import AuthError
from src.lessonhub.core.services.jwt.jwks import JwksService
from src.lessonhub.core.services.jwt.jwt_utils import (
    JwtPreview,
    lookup_provider_by_issuer,
    preview_jwt,
)
from src.lessonhub.runtime.context import get_config


# JWK key type each JWS algorithm family is verified with
_KTY_BY_ALG_PREFIX = {"HS": "oct", "RS": "RSA", "PS": "RSA", "ES": "EC", "Ed": "OKP"}


def _keys_with_kid(jwks: dict[str, Any], kid: str | None) -> list[dict[str, Any]]:
    candidates = jwks.get("keys") if isinstance(jwks, dict) else None
    keys = [k for k in candidates or [] if isinstance(k, dict)]
    if kid:
        keys = [k for k in keys if k.get("kid") == kid]
    return keys


def _key_fits_alg(key: dict[str, Any], alg: str | None) -> bool:
    if not alg or key.get("kty") != _KTY_BY_ALG_PREFIX.get(alg[:2]):
        return False
    return key.get("alg") in (None, alg)


class JwtVerificationService:
    """Verifies ID tokens issued by a configured federated identity provider."""

    def __init__(self, jwks_service: JwksService):
        self._jwks_service = jwks_service

    async def verify_id_token(
        self, token: str, *, preview: JwtPreview | None = None
    ) -> dict[str, Any]:
        """Verify signature, issuer, audience and lifetime of a provider ID token.

        Raises:
            AuthError: If the token is not a valid ID token from a configured provider
            StorageError: If the provider's signing keys cannot be fetched
        """
        cfg = get_config()
        pv = preview or preview_jwt(token)

        if pv.alg not in cfg.jwt.allowed_algorithms:
            logger.debug(f"Disallowed JWT algorithm: {pv.alg}")
            raise AuthError()

        provider_cfg = lookup_provider_by_issuer(pv.iss) if pv.iss else None
        if provider_cfg is None:
            logger.debug(f"Unknown issuer: {pv.iss}")
            raise AuthError()

        jwks = await self._jwks_service.fetch_jwks(provider_cfg)
        keys = _keys_with_kid(jwks, pv.kid)
        if not keys and pv.kid:
            logger.info(f"No JWK with kid={pv.kid}; refreshing keys for {provider_cfg.issuer}")
            jwks = await self._jwks_service.fetch_jwks(provider_cfg, force_refresh=True)
            keys = _keys_with_kid(jwks, pv.kid)
        if not keys:
            logger.debug(f"No JWK matches kid={pv.kid}")
            raise AuthError()

        keys = [k for k in keys if _key_fits_alg(k, pv.alg)]
        if not keys:
            logger.debug(f"No JWK with kid={pv.kid} can verify {pv.alg}")
            raise AuthError()

        try:
            key_set = JsonWebKey.import_key_set({"keys": keys})
            claims = JsonWebToken(cfg.jwt.allowed_algorithms).decode(
                token,
                key_set,
                claims_options={
                    "iss": {"essential": True, "value": provider_cfg.issuer.rstrip("/")},
                    "aud": {"essential": True, "value": provider_cfg.client_id},
                    "sub": {"essential": True},
                    "exp": {"essential": True},
                },
            )
            claims.validate(leeway=cfg.jwt.clock_skew)
        except (JoseError, ValueError, KeyError, TypeError) as exc:
            logger.debug(f"ID token rejected: {exc}")
            raise AuthError() from exc

        # providers sometimes stamp iat slightly in the future; reject beyond skew
        iat = claims.get("iat")
        if iat is not None and int(iat) > int(time.time()) + cfg.jwt.clock_skew:
            logger.debug("ID token issued in the future")
            raise AuthError()

        return dict(claims)
