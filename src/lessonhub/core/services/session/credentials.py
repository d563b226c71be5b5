"""Bearer credential verification.

A bearer token may be an ID token from a federated identity provider or a
session credential issued by this API. Each kind is handled by a credential
variant that first says whether it recognises the token (from its unverified
header and claims) and then verifies it. Variants are consulted in a fixed
order and the first one that recognises the token decides the outcome.
"""

from collections.abc import Sequence
from typing import Protocol

from loguru import logger

from src.lessonhub.core.exceptions import AuthError
from src.lessonhub.core.models.identity import VerifiedCaller
from src.lessonhub.core.services.jwt.jwt_gen import JwtCredentialSigner
from src.lessonhub.core.services.jwt.jwt_utils import (
    JwtPreview,
    lookup_provider_by_issuer,
    preview_jwt,
)
from src.lessonhub.core.services.jwt.jwt_verify import JwtVerificationService


class CredentialVariant(Protocol):
    name: str

    def accepts(self, preview: JwtPreview) -> bool: ...

    async def verify(self, token: str, preview: JwtPreview) -> VerifiedCaller: ...


class FederatedCredential:
    """ID token issued by a configured identity provider."""

    name = "federated"

    def __init__(self, jwt_verify_service: JwtVerificationService) -> None:
        self._jwt_verify_service = jwt_verify_service

    def accepts(self, preview: JwtPreview) -> bool:
        return bool(preview.iss) and lookup_provider_by_issuer(preview.iss) is not None

    async def verify(self, token: str, preview: JwtPreview) -> VerifiedCaller:
        claims = await self._jwt_verify_service.verify_id_token(token, preview=preview)
        return VerifiedCaller(
            kind="federated",
            identifier=str(claims["sub"]),
            email=claims.get("email"),
            claims=claims,
        )


class LocalCredential:
    """Session credential issued by this API."""

    name = "local"

    def __init__(self, signer: JwtCredentialSigner) -> None:
        self._signer = signer

    def accepts(self, preview: JwtPreview) -> bool:
        return preview.iss == self._signer.issuer.rstrip("/")

    async def verify(self, token: str, preview: JwtPreview) -> VerifiedCaller:
        claims = self._signer.verify(token)
        account_id = claims.get("accountId") or claims.get("sub")
        if not account_id:
            logger.debug("Session credential carries no account id")
            raise AuthError()
        return VerifiedCaller(
            kind="local",
            identifier=str(account_id),
            email=claims.get("email"),
            claims=claims,
        )


class CredentialVerifier:
    """Tries each credential variant in order; federated before local by default."""

    def __init__(self, variants: Sequence[CredentialVariant]) -> None:
        self._variants = tuple(variants)

    @classmethod
    def default(
        cls, jwt_verify_service: JwtVerificationService, signer: JwtCredentialSigner
    ) -> "CredentialVerifier":
        return cls([FederatedCredential(jwt_verify_service), LocalCredential(signer)])

    async def verify(self, token: str) -> VerifiedCaller:
        """Verify a bearer token.

        Raises:
            AuthError: If the token is malformed, unrecognised, or fails verification
            StorageError: If a provider's signing keys cannot be fetched
        """
        preview = preview_jwt(token)
        for variant in self._variants:
            if variant.accepts(preview):
                caller = await variant.verify(token, preview)
                logger.debug(f"Verified {variant.name} credential for {caller.identifier}")
                return caller

        logger.debug(f"No credential variant accepts issuer {preview.iss}")
        raise AuthError()
