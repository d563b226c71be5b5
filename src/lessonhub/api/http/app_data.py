from dataclasses import dataclass

from src.lessonhub.core.security import BcryptPasswordHasher
from src.lessonhub.core.services import (
    CredentialVerifier,
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtCredentialSigner,
    JwtVerificationService,
)


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    jwks_cache: JWKSCacheInMemory
    jwks_service: JwksService
    jwt_verify_service: JwtVerificationService
    credential_signer: JwtCredentialSigner
    credential_verifier: CredentialVerifier
    password_hasher: BcryptPasswordHasher
