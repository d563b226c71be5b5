"""JWT service package."""

from .jwks import JWKSCache, JWKSCacheInMemory, JwksService
from .jwt_gen import JwtCredentialSigner
from .jwt_utils import JwtPreview, preview_jwt
from .jwt_verify import JwtVerificationService

__all__ = [
    "JWKSCache",
    "JWKSCacheInMemory",
    "JwksService",
    "JwtCredentialSigner",
    "JwtPreview",
    "JwtVerificationService",
    "preview_jwt",
]
