"""Core services exports."""

# Database Service
from .database.db_session import DbSessionService

# Identity Services
from .identity import IdentityResolver, reconcile

# JWT Services
from .jwt import (
    JWKSCache,
    JWKSCacheInMemory,
    JwksService,
    JwtCredentialSigner,
    JwtVerificationService,
)

# Session Services
from .session import CredentialVerifier, FederatedCredential, LocalCredential

__all__ = [
    # JWT Services
    "JWKSCache",
    "JWKSCacheInMemory",
    "JwksService",
    "JwtCredentialSigner",
    "JwtVerificationService",
    # Session Services
    "CredentialVerifier",
    "FederatedCredential",
    "LocalCredential",
    # Identity Services
    "IdentityResolver",
    "reconcile",
    # Database Service
    "DbSessionService",
]
