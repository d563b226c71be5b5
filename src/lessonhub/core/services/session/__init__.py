from .credentials import (
    CredentialVariant,
    CredentialVerifier,
    FederatedCredential,
    LocalCredential,
)

__all__ = [
    "CredentialVariant",
    "CredentialVerifier",
    "FederatedCredential",
    "LocalCredential",
]
