from .protocols import AccountStore, CredentialSigner, PasswordHasher
from .reconcile import admin_promotion, reconcile
from .resolver import IdentityResolver

__all__ = [
    "AccountStore",
    "CredentialSigner",
    "IdentityResolver",
    "PasswordHasher",
    "admin_promotion",
    "reconcile",
]
