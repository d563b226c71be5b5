"""Collaborators the identity resolver depends on."""

from typing import Any, Protocol

from src.lessonhub.entities.core.account import Account


class AccountStore(Protocol):
    """Account persistence. Every method may raise `StorageError`."""

    def find_by_id(self, account_id: str) -> Account | None: ...

    def find_by_federated_id(self, federated_id: str) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def insert(self, account: Account) -> Account:
        """Persist a new account; raises `ConflictError` on a duplicate email or federated id."""
        ...

    def update(self, account_id: str, fields: dict[str, Any]) -> Account: ...


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, password_hash: str) -> bool: ...


class CredentialSigner(Protocol):
    def issue(self, claims: dict[str, Any], ttl: int) -> str: ...

    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims; raises `AuthError` if it is not valid."""
        ...
