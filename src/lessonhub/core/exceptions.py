"""Identity error taxonomy.

Services raise these; the HTTP layer translates them into responses
(see `src.lessonhub.api.http.errors`).
"""

from typing import Any


class IdentityError(Exception):
    """Base exception for identity and session errors."""

    default_message = "Identity operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {"error": self.__class__.__name__, "message": self.message}


class ValidationError(IdentityError):
    """Malformed or missing input.

    Attributes:
        fields: Mapping of field name to the problem found with it
    """

    default_message = "Invalid input"

    def __init__(self, fields: dict[str, str], message: str | None = None):
        super().__init__(message)
        self.fields = fields

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "fields": dict(self.fields)}


class ConflictError(IdentityError):
    """An account with the same email or federated id already exists."""

    default_message = "Account already exists"


class AuthError(IdentityError):
    """Bad credentials. The message never says which check failed."""

    default_message = "Invalid credentials"


class NotFoundError(IdentityError):
    """No account matches the caller."""

    default_message = "Account not found"


class StorageError(IdentityError):
    """The account store failed. Internal detail stays on `__cause__`."""

    default_message = "Storage failure"
