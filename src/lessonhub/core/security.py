"""Password hashing and email normalization utilities."""

import bcrypt

from src.lessonhub.runtime.context import get_config

# bcrypt ignores (newer releases reject) input past this many bytes
BCRYPT_MAX_PASSWORD_BYTES = 72


def normalize_email(email: str | None) -> str:
    """Return the canonical form accounts are stored and looked up under."""
    return (email or "").strip().lower()


class BcryptPasswordHasher:
    """Slow, salted one-way password hashing with bcrypt.

    Args:
        rounds: bcrypt cost factor. Defaults to `security.bcrypt_rounds`.
    """

    def __init__(self, rounds: int | None = None) -> None:
        self._rounds = rounds or get_config().security.bcrypt_rounds

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """Constant-time comparison of `plaintext` against a stored hash.

        Returns False (never raises) for malformed hashes or over-long input.
        """
        try:
            return bcrypt.checkpw(
                plaintext.encode("utf-8"), password_hash.encode("utf-8")
            )
        except ValueError:
            return False
