from loguru import logger

from src.lessonhub.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.lessonhub.core.models.identity import AuthResult, FederatedProfile
from src.lessonhub.core.security import BCRYPT_MAX_PASSWORD_BYTES, normalize_email
from src.lessonhub.core.services.identity.protocols import (
    AccountStore,
    CredentialSigner,
    PasswordHasher,
)
from src.lessonhub.core.services.identity.reconcile import (
    admin_promotion,
    default_display_name,
    reconcile,
)
from src.lessonhub.entities._base import is_valid_id
from src.lessonhub.entities.core.account import Account, Role
from src.lessonhub.runtime.context import get_config


def _email_problem(email: str) -> str | None:
    if not email:
        return "Email is required"
    local_part, at, domain = email.partition("@")
    if not at or not local_part or not domain:
        return "Email must be a valid email address"
    return None


class IdentityResolver:
    """Finds, creates and reconciles accounts at login and issues session credentials.

    Args:
        store: Account persistence
        hasher: Password hashing primitive
        signer: Session credential signer
        bootstrap_admin_email: Address granted the admin role on registration
            or login. Defaults to `app.bootstrap_admin_email`.
        session_ttl: Credential lifetime in seconds. Defaults to
            `app.session_ttl_seconds`.
    """

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        signer: CredentialSigner,
        bootstrap_admin_email: str | None = None,
        session_ttl: int | None = None,
    ):
        config = get_config()
        self._store = store
        self._hasher = hasher
        self._signer = signer
        self._bootstrap_admin_email = normalize_email(
            bootstrap_admin_email or config.app.bootstrap_admin_email
        ) or None
        self._session_ttl = session_ttl or config.app.session_ttl_seconds
        self._min_password_length = config.security.min_password_length

    def _role_for(self, email: str) -> Role:
        if self._bootstrap_admin_email and email == self._bootstrap_admin_email:
            return "admin"
        return "user"

    def _issue(self, account: Account) -> AuthResult:
        token = self._signer.issue(
            {"accountId": account.id, "email": account.email}, self._session_ttl
        )
        return AuthResult(account=account.public_view(), token=token)

    def register_with_password(
        self, email: str, display_name: str, password: str
    ) -> AuthResult:
        """Create a password account and sign the caller in.

        Raises:
            ValidationError: If a field is missing or the password is too short
            ConflictError: If an account with this email already exists
            StorageError: If the account store fails
        """
        email = normalize_email(email)
        display_name = (display_name or "").strip()
        password = password or ""

        problems: dict[str, str] = {}
        if email_problem := _email_problem(email):
            problems["email"] = email_problem
        if not display_name:
            problems["display_name"] = "Display name is required"
        if not password:
            problems["password"] = "Password is required"
        elif len(password) < self._min_password_length:
            problems["password"] = (
                f"Password must be at least {self._min_password_length} characters"
            )
        elif len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            problems["password"] = (
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )
        if problems:
            raise ValidationError(problems)

        if self._store.find_by_email(email) is not None:
            raise ConflictError("User already exists")

        account = self._store.insert(
            Account(
                email=email,
                display_name=display_name,
                password_hash=self._hasher.hash(password),
                role=self._role_for(email),
            )
        )
        logger.info(f"Registered account {account.id} with role {account.role}")
        return self._issue(account)

    def login_with_password(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password.

        Unknown email, an account without a password, and a wrong password
        all fail with the same `AuthError`.

        Raises:
            ValidationError: If email or password is empty
            AuthError: If the credentials do not match an account
            StorageError: If the account store fails
        """
        email = normalize_email(email)
        problems: dict[str, str] = {}
        if not email:
            problems["email"] = "Email is required"
        if not password:
            problems["password"] = "Password is required"
        if problems:
            raise ValidationError(problems)

        account = self._store.find_by_email(email)
        if (
            account is None
            or not account.has_password
            or not self._hasher.verify(password, account.password_hash)
        ):
            raise AuthError()

        promotion = admin_promotion(account, self._bootstrap_admin_email)
        if promotion:
            account = self._store.update(account.id, promotion)
            logger.info(f"Promoted bootstrap administrator {account.id}")

        return self._issue(account)

    def authenticate_federated(
        self,
        federated_id: str,
        email: str,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> AuthResult:
        """Sign in (creating or linking the account if needed) from a federated identity.

        The account is looked up by federated id, then by email. A match by
        email links the federated id to that account. Profile changes are
        persisted before the credential is issued.

        Raises:
            ValidationError: If federated id or email is missing
            ConflictError: If a concurrent login created the same account first
            StorageError: If the account store fails
        """
        profile = FederatedProfile(
            federated_id=(federated_id or "").strip(),
            email=normalize_email(email),
            display_name=(display_name or "").strip() or None,
            avatar_url=(avatar_url or "").strip() or None,
        )

        problems: dict[str, str] = {}
        if not profile.federated_id:
            problems["federated_id"] = "Federated id is required"
        if email_problem := _email_problem(profile.email):
            problems["email"] = email_problem
        if problems:
            raise ValidationError(problems)

        account = self._store.find_by_federated_id(profile.federated_id)
        if account is None:
            account = self._store.find_by_email(profile.email)

        if account is None:
            account = self._store.insert(
                Account(
                    federated_id=profile.federated_id,
                    email=profile.email,
                    display_name=profile.display_name
                    or default_display_name(profile.email),
                    avatar_url=profile.avatar_url,
                    role=self._role_for(profile.email),
                )
            )
            logger.info(f"Created account {account.id} from federated login")
            return self._issue(account)

        updates = reconcile(account, profile)
        if "federated_id" in updates:
            logger.info(f"Linking federated identity to account {account.id}")
        updates.update(admin_promotion(account, self._bootstrap_admin_email))
        if updates:
            account = self._store.update(account.id, updates)
            logger.debug(f"Synced fields {sorted(updates)} on account {account.id}")

        return self._issue(account)

    def resolve_caller(self, identifier: str) -> Account:
        """Find the account an identifier refers to: store id, then federated id, then email.

        Raises:
            NotFoundError: If no account matches
            StorageError: If the account store fails
        """
        identifier = (identifier or "").strip()
        if not identifier:
            raise NotFoundError()

        if is_valid_id(identifier):
            account = self._store.find_by_id(identifier)
            if account is not None:
                return account

        account = self._store.find_by_federated_id(identifier)
        if account is not None:
            return account

        account = self._store.find_by_email(normalize_email(identifier))
        if account is not None:
            return account

        raise NotFoundError()
