"""Account data-access layer."""

from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from src.lessonhub.core.exceptions import ConflictError, NotFoundError, StorageError
from src.lessonhub.entities._base import utcnow
from src.lessonhub.entities.core.account.entity import Account
from src.lessonhub.entities.core.account.table import AccountTable

T = TypeVar("T")

# Fields `update` may touch; id and timestamps are owned by the store
UPDATABLE_FIELDS = frozenset(
    {
        "email",
        "display_name",
        "federated_id",
        "password_hash",
        "avatar_url",
        "role",
        "is_premium",
    }
)


class AccountRepository:
    """SQLModel-backed account store."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _run(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(f"Account store {operation} failed: {exc}")
            raise StorageError() from exc

    @staticmethod
    def _to_entity(row: AccountTable | None) -> Account | None:
        if row is None:
            return None
        return Account.model_validate(row, from_attributes=True)

    def _first(self, *criteria) -> Account | None:
        statement = select(AccountTable).where(*criteria)
        return self._to_entity(self._session.exec(statement).first())

    def find_by_id(self, account_id: str) -> Account | None:
        return self._run(
            "find_by_id",
            lambda: self._to_entity(self._session.get(AccountTable, account_id)),
        )

    def find_by_federated_id(self, federated_id: str) -> Account | None:
        return self._run(
            "find_by_federated_id",
            lambda: self._first(AccountTable.federated_id == federated_id),
        )

    def find_by_email(self, email: str) -> Account | None:
        return self._run(
            "find_by_email", lambda: self._first(AccountTable.email == email)
        )

    def insert(self, account: Account) -> Account:
        """Persist a new account.

        Raises:
            ConflictError: If the email or federated id is already taken
            StorageError: On any other database failure
        """
        row = AccountTable(**account.model_dump())
        try:
            self._session.add(row)
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise ConflictError() from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(f"Account store insert failed: {exc}")
            raise StorageError() from exc
        return self._run("insert", lambda: self._refresh(row))

    def update(self, account_id: str, fields: dict[str, Any]) -> Account:
        """Apply `fields` to the stored account and return the new state.

        Raises:
            ValueError: If `fields` names something other than an account attribute
            NotFoundError: If the account no longer exists
            ConflictError: If the change collides with another account's email or federated id
            StorageError: On any other database failure
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update account fields: {sorted(unknown)}")

        row = self._run("update", lambda: self._session.get(AccountTable, account_id))
        if row is None:
            raise NotFoundError()

        for name, value in fields.items():
            setattr(row, name, value)
        row.updated_at = utcnow()

        try:
            self._session.add(row)
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise ConflictError() from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(f"Account store update failed: {exc}")
            raise StorageError() from exc
        return self._run("update", lambda: self._refresh(row))

    def _refresh(self, row: AccountTable) -> Account:
        self._session.refresh(row)
        return Account.model_validate(row, from_attributes=True)
