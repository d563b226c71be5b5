"""Account database table model."""

from sqlalchemy import Column, String
from sqlmodel import Field

from src.lessonhub.entities._base import EntityTable


class AccountTable(EntityTable, table=True):
    """Database persistence model for accounts.

    Email and federated id are unique; SQL treats NULLs as distinct, so any
    number of password-only accounts may leave `federated_id` empty.
    """

    __tablename__ = "account"

    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True, index=True))
    display_name: str
    federated_id: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True, unique=True, index=True)
    )
    password_hash: str | None = None
    avatar_url: str | None = None
    role: str = Field(default="user")
    is_premium: bool = Field(default=False)
