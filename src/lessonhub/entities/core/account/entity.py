"""Account domain entity."""

from typing import Literal

from pydantic import BaseModel, Field

from src.lessonhub.entities._base import Entity

Role = Literal["user", "instructor", "admin"]

# Display name a federated login may still replace
PLACEHOLDER_DISPLAY_NAME = "User"


class Account(Entity):
    """A marketplace account, reachable by id, federated id or email.

    Password accounts carry `password_hash`; accounts created through a
    federated login carry `federated_id`. Both may be set once a federated
    identity has been linked to a password account.
    """

    email: str = Field(description="Lower-cased, unique email address")
    display_name: str = Field(description="Name shown to other users")
    federated_id: str | None = Field(
        default=None, description="Subject identifier issued by the identity provider"
    )
    password_hash: str | None = Field(default=None, description="bcrypt password hash")
    avatar_url: str | None = Field(default=None, description="Profile picture URL")
    role: Role = Field(default="user", description="Authorization role")
    is_premium: bool = Field(default=False, description="Premium upgrade purchased")

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def public_view(self) -> "AccountView":
        return AccountView(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            role=self.role,
            avatar_url=self.avatar_url,
            is_premium=self.is_premium,
        )


class AccountView(BaseModel):
    """The part of an account that is safe to return to its owner."""

    id: str
    email: str
    display_name: str
    role: Role
    avatar_url: str | None = None
    is_premium: bool = False
