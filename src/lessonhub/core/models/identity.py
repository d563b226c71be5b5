"""Models exchanged between the identity services and their callers."""

from typing import Literal

from pydantic import BaseModel, Field

from src.lessonhub.entities.core.account import AccountView


class FederatedProfile(BaseModel):
    """Profile data asserted by a federated identity provider at login."""

    federated_id: str = Field(description="Provider subject identifier")
    email: str = Field(description="Email address asserted by the provider")
    display_name: str | None = Field(default=None, description="Provider display name")
    avatar_url: str | None = Field(default=None, description="Provider profile picture")


class AuthResult(BaseModel):
    """Successful login or registration."""

    account: AccountView
    token: str = Field(description="Signed session credential")


class VerifiedCaller(BaseModel):
    """Identity extracted from a verified bearer credential.

    `identifier` is an account id for local credentials and a federated id
    for provider credentials; either can be passed to `resolve_caller`.
    """

    kind: Literal["federated", "local"]
    identifier: str
    email: str | None = None
    claims: dict = Field(default_factory=dict, repr=False)
