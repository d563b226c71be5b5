"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from src.lessonhub.api.http.app_data import ApplicationDependencies
from src.lessonhub.api.http.errors import to_http_exception
from src.lessonhub.core.exceptions import AuthError, IdentityError, NotFoundError
from src.lessonhub.core.security import BcryptPasswordHasher
from src.lessonhub.core.services import (
    CredentialVerifier,
    IdentityResolver,
    JwtCredentialSigner,
)
from src.lessonhub.entities.core.account import Account, AccountRepository


def _app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session that is closed after the request."""
    with _app_dependencies(request).database_service.session_scope() as session:
        yield session


def get_account_repository(db: Session = Depends(get_db_session)) -> AccountRepository:
    return AccountRepository(db)


def get_credential_signer(request: Request) -> JwtCredentialSigner:
    """Get the session credential signer instance."""
    return _app_dependencies(request).credential_signer


def get_credential_verifier(request: Request) -> CredentialVerifier:
    """Get the bearer credential verifier instance."""
    return _app_dependencies(request).credential_verifier


def get_password_hasher(request: Request) -> BcryptPasswordHasher:
    """Get the password hasher instance."""
    return _app_dependencies(request).password_hasher


async def get_identity_resolver(
    repository: AccountRepository = Depends(get_account_repository),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
    signer: JwtCredentialSigner = Depends(get_credential_signer),
) -> IdentityResolver:
    """Get an identity resolver bound to this request's database session."""
    return IdentityResolver(repository, hasher, signer)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail={"success": False, "message": "No token provided"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_header.split(" ", 1)[1].strip()


async def get_current_account(
    request: Request,
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Account:
    """Authenticate the request's Bearer token and load the caller's account."""
    token = _bearer_token(request)
    try:
        caller = await verifier.verify(token)
        account = resolver.resolve_caller(caller.identifier)
    except IdentityError as exc:
        if isinstance(exc, AuthError):
            raise to_http_exception(AuthError("Invalid token")) from exc
        if isinstance(exc, NotFoundError):
            raise to_http_exception(NotFoundError("User not found")) from exc
        raise to_http_exception(exc) from exc

    request.state.credential = caller
    return account


async def require_admin(
    account: Account = Depends(get_current_account),
) -> Account:
    """Allow only accounts holding the admin role."""
    if account.role != "admin":
        raise HTTPException(
            status_code=403,
            detail={"success": False, "message": "Forbidden: Admins only"},
        )
    return account
