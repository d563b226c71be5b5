"""Translation of identity errors into HTTP responses."""

from fastapi import FastAPI, HTTPException, Request
from loguru import logger
from starlette.responses import JSONResponse

from src.lessonhub.core.exceptions import (
    AuthError,
    ConflictError,
    IdentityError,
    NotFoundError,
    StorageError,
    ValidationError,
)

_STATUS_BY_ERROR: dict[type[IdentityError], int] = {
    ValidationError: 400,
    AuthError: 401,
    NotFoundError: 404,
    ConflictError: 409,
    StorageError: 500,
}


def status_for(error: IdentityError) -> int:
    for error_type in type(error).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return 500


def error_body(error: IdentityError) -> dict:
    """Response payload for `error`; storage and unexpected failures stay generic."""
    if isinstance(error, ValidationError):
        return {"success": False, "message": error.message, "errors": dict(error.fields)}
    if status_for(error) >= 500:
        return {"success": False, "message": "Internal server error"}
    return {"success": False, "message": error.message}


def to_http_exception(error: IdentityError) -> HTTPException:
    status_code = status_for(error)
    if status_code >= 500:
        logger.opt(exception=error).error(f"Identity operation failed: {error!r}")
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=error_body(error), headers=headers)


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    http_exc = to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code, content=http_exc.detail, headers=http_exc.headers
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the identity error handler on `app`."""
    app.add_exception_handler(IdentityError, identity_error_handler)
