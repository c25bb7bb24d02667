from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..crud.users import get_user
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User
from ..core.security import decode_token
from .ui_auth import logout_session, session_user_id


def _unauthorized(detail: str = "Unauthorized") -> None:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the session cookie or a Bearer access token."""

    user_id = session_user_id(request)
    if user_id is not None:
        user = get_user(db, user_id)
        if user:
            _set_principal(request, f"user:{user.id}")
            request.state.user = user
            return user
        # Account removed while the cookie was still around.
        logout_session(request)

    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            try:
                payload = decode_token(credentials)
                user = get_user(db, payload.user_id)
            except ValueError as exc:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=str(exc),
                    headers={"WWW-Authenticate": "Bearer"},
                ) from exc
            if not user:
                _unauthorized("Unknown user")
            _set_principal(request, f"jwt:{user.id}")
            request.state.token_payload = payload
            request.state.user = user
            return user

    _unauthorized("Authorization required")


async def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User | None:
    user_id = session_user_id(request)
    if user_id is None:
        return None
    return get_user(db, user_id)


def require_permission(permission: str):
    """Dependency factory: the current user must hold ``permission`` (admins hold all)."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if not user.has_permission(permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing permission: {permission}")
        return user

    return _check
