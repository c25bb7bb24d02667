from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.security import issue_tokens, refresh_tokens
from ..crud.users import (
    authenticate,
    change_password,
    create_user,
    get_user,
    list_roles,
    list_users,
    set_user_role,
    update_profile,
)
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..models.user import User
from ..schemas.auth import (
    PasswordChange,
    ProfileUpdate,
    RefreshRequest,
    RoleOut,
    SignupRequest,
    TokenRequest,
    TokenResponse,
    UserOut,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
users_router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/token", response_model=TokenResponse, summary="Exchange e-mail and password for JWTs")
def exchange_token(payload: TokenRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    pair = issue_tokens(user.id, role=user.role_name)
    return TokenResponse(**pair.model_dump())


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
async def refresh_token(payload: RefreshRequest):
    try:
        pair = refresh_tokens(payload.refresh_token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenResponse(**pair.model_dump())


@router.post("/signup", response_model=UserOut, status_code=201)
def api_signup(payload: SignupRequest, db: Session = Depends(get_db)):
    try:
        return create_user(db, payload.email, payload.password, payload.full_name)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/me", response_model=UserOut)
def api_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserOut)
def api_update_me(payload: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return update_profile(db, user, payload.model_dump(exclude_unset=True))


@router.post("/me/password", status_code=204)
def api_change_password(payload: PasswordChange, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        change_password(db, user, payload.current_password, payload.new_password)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@users_router.get("", response_model=list[UserOut])
def api_list_users(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return list_users(db)


@users_router.get("/roles", response_model=list[RoleOut])
def api_list_roles(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return list_roles(db)


@users_router.put("/{user_id}/role/{role_name}", response_model=UserOut)
def api_set_role(
    user_id: int,
    role_name: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_permission("manage_users")),
):
    target = get_user(db, user_id)
    if not target:
        raise HTTPException(404, "Not found")
    try:
        return set_user_role(db, target, role_name)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
