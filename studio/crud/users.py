"""Accounts, profiles and role assignment."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..core.enums import ADMIN_ROLE, PERMISSIONS
from ..core.security import hash_password, verify_password
from ..models.user import Role, User

logger = logging.getLogger(__name__)

MEMBER_ROLE = "member"
# (name, description, permissions) created on first use.
DEFAULT_ROLES = (
    (ADMIN_ROLE, "Acesso total", list(PERMISSIONS)),
    (MEMBER_ROLE, "Equipe do estúdio", ["manage_clients", "manage_projects"]),
)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _normalize_email(value: str | None) -> str:
    email = (value or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValueError("a valid email is required")
    return email


def ensure_default_roles(db: Session) -> dict[str, Role]:
    roles = {role.name: role for role in db.execute(select(Role)).scalars().all()}
    created = False
    for name, description, permissions in DEFAULT_ROLES:
        if name not in roles:
            role = Role(name=name, description=description, permissions=permissions, created_at=_utcnow())
            db.add(role)
            roles[name] = role
            created = True
    if created:
        db.commit()
    return roles


def list_roles(db: Session) -> list[Role]:
    return db.execute(select(Role).order_by(Role.name)).scalars().all()


def get_user(db: Session, user_id: int) -> User | None:
    stmt = select(User).options(selectinload(User.role)).where(User.id == user_id)
    return db.execute(stmt).scalars().first()


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).options(selectinload(User.role)).where(User.email == (email or "").strip().lower())
    return db.execute(stmt).scalars().first()


def list_users(db: Session) -> list[User]:
    return db.execute(select(User).options(selectinload(User.role)).order_by(User.email)).scalars().all()


def create_user(db: Session, email: str, password: str, full_name: str | None = None) -> User:
    """Register an account. The very first account becomes admin."""

    email = _normalize_email(email)
    if get_user_by_email(db, email):
        raise ValueError("this email is already registered")
    roles = ensure_default_roles(db)
    is_first = (db.execute(select(func.count(User.id))).scalar() or 0) == 0
    now = _utcnow()
    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
        role_id=roles[ADMIN_ROLE if is_first else MEMBER_ROLE].id,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user.created", extra={"extra_data": {"user_id": user.id, "admin": is_first}})
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def update_profile(db: Session, user: User, payload: dict) -> User:
    if "full_name" in payload:
        user.full_name = (payload.get("full_name") or "").strip() or None
    if "avatar_url" in payload:
        user.avatar_url = (payload.get("avatar_url") or "").strip() or None
    user.updated_at = _utcnow()
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> User:
    if not verify_password(current_password, user.password_hash):
        raise PermissionError("current password is incorrect")
    user.password_hash = hash_password(new_password)
    user.updated_at = _utcnow()
    db.commit()
    db.refresh(user)
    return user


def set_user_role(db: Session, user: User, role_name: str) -> User:
    roles = ensure_default_roles(db)
    role = roles.get(role_name)
    if not role:
        raise LookupError("role not found")
    user.role_id = role.id
    user.updated_at = _utcnow()
    db.commit()
    db.refresh(user)
    return user
