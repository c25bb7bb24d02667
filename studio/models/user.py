"""Accounts, profiles and the roles that grant permissions."""

from __future__ import annotations

from sqlalchemy import JSON, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..core.enums import ADMIN_ROLE
from ..db.session import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(Text, nullable=False)

    users = relationship("User", back_populates="role")

    def grants(self, permission: str) -> bool:
        if self.name == ADMIN_ROLE:
            return True
        return permission in (self.permissions or [])


class User(Base):
    """A person who logs in; the profile fields live on the same row."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    full_name = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    role = relationship("Role", back_populates="users")

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role else None

    def has_permission(self, permission: str) -> bool:
        return bool(self.role and self.role.grants(permission))


__all__ = ["Role", "User"]
