"""Password hashing and the JWT pair handed to headless clients.

Browser sessions never see these tokens; they only back ``/api/v1`` callers
that log in through ``POST /api/v1/auth/token``. The role travels in the
token for the caller's convenience, but permissions are always re-read from
the database on each request.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings

ALGORITHM = "HS256"
AUDIENCE = "studio-manager-clients"
ISSUER = "studio-manager"
MIN_PASSWORD_LENGTH = 6

ACCESS = "access"
REFRESH = "refresh"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime
    typ: str
    aud: str
    iss: str
    role: str | None = None

    @property
    def user_id(self) -> int:
        try:
            return int(self.sub)
        except ValueError as exc:
            raise ValueError("Invalid token subject") from exc


def hash_password(plain: str) -> str:
    if not plain or len(plain) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database.
        return False


def _sign(user_id: int | str, lifetime: timedelta, kind: str, role: str | None) -> str:
    issued = datetime.now(tz=timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "typ": kind,
        "aud": AUDIENCE,
        "iss": ISSUER,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def issue_tokens(user_id: int | str, role: str | None = None) -> TokenPair:
    access_ttl = timedelta(minutes=settings.JWT_ACCESS_TTL_MIN)
    refresh_ttl = timedelta(days=settings.JWT_REFRESH_TTL_DAYS)
    return TokenPair(
        access_token=_sign(user_id, access_ttl, ACCESS, role),
        refresh_token=_sign(user_id, refresh_ttl, REFRESH, role),
        expires_in=int(access_ttl.total_seconds()),
    )


def decode_token(token: str, expected_type: str = ACCESS) -> TokenPayload:
    """Verify signature, audience, issuer and expiry; raise ``ValueError`` otherwise."""

    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM], audience=AUDIENCE, issuer=ISSUER)
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        payload = TokenPayload.model_validate(claims)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc
    if payload.typ != expected_type:
        raise ValueError(f"expected a {expected_type} token")
    return payload


def refresh_tokens(refresh_token: str) -> TokenPair:
    payload = decode_token(refresh_token, expected_type=REFRESH)
    return issue_tokens(payload.user_id, role=payload.role)
