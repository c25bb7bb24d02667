"""Cookie-session helpers for the browser UI."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

SESSION_USER_KEY = "user_id"


def session_user_id(request: Request) -> int | None:
    if "session" not in request.scope:
        return None
    value = request.session.get(SESSION_USER_KEY)
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def is_logged_in(request: Request) -> bool:
    return session_user_id(request) is not None


def login_session(request: Request, user_id: int) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = int(user_id)


def logout_session(request: Request) -> None:
    request.session.clear()


async def require_ui_session(request: Request):
    """Gate for UI routes. Raises 401; the error handler turns it into a redirect for browsers."""
    if not is_logged_in(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return True
