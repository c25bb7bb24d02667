"""Login, signup and logout pages."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..core.jinja import get_templates
from ..crud.users import authenticate, create_user
from ..db.session import get_db
from ..deps.ui_auth import is_logged_in, login_session, logout_session

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


def _safe_next(value: str | None) -> str:
    # Only same-site relative paths.
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/dashboard"
    return value


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/dashboard"):
    if is_logged_in(request):
        return RedirectResponse(url=_safe_next(next), status_code=302)
    return templates.TemplateResponse(request, "login.html", {"next": _safe_next(next), "error": "", "email": ""})


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/dashboard"),
    db: Session = Depends(get_db),
):
    user = authenticate(db, email, password)
    if not user:
        logger.info("auth.login_failed")
        return templates.TemplateResponse(
            request,
            "login.html",
            {"next": _safe_next(next), "error": "E-mail ou senha inválidos", "email": email},
            status_code=401,
        )
    login_session(request, user.id)
    return RedirectResponse(url=_safe_next(next), status_code=302)


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request):
    if is_logged_in(request):
        return RedirectResponse(url="/dashboard", status_code=302)
    return templates.TemplateResponse(request, "signup.html", {"error": "", "email": "", "full_name": ""})


@router.post("/signup", response_class=HTMLResponse)
def signup_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    full_name: str = Form(""),
    db: Session = Depends(get_db),
):
    error = ""
    if password != confirm_password:
        error = "As senhas não coincidem"
    else:
        try:
            user = create_user(db, email, password, full_name)
        except ValueError as exc:
            error = str(exc)
    if error:
        return templates.TemplateResponse(
            request,
            "signup.html",
            {"error": error, "email": email, "full_name": full_name},
            status_code=422,
        )
    login_session(request, user.id)
    return RedirectResponse(url="/dashboard", status_code=302)


@router.get("/logout")
def logout(request: Request):
    logout_session(request)
    return RedirectResponse(url="/login", status_code=302)
