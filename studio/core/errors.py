from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _status_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Error"


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept and not request.url.path.startswith("/api")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Browser page loads that hit the auth guard go to the login form; API
    # and headless callers keep the JSON 401.
    if exc.status_code == status.HTTP_401_UNAUTHORIZED and _wants_html(request):
        path = request.url.path
        if not path.startswith("/login") and not path.startswith("/signup"):
            return RedirectResponse(url=f"/login?next={path}", status_code=302)
    detail = exc.detail
    message = detail if isinstance(detail, str) else _status_phrase(exc.status_code)
    details = detail if isinstance(detail, (dict, list)) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
    )
