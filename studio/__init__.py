"""Application wiring for Studio Manager.

Importing the package builds the FastAPI app: tables are created and migrated,
the default roles and time categories are seeded, middlewares are installed
and every router is plugged in. ``studio.main`` adds logging, metrics and the
health check on top.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .core.errors import http_exception_handler, validation_exception_handler
from .db.migrate import run_migrations
from .db.session import Base, SessionLocal, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Importing the models registers their tables on ``Base.metadata``.
from .models import brand as _brand  # noqa: F401
from .models import client as _client  # noqa: F401
from .models import finance as _finance  # noqa: F401
from .models import project as _project  # noqa: F401
from .models import task as _task  # noqa: F401
from .models import template as _template  # noqa: F401
from .models import time_entry as _time_entry  # noqa: F401
from .models import user as _user  # noqa: F401

app = FastAPI(title=settings.APP_NAME)

settings.STATIC_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")

# ---------- DB init/migrations ----------
# ``create_all`` covers brand-new databases, ``run_migrations`` upgrades
# existing ones. Both are idempotent so running them on import is safe.
Base.metadata.create_all(bind=engine)
run_migrations(engine)

from .crud.timesheet import seed_default_categories  # noqa: E402
from .crud.users import ensure_default_roles  # noqa: E402

with SessionLocal() as _db:
    ensure_default_roles(_db)
    seed_default_categories(_db)

# ---------- Middlewares ----------
# Starlette runs the last one added first, so the request id exists before
# the session or the security headers are touched.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.APP_SECRET,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=settings.SESSION_HTTPS_ONLY,
)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
# UI login routes (no session required)
from .routers import auth_ui as auth_ui_router  # noqa: E402

app.include_router(auth_ui_router.router)

# UI pages/actions (session required via router dependency)
from .routers import ui as ui_router  # noqa: E402
from .routers import ui_brand as ui_brand_router  # noqa: E402
from .routers import ui_timesheet as ui_timesheet_router  # noqa: E402

app.include_router(ui_router.router)
app.include_router(ui_timesheet_router.router)
app.include_router(ui_brand_router.router)

# JSON API (session cookie or bearer token)
from .routers import api_auth as api_auth_router  # noqa: E402
from .routers import api_brand as api_brand_router  # noqa: E402
from .routers import api_clients as api_clients_router  # noqa: E402
from .routers import api_finance as api_finance_router  # noqa: E402
from .routers import api_projects as api_projects_router  # noqa: E402
from .routers import api_reports as api_reports_router  # noqa: E402
from .routers import api_tasks as api_tasks_router  # noqa: E402
from .routers import api_templates as api_templates_router  # noqa: E402
from .routers import api_timer as api_timer_router  # noqa: E402
from .routers import api_timesheet as api_timesheet_router  # noqa: E402

app.include_router(api_auth_router.router)
app.include_router(api_auth_router.users_router)
app.include_router(api_clients_router.router)
app.include_router(api_projects_router.router)
app.include_router(api_tasks_router.router)
app.include_router(api_timesheet_router.router)
app.include_router(api_timer_router.router)
app.include_router(api_finance_router.router)
app.include_router(api_templates_router.router)
app.include_router(api_brand_router.router)
app.include_router(api_reports_router.router)

# ---------- Exception handling ----------
# HTML 401s redirect to /login; everything else answers with the JSON envelope.
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


__all__ = ["app"]
