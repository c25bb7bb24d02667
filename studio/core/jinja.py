"""Jinja2 environment with the formatting filters every page relies on."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from ..services.timecalc import format_duration, format_hours, format_minutes
from .config import settings
from .enums import ENERGY_LEVELS, KANBAN_COLUMNS, SATISFACTION_LEVELS

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None


def _to_dt(value: Any) -> datetime | None:
    """Convert strings/dates into timezone-aware datetimes for safe formatting."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None and _LOCAL_TZ:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    if _LOCAL_TZ:
        dt = dt.astimezone(_LOCAL_TZ)
    return dt


def _fmt_dt(value: Any, fmt: str = "%d/%m/%Y %H:%M") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_date(value: Any, fmt: str = "%d/%m/%Y") -> str:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.strftime(fmt)
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_time(value: Any, fmt: str = "%H:%M") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_currency(value: Any, currency: str | None = None) -> str:
    """``R$ 1.234,56`` for BRL, ``USD 1,234.56`` style for anything else."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    code = (currency or settings.DEFAULT_CURRENCY or "BRL").upper()
    if code == "BRL":
        text = f"{number:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
        return f"R$ {text}"
    return f"{code} {number:,.2f}"


def _query_string(**params: Any) -> str:
    return urlencode({key: value for key, value in params.items() if value not in (None, "")})


def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))
    env = templates.env
    env.filters["fmt_dt"] = _fmt_dt
    env.filters["fmt_date"] = _fmt_date
    env.filters["fmt_time"] = _fmt_time
    env.filters["fmt_currency"] = _fmt_currency
    env.filters["fmt_duration"] = format_duration
    env.filters["fmt_minutes"] = format_minutes
    env.filters["fmt_hours"] = format_hours
    env.globals["APP_NAME"] = settings.APP_NAME
    env.globals["query_string"] = _query_string
    env.globals["KANBAN_COLUMNS"] = KANBAN_COLUMNS
    env.globals["ENERGY_LEVELS"] = ENERGY_LEVELS
    env.globals["SATISFACTION_LEVELS"] = SATISFACTION_LEVELS
    return templates
