"""CRUD helpers for the income/expense ledger."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core.config import settings
from ..core.enums import EXPENSE_CATEGORIES, FINANCIAL_STATUSES, FINANCIAL_TYPES
from ..models.client import Client
from ..models.finance import FinancialEntry
from ..models.project import Project
from ..services.timecalc import local_today, parse_date

PERIODS = ("month", "quarter", "year", "all")


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _choice(field: str, value: object, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise ValueError(f"{field} must be one of {', '.join(choices)}")
    return str(value)


def _amount(value: object) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("amount must be a number") from exc
    if amount <= 0:
        raise ValueError("amount must be greater than zero")
    return round(amount, 2)


def _link(db: Session, model, field: str, value: object) -> int | None:
    if value in (None, ""):
        return None
    if not db.get(model, int(value)):
        raise ValueError(f"{field.replace('_id', '')} not found")
    return int(value)


def period_start(period: str, today: date | None = None) -> date | None:
    """First day of the current month/quarter/year; ``None`` for ``all``."""

    period = _choice("period", period, PERIODS)
    today = today or local_today()
    if period == "month":
        return today.replace(day=1)
    if period == "quarter":
        return date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
    if period == "year":
        return date(today.year, 1, 1)
    return None


def list_entries(
    db: Session,
    *,
    type: str | None = None,
    period: str = "all",
    status: str | None = None,
    client_id: int | None = None,
    project_id: int | None = None,
    date_from: date | None = None,
    today: date | None = None,
) -> list[FinancialEntry]:
    stmt = select(FinancialEntry).options(
        selectinload(FinancialEntry.client), selectinload(FinancialEntry.project)
    )
    if type:
        stmt = stmt.where(FinancialEntry.type == _choice("type", type, FINANCIAL_TYPES))
    if status:
        stmt = stmt.where(FinancialEntry.status == _choice("status", status, FINANCIAL_STATUSES))
    if client_id is not None:
        stmt = stmt.where(FinancialEntry.client_id == client_id)
    if project_id is not None:
        stmt = stmt.where(FinancialEntry.project_id == project_id)
    start = period_start(period or "all", today)
    if start:
        stmt = stmt.where(FinancialEntry.date >= start.isoformat())
    if date_from:
        stmt = stmt.where(FinancialEntry.date >= date_from.isoformat())
    stmt = stmt.order_by(FinancialEntry.date.desc(), FinancialEntry.id.desc())
    return db.execute(stmt).scalars().all()


def get_entry(db: Session, entry_id: int) -> FinancialEntry | None:
    return db.get(FinancialEntry, entry_id)


def create_entry(db: Session, payload: dict, created_by: int | None = None) -> FinancialEntry:
    description = (payload.get("description") or "").strip()
    if not description:
        raise ValueError("description is required")
    category = payload.get("category") or None
    if category is not None:
        _choice("category", category, EXPENSE_CATEGORIES)
    now = _utcnow()
    entry = FinancialEntry(
        type=_choice("type", payload.get("type"), FINANCIAL_TYPES),
        category=category,
        description=description,
        amount=_amount(payload.get("amount")),
        currency=(payload.get("currency") or settings.DEFAULT_CURRENCY).upper(),
        date=(parse_date(payload.get("date")) or local_today()).isoformat(),
        client_id=_link(db, Client, "client_id", payload.get("client_id")),
        project_id=_link(db, Project, "project_id", payload.get("project_id")),
        invoice_number=(payload.get("invoice_number") or None),
        status=_choice("status", payload.get("status") or "pending", FINANCIAL_STATUSES),
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def update_entry(db: Session, entry: FinancialEntry, payload: dict) -> FinancialEntry:
    if payload.get("type"):
        entry.type = _choice("type", payload["type"], FINANCIAL_TYPES)
    if "category" in payload:
        category = payload.get("category") or None
        entry.category = _choice("category", category, EXPENSE_CATEGORIES) if category else None
    if "description" in payload:
        description = (payload.get("description") or "").strip()
        if not description:
            raise ValueError("description is required")
        entry.description = description
    if payload.get("amount") is not None:
        entry.amount = _amount(payload["amount"])
    if payload.get("currency"):
        entry.currency = payload["currency"].upper()
    if payload.get("date"):
        entry.date = parse_date(payload["date"]).isoformat()
    if "client_id" in payload:
        entry.client_id = _link(db, Client, "client_id", payload.get("client_id"))
    if "project_id" in payload:
        entry.project_id = _link(db, Project, "project_id", payload.get("project_id"))
    if "invoice_number" in payload:
        entry.invoice_number = payload.get("invoice_number") or None
    if payload.get("status"):
        entry.status = _choice("status", payload["status"], FINANCIAL_STATUSES)
    entry.updated_at = _utcnow()
    db.commit()
    db.refresh(entry)
    return entry


def set_status(db: Session, entry: FinancialEntry, status: str) -> FinancialEntry:
    return update_entry(db, entry, {"status": status})


def delete_entry(db: Session, entry: FinancialEntry) -> None:
    db.delete(entry)
    db.commit()
