from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import EXPENSE_CATEGORIES, PROJECT_STATUSES
from ..crud import finance as finance_crud
from ..models.finance import FinancialEntry
from ..models.project import Project
from ..models.time_entry import TimeEntry
from .timecalc import local_today, parse_iso

TWOPLACES = Decimal("0.01")

# Weekday labels indexed Sunday first.
WEEKDAY_LABELS = ("Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb")

# (lower bound, css class, label), checked top to bottom.
EFFICIENCY_BANDS = (
    (2.0, "ee-high", "Alta Eficiência"),
    (1.5, "ee-good", "Boa Eficiência"),
    (1.0, "ee-medium", "Média Eficiência"),
    (0.5, "ee-low", "Baixa Eficiência"),
)
STRESS_BAND = ("ee-stress", "Estresse")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _quantize_currency(value: Decimal) -> float:
    return float(value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)) if value else 0.0


def finance_summary(entries: Iterable[FinancialEntry]) -> Dict[str, float]:
    """Totals for a list of ledger rows. Cancelled rows never count."""

    income = Decimal("0")
    expenses = Decimal("0")
    pending_income = Decimal("0")
    for entry in entries:
        if entry.status == "cancelled":
            continue
        amount = _to_decimal(entry.amount)
        if entry.type == "income":
            income += amount
            if entry.status == "pending":
                pending_income += amount
        elif entry.type == "expense":
            expenses += amount
    return {
        "total_income": _quantize_currency(income),
        "total_expenses": _quantize_currency(expenses),
        "balance": _quantize_currency(income - expenses),
        "pending_income": _quantize_currency(pending_income),
    }


def month_window_start(today: date, months: int) -> date:
    """First day of the month ``months - 1`` months before ``today``."""

    index = today.year * 12 + today.month - 1 - (months - 1)
    return date(index // 12, index % 12 + 1, 1)


def finance_by_month(
    entries: Iterable[FinancialEntry], months: int = 6, today: date | None = None
) -> List[Dict[str, Any]]:
    """Income, expense and balance for each of the last ``months`` months.

    Months without rows still appear (with zeros) so charts keep their axis.
    Oldest month first; cancelled rows never count.
    """

    today = today or local_today()
    first = month_window_start(today, months)
    keys = []
    year, month = first.year, first.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    totals = {key: {"income": Decimal("0"), "expense": Decimal("0")} for key in keys}
    for entry in entries:
        if entry.status == "cancelled" or not entry.date:
            continue
        bucket = totals.get(str(entry.date)[:7])
        if bucket is None or entry.type not in bucket:
            continue
        bucket[entry.type] += _to_decimal(entry.amount)

    rows = []
    for key in keys:
        income, expense = totals[key]["income"], totals[key]["expense"]
        rows.append(
            {
                "month": key,
                "label": f"{int(key[5:])}/{key[2:4]}",
                "income": _quantize_currency(income),
                "expense": _quantize_currency(expense),
                "balance": _quantize_currency(income - expense),
            }
        )
    return rows


def finance_by_category(entries: Iterable[FinancialEntry]) -> List[Dict[str, Any]]:
    """Income, expense and balance per ledger category; uncategorised rows go to ``other``."""

    totals: Dict[str, Dict[str, Decimal]] = {}
    for entry in entries:
        if entry.status == "cancelled" or entry.type not in ("income", "expense"):
            continue
        bucket = totals.setdefault(entry.category or "other", {"income": Decimal("0"), "expense": Decimal("0")})
        bucket[entry.type] += _to_decimal(entry.amount)

    order = {name: index for index, name in enumerate(EXPENSE_CATEGORIES)}
    return [
        {
            "category": category,
            "income": _quantize_currency(values["income"]),
            "expense": _quantize_currency(values["expense"]),
            "balance": _quantize_currency(values["income"] - values["expense"]),
        }
        for category, values in sorted(totals.items(), key=lambda item: order.get(item[0], len(order)))
    ]


def projects_by_status(db: Session) -> Dict[str, int]:
    counts = {status: 0 for status in PROJECT_STATUSES}
    rows = db.execute(select(Project.status, func.count(Project.id)).group_by(Project.status)).all()
    for status, count in rows:
        if status in counts:
            counts[status] = int(count)
    return counts


def _hours_between(db: Session, user_id: int | None, start: date, end: date) -> float:
    stmt = select(func.coalesce(func.sum(TimeEntry.hours), 0.0)).where(
        TimeEntry.date >= start.isoformat(), TimeEntry.date <= end.isoformat()
    )
    if user_id is not None:
        stmt = stmt.where(TimeEntry.user_id == user_id)
    return round(float(db.execute(stmt).scalar() or 0), 2)


def hours_per_week(db: Session, user_id: int | None = None, today: date | None = None, weeks: int = 4) -> List[Dict[str, Any]]:
    """Hours logged in consecutive 7-day windows ending today, oldest first."""

    today = today or local_today()
    result = []
    for index in range(weeks - 1, -1, -1):
        end = today - timedelta(days=7 * index)
        start = end - timedelta(days=6)
        result.append(
            {
                "label": f"Sem {weeks - index}",
                "start": start.isoformat(),
                "end": end.isoformat(),
                "hours": _hours_between(db, user_id, start, end),
            }
        )
    return result


def dashboard_kpis(db: Session, user_id: int | None = None, today: date | None = None) -> Dict[str, Any]:
    today = today or local_today()
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    month_end = next_month - timedelta(days=1)

    active = db.execute(select(func.count(Project.id)).where(Project.status == "active")).scalar() or 0
    month_entries = db.execute(
        select(FinancialEntry).where(
            FinancialEntry.date >= month_start.isoformat(), FinancialEntry.date <= month_end.isoformat()
        )
    ).scalars().all()
    summary = finance_summary(month_entries)
    return {
        "active_projects": int(active),
        "hours_this_month": _hours_between(db, user_id, month_start, month_end),
        "revenue_this_month": summary["total_income"],
        "pending_amount": summary["pending_income"],
        "expenses_this_month": summary["total_expenses"],
    }


def efficiency_band(value: float) -> tuple[str, str]:
    for lower, css_class, label in EFFICIENCY_BANDS:
        if value >= lower:
            return css_class, label
    return STRESS_BAND


def efficiency_heatmap(entries: Iterable[TimeEntry], tz: str | None = None) -> Dict[str, Any]:
    """Average EE (satisfacao / energia) per weekday and starting hour.

    Only timer rows with both answers and a ``start_time`` count. The hour is
    taken in the configured local timezone; weekday 0 is Sunday.
    """

    zone = ZoneInfo(tz or settings.TZ)
    buckets: Dict[tuple[int, int], list[float]] = defaultdict(list)
    for entry in entries:
        if not entry.energia or not entry.satisfacao or not entry.start_time:
            continue
        started = parse_iso(entry.start_time).astimezone(zone)
        weekday = (started.weekday() + 1) % 7
        buckets[(weekday, started.hour)].append(entry.satisfacao / entry.energia)

    cells = []
    for (weekday, hour), values in sorted(buckets.items()):
        average = sum(values) / len(values)
        css_class, label = efficiency_band(average)
        cells.append(
            {
                "weekday": weekday,
                "weekday_label": WEEKDAY_LABELS[weekday],
                "hour": hour,
                "ee": round(average, 2),
                "count": len(values),
                "css_class": css_class,
                "label": label,
            }
        )
    return {"days": list(WEEKDAY_LABELS), "hours": list(range(24)), "cells": cells}


def heatmap_grid(heatmap: Dict[str, Any]) -> List[List[Dict[str, Any] | None]]:
    """7x24 matrix of cells (or None) for templates."""

    grid: List[List[Dict[str, Any] | None]] = [[None] * 24 for _ in range(7)]
    for cell in heatmap["cells"]:
        grid[cell["weekday"]][cell["hour"]] = cell
    return grid


def finance_report(db: Session, period: str = "month", months: int = 6, today: date | None = None) -> Dict[str, Any]:
    """Summary and category split for ``period`` plus the monthly trend.

    The trend always covers the last ``months`` months whatever the period.
    Raises ``ValueError`` for an unknown period.
    """

    today = today or local_today()
    in_period = finance_crud.list_entries(db, period=period, today=today)
    trend = finance_crud.list_entries(db, date_from=month_window_start(today, months), today=today)
    return {
        "period": period,
        "summary": finance_summary(in_period),
        "by_month": finance_by_month(trend, months=months, today=today),
        "by_category": finance_by_category(in_period),
    }
