"""CRUD helpers for time entries and time categories."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core.enums import DEFAULT_TIME_CATEGORIES
from ..models.project import Project
from ..models.task import Task
from ..models.time_entry import TimeCategory, TimeEntry
from ..services.timecalc import local_today, parse_date


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _check_level(label: str, value: object) -> int | None:
    if value is None:
        return None
    if value not in (1, 2, 3):
        raise ValueError(f"{label} must be 1, 2 or 3")
    return int(value)


def _resolve_links(db: Session, payload: dict) -> tuple[int | None, int | None]:
    """Return (task_id, project_id); a task implies its project."""

    task_id = payload.get("task_id")
    project_id = payload.get("project_id")
    if task_id is not None:
        task = db.get(Task, task_id)
        if not task:
            raise ValueError("task not found")
        project_id = project_id or task.project_id
    if project_id is not None and not db.get(Project, project_id):
        raise ValueError("project not found")
    return task_id, project_id


def list_entries(
    db: Session,
    user_id: int,
    *,
    task_id: int | None = None,
    project_id: int | None = None,
    date_from: str | date | None = None,
    date_to: str | date | None = None,
    limit: int | None = 500,
    offset: int = 0,
) -> list[TimeEntry]:
    stmt = (
        select(TimeEntry)
        .options(selectinload(TimeEntry.task), selectinload(TimeEntry.project))
        .where(TimeEntry.user_id == user_id)
    )
    if task_id is not None:
        stmt = stmt.where(TimeEntry.task_id == task_id)
    if project_id is not None:
        stmt = stmt.where(TimeEntry.project_id == project_id)
    start = parse_date(date_from)
    end = parse_date(date_to)
    if start and end and start > end:
        raise ValueError("date_from must not be after date_to")
    if start:
        stmt = stmt.where(TimeEntry.date >= start.isoformat())
    if end:
        stmt = stmt.where(TimeEntry.date <= end.isoformat())
    stmt = stmt.order_by(TimeEntry.date.desc(), TimeEntry.id.desc()).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return db.execute(stmt).scalars().all()


def efficiency_rows(db: Session, user_id: int):
    """Every answered timer row of ``user_id``, only the heatmap columns."""

    stmt = select(TimeEntry.start_time, TimeEntry.energia, TimeEntry.satisfacao).where(
        TimeEntry.user_id == user_id,
        TimeEntry.start_time.is_not(None),
        TimeEntry.energia.is_not(None),
        TimeEntry.satisfacao.is_not(None),
    )
    return db.execute(stmt).all()


def live_links(db: Session, task_id: int | None, project_id: int | None) -> tuple[int | None, int | None]:
    """Drop task or project ids whose rows were deleted in the meantime."""

    if task_id is not None and not db.get(Task, task_id):
        task_id = None
    if project_id is not None and not db.get(Project, project_id):
        project_id = None
    return task_id, project_id


def total_hours(entries) -> float:
    return round(sum(float(entry.hours or 0) for entry in entries), 2)


def get_entry(db: Session, entry_id: int) -> TimeEntry | None:
    return db.get(TimeEntry, entry_id)


def get_user_entry(db: Session, user_id: int, entry_id: int) -> TimeEntry:
    entry = get_entry(db, entry_id)
    if not entry:
        raise LookupError("time entry not found")
    if entry.user_id != user_id:
        raise PermissionError("time entry belongs to another user")
    return entry


def get_entry_by_checkout(db: Session, checkout_id: str | None) -> TimeEntry | None:
    if not checkout_id:
        return None
    return db.execute(select(TimeEntry).where(TimeEntry.checkout_id == checkout_id)).scalars().first()


def create_manual_entry(db: Session, user_id: int, payload: dict) -> TimeEntry:
    hours = payload.get("hours")
    try:
        hours = float(hours)
    except (TypeError, ValueError) as exc:
        raise ValueError("hours must be a number") from exc
    if hours <= 0:
        raise ValueError("hours must be greater than zero")
    task_id, project_id = _resolve_links(db, payload)
    entry_date = parse_date(payload.get("date")) or local_today()
    entry = TimeEntry(
        user_id=user_id,
        task_id=task_id,
        project_id=project_id,
        date=entry_date.isoformat(),
        hours=round(hours, 2),
        description=(payload.get("description") or None),
        activity_name=(payload.get("activity_name") or None),
        categoria=(payload.get("categoria") or None),
        duration_minutes=int(round(hours * 60)),
        created_at=_utcnow(),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def create_timer_entry(db: Session, payload: dict) -> TimeEntry:
    """Insert the row produced by a timer checkout.

    A repeated ``checkout_id`` raises ``IntegrityError`` from the unique
    column; the caller decides what that means.
    """

    entry = TimeEntry(
        user_id=payload["user_id"],
        task_id=payload.get("task_id"),
        project_id=payload.get("project_id"),
        date=payload["date"],
        hours=payload["hours"],
        description=payload.get("description"),
        activity_name=payload.get("activity_name"),
        categoria=payload.get("categoria"),
        energia=_check_level("energia", payload.get("energia")),
        satisfacao=_check_level("satisfacao", payload.get("satisfacao")),
        start_time=payload.get("start_time"),
        end_time=payload.get("end_time"),
        duration_minutes=payload.get("duration_minutes"),
        checkout_id=payload.get("checkout_id"),
        created_at=_utcnow(),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def update_entry(db: Session, entry: TimeEntry, payload: dict) -> TimeEntry:
    if "activity_name" in payload:
        entry.activity_name = (payload.get("activity_name") or "").strip() or None
    if "description" in payload:
        entry.description = payload.get("description") or None
    if "categoria" in payload:
        entry.categoria = (payload.get("categoria") or "").strip() or None
    if "energia" in payload:
        entry.energia = _check_level("energia", payload.get("energia"))
    if "satisfacao" in payload:
        entry.satisfacao = _check_level("satisfacao", payload.get("satisfacao"))
    if payload.get("hours") is not None:
        hours = float(payload["hours"])
        if hours <= 0:
            raise ValueError("hours must be greater than zero")
        entry.hours = round(hours, 2)
        entry.duration_minutes = int(round(hours * 60))
    db.commit()
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entry: TimeEntry) -> None:
    db.delete(entry)
    db.commit()


# ---- Time categories


def seed_default_categories(db: Session) -> int:
    """Insert the shared default categories that are missing. Returns the count added."""

    existing = set(
        db.execute(select(TimeCategory.name).where(TimeCategory.user_id.is_(None))).scalars().all()
    )
    added = 0
    for name, icon, color in DEFAULT_TIME_CATEGORIES:
        if name in existing:
            continue
        db.add(
            TimeCategory(name=name, icon=icon, color=color, user_id=None, is_default=1, created_at=_utcnow())
        )
        added += 1
    if added:
        db.commit()
    return added


def list_categories(db: Session, user_id: int) -> list[TimeCategory]:
    stmt = (
        select(TimeCategory)
        .where(or_(TimeCategory.user_id.is_(None), TimeCategory.user_id == user_id))
        .order_by(TimeCategory.is_default.desc(), TimeCategory.name)
    )
    return db.execute(stmt).scalars().all()


def create_category(db: Session, user_id: int, payload: dict) -> TimeCategory:
    name = (payload.get("name") or "").strip().lower()
    if not name:
        raise ValueError("name is required")
    taken = {category.name for category in list_categories(db, user_id)}
    if name in taken:
        raise ValueError("a category with this name already exists")
    category = TimeCategory(
        name=name,
        icon=(payload.get("icon") or None),
        color=(payload.get("color") or None),
        user_id=user_id,
        is_default=0,
        created_at=_utcnow(),
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValueError("a category with this name already exists") from exc
    db.refresh(category)
    return category


def delete_category(db: Session, user_id: int, category_id: int) -> None:
    category = db.get(TimeCategory, category_id)
    if not category:
        raise LookupError("category not found")
    if category.is_default or category.user_id != user_id:
        raise PermissionError("only your own categories can be removed")
    db.delete(category)
    db.commit()
