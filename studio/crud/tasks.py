"""CRUD helpers for project tasks and the kanban board."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..core.enums import KANBAN_COLUMNS, PRIORITY_RANK, TASK_PRIORITIES, TASK_STATUSES
from ..models.project import Project
from ..models.task import Task
from ..models.time_entry import TimeEntry
from ..services.timecalc import parse_date


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _check_status(value: str) -> str:
    if value not in TASK_STATUSES:
        raise ValueError(f"status must be one of {', '.join(TASK_STATUSES)}")
    return value


def _check_priority(value: str) -> str:
    if value not in TASK_PRIORITIES:
        raise ValueError(f"priority must be one of {', '.join(TASK_PRIORITIES)}")
    return value


def _clean_due_date(value: object) -> str | None:
    if value in (None, ""):
        return None
    try:
        return parse_date(value).isoformat()
    except ValueError as exc:
        raise ValueError("due_date must be an ISO date (YYYY-MM-DD)") from exc


def _next_sort_order(db: Session, project_id: int, status: str) -> int:
    current = db.execute(
        select(func.max(Task.sort_order)).where(Task.project_id == project_id, Task.status == status)
    ).scalar()
    return 0 if current is None else int(current) + 1


def list_tasks(
    db: Session,
    project_id: int | None = None,
    status: str | None = None,
    assignee_id: int | None = None,
) -> list[Task]:
    stmt = select(Task).options(selectinload(Task.project))
    if project_id is not None:
        stmt = stmt.where(Task.project_id == project_id)
    if status:
        stmt = stmt.where(Task.status == _check_status(status))
    if assignee_id is not None:
        stmt = stmt.where(Task.assignee_id == assignee_id)
    stmt = stmt.order_by(Task.status, Task.sort_order, Task.id)
    return db.execute(stmt).scalars().all()


def get_task(db: Session, task_id: int) -> Task | None:
    stmt = select(Task).options(selectinload(Task.project)).where(Task.id == task_id)
    return db.execute(stmt).scalars().first()


def create_task(db: Session, payload: dict) -> Task:
    title = (payload.get("title") or "").strip()
    if not title:
        raise ValueError("title is required")
    project_id = payload.get("project_id")
    if project_id is None or not db.get(Project, project_id):
        raise ValueError("project not found")
    status = _check_status(payload.get("status") or "backlog")
    sort_order = payload.get("sort_order")
    if sort_order is None:
        sort_order = _next_sort_order(db, project_id, status)
    now = _utcnow()
    task = Task(
        project_id=project_id,
        title=title,
        description=(payload.get("description") or None),
        status=status,
        priority=_check_priority(payload.get("priority") or "medium"),
        assignee_id=payload.get("assignee_id"),
        due_date=_clean_due_date(payload.get("due_date")),
        estimated_hours=payload.get("estimated_hours"),
        sort_order=int(sort_order),
        created_at=now,
        updated_at=now,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task: Task, payload: dict) -> Task:
    if "title" in payload:
        title = (payload.get("title") or "").strip()
        if not title:
            raise ValueError("title is required")
        task.title = title
    if payload.get("status"):
        task.status = _check_status(payload["status"])
    if payload.get("priority"):
        task.priority = _check_priority(payload["priority"])
    if "due_date" in payload:
        task.due_date = _clean_due_date(payload.get("due_date"))
    for field in ("description", "assignee_id", "estimated_hours", "sort_order"):
        if field in payload:
            value = payload.get(field)
            if field == "sort_order" and value is None:
                continue
            setattr(task, field, value if value != "" else None)
    task.updated_at = _utcnow()
    db.commit()
    db.refresh(task)
    return task


def move_task(db: Session, task: Task, status: str, position: int | None = None) -> Task:
    """Drop ``task`` onto the ``status`` column.

    Moving onto the column it already sits in without a position is a no-op.
    With a position the column is renumbered so the task lands at that index.
    """

    status = _check_status(status)
    if status == task.status and position is None:
        return task
    if position is None:
        task.sort_order = _next_sort_order(db, task.project_id, status)
        task.status = status
    else:
        siblings = list(
            db.execute(
                select(Task)
                .where(Task.project_id == task.project_id, Task.status == status, Task.id != task.id)
                .order_by(Task.sort_order, Task.id)
            ).scalars().all()
        )
        index = max(0, min(int(position), len(siblings)))
        siblings.insert(index, task)
        task.status = status
        for order, item in enumerate(siblings):
            item.sort_order = order
    task.updated_at = _utcnow()
    db.commit()
    db.refresh(task)
    return task


def complete_task(db: Session, task: Task) -> Task:
    return move_task(db, task, "done")


def delete_task(db: Session, task: Task) -> None:
    # Logged time survives the task; it just loses the link.
    for entry in db.execute(select(TimeEntry).where(TimeEntry.task_id == task.id)).scalars().all():
        entry.task_id = None
    db.delete(task)
    db.commit()


def _global_sort_key(task: Task):
    # Urgent first, then earliest due date; tasks without a due date go last.
    return (-PRIORITY_RANK.get(task.priority, 0), task.due_date is None, task.due_date or "", task.id)


def kanban_board(db: Session, project_id: int | None = None) -> list[dict]:
    """Group tasks into the five kanban columns in board order.

    A project board keeps the manual ``sort_order``; the global board (no
    project) orders by priority then due date.
    """

    tasks = list_tasks(db, project_id=project_id)
    columns = {status: {"status": status, "label": label, "tasks": []} for status, label in KANBAN_COLUMNS}
    for task in tasks:
        columns[task.status]["tasks"].append(task)
    if project_id is None:
        for column in columns.values():
            column["tasks"].sort(key=_global_sort_key)
    return [columns[status] for status, _ in KANBAN_COLUMNS]
