"""CRUD helpers for project templates and applying them to projects."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..core.enums import TASK_PRIORITIES
from ..models.project import Project
from ..models.task import Task
from ..models.template import ProjectTemplate, TemplateTask
from ..services.timecalc import local_today

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _build_tasks(items: list[dict]) -> list[TemplateTask]:
    tasks: list[TemplateTask] = []
    for index, item in enumerate(items or []):
        title = (item.get("title") or "").strip()
        if not title:
            raise ValueError(f"task #{index + 1} needs a title")
        priority = item.get("priority") or "medium"
        if priority not in TASK_PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(TASK_PRIORITIES)}")
        offset = item.get("days_offset")
        if offset is not None and int(offset) < 0:
            raise ValueError("days_offset cannot be negative")
        tasks.append(
            TemplateTask(
                title=title,
                description=(item.get("description") or None),
                priority=priority,
                days_offset=int(offset) if offset is not None else None,
                estimated_hours=item.get("estimated_hours"),
                sort_order=index,
            )
        )
    return tasks


def list_templates(db: Session) -> list[ProjectTemplate]:
    stmt = select(ProjectTemplate).options(selectinload(ProjectTemplate.tasks)).order_by(func.lower(ProjectTemplate.name))
    return db.execute(stmt).scalars().all()


def get_template(db: Session, template_id: int) -> ProjectTemplate | None:
    stmt = (
        select(ProjectTemplate)
        .options(selectinload(ProjectTemplate.tasks))
        .where(ProjectTemplate.id == template_id)
    )
    return db.execute(stmt).scalars().first()


def create_template(db: Session, payload: dict, created_by: int | None = None) -> ProjectTemplate:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    now = _utcnow()
    template = ProjectTemplate(
        name=name,
        description=(payload.get("description") or None),
        default_days=payload.get("default_days"),
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    template.tasks = _build_tasks(payload.get("tasks") or [])
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def update_template(db: Session, template: ProjectTemplate, payload: dict) -> ProjectTemplate:
    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        template.name = name
    if "description" in payload:
        template.description = payload.get("description") or None
    if "default_days" in payload:
        template.default_days = payload.get("default_days")
    if payload.get("tasks") is not None:
        # delete-orphan cascade drops the old rows.
        template.tasks = _build_tasks(payload["tasks"])
    template.updated_at = _utcnow()
    db.commit()
    db.refresh(template)
    return template


def delete_template(db: Session, template: ProjectTemplate) -> None:
    db.delete(template)
    db.commit()


def apply_template(
    db: Session,
    project: Project,
    template: ProjectTemplate,
    *,
    today: date | None = None,
) -> list[Task]:
    """Copy the template's tasks into ``project``'s backlog.

    ``due_date`` is ``today + days_offset``; an empty or zero offset leaves
    the task without a due date. New tasks go after whatever is already in
    the backlog, in template order.
    """

    base = today or local_today()
    start = db.execute(
        select(func.max(Task.sort_order)).where(Task.project_id == project.id, Task.status == "backlog")
    ).scalar()
    start = 0 if start is None else int(start) + 1
    now = _utcnow()
    created: list[Task] = []
    for index, item in enumerate(sorted(template.tasks, key=lambda t: (t.sort_order, t.id or 0))):
        due = (base + timedelta(days=item.days_offset)).isoformat() if item.days_offset else None
        task = Task(
            project_id=project.id,
            title=item.title,
            description=item.description,
            status="backlog",
            priority=item.priority or "medium",
            due_date=due,
            estimated_hours=item.estimated_hours,
            sort_order=start + index,
            created_at=now,
            updated_at=now,
        )
        db.add(task)
        created.append(task)
    db.commit()
    for task in created:
        db.refresh(task)
    logger.info(
        "template.applied",
        extra={"extra_data": {"template_id": template.id, "project_id": project.id, "tasks": len(created)}},
    )
    return created
