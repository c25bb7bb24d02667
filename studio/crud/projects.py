"""CRUD helpers for projects, including the quick-create flow."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from ..core.enums import PROJECT_STATUSES
from ..models.brand import BrandAsset, BrandColor, BrandFont, BrandGuideline, BrandStrategy, BrandVoice
from ..models.client import Client
from ..models.finance import FinancialEntry
from ..models.project import Project
from ..models.task import Task
from ..models.time_entry import TimeEntry
from ..services.storage import delete_stored
from ..services.timecalc import parse_date
from .templates import apply_template, get_template

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("description", "cover_image", "nicho_mercado", "briefing_inicial")


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _check_status(value: str) -> str:
    if value not in PROJECT_STATUSES:
        raise ValueError(f"status must be one of {', '.join(PROJECT_STATUSES)}")
    return value


def _clean_date(field: str, value: object) -> str | None:
    if value in (None, ""):
        return None
    try:
        return parse_date(value).isoformat()
    except ValueError as exc:
        raise ValueError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc


def _clean_budget(value: object) -> float | None:
    if value in (None, ""):
        return None
    try:
        budget = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("budget must be a number") from exc
    if budget < 0:
        raise ValueError("budget cannot be negative")
    return budget


def _require_client(db: Session, client_id: object) -> int:
    if client_id in (None, ""):
        raise ValueError("client_id is required")
    if not db.get(Client, int(client_id)):
        raise ValueError("client not found")
    return int(client_id)


def _check_dates(project: Project) -> None:
    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise ValueError("end_date must not be before start_date")


def list_projects(
    db: Session,
    status: str | None = None,
    client_id: int | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[Project]:
    stmt = select(Project).options(selectinload(Project.tasks), selectinload(Project.client))
    if status:
        stmt = stmt.where(Project.status == _check_status(status))
    if client_id is not None:
        stmt = stmt.where(Project.client_id == client_id)
    stmt = stmt.order_by(desc(Project.created_at), desc(Project.id)).limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


def get_project(db: Session, project_id: int) -> Project | None:
    stmt = (
        select(Project)
        .options(selectinload(Project.tasks), selectinload(Project.client))
        .where(Project.id == project_id)
    )
    return db.execute(stmt).scalars().first()


def create_project(db: Session, payload: dict, created_by: int | None = None) -> Project:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    client_id = _require_client(db, payload.get("client_id"))
    template = None
    if payload.get("template_id"):
        template = get_template(db, payload["template_id"])
        if not template:
            raise ValueError("template not found")
    now = _utcnow()
    project = Project(
        client_id=client_id,
        name=name,
        status=_check_status(payload.get("status") or "draft"),
        start_date=_clean_date("start_date", payload.get("start_date")),
        end_date=_clean_date("end_date", payload.get("end_date")),
        budget=_clean_budget(payload.get("budget")),
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    for field in TEXT_FIELDS:
        setattr(project, field, (payload.get(field) or None))
    _check_dates(project)
    db.add(project)
    db.commit()
    db.refresh(project)
    if template is not None:
        apply_template(db, project, template)
    logger.info("project.created", extra={"extra_data": {"project_id": project.id, "client_id": client_id}})
    return project


def quick_create_project(
    db: Session,
    *,
    name: str,
    client_id: int,
    nicho_mercado: str,
    briefing: str | None = None,
    template_id: int | None = None,
    created_by: int | None = None,
) -> Project:
    """Create a ``draft`` project from the short form: name, client and market niche."""

    if not (nicho_mercado or "").strip():
        raise ValueError("nicho_mercado is required")
    return create_project(
        db,
        {
            "name": name,
            "client_id": client_id,
            "nicho_mercado": nicho_mercado.strip(),
            "briefing_inicial": briefing,
            "status": "draft",
            "template_id": template_id,
        },
        created_by=created_by,
    )


def update_project(db: Session, project: Project, payload: dict) -> Project:
    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        project.name = name
    if "client_id" in payload:
        project.client_id = _require_client(db, payload.get("client_id"))
    if payload.get("status"):
        project.status = _check_status(payload["status"])
    if "start_date" in payload:
        project.start_date = _clean_date("start_date", payload.get("start_date"))
    if "end_date" in payload:
        project.end_date = _clean_date("end_date", payload.get("end_date"))
    if "budget" in payload:
        project.budget = _clean_budget(payload.get("budget"))
    for field in TEXT_FIELDS:
        if field in payload:
            setattr(project, field, payload.get(field) or None)
    _check_dates(project)
    project.updated_at = _utcnow()
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project: Project) -> None:
    """Remove a project with its tasks and brand documents.

    Time and finance rows are history: they stay, unlinked from the project.
    """

    project_id = project.id
    for model in (TimeEntry, FinancialEntry):
        for row in db.execute(select(model).where(model.project_id == project_id)).scalars().all():
            row.project_id = None
            if model is TimeEntry:
                row.task_id = None
    stored = [
        asset.storage_filename
        for asset in db.execute(select(BrandAsset).where(BrandAsset.project_id == project_id)).scalars().all()
    ]
    for model in (Task, BrandStrategy, BrandVoice, BrandGuideline, BrandColor, BrandFont, BrandAsset):
        for row in db.execute(select(model).where(model.project_id == project_id)).scalars().all():
            db.delete(row)
    db.delete(project)
    db.commit()
    # Files go only once the rows are gone for good.
    for filename in stored:
        delete_stored(("brand", project_id), filename)
