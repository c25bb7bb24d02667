from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    quick_create_project,
    update_project,
)
from ..crud.tasks import kanban_board
from ..crud.templates import apply_template, get_template
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..models.user import User
from ..schemas.project import ApplyTemplateRequest, ProjectCreate, ProjectDetail, ProjectOut, ProjectUpdate
from ..schemas.task import KanbanColumn, TaskOut
from ..services.briefing import build_briefing

router = APIRouter(prefix="/api/v1/projects", tags=["projects"], dependencies=[Depends(get_current_user)])
can_manage = require_permission("manage_projects")


def _project_to_schema(project, *, include_tasks: bool = False) -> ProjectOut | ProjectDetail:
    tasks = list(project.tasks or [])
    base = ProjectOut.model_validate(project, from_attributes=True).model_copy(
        update={
            "task_count": len(tasks),
            "done_count": sum(1 for t in tasks if t.status == "done"),
        }
    )
    if not include_tasks:
        return base
    detail = ProjectDetail(**base.model_dump())
    detail.tasks = [TaskOut.model_validate(task, from_attributes=True) for task in tasks]
    return detail


def _load(db: Session, project_id: int):
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Not found")
    return project


@router.get("", response_model=list[ProjectOut])
def api_list_projects(status: str | None = None, client_id: int | None = None, db: Session = Depends(get_db)):
    try:
        projects = list_projects(db, status=status, client_id=client_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return [_project_to_schema(project) for project in projects]


@router.post("", response_model=ProjectOut, status_code=201)
def api_create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    user: User = Depends(can_manage),
):
    try:
        project = create_project(db, payload.model_dump(exclude_unset=True), created_by=user.id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _project_to_schema(get_project(db, project.id) or project)


@router.post("/quick", response_model=ProjectOut, status_code=201)
async def api_quick_create_project(
    name: str = Form(...),
    client_id: int = Form(...),
    nicho_mercado: str = Form(...),
    briefing_text: str | None = Form(None),
    drive_link: str | None = Form(None),
    template_id: int | None = Form(None),
    briefing_file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    user: User = Depends(can_manage),
):
    """Short form: name, client and niche, plus a briefing as text, drive link or TXT/PDF/DOCX file."""

    upload = None
    if briefing_file is not None and briefing_file.filename:
        data = await briefing_file.read(settings.MAX_UPLOAD_BYTES + 1)
        await briefing_file.close()
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="Arquivo muito grande. Máximo 50MB.")
        upload = (briefing_file.filename, briefing_file.content_type, data)
    try:
        briefing = build_briefing(text=briefing_text, drive_link=drive_link, upload=upload)
        project = quick_create_project(
            db,
            name=name,
            client_id=client_id,
            nicho_mercado=nicho_mercado,
            briefing=briefing,
            template_id=template_id,
            created_by=user.id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _project_to_schema(get_project(db, project.id) or project)


@router.get("/{project_id}", response_model=ProjectDetail)
def api_get_project(project_id: int, db: Session = Depends(get_db)):
    return _project_to_schema(_load(db, project_id), include_tasks=True)


@router.patch("/{project_id}", response_model=ProjectOut, dependencies=[Depends(can_manage)])
def api_update_project(project_id: int, payload: ProjectUpdate, db: Session = Depends(get_db)):
    project = _load(db, project_id)
    try:
        updated = update_project(db, project, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _project_to_schema(get_project(db, updated.id) or updated)


@router.delete("/{project_id}", dependencies=[Depends(can_manage)])
def api_delete_project(project_id: int, db: Session = Depends(get_db)):
    delete_project(db, _load(db, project_id))
    return {"status": "deleted"}


@router.get("/{project_id}/kanban", response_model=list[KanbanColumn])
def api_project_kanban(project_id: int, db: Session = Depends(get_db)):
    _load(db, project_id)
    return kanban_board(db, project_id=project_id)


@router.post(
    "/{project_id}/apply-template",
    response_model=list[TaskOut],
    status_code=201,
    dependencies=[Depends(can_manage)],
)
def api_apply_template(project_id: int, payload: ApplyTemplateRequest, db: Session = Depends(get_db)):
    project = _load(db, project_id)
    template = get_template(db, payload.template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    return apply_template(db, project, template)
