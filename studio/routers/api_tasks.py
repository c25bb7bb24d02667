from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.tasks import (
    complete_task,
    create_task,
    delete_task,
    get_task,
    kanban_board,
    list_tasks,
    move_task,
    update_task,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..schemas.task import KanbanColumn, TaskCreate, TaskMove, TaskOut, TaskUpdate

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"], dependencies=[Depends(get_current_user)])


def _load(db: Session, task_id: int):
    task = get_task(db, task_id)
    if not task:
        raise HTTPException(404, "Not found")
    return task


@router.get("", response_model=list[TaskOut])
def api_list_tasks(
    project_id: int | None = None,
    status: str | None = None,
    assignee_id: int | None = None,
    db: Session = Depends(get_db),
):
    try:
        return list_tasks(db, project_id=project_id, status=status, assignee_id=assignee_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/kanban", response_model=list[KanbanColumn])
def api_global_kanban(db: Session = Depends(get_db)):
    return kanban_board(db)


@router.post("", response_model=TaskOut, status_code=201)
def api_create_task(payload: TaskCreate, db: Session = Depends(get_db)):
    try:
        task = create_task(db, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return get_task(db, task.id) or task


@router.get("/{task_id}", response_model=TaskOut)
def api_get_task(task_id: int, db: Session = Depends(get_db)):
    return _load(db, task_id)


@router.patch("/{task_id}", response_model=TaskOut)
def api_update_task(task_id: int, payload: TaskUpdate, db: Session = Depends(get_db)):
    task = _load(db, task_id)
    try:
        return update_task(db, task, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/{task_id}/move", response_model=TaskOut)
def api_move_task(task_id: int, payload: TaskMove, db: Session = Depends(get_db)):
    task = _load(db, task_id)
    try:
        return move_task(db, task, payload.status, payload.position)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/{task_id}/complete", response_model=TaskOut)
def api_complete_task(task_id: int, db: Session = Depends(get_db)):
    return complete_task(db, _load(db, task_id))


@router.delete("/{task_id}")
def api_delete_task(task_id: int, db: Session = Depends(get_db)):
    delete_task(db, _load(db, task_id))
    return {"status": "deleted"}
