"""Timesheet page: the running timer, the checkout form and the entry list.

The timer buttons post plain forms so the page works without scripts;
``static/timer.js`` only keeps the clock ticking between reloads.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ..crud import projects as projects_crud
from ..crud import tasks as tasks_crud
from ..crud import timesheet as timesheet_crud
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..deps.ui_auth import require_ui_session
from ..models.user import User
from ..services.timecalc import local_today
from ..services.timer import PENDING_CHECKOUT, TimerService, TimerStateError, get_timer_service
from .ui import _optional_int, back, flash, render

router = APIRouter(prefix="/timesheet", dependencies=[Depends(require_ui_session)])


@router.get("", response_class=HTMLResponse)
def timesheet_page(
    request: Request,
    date_from: str = "",
    date_to: str = "",
    task_id: str = "",
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    try:
        entries = timesheet_crud.list_entries(
            db,
            user.id,
            task_id=_optional_int(task_id),
            date_from=date_from or None,
            date_to=date_to or None,
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
        entries = timesheet_crud.list_entries(db, user.id)
    state = timer.state(user.id)
    context = {
        "entries": entries,
        "total_hours": timesheet_crud.total_hours(entries),
        "categories": timesheet_crud.list_categories(db, user.id),
        "projects": projects_crud.list_projects(db),
        "tasks": [t for t in tasks_crud.list_tasks(db) if t.status != "done"],
        "timer": timer.snapshot(state),
        "pending_checkout": bool(state and state.phase == PENDING_CHECKOUT),
        "date_from": date_from,
        "date_to": date_to,
        "task_filter": _optional_int(task_id),
        "today": local_today().isoformat(),
    }
    return render(request, "timesheet.html", user, context)


@router.post("/entries")
def timesheet_add_entry(
    request: Request,
    hours: str = Form(""),
    date_value: str = Form("", alias="date"),
    task_id: str = Form(""),
    project_id: str = Form(""),
    activity_name: str = Form(""),
    categoria: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        timesheet_crud.create_manual_entry(
            db,
            user.id,
            {
                "hours": hours.replace(",", "."),
                "date": date_value,
                "task_id": _optional_int(task_id),
                "project_id": _optional_int(project_id),
                "activity_name": activity_name.strip(),
                "categoria": categoria,
                "description": description.strip(),
            },
        )
        flash(request, "Horas registradas")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


@router.post("/entries/{entry_id}/edit")
def timesheet_edit_entry(
    request: Request,
    entry_id: int,
    activity_name: str = Form(""),
    description: str = Form(""),
    categoria: str = Form(""),
    energia: str = Form(""),
    satisfacao: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        entry = timesheet_crud.get_user_entry(db, user.id, entry_id)
    except LookupError:
        raise HTTPException(404, "Not found")
    except PermissionError:
        raise HTTPException(403, "Not your entry")
    try:
        timesheet_crud.update_entry(
            db,
            entry,
            {
                "activity_name": activity_name,
                "description": description,
                "categoria": categoria,
                "energia": _optional_int(energia),
                "satisfacao": _optional_int(satisfacao),
            },
        )
        flash(request, "Registro atualizado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


@router.post("/entries/{entry_id}/delete")
def timesheet_delete_entry(
    request: Request,
    entry_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        entry = timesheet_crud.get_user_entry(db, user.id, entry_id)
    except LookupError:
        raise HTTPException(404, "Not found")
    except PermissionError:
        raise HTTPException(403, "Not your entry")
    timesheet_crud.delete_entry(db, entry)
    flash(request, "Registro removido")
    return back("/timesheet")


@router.post("/categories")
def timesheet_add_category(
    request: Request,
    name: str = Form(""),
    icon: str = Form(""),
    color: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        timesheet_crud.create_category(db, user.id, {"name": name, "icon": icon, "color": color})
        flash(request, "Categoria criada")
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


@router.post("/categories/{category_id}/delete")
def timesheet_delete_category(
    request: Request,
    category_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        timesheet_crud.delete_category(db, user.id, category_id)
    except LookupError:
        raise HTTPException(404, "Not found")
    except PermissionError as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


# ---- Timer controls


@router.post("/timer/start")
def timer_start(
    request: Request,
    activity_name: str = Form(""),
    categoria: str = Form(""),
    task_id: str = Form(""),
    project_id: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    task = tasks_crud.get_task(db, _optional_int(task_id)) if _optional_int(task_id) else None
    project = projects_crud.get_project(db, _optional_int(project_id)) if _optional_int(project_id) else None
    try:
        timer.start(
            user.id,
            activity_name,
            categoria=categoria,
            project_id=(task.project_id if task else None) or (project.id if project else None),
            task_id=task.id if task else None,
        )
    except (ValueError, TimerStateError) as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


@router.post("/timer/{action}")
def timer_action(
    request: Request,
    action: str,
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    handlers = {
        "pause": timer.pause,
        "resume": timer.resume,
        "checkout": timer.request_checkout,
        "cancel": timer.cancel_checkout,
    }
    handler = handlers.get(action)
    if handler is None:
        raise HTTPException(404, "Not found")
    try:
        handler(user.id)
    except TimerStateError as exc:
        flash(request, str(exc), "error")
    return back("/timesheet")


@router.post("/timer/checkout/confirm")
def timer_confirm(
    request: Request,
    energia: int = Form(...),
    satisfacao: int = Form(...),
    observacoes: str = Form(""),
    categoria: str = Form(""),
    checkout_id: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    try:
        entry = timer.confirm_checkout(
            db,
            user.id,
            energia=energia,
            satisfacao=satisfacao,
            observacoes=observacoes,
            categoria=categoria,
            checkout_id=checkout_id or None,
        )
    except (ValueError, TimerStateError) as exc:
        flash(request, str(exc), "error")
        return back("/timesheet")
    if entry is None:
        flash(request, "Menos de um minuto: nada foi registrado", "info")
    else:
        flash(request, f"Atividade registrada ({entry.duration_minutes} min)")
    return back("/timesheet")
