"""HTTP surface of the activity timer. Every call returns the current timer state."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.projects import get_project
from ..crud.tasks import get_task
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.timesheet import CheckoutConfirm, CheckoutResult, TimeEntryOut, TimerOut, TimerStart
from ..services.timer import TimerService, TimerStateError, get_timer_service

router = APIRouter(prefix="/api/v1/timer", tags=["timer"])


def _conflict(exc: TimerStateError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


@router.get("", response_model=TimerOut)
def api_timer_state(
    user: User = Depends(get_current_user),
    timers: TimerService = Depends(get_timer_service),
):
    return timers.snapshot(timers.state(user.id))


@router.post("/start", response_model=TimerOut)
def api_timer_start(
    payload: TimerStart,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    timers: TimerService = Depends(get_timer_service),
):
    project_id = payload.project_id
    if payload.task_id is not None:
        task = get_task(db, payload.task_id)
        if not task:
            raise HTTPException(404, "Task not found")
        project_id = project_id or task.project_id
    if project_id is not None and not get_project(db, project_id):
        raise HTTPException(404, "Project not found")
    try:
        state = timers.start(
            user.id,
            payload.activity_name,
            categoria=payload.categoria,
            project_id=project_id,
            task_id=payload.task_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except TimerStateError as exc:
        raise _conflict(exc) from exc
    return timers.snapshot(state)


@router.post("/pause", response_model=TimerOut)
def api_timer_pause(user: User = Depends(get_current_user), timers: TimerService = Depends(get_timer_service)):
    try:
        return timers.snapshot(timers.pause(user.id))
    except TimerStateError as exc:
        raise _conflict(exc) from exc


@router.post("/resume", response_model=TimerOut)
def api_timer_resume(user: User = Depends(get_current_user), timers: TimerService = Depends(get_timer_service)):
    try:
        return timers.snapshot(timers.resume(user.id))
    except TimerStateError as exc:
        raise _conflict(exc) from exc


@router.post("/checkout", response_model=TimerOut)
def api_timer_request_checkout(
    user: User = Depends(get_current_user),
    timers: TimerService = Depends(get_timer_service),
):
    try:
        return timers.snapshot(timers.request_checkout(user.id))
    except TimerStateError as exc:
        raise _conflict(exc) from exc


@router.post("/checkout/cancel", response_model=TimerOut)
def api_timer_cancel_checkout(
    user: User = Depends(get_current_user),
    timers: TimerService = Depends(get_timer_service),
):
    try:
        return timers.snapshot(timers.cancel_checkout(user.id))
    except TimerStateError as exc:
        raise _conflict(exc) from exc


@router.post("/checkout/confirm", response_model=CheckoutResult)
def api_timer_confirm_checkout(
    payload: CheckoutConfirm,
    checkout_id: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    timers: TimerService = Depends(get_timer_service),
):
    try:
        entry = timers.confirm_checkout(
            db,
            user.id,
            energia=payload.energia,
            satisfacao=payload.satisfacao,
            observacoes=payload.observacoes,
            categoria=payload.categoria,
            checkout_id=checkout_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except TimerStateError as exc:
        raise _conflict(exc) from exc
    return CheckoutResult(
        saved=entry is not None,
        entry=TimeEntryOut.model_validate(entry, from_attributes=True) if entry is not None else None,
        timer=TimerOut(**timers.snapshot(None)),
    )
