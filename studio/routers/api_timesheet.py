from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..crud.timesheet import (
    create_category,
    create_manual_entry,
    delete_category,
    delete_entry,
    get_user_entry,
    list_categories,
    list_entries,
    total_hours,
    update_entry,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.timesheet import (
    TimeCategoryCreate,
    TimeCategoryOut,
    TimeEntryCreate,
    TimeEntryOut,
    TimeEntryUpdate,
    TimesheetOut,
)
from ..services.report_export import render_timesheet_pdf
from ..services.timecalc import parse_date

router = APIRouter(prefix="/api/v1/timesheet", tags=["timesheet"])


def _load(db: Session, user: User, entry_id: int):
    try:
        return get_user_entry(db, user.id, entry_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


@router.get("/entries", response_model=TimesheetOut)
def api_list_entries(
    task_id: int | None = None,
    project_id: int | None = None,
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        entries = list_entries(
            db, user.id, task_id=task_id, project_id=project_id, date_from=date_from, date_to=date_to
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return TimesheetOut(
        entries=[TimeEntryOut.model_validate(entry, from_attributes=True) for entry in entries],
        total_hours=total_hours(entries),
    )


@router.post("/entries", response_model=TimeEntryOut, status_code=201)
def api_create_entry(
    payload: TimeEntryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return create_manual_entry(db, user.id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/entries/{entry_id}", response_model=TimeEntryOut)
def api_get_entry(entry_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return _load(db, user, entry_id)


@router.patch("/entries/{entry_id}", response_model=TimeEntryOut)
def api_update_entry(
    entry_id: int,
    payload: TimeEntryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = _load(db, user, entry_id)
    try:
        return update_entry(db, entry, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/entries/{entry_id}")
def api_delete_entry(entry_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    delete_entry(db, _load(db, user, entry_id))
    return {"status": "deleted"}


@router.get("/export.pdf")
def api_export_pdf(
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        start = parse_date(date_from)
        end = parse_date(date_to)
        entries = list_entries(db, user.id, date_from=start, date_to=end, limit=None)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    pdf_bytes = render_timesheet_pdf(
        sorted(entries, key=lambda e: (e.date, e.id)),
        owner=user.full_name or user.email,
        date_from=start,
        date_to=end,
    )
    filename = "timesheet.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/categories", response_model=list[TimeCategoryOut])
def api_list_categories(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return list_categories(db, user.id)


@router.post("/categories", response_model=TimeCategoryOut, status_code=201)
def api_create_category(
    payload: TimeCategoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return create_category(db, user.id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/categories/{category_id}")
def api_delete_category(category_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        delete_category(db, user.id, category_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return {"status": "deleted"}
