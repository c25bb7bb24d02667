from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.finance import create_entry, delete_entry, get_entry, list_entries, set_status, update_entry
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..models.user import User
from ..schemas.finance import (
    FinanceSummary,
    FinancialEntryCreate,
    FinancialEntryOut,
    FinancialEntryUpdate,
    StatusChange,
)
from ..services.reporting import finance_summary

router = APIRouter(prefix="/api/v1/finance", tags=["finance"], dependencies=[Depends(get_current_user)])
can_manage = require_permission("manage_finances")


def _load(db: Session, entry_id: int):
    entry = get_entry(db, entry_id)
    if not entry:
        raise HTTPException(404, "Not found")
    return entry


def _filtered(db: Session, **filters):
    try:
        return list_entries(db, **filters)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/entries", response_model=list[FinancialEntryOut])
def api_list_entries(
    type: str | None = None,
    period: str = "month",
    status: str | None = None,
    client_id: int | None = None,
    project_id: int | None = None,
    db: Session = Depends(get_db),
):
    return _filtered(db, type=type, period=period, status=status, client_id=client_id, project_id=project_id)


@router.get("/summary", response_model=FinanceSummary)
def api_summary(period: str = "month", client_id: int | None = None, db: Session = Depends(get_db)):
    return finance_summary(_filtered(db, period=period, client_id=client_id))


@router.post("/entries", response_model=FinancialEntryOut, status_code=201)
def api_create_entry(
    payload: FinancialEntryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(can_manage),
):
    try:
        return create_entry(db, payload.model_dump(exclude_unset=True), created_by=user.id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/entries/{entry_id}", response_model=FinancialEntryOut)
def api_get_entry(entry_id: int, db: Session = Depends(get_db)):
    return _load(db, entry_id)


@router.patch("/entries/{entry_id}", response_model=FinancialEntryOut, dependencies=[Depends(can_manage)])
def api_update_entry(entry_id: int, payload: FinancialEntryUpdate, db: Session = Depends(get_db)):
    entry = _load(db, entry_id)
    try:
        return update_entry(db, entry, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/entries/{entry_id}/status", response_model=FinancialEntryOut, dependencies=[Depends(can_manage)])
def api_set_status(entry_id: int, payload: StatusChange, db: Session = Depends(get_db)):
    return set_status(db, _load(db, entry_id), payload.status)


@router.delete("/entries/{entry_id}", dependencies=[Depends(can_manage)])
def api_delete_entry(entry_id: int, db: Session = Depends(get_db)):
    delete_entry(db, _load(db, entry_id))
    return {"status": "deleted"}
