from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.timesheet import efficiency_rows
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.finance import FinanceReport
from ..services.reporting import (
    dashboard_kpis,
    efficiency_heatmap,
    finance_report,
    hours_per_week,
    projects_by_status,
)

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get("/dashboard")
def api_dashboard(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {
        "kpis": dashboard_kpis(db, user_id=user.id),
        "projects_by_status": projects_by_status(db),
        "hours_per_week": hours_per_week(db, user_id=user.id),
    }


@router.get("/efficiency")
def api_efficiency(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return efficiency_heatmap(efficiency_rows(db, user.id))


@router.get("/finance", response_model=FinanceReport, dependencies=[Depends(get_current_user)])
def api_finance_report(period: str = "month", db: Session = Depends(get_db)):
    try:
        return finance_report(db, period=period)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
