import os
import sys
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from studio.db.session import Base
from studio.crud.clients import create_client
from studio.crud.finance import create_entry
from studio.crud.projects import create_project
from studio.crud.timesheet import create_manual_entry, efficiency_rows
from studio.models.time_entry import TimeEntry
from studio.services.reporting import (
    dashboard_kpis,
    efficiency_band,
    efficiency_heatmap,
    heatmap_grid,
    hours_per_week,
    projects_by_status,
)
from studio.services import timecalc
from studio.services.timecalc import compute_minutes, format_hours, format_minutes, local_today

TODAY = date(2024, 5, 31)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _timer_entry(start_time, energia, satisfacao):
    return TimeEntry(
        user_id=1,
        date=start_time[:10],
        hours=1,
        start_time=start_time,
        energia=energia,
        satisfacao=satisfacao,
        created_at=start_time,
    )


@pytest.mark.parametrize(
    "value, css_class",
    [(3.0, "ee-high"), (2.0, "ee-high"), (1.5, "ee-good"), (1.0, "ee-medium"), (0.5, "ee-low"), (0.33, "ee-stress")],
)
def test_efficiency_bands(value, css_class):
    assert efficiency_band(value)[0] == css_class


def test_heatmap_averages_per_weekday_and_local_hour():
    entries = [
        # Monday 10:xx in São Paulo (UTC-3)
        _timer_entry("2024-05-06T13:05:00Z", 1, 3),
        _timer_entry("2024-05-13T13:40:00Z", 3, 1),
        # Sunday 22:xx local, already Monday in UTC
        _timer_entry("2024-05-13T01:30:00Z", 2, 3),
        # Manual entries without bio answers are ignored
        TimeEntry(user_id=1, date="2024-05-06", hours=2),
    ]
    heatmap = efficiency_heatmap(entries, tz="America/Sao_Paulo")
    cells = {(c["weekday"], c["hour"]): c for c in heatmap["cells"]}
    assert set(cells) == {(1, 10), (0, 22)}

    monday = cells[(1, 10)]
    assert monday["count"] == 2
    assert monday["ee"] == round((3 + 1 / 3) / 2, 2)
    assert monday["css_class"] == "ee-good"
    assert monday["weekday_label"] == "Seg"
    assert cells[(0, 22)]["ee"] == 1.5

    grid = heatmap_grid(heatmap)
    assert len(grid) == 7 and all(len(row) == 24 for row in grid)
    assert grid[1][10] is monday
    assert grid[3][3] is None


def test_hours_per_week_windows(db_session):
    create_manual_entry(db_session, 1, {"hours": 2, "date": "2024-05-31"})
    create_manual_entry(db_session, 1, {"hours": 3, "date": "2024-05-25"})
    create_manual_entry(db_session, 1, {"hours": 1, "date": "2024-05-24"})
    create_manual_entry(db_session, 1, {"hours": 5, "date": "2024-05-03"})
    create_manual_entry(db_session, 2, {"hours": 9, "date": "2024-05-30"})

    weeks = hours_per_week(db_session, user_id=1, today=TODAY)
    assert [w["label"] for w in weeks] == ["Sem 1", "Sem 2", "Sem 3", "Sem 4"]
    assert weeks[-1]["start"] == "2024-05-25"
    assert weeks[-1]["end"] == "2024-05-31"
    assert [w["hours"] for w in weeks] == [0, 0, 1, 5]


def test_dashboard_kpis(db_session):
    client = create_client(db_session, {"name": "Cliente"})
    create_project(db_session, {"name": "A", "client_id": client.id, "status": "active"})
    create_project(db_session, {"name": "B", "client_id": client.id, "status": "active"})
    create_project(db_session, {"name": "C", "client_id": client.id})
    create_manual_entry(db_session, 1, {"hours": 6.5, "date": "2024-05-10"})
    create_manual_entry(db_session, 1, {"hours": 4, "date": "2024-04-30"})
    create_entry(db_session, {"type": "income", "description": "Parcela 1", "amount": 3000, "date": "2024-05-05", "status": "paid"})
    create_entry(db_session, {"type": "income", "description": "Parcela 2", "amount": 1200, "date": "2024-05-20"})
    create_entry(db_session, {"type": "income", "description": "Antiga", "amount": 999, "date": "2024-04-20"})
    create_entry(db_session, {"type": "expense", "description": "Figma", "amount": 80, "date": "2024-05-02", "status": "paid"})

    kpis = dashboard_kpis(db_session, user_id=1, today=TODAY)
    assert kpis["active_projects"] == 2
    assert kpis["hours_this_month"] == 6.5
    assert kpis["revenue_this_month"] == 4200.0
    assert kpis["pending_amount"] == 1200.0
    assert kpis["expenses_this_month"] == 80.0

    counts = projects_by_status(db_session)
    assert counts["active"] == 2 and counts["draft"] == 1 and counts["cancelled"] == 0


def test_time_formatting_helpers():
    assert compute_minutes("2024-05-01T09:00:00Z", "2024-05-01T10:45:30Z") == 105
    assert compute_minutes("2024-05-01T10:00:00Z", "2024-05-01T09:00:00Z") == 0
    assert format_minutes(135) == "2h 15m"
    assert format_minutes(0) == "0m"
    assert format_hours(1.5) == "1h 30m"
    assert format_hours(0.25) == "15m"
    assert format_hours(2) == "2h"


def test_efficiency_rows_cover_every_answered_entry(db_session):
    for index in range(600):
        db_session.add(_timer_entry(f"2024-01-01T13:{index % 60:02d}:00Z", 2, 2))
    db_session.add(_timer_entry("2024-01-02T13:00:00Z", 1, None))
    db_session.add(TimeEntry(user_id=1, date="2024-01-03", hours=2, created_at="2024-01-03T12:00:00Z"))
    other_user = _timer_entry("2024-01-04T13:00:00Z", 3, 3)
    other_user.user_id = 2
    db_session.add(other_user)
    db_session.commit()

    rows = efficiency_rows(db_session, 1)
    assert len(rows) == 600
    heatmap = efficiency_heatmap(rows, tz="America/Sao_Paulo")
    assert [(c["weekday"], c["hour"], c["count"]) for c in heatmap["cells"]] == [(1, 10, 600)]


def test_local_today_follows_configured_timezone(monkeypatch):
    for zone in ("America/Sao_Paulo", "Pacific/Kiritimati", "Pacific/Pago_Pago"):
        before = datetime.now(ZoneInfo(zone)).date()
        assert local_today(zone) in (before, datetime.now(ZoneInfo(zone)).date())
    monkeypatch.setattr(timecalc.settings, "TZ", "Pacific/Kiritimati")
    before = datetime.now(ZoneInfo("Pacific/Kiritimati")).date()
    assert local_today() in (before, datetime.now(ZoneInfo("Pacific/Kiritimati")).date())
