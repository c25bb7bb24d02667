import os
import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from studio.db.session import Base
from studio.crud.finance import create_entry, list_entries, period_start, set_status
from studio.services.reporting import (
    finance_by_category,
    finance_by_month,
    finance_report,
    finance_summary,
    month_window_start,
)

TODAY = date(2024, 8, 20)


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


def _entry(db_session, **overrides):
    payload = {"type": "income", "description": "Projeto", "amount": 100, "date": "2024-08-05"}
    payload.update(overrides)
    return create_entry(db_session, payload)


def test_period_start_boundaries():
    assert period_start("month", TODAY) == date(2024, 8, 1)
    assert period_start("quarter", TODAY) == date(2024, 7, 1)
    assert period_start("quarter", date(2024, 3, 31)) == date(2024, 1, 1)
    assert period_start("year", TODAY) == date(2024, 1, 1)
    assert period_start("all", TODAY) is None
    with pytest.raises(ValueError):
        period_start("week", TODAY)


def test_create_entry_validation_and_defaults(db_session):
    entry = _entry(db_session)
    assert entry.currency == "BRL"
    assert entry.status == "pending"
    with pytest.raises(ValueError):
        _entry(db_session, amount=0)
    with pytest.raises(ValueError):
        _entry(db_session, type="transfer")
    with pytest.raises(ValueError):
        _entry(db_session, type="expense", category="travel")
    with pytest.raises(ValueError):
        _entry(db_session, client_id=42)


def test_list_filters_by_type_and_period(db_session):
    _entry(db_session, description="agosto", date="2024-08-02")
    _entry(db_session, description="julho", date="2024-07-15")
    _entry(db_session, description="fevereiro", date="2024-02-10")
    _entry(db_session, description="despesa", type="expense", category="software", date="2024-08-03")

    month = [e.description for e in list_entries(db_session, period="month", today=TODAY)]
    assert sorted(month) == ["agosto", "despesa"]
    quarter = list_entries(db_session, type="income", period="quarter", today=TODAY)
    assert sorted(e.description for e in quarter) == ["agosto", "julho"]
    assert len(list_entries(db_session, type="income", period="year", today=TODAY)) == 3
    assert len(list_entries(db_session)) == 4


def test_summary_excludes_cancelled_and_tracks_pending(db_session):
    _entry(db_session, amount="1500.10", status="paid")
    _entry(db_session, amount=499.95)
    cancelled = _entry(db_session, amount=10_000, status="paid")
    set_status(db_session, cancelled, "cancelled")
    _entry(db_session, type="expense", category="personnel", amount=800, status="paid")
    _entry(db_session, type="expense", category="software", amount=50, status="cancelled")

    summary = finance_summary(list_entries(db_session))
    assert summary == {
        "total_income": 2000.05,
        "total_expenses": 800.0,
        "balance": 1200.05,
        "pending_income": 499.95,
    }


def test_month_window_start_crosses_year():
    assert month_window_start(TODAY, 6) == date(2024, 3, 1)
    assert month_window_start(date(2024, 2, 10), 6) == date(2023, 9, 1)
    assert month_window_start(TODAY, 1) == date(2024, 8, 1)


def test_finance_by_month_keeps_empty_months_and_skips_cancelled(db_session):
    _entry(db_session, amount=1000, date="2024-08-02", status="paid")
    _entry(db_session, amount=250.5, date="2024-08-15")
    _entry(db_session, type="expense", category="software", amount=300, date="2024-08-03")
    _entry(db_session, type="expense", category="marketing", amount=900, date="2024-06-10")
    _entry(db_session, amount=5000, date="2024-07-01", status="cancelled")
    _entry(db_session, amount=70, date="2024-01-31")

    rows = finance_by_month(list_entries(db_session), months=6, today=TODAY)
    assert [row["month"] for row in rows] == ["2024-03", "2024-04", "2024-05", "2024-06", "2024-07", "2024-08"]
    assert rows[0]["label"] == "3/24"
    by_month = {row["month"]: row for row in rows}
    assert by_month["2024-08"] == {
        "month": "2024-08",
        "label": "8/24",
        "income": 1250.5,
        "expense": 300.0,
        "balance": 950.5,
    }
    assert by_month["2024-07"]["income"] == 0.0
    assert by_month["2024-06"]["balance"] == -900.0
    assert by_month["2024-04"] == {"month": "2024-04", "label": "4/24", "income": 0.0, "expense": 0.0, "balance": 0.0}


def test_finance_by_category_groups_and_orders(db_session):
    _entry(db_session, amount=1000, status="paid")
    _entry(db_session, amount=200, category="marketing")
    _entry(db_session, type="expense", category="marketing", amount=350.25)
    _entry(db_session, type="expense", category="software", amount=99.9)
    _entry(db_session, type="expense", category="software", amount=10, status="cancelled")

    rows = finance_by_category(list_entries(db_session))
    assert [row["category"] for row in rows] == ["software", "marketing", "other"]
    software, marketing, other = rows
    assert software == {"category": "software", "income": 0.0, "expense": 99.9, "balance": -99.9}
    assert marketing == {"category": "marketing", "income": 200.0, "expense": 350.25, "balance": -150.25}
    assert other["income"] == 1000.0
    assert finance_by_category([]) == []


def test_finance_report_uses_period_for_split_and_window_for_trend(db_session):
    _entry(db_session, amount=400, date="2024-08-01")
    _entry(db_session, amount=600, date="2024-05-20")
    _entry(db_session, type="expense", category="operational", amount=100, date="2024-08-10")

    report = finance_report(db_session, period="month", today=TODAY)
    assert report["period"] == "month"
    assert report["summary"]["total_income"] == 400.0
    assert report["summary"]["balance"] == 300.0
    assert {row["category"] for row in report["by_category"]} == {"operational", "other"}
    assert sum(row["income"] for row in report["by_month"]) == 1000.0

    year = finance_report(db_session, period="year", today=TODAY)
    assert year["summary"]["total_income"] == 1000.0
    with pytest.raises(ValueError):
        finance_report(db_session, period="week", today=TODAY)
