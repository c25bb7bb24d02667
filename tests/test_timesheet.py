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
from studio.crud.clients import create_client
from studio.crud.projects import create_project
from studio.crud.tasks import create_task, delete_task
from studio.crud.timesheet import (
    create_category,
    create_manual_entry,
    delete_category,
    get_entry,
    get_user_entry,
    list_categories,
    list_entries,
    seed_default_categories,
    total_hours,
    update_entry,
)
from studio.services.report_export import render_timesheet_pdf


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


@pytest.fixture()
def task(db_session):
    client = create_client(db_session, {"name": "Cliente"})
    project = create_project(db_session, {"name": "App", "client_id": client.id})
    return create_task(db_session, {"project_id": project.id, "title": "Protótipo"})


def test_manual_entry_defaults_and_validation(db_session, task):
    entry = create_manual_entry(db_session, 1, {"hours": "1.5", "task_id": task.id})
    assert entry.date == date.today().isoformat()
    assert entry.project_id == task.project_id
    assert entry.duration_minutes == 90
    for bad in (0, -1, "abc", None):
        with pytest.raises(ValueError):
            create_manual_entry(db_session, 1, {"hours": bad})
    with pytest.raises(ValueError):
        create_manual_entry(db_session, 1, {"hours": 1, "task_id": 999})


def test_listing_is_per_user_with_filters_and_total(db_session, task):
    create_manual_entry(db_session, 1, {"hours": 2, "date": "2024-05-01", "task_id": task.id})
    create_manual_entry(db_session, 1, {"hours": 1.25, "date": "2024-05-03"})
    create_manual_entry(db_session, 1, {"hours": 4, "date": "2024-06-01"})
    create_manual_entry(db_session, 2, {"hours": 8, "date": "2024-05-02"})

    may = list_entries(db_session, 1, date_from="2024-05-01", date_to="2024-05-31")
    assert [e.date for e in may] == ["2024-05-03", "2024-05-01"]
    assert total_hours(may) == 3.25
    assert [e.hours for e in list_entries(db_session, 1, task_id=task.id)] == [2]
    assert len(list_entries(db_session, 2)) == 1
    with pytest.raises(ValueError):
        list_entries(db_session, 1, date_from="2024-06-01", date_to="2024-05-01")


def test_entries_belong_to_their_owner(db_session):
    entry = create_manual_entry(db_session, 1, {"hours": 1})
    assert get_user_entry(db_session, 1, entry.id).id == entry.id
    with pytest.raises(PermissionError):
        get_user_entry(db_session, 2, entry.id)
    with pytest.raises(LookupError):
        get_user_entry(db_session, 1, 999)


def test_update_entry_checks_bio_levels(db_session):
    entry = create_manual_entry(db_session, 1, {"hours": 1})
    entry = update_entry(db_session, entry, {"activity_name": "Revisão", "energia": 2, "satisfacao": 3})
    assert (entry.activity_name, entry.energia, entry.satisfacao) == ("Revisão", 2, 3)
    with pytest.raises(ValueError):
        update_entry(db_session, entry, {"energia": 0})


def test_deleting_a_task_keeps_its_time(db_session, task):
    entry = create_manual_entry(db_session, 1, {"hours": 3, "task_id": task.id})
    delete_task(db_session, task)
    kept = get_entry(db_session, entry.id)
    assert kept.task_id is None
    assert kept.hours == 3


def test_categories_defaults_and_per_user_names(db_session):
    added = seed_default_categories(db_session)
    assert added == 6
    assert seed_default_categories(db_session) == 0

    mine = create_category(db_session, 1, {"name": "  Branding ", "icon": "✨"})
    assert mine.name == "branding"
    with pytest.raises(ValueError):
        create_category(db_session, 1, {"name": "branding"})
    with pytest.raises(ValueError):
        create_category(db_session, 1, {"name": "design"})
    # Another user may reuse the name.
    create_category(db_session, 2, {"name": "branding"})

    names_user_1 = [c.name for c in list_categories(db_session, 1)]
    assert "design" in names_user_1 and "branding" in names_user_1
    assert len(names_user_1) == 7

    default = next(c for c in list_categories(db_session, 1) if c.is_default)
    with pytest.raises(PermissionError):
        delete_category(db_session, 1, default.id)
    delete_category(db_session, 1, mine.id)
    assert "branding" not in [c.name for c in list_categories(db_session, 1)]


def test_pdf_export_renders_entries(db_session, task):
    create_manual_entry(db_session, 1, {"hours": 2, "date": "2024-05-01", "task_id": task.id, "activity_name": "Protótipo navegável"})
    create_manual_entry(db_session, 1, {"hours": 0.5, "date": "2024-05-02", "description": "Ajustes — finais"})
    pdf = render_timesheet_pdf(list_entries(db_session, 1), owner="Ana", date_from=date(2024, 5, 1), date_to=date(2024, 5, 31))
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500
