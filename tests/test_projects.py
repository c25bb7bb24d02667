"""Tests for clients, projects, quick creation and templates."""

import io
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
from studio.crud.clients import (
    add_client_document,
    create_client,
    delete_client,
    get_client_document,
    list_client_documents,
    list_clients,
)
from studio.crud.projects import create_project, delete_project, get_project, list_projects, quick_create_project
from studio.crud.tasks import create_task, list_tasks
from studio.crud.templates import apply_template, create_template, update_template
from studio.crud.timesheet import create_manual_entry, get_entry
from studio.services.briefing import build_briefing


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
def client(db_session):
    return create_client(db_session, {"name": "Padaria Aurora", "email": "contato@aurora.com"})


def test_clients_are_listed_by_name_and_searchable(db_session):
    create_client(db_session, {"name": "zeta Studio"})
    create_client(db_session, {"name": "Alfa Cafés", "trading_name": "Alfa"})
    names = [c.name for c in list_clients(db_session)]
    assert names == ["Alfa Cafés", "zeta Studio"]
    assert [c.name for c in list_clients(db_session, search="alfa")] == ["Alfa Cafés"]
    with pytest.raises(ValueError):
        create_client(db_session, {"name": "  "})


def test_client_with_projects_cannot_be_deleted(db_session, client):
    create_project(db_session, {"name": "Rebranding", "client_id": client.id})
    with pytest.raises(ValueError):
        delete_client(db_session, client)


def test_client_documents_round_trip(db_session, client, tmp_path, monkeypatch):
    monkeypatch.setattr("studio.services.storage.settings.DATA_DIR", tmp_path)
    record = add_client_document(db_session, client, "contrato.pdf", "application/pdf", io.BytesIO(b"%PDF-1.4"))
    assert record["filename"] == "contrato.pdf"
    assert "storage_filename" not in record
    assert [doc["id"] for doc in list_client_documents(client)] == [record["id"]]
    stored, path = get_client_document(client, record["id"])
    assert path.read_bytes() == b"%PDF-1.4"


def test_project_requires_client_and_valid_dates(db_session, client):
    with pytest.raises(ValueError):
        create_project(db_session, {"name": "Sem cliente"})
    with pytest.raises(ValueError):
        create_project(
            db_session,
            {"name": "Datas", "client_id": client.id, "start_date": "2024-06-10", "end_date": "2024-06-01"},
        )
    project = create_project(db_session, {"name": "Site", "client_id": client.id, "budget": "1500.50"})
    assert project.status == "draft"
    assert project.budget == 1500.5
    assert project.client_name == "Padaria Aurora"


def test_projects_filter_by_status_and_client(db_session, client):
    other = create_client(db_session, {"name": "Outro"})
    create_project(db_session, {"name": "A", "client_id": client.id, "status": "active"})
    create_project(db_session, {"name": "B", "client_id": client.id})
    create_project(db_session, {"name": "C", "client_id": other.id, "status": "active"})
    assert {p.name for p in list_projects(db_session, status="active")} == {"A", "C"}
    assert {p.name for p in list_projects(db_session, client_id=client.id)} == {"A", "B"}
    with pytest.raises(ValueError):
        list_projects(db_session, status="archived")


def test_quick_create_with_drive_briefing_and_template(db_session, client):
    template = create_template(
        db_session,
        {"name": "Identidade", "tasks": [{"title": "Kickoff", "priority": "high"}, {"title": "Logo", "days_offset": 5}]},
    )
    briefing = build_briefing(drive_link="https://drive.google.com/file/d/abc")
    project = quick_create_project(
        db_session,
        name="Marca Aurora",
        client_id=client.id,
        nicho_mercado="Alimentação",
        briefing=briefing,
        template_id=template.id,
    )
    assert project.status == "draft"
    assert project.briefing_inicial == "[Link do Drive]: https://drive.google.com/file/d/abc"
    assert [t.title for t in list_tasks(db_session, project_id=project.id)] == ["Kickoff", "Logo"]

    with pytest.raises(ValueError):
        quick_create_project(db_session, name="X", client_id=client.id, nicho_mercado=" ")


def test_briefing_sources():
    assert build_briefing(text="  Uma marca acolhedora ") == "Uma marca acolhedora"
    assert build_briefing(upload=("briefing.txt", "text/plain", "Olá".encode("utf-8"))) == "Olá"
    placeholder = build_briefing(upload=("briefing.pdf", "application/pdf", b"%PDF"), text="ignored")
    assert placeholder.startswith("[Arquivo briefing.pdf]")
    assert build_briefing() is None
    with pytest.raises(ValueError):
        build_briefing(upload=("briefing.png", "image/png", b"\x89PNG"))
    with pytest.raises(ValueError):
        build_briefing(drive_link="ftp://example.com/x")


def test_apply_template_sets_due_dates_from_offsets(db_session, client):
    project = create_project(db_session, {"name": "Campanha", "client_id": client.id})
    create_task(db_session, {"project_id": project.id, "title": "Já existente"})
    template = create_template(
        db_session,
        {
            "name": "Campanha padrão",
            "tasks": [
                {"title": "Briefing", "days_offset": 0},
                {"title": "Conceito", "days_offset": 3, "estimated_hours": 6},
                {"title": "Entrega", "days_offset": 10, "priority": "urgent"},
            ],
        },
    )
    created = apply_template(db_session, project, template, today=date(2024, 3, 1))

    assert [t.title for t in created] == ["Briefing", "Conceito", "Entrega"]
    assert all(t.status == "backlog" for t in created)
    assert [t.due_date for t in created] == [None, "2024-03-04", "2024-03-11"]
    assert [t.sort_order for t in created] == [1, 2, 3]
    assert created[1].estimated_hours == 6
    assert created[2].priority == "urgent"


def test_update_template_replaces_tasks(db_session):
    template = create_template(db_session, {"name": "Base", "tasks": [{"title": "Um"}, {"title": "Dois"}]})
    template = update_template(db_session, template, {"tasks": [{"title": "Três"}]})
    assert [t.title for t in template.tasks] == ["Três"]
    with pytest.raises(ValueError):
        update_template(db_session, template, {"tasks": [{"title": "Ruim", "priority": "whenever"}]})


def test_delete_project_keeps_time_history(db_session, client):
    project = create_project(db_session, {"name": "Efêmero", "client_id": client.id})
    task = create_task(db_session, {"project_id": project.id, "title": "Algo"})
    entry = create_manual_entry(db_session, 1, {"hours": 2, "task_id": task.id})
    assert entry.project_id == project.id

    delete_project(db_session, project)
    assert get_project(db_session, project.id) is None
    kept = get_entry(db_session, entry.id)
    assert kept is not None
    assert kept.project_id is None
    assert kept.task_id is None
