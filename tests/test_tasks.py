"""Tests for task CRUD and the kanban boards."""

import os
import sys
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
from studio.crud.tasks import complete_task, create_task, get_task, kanban_board, move_task, update_task


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
def project(db_session):
    client = create_client(db_session, {"name": "Cliente"})
    return create_project(db_session, {"name": "Site institucional", "client_id": client.id})


def _titles(column):
    return [task.title for task in column["tasks"]]


def test_board_has_five_columns_in_order(db_session, project):
    create_task(db_session, {"project_id": project.id, "title": "Wireframe", "status": "todo"})
    board = kanban_board(db_session, project_id=project.id)
    assert [c["status"] for c in board] == ["backlog", "todo", "in_progress", "review", "done"]
    assert _titles(board[1]) == ["Wireframe"]


def test_create_task_validates_fields(db_session, project):
    with pytest.raises(ValueError):
        create_task(db_session, {"project_id": project.id, "title": ""})
    with pytest.raises(ValueError):
        create_task(db_session, {"project_id": project.id, "title": "X", "priority": "critical"})
    with pytest.raises(ValueError):
        create_task(db_session, {"project_id": 999, "title": "X"})
    task = create_task(db_session, {"project_id": project.id, "title": "Logo"})
    assert task.status == "backlog"
    assert task.priority == "medium"


def test_move_to_same_column_is_a_noop(db_session, project):
    task = create_task(db_session, {"project_id": project.id, "title": "Copy", "status": "todo"})
    before = (task.sort_order, task.updated_at)
    moved = move_task(db_session, task, "todo")
    assert (moved.sort_order, moved.updated_at) == before


def test_move_appends_to_target_column(db_session, project):
    create_task(db_session, {"project_id": project.id, "title": "A", "status": "review"})
    task = create_task(db_session, {"project_id": project.id, "title": "B"})
    move_task(db_session, task, "review")
    board = kanban_board(db_session, project_id=project.id)
    assert _titles(board[3]) == ["A", "B"]
    with pytest.raises(ValueError):
        move_task(db_session, task, "archived")


def test_move_with_position_renumbers_column(db_session, project):
    for title in ("A", "B", "C"):
        create_task(db_session, {"project_id": project.id, "title": title, "status": "todo"})
    task = create_task(db_session, {"project_id": project.id, "title": "D"})
    move_task(db_session, task, "todo", position=1)
    board = kanban_board(db_session, project_id=project.id)
    assert _titles(board[1]) == ["A", "D", "B", "C"]
    assert [t.sort_order for t in board[1]["tasks"]] == [0, 1, 2, 3]


def test_complete_shortcut(db_session, project):
    task = create_task(db_session, {"project_id": project.id, "title": "Entrega"})
    complete_task(db_session, task)
    assert get_task(db_session, task.id).status == "done"


def test_global_board_sorts_by_priority_then_due_date(db_session, project):
    create_task(db_session, {"project_id": project.id, "title": "low", "priority": "low", "due_date": "2024-01-01"})
    create_task(db_session, {"project_id": project.id, "title": "urgent-late", "priority": "urgent", "due_date": "2024-09-01"})
    create_task(db_session, {"project_id": project.id, "title": "urgent-undated", "priority": "urgent"})
    create_task(db_session, {"project_id": project.id, "title": "urgent-early", "priority": "urgent", "due_date": "2024-02-01"})
    create_task(db_session, {"project_id": project.id, "title": "high", "priority": "high"})
    backlog = kanban_board(db_session)[0]
    assert _titles(backlog) == ["urgent-early", "urgent-late", "urgent-undated", "high", "low"]


def test_update_task_clears_due_date(db_session, project):
    task = create_task(db_session, {"project_id": project.id, "title": "Post", "due_date": "2024-04-10"})
    task = update_task(db_session, task, {"due_date": "", "estimated_hours": 3})
    assert task.due_date is None
    assert task.estimated_hours == 3
