"""Tests for the activity timer and its checkout hand-off."""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from studio.crud.clients import create_client
from studio.crud.projects import create_project, delete_project
from studio.crud.tasks import create_task, delete_task
from studio.db.session import Base
from studio.models.time_entry import TimeEntry
from studio.services.timecalc import format_duration
import studio.services.timer as timer_module
from studio.services.timer import (
    IDLE,
    PAUSED,
    PENDING_CHECKOUT,
    RUNNING,
    TimerService,
    TimerStateError,
    TimerStore,
)

USER_ID = 7


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 6, 13, 0, 0, tzinfo=timezone.utc)

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


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
def clock():
    return FakeClock()


@pytest.fixture()
def timer(tmp_path, clock):
    return TimerService(store=TimerStore(tmp_path / "timers"), clock=clock)


def _entry_count(db_session) -> int:
    return db_session.execute(select(func.count(TimeEntry.id))).scalar()


def test_elapsed_is_derived_from_start_and_survives_pause(timer, clock):
    timer.start(USER_ID, "Wireframes", categoria="design")
    clock.advance(90)
    state = timer.state(USER_ID)
    assert state.phase == RUNNING
    assert state.elapsed(clock()) == 90

    timer.pause(USER_ID)
    clock.advance(600)
    state = timer.state(USER_ID)
    assert state.phase == PAUSED
    assert state.elapsed(clock()) == 90

    timer.resume(USER_ID)
    clock.advance(30)
    assert timer.state(USER_ID).elapsed(clock()) == 120


def test_state_is_persisted_for_a_fresh_service(tmp_path, timer, clock):
    timer.start(USER_ID, "Reunião de kickoff", project_id=3)
    clock.advance(45)

    reloaded = TimerService(store=TimerStore(tmp_path / "timers"), clock=clock)
    snapshot = reloaded.snapshot(reloaded.state(USER_ID))
    assert snapshot["phase"] == RUNNING
    assert snapshot["activity_name"] == "Reunião de kickoff"
    assert snapshot["project_id"] == 3
    assert snapshot["elapsed_display"] == "00:00:45"


def test_idle_snapshot_and_invalid_transitions(timer):
    assert timer.snapshot(timer.state(USER_ID))["phase"] == IDLE
    with pytest.raises(TimerStateError):
        timer.pause(USER_ID)
    with pytest.raises(TimerStateError):
        timer.request_checkout(USER_ID)
    with pytest.raises(ValueError):
        timer.start(USER_ID, "   ")


def test_start_defaults_category(timer):
    state = timer.start(USER_ID, "Pesquisa de mercado")
    assert state.categoria == "outros"


def test_checkout_inserts_exactly_one_entry(db_session, timer, clock):
    timer.start(USER_ID, "Identidade visual", categoria="design")
    clock.advance(3 * 3600 + 125)
    pending = timer.request_checkout(USER_ID)
    assert pending.phase == PENDING_CHECKOUT
    assert pending.checkout_id

    # Time spent on the checkout form does not count.
    clock.advance(300)
    entry = timer.confirm_checkout(db_session, USER_ID, energia=3, satisfacao=2, observacoes="  Entregue  ")

    assert entry.duration_minutes == 182
    assert entry.hours == round((3 * 3600 + 125) / 3600, 2)
    assert entry.energia == 3
    assert entry.satisfacao == 2
    assert entry.description == "Entregue"
    assert entry.categoria == "design"
    assert entry.checkout_id == pending.checkout_id
    assert entry.start_time == "2024-05-06T13:00:00Z"
    assert entry.end_time == "2024-05-06T16:02:05Z"
    assert timer.state(USER_ID) is None

    with pytest.raises(TimerStateError):
        timer.confirm_checkout(db_session, USER_ID, energia=3, satisfacao=2)
    assert _entry_count(db_session) == 1


def test_replayed_checkout_is_rejected(db_session, timer, clock):
    timer.start(USER_ID, "Apresentação")
    clock.advance(600)
    pending = timer.request_checkout(USER_ID)
    timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=2)

    # The same pending document comes back, e.g. restored from a stale copy.
    timer.store.save(USER_ID, pending)
    with pytest.raises(TimerStateError, match="already recorded"):
        timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=2)
    assert _entry_count(db_session) == 1
    assert timer.state(USER_ID) is None


def test_short_timer_is_discarded(db_session, timer, clock):
    timer.start(USER_ID, "Email rápido")
    clock.advance(59)
    timer.request_checkout(USER_ID)
    assert timer.confirm_checkout(db_session, USER_ID, energia=1, satisfacao=1) is None
    assert _entry_count(db_session) == 0
    assert timer.state(USER_ID) is None


def test_cancel_checkout_resumes_running(timer, clock):
    timer.start(USER_ID, "Layout")
    clock.advance(200)
    timer.request_checkout(USER_ID)
    clock.advance(50)
    state = timer.cancel_checkout(USER_ID)
    assert state.phase == RUNNING
    assert state.checkout_id is None
    assert state.elapsed(clock()) == 200


def test_checkout_from_paused_keeps_frozen_time(db_session, timer, clock):
    timer.start(USER_ID, "Revisão")
    clock.advance(120)
    timer.pause(USER_ID)
    clock.advance(1000)
    timer.request_checkout(USER_ID)
    entry = timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=3)
    assert entry.duration_minutes == 2


def test_start_is_blocked_while_checkout_is_pending(timer, clock):
    timer.start(USER_ID, "Copy")
    clock.advance(120)
    timer.request_checkout(USER_ID)
    with pytest.raises(TimerStateError):
        timer.start(USER_ID, "Outra coisa")


def test_confirm_validates_answers_and_checkout_id(db_session, timer, clock):
    timer.start(USER_ID, "Moodboard")
    clock.advance(300)
    timer.request_checkout(USER_ID)
    with pytest.raises(ValueError):
        timer.confirm_checkout(db_session, USER_ID, energia=4, satisfacao=2)
    with pytest.raises(TimerStateError):
        timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=2, checkout_id="stale")
    # Still pending after the rejected attempts.
    assert timer.state(USER_ID).phase == PENDING_CHECKOUT


def test_timers_are_per_user(timer, clock):
    timer.start(USER_ID, "A")
    timer.start(USER_ID + 1, "B")
    timer.pause(USER_ID)
    assert timer.state(USER_ID).phase == PAUSED
    assert timer.state(USER_ID + 1).phase == RUNNING


def test_format_duration_pads_fields():
    assert format_duration(0) == "00:00:00"
    assert format_duration(3725) == "01:02:05"
    assert format_duration(-5) == "00:00:00"
    assert format_duration(100 * 3600) == "100:00:00"


@pytest.mark.parametrize("content", ["{}", "[]", '{"activity_name": "x", "start_time": "ontem", "date": "2024-05-06"}'])
def test_unreadable_state_file_reads_as_idle(timer, clock, content):
    timer.store.directory.mkdir(parents=True, exist_ok=True)
    (timer.store.directory / f"{USER_ID}.json").write_text(content, encoding="utf-8")

    assert timer.state(USER_ID) is None
    assert timer.snapshot(timer.state(USER_ID))["phase"] == IDLE

    # The broken document does not block a fresh start.
    state = timer.start(USER_ID, "Retomada")
    assert state.phase == RUNNING
    assert timer.state(USER_ID).activity_name == "Retomada"


def test_checkout_drops_links_deleted_while_running(db_session, timer, clock):
    client = create_client(db_session, {"name": "Cliente"})
    project = create_project(db_session, {"name": "Site", "client_id": client.id})
    task = create_task(db_session, {"project_id": project.id, "title": "Home"})

    timer.start(USER_ID, "Home", project_id=project.id, task_id=task.id)
    clock.advance(120)
    delete_task(db_session, task)
    timer.request_checkout(USER_ID)
    entry = timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=2)
    assert entry.task_id is None
    assert entry.project_id == project.id

    timer.start(USER_ID, "Ajustes", project_id=project.id)
    clock.advance(120)
    delete_project(db_session, project)
    timer.request_checkout(USER_ID)
    entry = timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=2)
    assert entry.project_id is None
    assert _entry_count(db_session) == 2


def test_failed_insert_keeps_checkout_pending(db_session, timer, clock, monkeypatch):
    timer.start(USER_ID, "Relatório")
    clock.advance(900)
    pending = timer.request_checkout(USER_ID)

    def broken_insert(db, payload):
        raise OperationalError("INSERT INTO time_entries", {}, Exception("database is locked"))

    monkeypatch.setattr(timer_module, "create_timer_entry", broken_insert)
    with pytest.raises(OperationalError):
        timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=3)
    state = timer.state(USER_ID)
    assert state.phase == PENDING_CHECKOUT
    assert state.checkout_id == pending.checkout_id
    assert _entry_count(db_session) == 0

    monkeypatch.undo()
    entry = timer.confirm_checkout(db_session, USER_ID, energia=2, satisfacao=3)
    assert entry.checkout_id == pending.checkout_id
    assert entry.duration_minutes == 15
    assert timer.state(USER_ID) is None
    assert _entry_count(db_session) == 1
