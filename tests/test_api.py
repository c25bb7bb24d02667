"""HTTP-level tests: auth, permissions, error envelopes and the timer flow."""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from studio import app
from studio.db.session import Base, get_db
from studio.services.timer import TimerService, TimerStore, get_timer_service


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 5, 6, 13, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def client(tmp_path, clock):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    timers = TimerService(store=TimerStore(tmp_path / "timers"), clock=clock)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_timer_service] = lambda: timers
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _signup(client, email, password="segredo123", full_name=None):
    resp = client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": password, "full_name": full_name},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _bearer(client, email, password="segredo123"):
    resp = client.post("/api/v1/auth/token", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def test_signup_token_and_me(client):
    first = _signup(client, "Ana@Estudio.com.br", full_name="Ana")
    assert first["email"] == "ana@estudio.com.br"
    assert first["role_name"] == "admin"

    second = _signup(client, "bruno@estudio.com.br")
    assert second["role_name"] == "member"

    headers = _bearer(client, "ana@estudio.com.br")
    me = client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["full_name"] == "Ana"


def test_duplicate_signup_and_bad_credentials(client):
    _signup(client, "ana@estudio.com.br")
    dup = client.post("/api/v1/auth/signup", json={"email": "ana@estudio.com.br", "password": "x"})
    assert dup.status_code == 422

    bad = client.post("/api/v1/auth/token", json={"email": "ana@estudio.com.br", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json()["code"] == "http_error"


def test_api_requires_authentication(client):
    resp = client.get("/api/v1/clients")
    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == "http_error"
    assert body["message"] == "Authorization required"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_ui_redirects_to_login_without_session(client):
    resp = client.get("/dashboard", headers={"accept": "text/html"}, follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login?next=/dashboard"


def test_member_cannot_write_finance_or_templates(client):
    _signup(client, "ana@estudio.com.br")
    _signup(client, "bruno@estudio.com.br")
    admin = _bearer(client, "ana@estudio.com.br")
    member = _bearer(client, "bruno@estudio.com.br")

    entry = {"type": "income", "description": "Identidade visual", "amount": 2500}
    assert client.post("/api/v1/finance/entries", json=entry, headers=member).status_code == 403
    created = client.post("/api/v1/finance/entries", json=entry, headers=admin)
    assert created.status_code == 201
    assert created.json()["currency"] == "BRL"

    template = {"name": "Branding", "tasks": [{"title": "Kickoff"}]}
    assert client.post("/api/v1/templates", json=template, headers=member).status_code == 403
    assert client.post("/api/v1/templates", json=template, headers=admin).status_code == 201

    # Members still read finance data.
    listing = client.get("/api/v1/finance/entries", params={"period": "all"}, headers=member)
    assert listing.status_code == 200
    assert len(listing.json()) == 1


def test_clients_and_projects_round_trip(client):
    _signup(client, "ana@estudio.com.br")
    headers = _bearer(client, "ana@estudio.com.br")

    created = client.post("/api/v1/clients", json={"name": "Padaria Sol"}, headers=headers)
    assert created.status_code == 201
    client_id = created.json()["id"]

    project = client.post(
        "/api/v1/projects",
        json={"client_id": client_id, "name": "Rebranding", "nicho_mercado": "alimentos"},
        headers=headers,
    )
    assert project.status_code == 201
    assert project.json()["status"] == "draft"

    listing = client.get("/api/v1/projects", params={"client_id": client_id}, headers=headers)
    assert [p["name"] for p in listing.json()] == ["Rebranding"]

    blocked = client.delete(f"/api/v1/clients/{client_id}", headers=headers)
    assert blocked.status_code == 409

    missing = client.get("/api/v1/clients/9999", headers=headers)
    assert missing.status_code == 404


def test_validation_errors_use_the_envelope(client):
    _signup(client, "ana@estudio.com.br")
    headers = _bearer(client, "ana@estudio.com.br")
    resp = client.post(
        "/api/v1/finance/entries",
        json={"type": "gift", "description": "x", "amount": -1},
        headers=headers,
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "validation_error"
    fields = {tuple(err["loc"])[-1] for err in body["details"]["errors"]}
    assert {"type", "amount"} <= fields


def test_timer_checkout_saves_once(client, clock):
    _signup(client, "ana@estudio.com.br")
    headers = _bearer(client, "ana@estudio.com.br")

    started = client.post("/api/v1/timer/start", json={"activity_name": "Moodboard"}, headers=headers)
    assert started.status_code == 200
    assert started.json()["phase"] == "running"
    assert started.json()["categoria"] == "outros"

    clock.advance(minutes=42, seconds=10)
    pending = client.post("/api/v1/timer/checkout", headers=headers)
    assert pending.status_code == 200
    body = pending.json()
    assert body["phase"] == "pending_checkout"
    assert body["elapsed_display"] == "00:42:10"
    checkout_id = body["checkout_id"]

    wrong = client.post(
        "/api/v1/timer/checkout/confirm",
        params={"checkout_id": "nope"},
        json={"energia": 2, "satisfacao": 3},
        headers=headers,
    )
    assert wrong.status_code == 409

    confirmed = client.post(
        "/api/v1/timer/checkout/confirm",
        params={"checkout_id": checkout_id},
        json={"energia": 2, "satisfacao": 3, "observacoes": "fluiu bem"},
        headers=headers,
    )
    assert confirmed.status_code == 200
    result = confirmed.json()
    assert result["saved"] is True
    assert result["entry"]["duration_minutes"] == 42
    assert result["entry"]["hours"] == 0.7
    assert result["entry"]["checkout_id"] == checkout_id
    assert result["timer"]["phase"] == "idle"

    again = client.post(
        "/api/v1/timer/checkout/confirm",
        params={"checkout_id": checkout_id},
        json={"energia": 2, "satisfacao": 3},
        headers=headers,
    )
    assert again.status_code == 409

    entries = client.get("/api/v1/timesheet/entries", headers=headers)
    assert entries.status_code == 200
    assert len(entries.json()["entries"]) == 1
    assert entries.json()["total_hours"] == 0.7


def test_timer_short_checkout_and_invalid_transitions(client, clock):
    _signup(client, "ana@estudio.com.br")
    headers = _bearer(client, "ana@estudio.com.br")

    assert client.post("/api/v1/timer/pause", headers=headers).status_code == 409

    client.post("/api/v1/timer/start", json={"activity_name": "Call"}, headers=headers)
    clock.advance(seconds=20)
    client.post("/api/v1/timer/checkout", headers=headers)
    assert client.post("/api/v1/timer/start", json={"activity_name": "Outra"}, headers=headers).status_code == 409

    bad_answer = client.post(
        "/api/v1/timer/checkout/confirm",
        json={"energia": 5, "satisfacao": 1},
        headers=headers,
    )
    assert bad_answer.status_code == 422

    short = client.post(
        "/api/v1/timer/checkout/confirm",
        json={"energia": 1, "satisfacao": 1},
        headers=headers,
    )
    assert short.status_code == 200
    assert short.json()["saved"] is False
    assert short.json()["entry"] is None
    assert client.get("/api/v1/timer", headers=headers).json()["phase"] == "idle"


def test_session_login_renders_dashboard(client):
    _signup(client, "ana@estudio.com.br", full_name="Ana")
    resp = client.post(
        "/login",
        data={"email": "ana@estudio.com.br", "password": "segredo123", "next": "/dashboard"},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/dashboard"

    page = client.get("/dashboard")
    assert page.status_code == 200
    assert "text/html" in page.headers["content-type"]

    # The session cookie also authenticates the JSON API.
    me = client.get("/api/v1/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "ana@estudio.com.br"


def test_finance_report_endpoint_and_page(client):
    _signup(client, "ana@estudio.com.br")
    headers = _bearer(client, "ana@estudio.com.br")
    client.post(
        "/api/v1/finance/entries",
        json={"type": "income", "description": "Identidade visual", "amount": 2500},
        headers=headers,
    )
    client.post(
        "/api/v1/finance/entries",
        json={"type": "expense", "description": "Figma", "amount": 120.5, "category": "software"},
        headers=headers,
    )

    report = client.get("/api/v1/reports/finance", params={"period": "year"}, headers=headers)
    assert report.status_code == 200
    body = report.json()
    assert body["period"] == "year"
    assert body["summary"]["balance"] == 2379.5
    assert len(body["by_month"]) == 6
    assert body["by_month"][-1]["balance"] == 2379.5
    assert {row["category"] for row in body["by_category"]} == {"software", "other"}

    bad = client.get("/api/v1/reports/finance", params={"period": "week"}, headers=headers)
    assert bad.status_code == 422
    assert client.get("/api/v1/reports/finance").status_code == 401

    client.post("/login", data={"email": "ana@estudio.com.br", "password": "segredo123"}, follow_redirects=False)
    page = client.get("/finance")
    assert page.status_code == 200
    assert "Balanço mensal" in page.text
    assert "Por categoria" in page.text
