"""Tests for brand documents, palette and typography."""

import io
import os
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from studio.db.session import Base
from studio.crud import brand as brand_crud
from studio.crud.clients import create_client
from studio.crud.projects import create_project, delete_project, get_project
from studio.schemas.brand import BrandStrategyIn, BrandVoiceIn
from studio.services.brand import cmyk_label, google_font_url, hex_to_cmyk, normalize_hex, rgb_label


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
    return create_project(db_session, {"name": "Marca", "client_id": client.id})


def test_hex_conversions():
    assert normalize_hex("1e40af") == "#1E40AF"
    assert rgb_label("#1E40AF") == "rgb(30, 64, 175)"
    assert hex_to_cmyk("#000000") == (0, 0, 0, 100)
    assert hex_to_cmyk("#FFFFFF") == (0, 0, 0, 0)
    assert cmyk_label("#FF0000") == "cmyk(0%, 100%, 100%, 0%)"
    with pytest.raises(ValueError):
        normalize_hex("#12345")


def test_google_font_url():
    assert google_font_url("Playfair Display", "700") == (
        "https://fonts.googleapis.com/css2?family=Playfair+Display:wght@700&display=swap"
    )
    assert google_font_url("Inter") == "https://fonts.googleapis.com/css2?family=Inter&display=swap"


def test_strategy_upsert_keeps_one_document(db_session, project):
    first = BrandStrategyIn(mission="Alimentar bem", values=[" afeto ", ""], archetypes=["caregiver", "caregiver"])
    saved = brand_crud.save_document(db_session, "strategy", project.id, first.model_dump())
    assert saved.values == ["afeto"]
    assert saved.archetypes == ["caregiver"]

    second = BrandStrategyIn(mission="Alimentar melhor", target_audience={"demographics": "25-40"})
    updated = brand_crud.save_document(db_session, "strategy", project.id, second.model_dump())
    assert updated.id == saved.id
    assert updated.mission == "Alimentar melhor"
    assert updated.target_audience["demographics"] == "25-40"

    with pytest.raises(ValidationError):
        BrandStrategyIn(archetypes=["wizard"])


def test_voice_tones_are_bounded(db_session, project):
    voice = brand_crud.save_document(db_session, "voice", project.id, BrandVoiceIn(tone_bold=80).model_dump())
    assert voice.tone_bold == 80
    assert voice.tone_formal == 50
    with pytest.raises(ValidationError):
        BrandVoiceIn(tone_playful=101)


def test_guidelines_version_increases_on_every_save(db_session, project):
    first = brand_crud.save_document(db_session, "guidelines", project.id, {"logo_usage": "Sempre centralizado"})
    assert first.version == 1
    second = brand_crud.save_document(db_session, "guidelines", project.id, {"notes": "Revisado"})
    assert second.version == 2
    assert second.logo_usage == "Sempre centralizado"


def test_save_document_for_missing_project(db_session):
    with pytest.raises(LookupError):
        brand_crud.save_document(db_session, "voice", 404, {})


def test_colors_append_within_category(db_session, project):
    a = brand_crud.create_color(db_session, project.id, {"name": "Azul", "hex_code": "#1e40af"})
    b = brand_crud.create_color(db_session, project.id, {"name": "Areia", "hex_code": "F5E6C8"})
    c = brand_crud.create_color(db_session, project.id, {"name": "Cinza", "hex_code": "#6B7280", "category": "neutral"})
    assert (a.sort_order, b.sort_order, c.sort_order) == (0, 1, 0)
    assert a.hex_code == "#1E40AF"
    assert a.rgb == "rgb(30, 64, 175)"
    assert b.cmyk.startswith("cmyk(")

    updated = brand_crud.update_color(db_session, b, {"hex_code": "#000000"})
    assert updated.cmyk == "cmyk(0%, 0%, 0%, 100%)"
    with pytest.raises(ValueError):
        brand_crud.create_color(db_session, project.id, {"name": "X", "hex_code": "blue"})
    with pytest.raises(ValueError):
        brand_crud.create_color(db_session, project.id, {"name": "X", "hex_code": "#000000", "category": "pastel"})


def test_fonts_default_url_and_sample(db_session, project):
    font = brand_crud.create_font(db_session, project.id, {"role": "heading", "family_name": "Inter", "weight": "700"})
    assert font.font_url.endswith("family=Inter:wght@700&display=swap")
    assert font.sample_text == "Título de Exemplo"
    custom = brand_crud.create_font(db_session, project.id, {"role": "display", "family_name": "Lora"})
    assert custom.sample_text == "Texto de exemplo"
    assert custom.fallback_stack == "sans-serif"

    font = brand_crud.update_font(db_session, font, {"family_name": "Roboto Slab"})
    assert "family=Roboto+Slab:wght@700" in font.font_url


def test_assets_are_stored_with_tags(db_session, project, tmp_path, monkeypatch):
    monkeypatch.setattr("studio.services.storage.settings.DATA_DIR", tmp_path)
    asset = brand_crud.create_asset(
        db_session,
        project.id,
        name="",
        category="logo",
        filename="logo.svg",
        content_type="image/svg+xml",
        file_data=io.BytesIO(b"<svg/>"),
        tags="principal, vetor, principal",
    )
    assert asset.name == "logo.svg"
    assert asset.file_size == 6
    assert asset.tags == ["principal", "vetor"]
    assert brand_crud.asset_path(asset).read_bytes() == b"<svg/>"
    assert [a.id for a in brand_crud.list_client_assets(db_session, project.client_id)] == [asset.id]

    brand_crud.delete_asset(db_session, asset)
    assert brand_crud.list_assets(db_session, project.id) == []


def test_deleting_project_removes_asset_files_after_commit(db_session, project, tmp_path, monkeypatch):
    monkeypatch.setattr("studio.services.storage.settings.DATA_DIR", tmp_path)
    asset = brand_crud.create_asset(
        db_session,
        project.id,
        name="Logo",
        category="logo",
        filename="logo.png",
        content_type="image/png",
        file_data=io.BytesIO(b"\x89PNG"),
    )
    path = brand_crud.asset_path(asset)
    project_id = project.id

    def broken_commit():
        raise OperationalError("DELETE FROM projects", {}, Exception("database is locked"))

    with monkeypatch.context() as patched:
        patched.setattr(db_session, "commit", broken_commit)
        with pytest.raises(OperationalError):
            delete_project(db_session, project)
    db_session.rollback()
    assert path.exists()
    assert [a.id for a in brand_crud.list_assets(db_session, project_id)] == [asset.id]

    delete_project(db_session, get_project(db_session, project_id))
    assert not path.exists()
    assert get_project(db_session, project_id) is None
    assert brand_crud.list_assets(db_session, project_id) == []
