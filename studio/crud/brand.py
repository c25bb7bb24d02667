"""CRUD helpers for the brand documentation of a project."""

from __future__ import annotations

from datetime import datetime
from typing import IO

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.enums import ASSET_CATEGORIES, COLOR_CATEGORIES
from ..models.brand import BrandAsset, BrandColor, BrandFont, BrandGuideline, BrandStrategy, BrandVoice
from ..models.project import Project
from ..services.brand import cmyk_label, default_sample_text, google_font_url, normalize_hex, rgb_label
from ..services.storage import delete_stored, save_upload, stored_path

# Single-document sections and the model each one upserts into.
DOCUMENT_MODELS = {
    "strategy": BrandStrategy,
    "voice": BrandVoice,
    "guidelines": BrandGuideline,
}


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _bucket(project_id: int) -> tuple[object, ...]:
    return ("brand", project_id)


def _require_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise LookupError("project not found")
    return project


def get_document(db: Session, section: str, project_id: int):
    model = DOCUMENT_MODELS[section]
    return db.execute(select(model).where(model.project_id == project_id)).scalars().first()


def save_document(db: Session, section: str, project_id: int, payload: dict):
    """Insert or update the single ``section`` document of a project."""

    if section not in DOCUMENT_MODELS:
        raise LookupError(f"unknown brand section {section!r}")
    _require_project(db, project_id)
    model = DOCUMENT_MODELS[section]
    document = get_document(db, section, project_id)
    if document is None:
        document = model(project_id=project_id)
        db.add(document)
    elif model is BrandGuideline:
        document.version = (document.version or 1) + 1
    columns = set(model.__table__.columns.keys()) - {"id", "project_id", "updated_at", "version"}
    for key, value in payload.items():
        if key in columns:
            setattr(document, key, value)
    document.updated_at = _utcnow()
    db.commit()
    db.refresh(document)
    return document


# ---- Colours


def list_colors(db: Session, project_id: int) -> list[BrandColor]:
    stmt = (
        select(BrandColor)
        .where(BrandColor.project_id == project_id)
        .order_by(BrandColor.category, BrandColor.sort_order, BrandColor.id)
    )
    return db.execute(stmt).scalars().all()


def get_color(db: Session, color_id: int) -> BrandColor | None:
    return db.get(BrandColor, color_id)


def _apply_hex(color: BrandColor, value: str) -> None:
    color.hex_code = normalize_hex(value)
    color.rgb = rgb_label(color.hex_code)
    color.cmyk = cmyk_label(color.hex_code)


def create_color(db: Session, project_id: int, payload: dict) -> BrandColor:
    _require_project(db, project_id)
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    category = payload.get("category") or "primary"
    if category not in COLOR_CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(COLOR_CATEGORIES)}")
    count = db.execute(
        select(func.count(BrandColor.id)).where(BrandColor.project_id == project_id, BrandColor.category == category)
    ).scalar()
    color = BrandColor(
        project_id=project_id,
        category=category,
        name=name,
        usage_notes=(payload.get("usage_notes") or None),
        sort_order=int(count or 0),
        created_at=_utcnow(),
    )
    _apply_hex(color, payload.get("hex_code"))
    db.add(color)
    db.commit()
    db.refresh(color)
    return color


def update_color(db: Session, color: BrandColor, payload: dict) -> BrandColor:
    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        color.name = name
    if payload.get("hex_code") is not None:
        _apply_hex(color, payload["hex_code"])
    if "usage_notes" in payload:
        color.usage_notes = payload.get("usage_notes") or None
    db.commit()
    db.refresh(color)
    return color


def delete_color(db: Session, color: BrandColor) -> None:
    db.delete(color)
    db.commit()


# ---- Typography


def list_fonts(db: Session, project_id: int) -> list[BrandFont]:
    stmt = (
        select(BrandFont)
        .where(BrandFont.project_id == project_id)
        .order_by(BrandFont.role, BrandFont.sort_order, BrandFont.id)
    )
    return db.execute(stmt).scalars().all()


def get_font(db: Session, font_id: int) -> BrandFont | None:
    return db.get(BrandFont, font_id)


def create_font(db: Session, project_id: int, payload: dict) -> BrandFont:
    _require_project(db, project_id)
    role = (payload.get("role") or "").strip()
    family = (payload.get("family_name") or "").strip()
    if not role:
        raise ValueError("role is required")
    if not family:
        raise ValueError("family_name is required")
    weight = payload.get("weight") or "400"
    count = db.execute(
        select(func.count(BrandFont.id)).where(BrandFont.project_id == project_id, BrandFont.role == role)
    ).scalar()
    font = BrandFont(
        project_id=project_id,
        role=role,
        family_name=family,
        font_url=(payload.get("font_url") or google_font_url(family, weight)),
        weight=weight,
        style=payload.get("style") or "normal",
        fallback_stack=payload.get("fallback_stack") or "sans-serif",
        sample_text=(payload.get("sample_text") or "").strip() or default_sample_text(role),
        sort_order=int(count or 0),
        created_at=_utcnow(),
    )
    db.add(font)
    db.commit()
    db.refresh(font)
    return font


def update_font(db: Session, font: BrandFont, payload: dict) -> BrandFont:
    if "family_name" in payload:
        family = (payload.get("family_name") or "").strip()
        if not family:
            raise ValueError("family_name is required")
        font.family_name = family
    for field in ("weight", "style", "fallback_stack"):
        if payload.get(field):
            setattr(font, field, payload[field])
    if "sample_text" in payload:
        font.sample_text = (payload.get("sample_text") or "").strip() or default_sample_text(font.role)
    if payload.get("font_url"):
        font.font_url = payload["font_url"]
    elif "family_name" in payload or "weight" in payload:
        font.font_url = google_font_url(font.family_name, font.weight)
    db.commit()
    db.refresh(font)
    return font


def delete_font(db: Session, font: BrandFont) -> None:
    db.delete(font)
    db.commit()


# ---- Assets


def list_assets(db: Session, project_id: int, category: str | None = None) -> list[BrandAsset]:
    stmt = select(BrandAsset).where(BrandAsset.project_id == project_id)
    if category:
        stmt = stmt.where(BrandAsset.category == category)
    return db.execute(stmt.order_by(BrandAsset.category, BrandAsset.id)).scalars().all()


def list_client_assets(db: Session, client_id: int) -> list[BrandAsset]:
    stmt = (
        select(BrandAsset)
        .join(Project, Project.id == BrandAsset.project_id)
        .where(Project.client_id == client_id)
        .order_by(BrandAsset.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def get_asset(db: Session, asset_id: int) -> BrandAsset | None:
    return db.get(BrandAsset, asset_id)


def _clean_tags(tags: object) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return list(dict.fromkeys(str(tag).strip() for tag in tags if str(tag).strip()))


def create_asset(
    db: Session,
    project_id: int,
    *,
    name: str | None,
    category: str,
    filename: str,
    content_type: str | None,
    file_data: IO[bytes],
    tags: object = None,
) -> BrandAsset:
    _require_project(db, project_id)
    if category not in ASSET_CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(ASSET_CATEGORIES)}")
    stored = save_upload(_bucket(project_id), filename, file_data)
    asset = BrandAsset(
        project_id=project_id,
        category=category,
        name=(name or "").strip() or stored["filename"],
        file_name=stored["filename"],
        storage_filename=stored["storage_filename"],
        file_type=content_type,
        file_size=stored["size"],
        tags=_clean_tags(tags),
        created_at=_utcnow(),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def update_asset(db: Session, asset: BrandAsset, payload: dict) -> BrandAsset:
    if payload.get("name"):
        asset.name = payload["name"].strip()
    if payload.get("category"):
        if payload["category"] not in ASSET_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(ASSET_CATEGORIES)}")
        asset.category = payload["category"]
    if "tags" in payload:
        asset.tags = _clean_tags(payload.get("tags"))
    db.commit()
    db.refresh(asset)
    return asset


def asset_path(asset: BrandAsset):
    return stored_path(_bucket(asset.project_id), asset.storage_filename or "")


def delete_asset(db: Session, asset: BrandAsset) -> None:
    delete_stored(_bucket(asset.project_id), asset.storage_filename)
    db.delete(asset)
    db.commit()
