"""Brand sub-pages of a project: one page per section, plain form posts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.enums import ARCHETYPES, ASSET_CATEGORIES, COLOR_CATEGORIES, FONT_ROLE_SAMPLES, VOICE_TONES
from ..crud import brand as brand_crud
from ..crud.projects import get_project
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..deps.ui_auth import require_ui_session
from ..models.user import User
from ..schemas.brand import BrandGuidelineIn, BrandStrategyIn, BrandVoiceIn
from .ui import back, flash, render, require

router = APIRouter(prefix="/projects/{project_id}/brand", dependencies=[Depends(require_ui_session)])

SECTIONS = ("strategy", "voice", "guidelines", "colors", "typography", "assets")
DOCUMENT_FORMS = {
    "strategy": BrandStrategyIn,
    "voice": BrandVoiceIn,
    "guidelines": BrandGuidelineIn,
}
# Textareas holding one item per line.
LIST_FIELDS = {"values", "vocabulary_do", "vocabulary_dont", "taglines"}
AUDIENCE_FIELDS = ("demographics", "psychographics", "pain_points", "desires")


def _project_or_404(db: Session, project_id: int):
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Not found")
    return project


def _lines(value: str) -> list[str]:
    return [line.strip() for line in (value or "").splitlines() if line.strip()]


def _document_payload(section: str, form) -> dict:
    fields = DOCUMENT_FORMS[section].model_fields
    payload: dict = {}
    for name in fields:
        if name == "archetypes":
            payload[name] = form.getlist("archetypes")
        elif name == "target_audience":
            payload[name] = {key: form.get(f"target_audience.{key}", "") for key in AUDIENCE_FIELDS}
        elif name in LIST_FIELDS:
            payload[name] = _lines(form.get(name, ""))
        elif name in form:
            payload[name] = form.get(name) or None
    return payload


@router.get("/{section}", response_class=HTMLResponse)
def brand_page(
    request: Request,
    project_id: int,
    section: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if section not in SECTIONS:
        raise HTTPException(404, "Not found")
    project = _project_or_404(db, project_id)
    context = {
        "project": project,
        "brand_section": section,
        "sections": SECTIONS,
        "document": brand_crud.get_document(db, section, project.id) if section in DOCUMENT_FORMS else None,
        "colors": brand_crud.list_colors(db, project.id) if section == "colors" else [],
        "fonts": brand_crud.list_fonts(db, project.id) if section == "typography" else [],
        "assets": brand_crud.list_assets(db, project.id) if section == "assets" else [],
        "archetypes": ARCHETYPES,
        "voice_tones": VOICE_TONES,
        "color_categories": COLOR_CATEGORIES,
        "font_roles": list(FONT_ROLE_SAMPLES),
        "asset_categories": ASSET_CATEGORIES,
        "can_manage": user.has_permission("manage_projects"),
    }
    return render(request, "brand.html", user, context)


@router.post("/{section}")
async def brand_save_document(
    request: Request,
    project_id: int,
    section: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if section not in DOCUMENT_FORMS:
        raise HTTPException(404, "Not found")
    require(user, "manage_projects")
    _project_or_404(db, project_id)
    form = await request.form()
    try:
        payload = DOCUMENT_FORMS[section].model_validate(_document_payload(section, form))
    except ValidationError as exc:
        flash(request, "; ".join(err["msg"] for err in exc.errors()), "error")
        return back(f"/projects/{project_id}/brand/{section}")
    brand_crud.save_document(db, section, project_id, payload.model_dump())
    flash(request, "Alterações salvas")
    return back(f"/projects/{project_id}/brand/{section}")


@router.post("/colors/add")
def brand_add_color(
    request: Request,
    project_id: int,
    name: str = Form(""),
    hex_code: str = Form(""),
    category: str = Form("primary"),
    usage_notes: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    _project_or_404(db, project_id)
    try:
        brand_crud.create_color(
            db, project_id, {"name": name, "hex_code": hex_code, "category": category, "usage_notes": usage_notes}
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(f"/projects/{project_id}/brand/colors")


@router.post("/colors/{color_id}/delete")
def brand_delete_color(
    request: Request,
    project_id: int,
    color_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    color = brand_crud.get_color(db, color_id)
    if not color or color.project_id != project_id:
        raise HTTPException(404, "Not found")
    brand_crud.delete_color(db, color)
    return back(f"/projects/{project_id}/brand/colors")


@router.post("/typography/add")
def brand_add_font(
    request: Request,
    project_id: int,
    role: str = Form(""),
    family_name: str = Form(""),
    weight: str = Form("400"),
    style: str = Form("normal"),
    fallback_stack: str = Form(""),
    font_url: str = Form(""),
    sample_text: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    _project_or_404(db, project_id)
    try:
        brand_crud.create_font(
            db,
            project_id,
            {
                "role": role,
                "family_name": family_name,
                "weight": weight,
                "style": style,
                "fallback_stack": fallback_stack,
                "font_url": font_url.strip() or None,
                "sample_text": sample_text,
            },
        )
    except ValueError as exc:
        flash(request, str(exc), "error")
    return back(f"/projects/{project_id}/brand/typography")


@router.post("/typography/{font_id}/delete")
def brand_delete_font(
    request: Request,
    project_id: int,
    font_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    font = brand_crud.get_font(db, font_id)
    if not font or font.project_id != project_id:
        raise HTTPException(404, "Not found")
    brand_crud.delete_font(db, font)
    return back(f"/projects/{project_id}/brand/typography")


@router.post("/assets/add")
def brand_add_asset(
    request: Request,
    project_id: int,
    file: UploadFile = File(...),
    name: str = Form(""),
    category: str = Form("other"),
    tags: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    _project_or_404(db, project_id)
    try:
        brand_crud.create_asset(
            db,
            project_id,
            name=name,
            category=category,
            filename=file.filename or "arquivo",
            content_type=file.content_type,
            file_data=file.file,
            tags=tags,
        )
        flash(request, "Arquivo enviado")
    except ValueError as exc:
        flash(request, str(exc), "error")
    finally:
        file.file.close()
    return back(f"/projects/{project_id}/brand/assets")


@router.post("/assets/{asset_id}/delete")
def brand_delete_asset(
    request: Request,
    project_id: int,
    asset_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require(user, "manage_projects")
    asset = brand_crud.get_asset(db, asset_id)
    if not asset or asset.project_id != project_id:
        raise HTTPException(404, "Not found")
    brand_crud.delete_asset(db, asset)
    return back(f"/projects/{project_id}/brand/assets")
