"""Brand documentation endpoints, nested under a project."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..crud import brand as crud
from ..crud.projects import get_project
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..schemas.brand import (
    BrandAssetOut,
    BrandColorIn,
    BrandColorOut,
    BrandColorUpdate,
    BrandFontIn,
    BrandFontOut,
    BrandFontUpdate,
    BrandGuidelineIn,
    BrandGuidelineOut,
    BrandStrategyIn,
    BrandStrategyOut,
    BrandVoiceIn,
    BrandVoiceOut,
)

router = APIRouter(
    prefix="/api/v1/projects/{project_id}/brand",
    tags=["brand"],
    dependencies=[Depends(get_current_user)],
)
can_manage = require_permission("manage_projects")

DOCUMENT_SCHEMAS = {
    "strategy": (BrandStrategyIn, BrandStrategyOut),
    "voice": (BrandVoiceIn, BrandVoiceOut),
    "guidelines": (BrandGuidelineIn, BrandGuidelineOut),
}


def _project(db: Session, project_id: int):
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return project


def _owned(item, project_id: int):
    if not item or item.project_id != project_id:
        raise HTTPException(404, "Not found")
    return item


def _asset_to_schema(asset) -> BrandAssetOut:
    payload = BrandAssetOut.model_validate(asset, from_attributes=True)
    payload.url = f"/api/v1/projects/{asset.project_id}/brand/assets/{asset.id}/file"
    return payload


def _get_document(db: Session, section: str, project_id: int):
    _project(db, project_id)
    document = crud.get_document(db, section, project_id)
    if document is None:
        # Nothing saved yet.
        return None
    return DOCUMENT_SCHEMAS[section][1].model_validate(document, from_attributes=True)


def _save_document(db: Session, section: str, project_id: int, payload):
    _project(db, project_id)
    try:
        document = crud.save_document(db, section, project_id, payload.model_dump())
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return DOCUMENT_SCHEMAS[section][1].model_validate(document, from_attributes=True)


@router.get("/strategy", response_model=BrandStrategyOut | None)
def api_get_strategy(project_id: int, db: Session = Depends(get_db)):
    return _get_document(db, "strategy", project_id)


@router.put("/strategy", response_model=BrandStrategyOut, dependencies=[Depends(can_manage)])
def api_save_strategy(project_id: int, payload: BrandStrategyIn, db: Session = Depends(get_db)):
    return _save_document(db, "strategy", project_id, payload)


@router.get("/voice", response_model=BrandVoiceOut | None)
def api_get_voice(project_id: int, db: Session = Depends(get_db)):
    return _get_document(db, "voice", project_id)


@router.put("/voice", response_model=BrandVoiceOut, dependencies=[Depends(can_manage)])
def api_save_voice(project_id: int, payload: BrandVoiceIn, db: Session = Depends(get_db)):
    return _save_document(db, "voice", project_id, payload)


@router.get("/guidelines", response_model=BrandGuidelineOut | None)
def api_get_guidelines(project_id: int, db: Session = Depends(get_db)):
    return _get_document(db, "guidelines", project_id)


@router.put("/guidelines", response_model=BrandGuidelineOut, dependencies=[Depends(can_manage)])
def api_save_guidelines(project_id: int, payload: BrandGuidelineIn, db: Session = Depends(get_db)):
    return _save_document(db, "guidelines", project_id, payload)


# ---- Colours


@router.get("/colors", response_model=list[BrandColorOut])
def api_list_colors(project_id: int, db: Session = Depends(get_db)):
    _project(db, project_id)
    return crud.list_colors(db, project_id)


@router.post("/colors", response_model=BrandColorOut, status_code=201, dependencies=[Depends(can_manage)])
def api_create_color(project_id: int, payload: BrandColorIn, db: Session = Depends(get_db)):
    _project(db, project_id)
    try:
        return crud.create_color(db, project_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/colors/{color_id}", response_model=BrandColorOut, dependencies=[Depends(can_manage)])
def api_update_color(project_id: int, color_id: int, payload: BrandColorUpdate, db: Session = Depends(get_db)):
    color = _owned(crud.get_color(db, color_id), project_id)
    try:
        return crud.update_color(db, color, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/colors/{color_id}", dependencies=[Depends(can_manage)])
def api_delete_color(project_id: int, color_id: int, db: Session = Depends(get_db)):
    crud.delete_color(db, _owned(crud.get_color(db, color_id), project_id))
    return {"status": "deleted"}


# ---- Typography


@router.get("/fonts", response_model=list[BrandFontOut])
def api_list_fonts(project_id: int, db: Session = Depends(get_db)):
    _project(db, project_id)
    return crud.list_fonts(db, project_id)


@router.post("/fonts", response_model=BrandFontOut, status_code=201, dependencies=[Depends(can_manage)])
def api_create_font(project_id: int, payload: BrandFontIn, db: Session = Depends(get_db)):
    _project(db, project_id)
    try:
        return crud.create_font(db, project_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/fonts/{font_id}", response_model=BrandFontOut, dependencies=[Depends(can_manage)])
def api_update_font(project_id: int, font_id: int, payload: BrandFontUpdate, db: Session = Depends(get_db)):
    font = _owned(crud.get_font(db, font_id), project_id)
    try:
        return crud.update_font(db, font, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/fonts/{font_id}", dependencies=[Depends(can_manage)])
def api_delete_font(project_id: int, font_id: int, db: Session = Depends(get_db)):
    crud.delete_font(db, _owned(crud.get_font(db, font_id), project_id))
    return {"status": "deleted"}


# ---- Assets


@router.get("/assets", response_model=list[BrandAssetOut])
def api_list_assets(project_id: int, category: str | None = None, db: Session = Depends(get_db)):
    _project(db, project_id)
    return [_asset_to_schema(asset) for asset in crud.list_assets(db, project_id, category)]


@router.post("/assets", response_model=BrandAssetOut, status_code=201, dependencies=[Depends(can_manage)])
def api_upload_asset(
    project_id: int,
    file: UploadFile = File(...),
    category: str = Form("other"),
    name: str | None = Form(None),
    tags: str | None = Form(None),
    db: Session = Depends(get_db),
):
    _project(db, project_id)
    try:
        asset = crud.create_asset(
            db,
            project_id,
            name=name,
            category=category,
            filename=file.filename or "asset",
            content_type=file.content_type,
            file_data=file.file,
            tags=tags,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    finally:
        file.file.close()
    return _asset_to_schema(asset)


@router.get("/assets/{asset_id}/file")
def api_download_asset(project_id: int, asset_id: int, db: Session = Depends(get_db)):
    asset = _owned(crud.get_asset(db, asset_id), project_id)
    path = crud.asset_path(asset)
    if not path.is_file():
        raise HTTPException(404, "File missing")
    return FileResponse(path, media_type=asset.file_type or "application/octet-stream", filename=asset.file_name or path.name)


@router.delete("/assets/{asset_id}", dependencies=[Depends(can_manage)])
def api_delete_asset(project_id: int, asset_id: int, db: Session = Depends(get_db)):
    crud.delete_asset(db, _owned(crud.get_asset(db, asset_id), project_id))
    return {"status": "deleted"}
