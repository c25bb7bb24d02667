from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.templates import create_template, delete_template, get_template, list_templates, update_template
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..models.user import User
from ..schemas.template import TemplateCreate, TemplateOut, TemplateUpdate

router = APIRouter(prefix="/api/v1/templates", tags=["templates"], dependencies=[Depends(get_current_user)])
can_manage = require_permission("manage_templates")


def _load(db: Session, template_id: int):
    template = get_template(db, template_id)
    if not template:
        raise HTTPException(404, "Not found")
    return template


@router.get("", response_model=list[TemplateOut])
def api_list_templates(db: Session = Depends(get_db)):
    return list_templates(db)


@router.post("", response_model=TemplateOut, status_code=201)
def api_create_template(payload: TemplateCreate, db: Session = Depends(get_db), user: User = Depends(can_manage)):
    try:
        template = create_template(db, payload.model_dump(), created_by=user.id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return get_template(db, template.id) or template


@router.get("/{template_id}", response_model=TemplateOut)
def api_get_template(template_id: int, db: Session = Depends(get_db)):
    return _load(db, template_id)


@router.patch("/{template_id}", response_model=TemplateOut, dependencies=[Depends(can_manage)])
def api_update_template(template_id: int, payload: TemplateUpdate, db: Session = Depends(get_db)):
    template = _load(db, template_id)
    data = payload.model_dump(exclude_unset=True)
    try:
        updated = update_template(db, template, data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return get_template(db, updated.id) or updated


@router.delete("/{template_id}", dependencies=[Depends(can_manage)])
def api_delete_template(template_id: int, db: Session = Depends(get_db)):
    delete_template(db, _load(db, template_id))
    return {"status": "deleted"}
