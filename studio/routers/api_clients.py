from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..crud.clients import (
    add_client_document,
    create_client,
    delete_client,
    delete_client_document,
    get_client,
    get_client_document,
    list_client_documents,
    list_clients,
    update_client,
)
from ..db.session import get_db
from ..deps.auth import get_current_user, require_permission
from ..schemas.client import ClientCreate, ClientDocument, ClientOut, ClientUpdate

router = APIRouter(prefix="/api/v1/clients", tags=["clients"], dependencies=[Depends(get_current_user)])
can_manage = require_permission("manage_clients")


def _document_to_schema(client_id: int, record: dict[str, object]) -> ClientDocument:
    payload = dict(record)
    payload["url"] = f"/api/v1/clients/{client_id}/documents/{payload.get('id')}"
    return ClientDocument.model_validate(payload)


def _client_to_schema(client) -> ClientOut:
    payload = ClientOut.model_validate(client, from_attributes=True)
    payload.project_count = len(client.projects or [])
    payload.documents = [_document_to_schema(client.id, record) for record in list_client_documents(client)]
    return payload


def _load(db: Session, client_id: int):
    client = get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Not found")
    return client


@router.get("", response_model=list[ClientOut])
def api_list_clients(q: str | None = None, db: Session = Depends(get_db)):
    return [_client_to_schema(client) for client in list_clients(db, search=q)]


@router.post("", response_model=ClientOut, status_code=201, dependencies=[Depends(can_manage)])
def api_create_client(payload: ClientCreate, db: Session = Depends(get_db)):
    try:
        client = create_client(db, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _client_to_schema(get_client(db, client.id) or client)


@router.get("/{client_id}", response_model=ClientOut)
def api_get_client(client_id: int, db: Session = Depends(get_db)):
    return _client_to_schema(_load(db, client_id))


@router.patch("/{client_id}", response_model=ClientOut, dependencies=[Depends(can_manage)])
def api_update_client(client_id: int, payload: ClientUpdate, db: Session = Depends(get_db)):
    client = _load(db, client_id)
    try:
        updated = update_client(db, client, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _client_to_schema(updated)


@router.delete("/{client_id}", dependencies=[Depends(can_manage)])
def api_delete_client(client_id: int, db: Session = Depends(get_db)):
    client = _load(db, client_id)
    try:
        delete_client(db, client)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"status": "deleted"}


@router.post(
    "/{client_id}/documents",
    response_model=ClientDocument,
    status_code=201,
    dependencies=[Depends(can_manage)],
)
def api_upload_document(client_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)):
    client = _load(db, client_id)
    try:
        record = add_client_document(db, client, file.filename or "documento", file.content_type, file.file)
    except ValueError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    finally:
        file.file.close()
    return _document_to_schema(client.id, record)


@router.get("/{client_id}/documents/{document_id}")
def api_download_document(client_id: int, document_id: str, db: Session = Depends(get_db)):
    client = _load(db, client_id)
    found = get_client_document(client, document_id)
    if not found:
        raise HTTPException(404, "Not found")
    record, path = found
    if not path.exists():
        raise HTTPException(404, "File missing")
    return FileResponse(
        path,
        media_type=str(record.get("content_type") or "application/octet-stream"),
        filename=str(record.get("filename") or path.name),
    )


@router.delete("/{client_id}/documents/{document_id}", dependencies=[Depends(can_manage)])
def api_delete_document(client_id: int, document_id: str, db: Session = Depends(get_db)):
    client = _load(db, client_id)
    if not delete_client_document(db, client, document_id):
        raise HTTPException(404, "Not found")
    return {"status": "deleted"}
