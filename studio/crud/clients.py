"""CRUD helpers for clients and their uploaded documents."""

from __future__ import annotations

from datetime import datetime
from typing import IO

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..models.client import Client
from ..models.project import Project
from ..services.storage import delete_stored, save_upload, stored_path

CLIENT_FIELDS = ("trading_name", "document_number", "email", "phone", "notes")


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _bucket(client_id: int) -> tuple[object, ...]:
    return ("clients", client_id)


def _clean_address(value: object) -> dict | None:
    if value in (None, "", {}):
        return None
    if not isinstance(value, dict):
        raise ValueError("address must be an object")
    cleaned = {str(k): v for k, v in value.items() if v not in (None, "")}
    return cleaned or None


def list_clients(db: Session, search: str | None = None, limit: int = 500, offset: int = 0) -> list[Client]:
    stmt = select(Client).options(selectinload(Client.projects))
    term = (search or "").strip()
    if term:
        like = f"%{term}%"
        stmt = stmt.where(or_(Client.name.ilike(like), Client.trading_name.ilike(like), Client.email.ilike(like)))
    stmt = stmt.order_by(func.lower(Client.name)).limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


def get_client(db: Session, client_id: int) -> Client | None:
    stmt = select(Client).options(selectinload(Client.projects)).where(Client.id == client_id)
    return db.execute(stmt).scalars().first()


def create_client(db: Session, payload: dict) -> Client:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    now = _utcnow()
    client = Client(
        name=name,
        address=_clean_address(payload.get("address")),
        created_at=now,
        updated_at=now,
    )
    for field in CLIENT_FIELDS:
        setattr(client, field, (payload.get(field) or None))
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def update_client(db: Session, client: Client, payload: dict) -> Client:
    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        client.name = name
    if "address" in payload:
        client.address = _clean_address(payload.get("address"))
    for field in CLIENT_FIELDS:
        if field in payload:
            setattr(client, field, payload.get(field) or None)
    client.updated_at = _utcnow()
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, client: Client) -> None:
    project_count = db.execute(
        select(func.count(Project.id)).where(Project.client_id == client.id)
    ).scalar()
    if project_count:
        raise ValueError("client still has projects; remove or move them first")
    for record in client._document_records():
        delete_stored(_bucket(client.id), record.get("storage_filename"))
    db.delete(client)
    db.commit()


def _sanitized_document(record: dict[str, object]) -> dict[str, object]:
    clean = {k: v for k, v in record.items() if k != "storage_filename"}
    if clean.get("id") is not None:
        clean["id"] = str(clean["id"])
    return clean


def list_client_documents(client: Client) -> list[dict[str, object]]:
    return [_sanitized_document(record) for record in client._document_records()]


def add_client_document(
    db: Session,
    client: Client,
    filename: str,
    content_type: str | None,
    file_data: IO[bytes],
) -> dict[str, object]:
    stored = save_upload(_bucket(client.id), filename, file_data)
    record = {
        "id": stored["id"],
        "filename": stored["filename"],
        "content_type": content_type,
        "size": stored["size"],
        "uploaded_at": _utcnow(),
        "storage_filename": stored["storage_filename"],
    }
    records = client._document_records()
    records.append(record)
    client._store_document_records(records)
    db.commit()
    db.refresh(client)
    return _sanitized_document(record)


def get_client_document(client: Client, document_id: str):
    record = client.get_document_record(document_id)
    if not record:
        return None
    storage_name = record.get("storage_filename") or str(document_id)
    return _sanitized_document(record), stored_path(_bucket(client.id), storage_name)


def delete_client_document(db: Session, client: Client, document_id: str) -> bool:
    records = client._document_records()
    keep = [record for record in records if str(record.get("id")) != str(document_id)]
    if len(keep) == len(records):
        return False
    for record in records:
        if str(record.get("id")) == str(document_id):
            delete_stored(_bucket(client.id), record.get("storage_filename"))
    client._store_document_records(keep)
    db.commit()
    return True
