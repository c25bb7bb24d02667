"""Pydantic schemas for client payloads."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ClientBase(BaseModel):
    name: str
    trading_name: Optional[str] = None
    document_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    notes: Optional[str] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    trading_name: Optional[str] = None
    document_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    notes: Optional[str] = None


class ClientDocument(BaseModel):
    id: str
    filename: str
    content_type: Optional[str] = None
    size: Optional[int] = None
    uploaded_at: str
    url: Optional[str] = None

    class Config:
        extra = "ignore"


class ClientOut(ClientBase):
    id: int
    created_at: str
    updated_at: str
    project_count: int = 0
    documents: list[ClientDocument] = Field(default_factory=list)

    class Config:
        from_attributes = True
