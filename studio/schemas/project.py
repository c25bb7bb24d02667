"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import PROJECT_STATUSES, pattern_for
from .task import TaskOut

STATUS_PATTERN = pattern_for(PROJECT_STATUSES)


class ProjectBase(BaseModel):
    client_id: int
    name: str
    description: Optional[str] = None
    status: str = Field(default="draft", pattern=STATUS_PATTERN)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    cover_image: Optional[str] = None
    nicho_mercado: Optional[str] = None
    briefing_inicial: Optional[str] = None


class ProjectCreate(ProjectBase):
    template_id: Optional[int] = None


class ProjectUpdate(BaseModel):
    client_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    cover_image: Optional[str] = None
    nicho_mercado: Optional[str] = None
    briefing_inicial: Optional[str] = None


class ProjectOut(ProjectBase):
    id: int
    client_name: Optional[str] = None
    created_at: str
    updated_at: str
    task_count: int = 0
    done_count: int = 0

    class Config:
        from_attributes = True


class ProjectDetail(ProjectOut):
    tasks: list[TaskOut] = Field(default_factory=list)


class ApplyTemplateRequest(BaseModel):
    template_id: int
