from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import TASK_PRIORITIES, pattern_for

PRIORITY_PATTERN = pattern_for(TASK_PRIORITIES)


class TemplateTaskIn(BaseModel):
    title: str
    description: Optional[str] = None
    priority: str = Field(default="medium", pattern=PRIORITY_PATTERN)
    days_offset: Optional[int] = Field(default=None, ge=0)
    estimated_hours: Optional[float] = Field(default=None, ge=0)


class TemplateTaskOut(TemplateTaskIn):
    id: int
    sort_order: int

    class Config:
        from_attributes = True


class TemplateCreate(BaseModel):
    name: str
    description: Optional[str] = None
    default_days: Optional[int] = Field(default=None, ge=0)
    tasks: list[TemplateTaskIn] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    default_days: Optional[int] = Field(default=None, ge=0)
    # When present, replaces the whole ordered task list.
    tasks: Optional[list[TemplateTaskIn]] = None


class TemplateOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    default_days: Optional[int] = None
    tasks: list[TemplateTaskOut] = Field(default_factory=list)
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True
