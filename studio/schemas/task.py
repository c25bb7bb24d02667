from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import TASK_PRIORITIES, TASK_STATUSES, pattern_for

STATUS_PATTERN = pattern_for(TASK_STATUSES)
PRIORITY_PATTERN = pattern_for(TASK_PRIORITIES)


class TaskBase(BaseModel):
    project_id: int
    title: str
    description: Optional[str] = None
    status: str = Field(default="backlog", pattern=STATUS_PATTERN)
    priority: str = Field(default="medium", pattern=PRIORITY_PATTERN)
    assignee_id: Optional[int] = None
    due_date: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)


class TaskCreate(TaskBase):
    sort_order: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)
    priority: Optional[str] = Field(default=None, pattern=PRIORITY_PATTERN)
    assignee_id: Optional[int] = None
    due_date: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    sort_order: Optional[int] = None


class TaskMove(BaseModel):
    status: str = Field(..., pattern=STATUS_PATTERN)
    position: Optional[int] = Field(default=None, ge=0)


class TaskOut(TaskBase):
    id: int
    sort_order: int = 0
    project_name: Optional[str] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class KanbanColumn(BaseModel):
    status: str
    label: str
    tasks: list[TaskOut] = Field(default_factory=list)
