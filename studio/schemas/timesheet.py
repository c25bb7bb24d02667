"""Schemas for time entries, time categories and the activity timer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TimeEntryCreate(BaseModel):
    hours: float = Field(..., gt=0)
    date: Optional[str] = None
    description: Optional[str] = None
    task_id: Optional[int] = None
    project_id: Optional[int] = None
    activity_name: Optional[str] = None
    categoria: Optional[str] = None


class TimeEntryUpdate(BaseModel):
    activity_name: Optional[str] = None
    description: Optional[str] = None
    categoria: Optional[str] = None
    energia: Optional[int] = Field(default=None, ge=1, le=3)
    satisfacao: Optional[int] = Field(default=None, ge=1, le=3)
    hours: Optional[float] = Field(default=None, gt=0)


class TimeEntryOut(BaseModel):
    id: int
    user_id: int
    task_id: Optional[int] = None
    project_id: Optional[int] = None
    task_title: Optional[str] = None
    project_name: Optional[str] = None
    date: str
    hours: float
    description: Optional[str] = None
    activity_name: Optional[str] = None
    categoria: Optional[str] = None
    energia: Optional[int] = None
    satisfacao: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    checkout_id: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class TimesheetOut(BaseModel):
    entries: list[TimeEntryOut] = Field(default_factory=list)
    total_hours: float = 0.0


class TimeCategoryCreate(BaseModel):
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class TimeCategoryOut(BaseModel):
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    user_id: Optional[int] = None
    is_default: bool = False

    class Config:
        from_attributes = True


class TimerStart(BaseModel):
    activity_name: str
    categoria: Optional[str] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None


class CheckoutConfirm(BaseModel):
    energia: int = Field(..., ge=1, le=3)
    satisfacao: int = Field(..., ge=1, le=3)
    observacoes: Optional[str] = None
    categoria: Optional[str] = None


class TimerOut(BaseModel):
    phase: str
    activity_name: Optional[str] = None
    categoria: Optional[str] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    start_time: Optional[str] = None
    date: Optional[str] = None
    is_running: bool = False
    paused_elapsed: Optional[int] = None
    pending_checkout: bool = False
    checkout_id: Optional[str] = None
    elapsed_seconds: int = 0
    elapsed_display: str = "00:00:00"


class CheckoutResult(BaseModel):
    saved: bool
    entry: Optional[TimeEntryOut] = None
    timer: TimerOut
