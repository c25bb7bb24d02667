"""Reusable project templates and their ordered task lists."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class ProjectTemplate(Base):
    __tablename__ = "project_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    default_days = Column(Integer, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    tasks = relationship(
        "TemplateTask",
        back_populates="template",
        order_by="TemplateTask.sort_order",
        cascade="all, delete-orphan",
    )


class TemplateTask(Base):
    __tablename__ = "template_tasks"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("project_templates.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(Text, nullable=False, default="medium")
    days_offset = Column(Integer, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    template = relationship("ProjectTemplate", back_populates="tasks")


__all__ = ["ProjectTemplate", "TemplateTask"]
