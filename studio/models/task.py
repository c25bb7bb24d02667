"""Kanban tasks that belong to a project."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="backlog", index=True)
    priority = Column(Text, nullable=False, default="medium")
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    due_date = Column(Text, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    project = relationship("Project", back_populates="tasks")

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project else None


__all__ = ["Task"]
