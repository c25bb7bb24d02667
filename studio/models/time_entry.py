"""Timesheet rows and the categories users file them under."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.session import Base


class TimeEntry(Base):
    """One block of logged work.

    Rows created by the activity timer carry ``start_time``/``end_time``, the
    bio-tracking answers (``energia``/``satisfacao``) and the ``checkout_id``
    that made them. Manual rows only need ``date`` and ``hours``.
    """

    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    date = Column(Text, nullable=False, index=True)
    hours = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    activity_name = Column(Text, nullable=True)
    categoria = Column(Text, nullable=True)
    energia = Column(Integer, nullable=True)
    satisfacao = Column(Integer, nullable=True)
    start_time = Column(Text, nullable=True)
    end_time = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    checkout_id = Column(Text, nullable=True, unique=True)
    created_at = Column(Text, nullable=False)

    task = relationship("Task")
    project = relationship("Project")

    @property
    def task_title(self) -> str | None:
        return self.task.title if self.task else None

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project else None


class TimeCategory(Base):
    __tablename__ = "time_categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_time_categories_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    icon = Column(Text, nullable=True)
    color = Column(Text, nullable=True)
    # NULL for the seeded defaults everyone sees.
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_default = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)


__all__ = ["TimeEntry", "TimeCategory"]
