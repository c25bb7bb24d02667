"""SQLAlchemy model for client projects."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Project(Base):
    """A piece of work for one client; tasks, brand documents and time hang off it."""

    __tablename__ = "projects"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="draft")
    start_date = Column(Text, nullable=True)
    end_date = Column(Text, nullable=True)
    budget = Column(Float, nullable=True)
    cover_image = Column(Text, nullable=True)
    nicho_mercado = Column(Text, nullable=True)
    briefing_inicial = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    client = relationship("Client", back_populates="projects")
    tasks = relationship("Task", back_populates="project", order_by="Task.sort_order")

    @property
    def client_name(self) -> str | None:
        return self.client.name if self.client else None


__all__ = ["Project"]
