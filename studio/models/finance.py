"""Income and expense ledger rows."""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class FinancialEntry(Base):
    __tablename__ = "financial_entries"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(Text, nullable=False, index=True)
    category = Column(Text, nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(Text, nullable=False, default="BRL")
    date = Column(Text, nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    invoice_number = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    client = relationship("Client")
    project = relationship("Project")

    @property
    def client_name(self) -> str | None:
        return self.client.name if self.client else None

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project else None


__all__ = ["FinancialEntry"]
