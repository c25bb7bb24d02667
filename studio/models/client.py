"""SQLAlchemy model for studio clients and their uploaded documents."""

from __future__ import annotations

import json

from sqlalchemy import JSON, Column, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Client(Base):
    """A customer of the studio. Projects and finance entries point here."""

    __tablename__ = "clients"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)
    trading_name = Column(Text, nullable=True)
    document_number = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    address = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    # Metadata for files under DATA_DIR/uploads/clients/<id>, stored as a JSON list.
    documents_blob = Column("documents", Text, nullable=True)

    projects = relationship("Project", back_populates="client")

    def _document_records(self) -> list[dict[str, object]]:
        raw = self.documents_blob
        if not raw:
            return []
        try:
            decoded = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return []
        if not isinstance(decoded, list):
            return []
        return [dict(item) for item in decoded if isinstance(item, dict)]

    def _store_document_records(self, records: list[dict[str, object]]) -> None:
        self.documents_blob = json.dumps(records) if records else None

    def get_document_record(self, document_id: str) -> dict[str, object] | None:
        for record in self._document_records():
            if str(record.get("id")) == str(document_id):
                return record
        return None


__all__ = ["Client"]
